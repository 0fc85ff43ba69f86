"""Configuration constants and enums for oasbuilder."""

from enum import Enum
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

CONFIG_FILENAME = ".oasbuilder.yaml"


class FileFormat(Enum):
    """Enum representing the format of a definition or document file."""

    JSON = "json"
    YAML = "yaml"


class ProjectConfig(BaseModel):
    """Configuration model for oasbuilder."""

    openapi_version: str | None = Field(
        default=None, description="OpenAPI version used when the definition does not set one"
    )
    output_format: FileFormat | None = Field(
        default=None, description="Format of the generated document (defaults to the input's)"
    )
    output_name: str | None = Field(
        default=None, description="File name of the generated document, without extension"
    )


def get_config_path(target_dir: Path) -> Path:
    """Get the path to the config file in the target directory."""
    return target_dir / CONFIG_FILENAME


def load_config(target_dir: Path) -> ProjectConfig:
    """
    Load configuration from .oasbuilder.yaml file.
    Returns empty config if file doesn't exist.
    """
    config_path = get_config_path(target_dir)
    if not config_path.exists():
        return ProjectConfig()
    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return ProjectConfig(**data)


def save_config(target_dir: Path, config: ProjectConfig) -> bool:
    """
    Save configuration to .oasbuilder.yaml file.
    Only writes if file doesn't exist (preserves user edits).
    Returns True if created, False if already existed.
    """
    config_path = get_config_path(target_dir)
    if config_path.exists():
        return False
    config_path.parent.mkdir(parents=True, exist_ok=True)
    data = config.model_dump(exclude_none=True, mode="json")
    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(data, f, default_flow_style=False, allow_unicode=True, sort_keys=False)
    return True
