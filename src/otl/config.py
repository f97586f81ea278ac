"""Application configuration: settings schema and config.yaml loader"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field


CONFIG_FILE = "config.yaml"


class Settings(BaseModel):
    """Output settings only; nothing here changes which records a file decodes to."""
    indent:       int = Field(default=4, ge=1, description="Spaces per level in canonical output")
    json_indent:  int = Field(default=2, ge=0, description="JSON indent; 0 = compact")
    diff_context: int = Field(default=0, ge=0, description="Context lines around diff hunks")
    log_level:    str = Field(default="WARNING", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    encoding:     str = Field(default="latin1", pattern="^(latin1|utf8|ascii)$",
                              description="How stored bytes read as characters; never changes structure")


def load_config(overrides: Optional[dict[str, Any]] = None) -> Settings:
    """Load Settings from config.yaml, then OTL_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Invalid {CONFIG_FILE}: expected a mapping, got {type(data).__name__}")

    for name in Settings.model_fields:
        if val := os.getenv(f"OTL_{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
