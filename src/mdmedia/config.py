"""Application configuration: settings schema and config.yaml loader"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


CONFIG_FILE = "config.yaml"


class Settings(BaseModel):
    public_dir:     str = Field(default="public",  description="Static root that public asset paths resolve under")
    public_base:    str = Field(default="assets",  description="URL segment below public_dir for localized assets")
    dedupe_mode:    str = Field(default="global",  pattern="^(global|perPost)$", description="global or perPost")
    usage_log_path: str = Field(default=".asset-usage.json", description="JSON usage ledger (json backend)")
    video_attrs:    str = Field(default="controls playsinline muted", description="Default <video> attributes")
    content_root:   str = Field(default="src/content", description="Path marker that document ids are relative to")
    preprocess_suffix: str = Field(default=".mdx", description="Files rewritten by the image-attribute preprocessor")
    parser_config:  str = Field(default="gfm-like",   description="MarkdownIt parser preset name")
    output_dir:     str = Field(default="dist",       description="Directory for rendered HTML + JSON files")
    ledger_backend: str = Field(default="json", pattern="^(json|sql)$", description="json or sql")
    db_url:         str = Field(default="sqlite:///mdmedia.db", description="Ledger database (sql backend)")


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from config.yaml, then MDMEDIA_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Invalid {CONFIG_FILE}: expected a mapping")

    for name in Settings.model_fields:
        if val := os.getenv(f"MDMEDIA_{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
