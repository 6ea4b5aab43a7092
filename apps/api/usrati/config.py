"""Application configuration utilities."""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, List

from pydantic import BaseModel, Field


class AppConfig(BaseModel):
    """Strongly typed configuration loaded from config.json."""

    app_name: str = Field(default="Usrati API")
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ]
    )
    log_level: str = Field(default="INFO")
    request_timeout_seconds: float = Field(default=15.0, gt=0)
    alert_issuing_authority: str = Field(default="نظام متابعة الأسرة")


def _config_path() -> Path:
    return Path(__file__).resolve().parents[1] / "config.json"


def load_config() -> AppConfig:
    """Load configuration from config.json, falling back to defaults when absent."""

    contents: Dict[str, Any] = {}
    config_file = _config_path()
    if config_file.exists():
        contents = json.loads(config_file.read_text())
    level = os.getenv("USRATI_LOG_LEVEL")
    if level:
        contents["log_level"] = level
    return AppConfig(**contents)


CONFIG = load_config()
