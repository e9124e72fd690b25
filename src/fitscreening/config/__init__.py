"""Configuration management utilities."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from ..schemas.config import AppConfig, load_config


class ConfigManager:
    """YAML-backed configuration loader."""

    @staticmethod
    def load_file(path: str | Path) -> dict[str, Any]:
        with Path(path).open("r", encoding="utf-8") as handle:
            return yaml.safe_load(handle) or {}

    @classmethod
    def load_app_config(cls, path: str | Path | None) -> AppConfig:
        """Load and validate a YAML file; ``None`` yields the defaults."""
        return load_config(cls.load_file(path) if path else None)


__all__ = ["ConfigManager"]
