from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from slab_shear_app.core.paths import exports_dir, settings_path

DEFAULT_EXPORT_FILENAME = "shear-strength-calculations.txt"


class AppSettings(BaseModel):
    """User preferences persisted to settings.json."""

    model_config = ConfigDict(extra="ignore")

    export_dir: Optional[str] = Field(None, description="Folder for text/Excel exports (default: <data root>/exports)")
    export_filename: str = Field(DEFAULT_EXPORT_FILENAME, description="File name used by Download")
    timestamp_format: str = Field("%x, %X", description="strftime pattern for record timestamps (locale date, time)")
    warn_betah_le_one: bool = Field(True, description="Report a warning when βh <= 1")

    def resolved_export_dir(self) -> Path:
        if self.export_dir:
            p = Path(self.export_dir)
            p.mkdir(parents=True, exist_ok=True)
            return p
        return exports_dir()

    def export_path(self) -> Path:
        return self.resolved_export_dir() / self.export_filename


def load_settings() -> Dict[str, Any]:
    p = settings_path()
    if not p.exists():
        return {}
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning(f"Ignoring unreadable settings file {p}: {e}")
        return {}
    return data if isinstance(data, dict) else {}


def save_settings(data: Dict[str, Any]) -> None:
    p = settings_path()
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(data, indent=2), encoding="utf-8")


def get_app_settings() -> AppSettings:
    try:
        return AppSettings.model_validate(load_settings())
    except ValidationError as e:
        logger.warning(f"Invalid settings; using defaults: {e}")
        return AppSettings()


def save_app_settings(settings: AppSettings) -> None:
    data = load_settings()
    data.update(settings.model_dump())
    save_settings(data)
