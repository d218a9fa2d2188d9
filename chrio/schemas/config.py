"""Application configuration schema."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field


class AppConfig(BaseModel):
    """Runtime configuration for the storage layer.

    Loaded from config/defaults.toml; see chrio.settings.
    """

    db_path: str = Field(
        default="~/.chrio/chrio.db", description="SQLite database file (':memory:' allowed)",
    )
    photos_dir: str = Field(
        default="~/.chrio/photos", description="Root directory for session photos",
    )

    @property
    def photos_path(self) -> Path:
        return Path(self.photos_dir).expanduser()
