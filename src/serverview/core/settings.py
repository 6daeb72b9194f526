"""Runtime settings for serverview.

Settings are read from ``SERVERVIEW_*`` environment variables and an
optional ``.env`` file through pydantic-settings, validated once at startup.

Fields
──────
log_level                : structlog log level
json_logs                : JSON log output (None = auto-detect from tty)
coalesce_window_seconds  : debounce window for record-change recomputes
data_dir                 : directory holding ``preferences.json``

Examples:
    >>> from serverview.core.settings import ServerViewSettings
    >>> settings = ServerViewSettings(coalesce_window_seconds=0.5)
    >>> settings.preferences_path.name
    'preferences.json'
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerViewSettings(BaseSettings):
    """Settings shared by the listing pipeline and the CLI."""

    model_config = SettingsConfigDict(
        env_prefix="SERVERVIEW_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    json_logs: bool | None = None

    # ── Recompute ────────────────────────────────────────────────
    coalesce_window_seconds: float = Field(
        default=1.0,
        gt=0,
        description="Window within which record-change notifications collapse into one recompute",
    )

    # ── Storage ──────────────────────────────────────────────────
    data_dir: Path = Field(
        default_factory=lambda: Path.home() / ".serverview",
        description="Persistent data directory",
    )

    @property
    def preferences_path(self) -> Path:
        """Key/value preference file (holds the persisted sort order)."""
        return self.data_dir / "preferences.json"
