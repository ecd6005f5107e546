"""Sync configuration via pydantic-settings (.env + env vars)."""

import sys
from pathlib import Path

from loguru import logger
from pydantic_settings import BaseSettings, SettingsConfigDict

from .api.google_books import GOOGLE_BOOKS_URL
from .errors import ConfigError
from .reconcile import PLACEHOLDER_COVER_URL


class SyncConfig(BaseSettings):
    """All configuration with layered resolution:
    .env file < environment variables < constructor kwargs.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    # -- Directories --
    library_dir: Path = Path.home() / ".local/share/highlight-sync/library"
    log_dir: Path = Path.home() / ".local/state/highlight-sync/logs"
    lock_dir: Path = Path.home() / ".local/state/highlight-sync/locks"

    # -- Behavior --
    dry_run: bool = False
    log_level: str = "INFO"

    # -- Metadata lookup --
    metadata_lookup: bool = True
    google_books_url: str = GOOGLE_BOOKS_URL
    lookup_timeout: float = 10.0
    placeholder_cover_url: str = PLACEHOLDER_COVER_URL

    def setup_logging(self) -> None:
        """Configure loguru for highlight-sync.

        Raises ConfigError for a log level loguru does not know.
        """
        level = self.log_level.upper()
        try:
            logger.level(level)
        except ValueError as exc:
            raise ConfigError(f"Unknown log level: {self.log_level!r}") from exc

        logger.remove()  # Remove default stderr handler

        log_format = (
            "{time:YYYY-MM-DDTHH:mm:ssZ} | {level:<8} | "
            "{extra[stage]:<12} | {message}"
        )

        def _default_extra(record):
            record["extra"].setdefault("stage", "")
            return True

        logger.add(
            sys.stderr,
            format=log_format,
            level=level,
            filter=_default_extra,
        )

        self.log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(self.log_dir / "sync.log"),
            format=log_format,
            level="DEBUG",
            rotation="10 MB",
            retention="30 days",
            filter=_default_extra,
        )
