"""Application settings: all configuration loaded from environment variables.

Usage:
    from config.settings import Settings
    settings = Settings()
    settings.validate()   # raises ValueError on nonsensical values
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_DB_PATH = Path(__file__).parent.parent / "data" / "messages.db"

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


@dataclass
class Settings:
    """Centralised application configuration.

    All values are read from environment variables at instantiation time
    so that tests can override them by patching ``os.environ``.
    """

    # ── Storage ─────────────────────────────────────────────────────────────
    db_path: Path = field(
        default_factory=lambda: Path(os.environ.get("DB_PATH", str(DEFAULT_DB_PATH)))
    )

    # ── Flask ───────────────────────────────────────────────────────────────
    debug: bool = field(
        default_factory=lambda: os.environ.get("FLASK_DEBUG", "0") == "1"
    )
    port: int = field(
        default_factory=lambda: int(os.environ.get("PORT", "5000"))
    )
    log_level: str = field(
        default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO").upper()
    )

    # ── Scanning ────────────────────────────────────────────────────────────
    #: Tag occurrences examined per channel-scope query before stopping early.
    scan_budget: int = field(
        default_factory=lambda: int(os.environ.get("SCAN_BUDGET", "5000"))
    )
    #: Budget for team-scope queries when the caller omits ``max``.
    team_default_max: int = field(
        default_factory=lambda: int(os.environ.get("TEAM_DEFAULT_MAX", "1000"))
    )
    messages_page_size: int = field(
        default_factory=lambda: int(os.environ.get("MESSAGES_PAGE_SIZE", "200"))
    )
    channel_list_page_size: int = field(
        default_factory=lambda: int(os.environ.get("CHANNEL_LIST_PAGE_SIZE", "1000"))
    )

    def validate(self) -> None:
        """Raise ``ValueError`` if any setting is out of range."""
        if self.scan_budget <= 0:
            raise ValueError("SCAN_BUDGET must be a positive integer.")
        if self.messages_page_size <= 0:
            raise ValueError("MESSAGES_PAGE_SIZE must be a positive integer.")
        if self.channel_list_page_size <= 0:
            raise ValueError("CHANNEL_LIST_PAGE_SIZE must be a positive integer.")
        if not 0 < self.port <= 65535:
            raise ValueError("PORT must be between 1 and 65535.")
        if self.log_level not in LOG_LEVELS:
            raise ValueError(
                f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {self.log_level!r}."
            )
