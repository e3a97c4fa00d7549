"""Application settings — all configuration loaded from environment variables.

Usage:
    from config.settings import Settings
    settings = Settings()
    settings.validate()   # raises ValueError on nonsensical limits/timeouts
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_DB_PATH = Path(__file__).parent.parent / "data" / "pwas.db"


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

    # ── Listing ─────────────────────────────────────────────────────────────
    #: Seconds for the public ``Cache-Control`` max-age on successful responses.
    cache_max_age: int = field(
        default_factory=lambda: int(os.environ.get("CACHE_MAX_AGE", "3600"))
    )
    default_limit: int = field(
        default_factory=lambda: int(os.environ.get("DEFAULT_LIMIT", "100"))
    )
    default_sort: str = field(
        default_factory=lambda: os.environ.get("DEFAULT_SORT", "newest")
    )

    # ── RSS feed ────────────────────────────────────────────────────────────
    #: Upper bound for a single feed item description render, in seconds.
    render_timeout: float = field(
        default_factory=lambda: float(os.environ.get("RENDER_TIMEOUT", "10"))
    )
    site_url: str = field(
        default_factory=lambda: os.environ.get(
            "SITE_URL", "https://pwa-directory.appspot.com/"
        )
    )
    feed_url: str = field(
        default_factory=lambda: os.environ.get(
            "FEED_URL", "https://pwa-directory.appspot.com/api/pwa?format=rss"
        )
    )
    feed_image_url: str = field(
        default_factory=lambda: os.environ.get(
            "FEED_IMAGE_URL",
            "https://pwa-directory.appspot.com/favicons/android-chrome-144x144.png",
        )
    )
    feed_title: str = "PWA Directory"
    feed_description: str = "A Directory of Progressive Web Apps"
    #: Template used for each feed item's HTML description.
    rss_item_template: str = "pwas/view-rss.html"

    def validate(self) -> None:
        """Raise ``ValueError`` if any setting is out of range."""
        if self.default_limit <= 0:
            raise ValueError("DEFAULT_LIMIT must be a positive integer.")
        if self.cache_max_age < 0:
            raise ValueError("CACHE_MAX_AGE must not be negative.")
        if self.render_timeout <= 0:
            raise ValueError("RENDER_TIMEOUT must be a positive number of seconds.")
        if not self.site_url.endswith("/"):
            raise ValueError("SITE_URL must end with a trailing slash.")
