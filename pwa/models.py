"""
Pydantic models and request/response shapes shared across the pwa package.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from config.settings import Settings

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class Pwa(BaseModel):
    """A single directory entry as stored in the record source."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    display_name: str = Field(default="", alias="displayName")
    name: str = ""
    description: str = ""
    absolute_start_url: str = Field(default="", alias="absoluteStartUrl")
    manifest_url: str = Field(default="", alias="manifestUrl")
    icon_url_128: str = Field(default="", alias="iconUrl128")
    lighthouse_score: Optional[int] = Field(default=None, alias="lighthouseScore")
    web_page_test: Any = Field(default=None, alias="webPageTest")
    page_speed: Any = Field(default=None, alias="pageSpeed")
    created: datetime
    updated: datetime


def as_utc(value: datetime) -> datetime:
    """Return *value* in UTC, treating naive datetimes as already UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_int(value: str | None) -> int | None:
    """Parse the leading integer of *value*, or return None.

    ``"12abc"`` → 12, ``"abc"`` → None, ``None`` → None.
    """
    if value is None:
        return None
    match = _LEADING_INT.match(value)
    return int(match.group(1)) if match else None


@dataclass
class ListingQuery:
    """Per-request listing parameters."""

    pwa_id: Optional[str] = None
    format: str = "json"
    sort: str = "newest"
    skip: Optional[int] = None
    limit: int = 100
    content_only: bool = False

    @classmethod
    def from_request(
        cls,
        pwa_id: str | None,
        args: Mapping[str, str],
        settings: "Settings",
    ) -> "ListingQuery":
        """Build a query from a path id and the request's query string.

        Missing or empty ``format``/``sort`` fall back to their defaults; a
        missing, non-numeric or non-positive ``limit`` falls back to the
        configured page size.
        """
        limit = parse_int(args.get("limit"))
        if limit is None or limit <= 0:
            limit = settings.default_limit
        return cls(
            pwa_id=pwa_id or None,
            format=args.get("format") or "json",
            sort=args.get("sort") or settings.default_sort,
            skip=parse_int(args.get("skip")),
            limit=limit,
            content_only=bool(args.get("contentOnly")),
        )


@dataclass
class RequestMeta:
    """Request-scoped metadata handed to templates."""

    url: str
    base_url: str = ""

    def as_context(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ListingResponse:
    """The single terminal response produced for a listing request."""

    status: int
    body: str
    content_type: str
    headers: dict[str, str] = field(default_factory=dict)
