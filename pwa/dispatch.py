"""Listing dispatch: query the record source and route to a format writer.

Every call to ``PwaListing.respond`` produces exactly one ListingResponse:

* unknown id / store failure in single-record mode → 404, upstream message
* listing failure or writer failure                → 500, generic message
* success                                          → 200 in the chosen format,
                                                     with a public Cache-Control
"""

from __future__ import annotations

import json
import logging
from typing import Optional

from config.settings import Settings
from pwa.feed import FeedBuilder, RssWriter
from pwa.formatters import CsvWriter, JsonWriter, Writer
from pwa.models import ListingQuery, ListingResponse, Pwa, RequestMeta
from pwa.renderer import Renderer
from pwa.store import RecordSource, StoreError

logger = logging.getLogger(__name__)

DEFAULT_FORMAT = "json"
INTERNAL_ERROR = "Internal server error"


def error_response(status: int, message: str) -> ListingResponse:
    return ListingResponse(
        status=status,
        body=json.dumps({"error": message}),
        content_type="application/json",
    )


def default_writers(renderer: Renderer, settings: Settings) -> dict[str, Writer]:
    """Format name → writer strategy for the three supported formats."""
    return {
        "json": JsonWriter(),
        "csv": CsvWriter(),
        "rss": RssWriter(FeedBuilder(renderer, settings)),
    }


class PwaListing:
    """Read-only listing endpoint logic, independent of the web framework."""

    def __init__(
        self,
        source: RecordSource,
        renderer: Renderer,
        settings: Settings,
        writers: Optional[dict[str, Writer]] = None,
    ) -> None:
        self.source = source
        self.settings = settings
        self.writers = writers or default_writers(renderer, settings)

    def writer_for(self, fmt: str) -> Writer:
        """Return the writer for *fmt*; unknown formats get JSON."""
        return self.writers.get(fmt) or self.writers[DEFAULT_FORMAT]

    @property
    def cache_control(self) -> str:
        return f"public, max-age={self.settings.cache_max_age}"

    async def respond(self, query: ListingQuery, meta: RequestMeta) -> ListingResponse:
        """Answer one listing request.

        Args:
            query: Parsed request parameters.
            meta: Request metadata for feed templates.

        Returns:
            The single response to send.
        """
        if query.pwa_id:
            try:
                pwas: list[Pwa] = [self.source.find(query.pwa_id)]
            except StoreError as exc:
                logger.warning("Lookup failed for id=%r: %s", query.pwa_id, exc)
                return error_response(404, str(exc))
        else:
            try:
                pwas = self.source.list(query.skip, query.limit, query.sort)
            except Exception:
                logger.exception(
                    "Listing failed (skip=%r limit=%r sort=%r)",
                    query.skip, query.limit, query.sort,
                )
                return error_response(500, INTERNAL_ERROR)

        writer = self.writer_for(query.format)
        try:
            response = await writer.write(pwas, query, meta)
        except Exception:
            logger.exception("Failed to write %d PWAs as %r", len(pwas), query.format)
            return error_response(500, INTERNAL_ERROR)

        response.headers["Cache-Control"] = self.cache_control
        return response
