"""CSV and JSON projections of PWA records.

Both projections expose a fixed subset of fields and truncate ``created`` /
``updated`` to calendar days (``YYYY-MM-DD``, UTC). Record order is never
changed.
"""

from __future__ import annotations

import csv
import io
import json
from datetime import datetime
from typing import Any, Protocol

from pwa.models import ListingQuery, ListingResponse, Pwa, RequestMeta, as_utc

CSV_HEADER: list[str] = [
    "id", "absoluteStartUrl", "manifestUrl", "lighthouseScore", "created", "updated",
]


class Writer(Protocol):
    """A format strategy: turns a list of records into one response."""

    async def write(
        self,
        pwas: list[Pwa],
        query: ListingQuery,
        meta: RequestMeta,
    ) -> ListingResponse: ...


def day_of(value: datetime) -> str:
    """Project a timestamp to its UTC calendar day.

    Examples:
        >>> day_of(datetime(2020, 1, 2, 10, 0))
        '2020-01-02'
    """
    return as_utc(value).date().isoformat()


class CsvWriter:
    """Spreadsheet-friendly listing: header row + one row per record."""

    content_type = "text/csv"

    def rows(self, pwas: list[Pwa]) -> list[list[Any]]:
        table: list[list[Any]] = [list(CSV_HEADER)]
        for pwa in pwas:
            table.append([
                pwa.id,
                pwa.absolute_start_url,
                pwa.manifest_url,
                pwa.lighthouse_score,
                day_of(pwa.created),
                day_of(pwa.updated),
            ])
        return table

    def encode(self, rows: list[list[Any]]) -> str:
        # csv.writer applies RFC 4180 quoting and CRLF line endings
        buf = io.StringIO()
        writer = csv.writer(buf)
        writer.writerows(rows)
        return buf.getvalue()

    async def write(
        self,
        pwas: list[Pwa],
        query: ListingQuery,
        meta: RequestMeta,
    ) -> ListingResponse:
        return ListingResponse(
            status=200,
            body=self.encode(self.rows(pwas)),
            content_type=self.content_type,
        )


class JsonWriter:
    """Default listing format: a JSON array of projected records."""

    content_type = "application/json"

    def project(self, pwa: Pwa) -> dict[str, Any]:
        return {
            "id": pwa.id,
            "absoluteStartUrl": pwa.absolute_start_url,
            "manifestUrl": pwa.manifest_url,
            "lighthouseScore": pwa.lighthouse_score,
            "webPageTest": pwa.web_page_test,
            "pageSpeed": pwa.page_speed,
            "created": day_of(pwa.created),
            "updated": day_of(pwa.updated),
        }

    async def write(
        self,
        pwas: list[Pwa],
        query: ListingQuery,
        meta: RequestMeta,
    ) -> ListingResponse:
        return ListingResponse(
            status=200,
            body=json.dumps([self.project(pwa) for pwa in pwas]),
            content_type=self.content_type,
        )
