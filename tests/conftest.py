"""Shared fixtures: sample records, an in-memory source and a fake renderer."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Optional

import pytest

from config.settings import Settings
from pwa.models import Pwa
from pwa.store import PwaNotFoundError, StoreError


def make_pwa(pwa_id: str, created: str, display_name: str = "", **overrides: Any) -> Pwa:
    data: dict[str, Any] = {
        "id": pwa_id,
        "displayName": display_name or pwa_id.upper(),
        "name": display_name or pwa_id,
        "description": f"Description of {pwa_id}",
        "absoluteStartUrl": f"https://{pwa_id}.example.com/",
        "manifestUrl": f"https://{pwa_id}.example.com/manifest.json",
        "iconUrl128": f"https://{pwa_id}.example.com/icon-128.png",
        "lighthouseScore": 80,
        "webPageTest": {"firstView": 1200},
        "pageSpeed": {"score": 90},
        "created": created,
        "updated": created,
    }
    data.update(overrides)
    return Pwa.model_validate(data)


class FakeSource:
    """In-memory RecordSource that records the calls it receives."""

    def __init__(self, pwas: list[Pwa], fail_list: bool = False) -> None:
        self.pwas = pwas
        self.fail_list = fail_list
        self.calls: list[tuple] = []

    def find(self, pwa_id: str) -> Pwa:
        self.calls.append(("find", pwa_id))
        for pwa in self.pwas:
            if pwa.id == pwa_id:
                return pwa
        raise PwaNotFoundError(pwa_id)

    def list(self, skip: Optional[int] = None, limit: int = 100, sort: str = "newest") -> list[Pwa]:
        self.calls.append(("list", skip, limit, sort))
        if self.fail_list:
            raise StoreError("database is locked")
        start = skip or 0
        return self.pwas[start:start + limit]


class FakeRenderer:
    """Renderer returning ``<p>{id}</p>`` after a per-id simulated latency."""

    def __init__(
        self,
        delays: Optional[dict[str, float]] = None,
        fail_on: Optional[str] = None,
    ) -> None:
        self.delays = delays or {}
        self.fail_on = fail_on
        self.contexts: list[dict[str, Any]] = []
        self.active = 0
        self.max_active = 0

    async def render(self, template_ref: str, context: dict[str, Any]) -> str:
        pwa = context["pwa"]
        self.contexts.append(context)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delays.get(pwa.id, 0))
            if pwa.id == self.fail_on:
                raise ValueError(f"template blew up on {pwa.id}")
            return f"<p>{pwa.id}</p>"
        finally:
            self.active -= 1


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(db_path=tmp_path / "pwas.db", render_timeout=1.0)


@pytest.fixture
def sample_pwas() -> list[Pwa]:
    return [
        make_pwa("a", "2020-01-02T10:00:00Z", "Foo"),
        make_pwa("b", "2020-01-05T00:00:00Z", "Bar"),
    ]


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
