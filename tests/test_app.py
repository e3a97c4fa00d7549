"""End-to-end tests for web/app.py through the Flask test client."""

from __future__ import annotations

import csv
import io
import xml.etree.ElementTree as ET

import pytest

from pwa.store import PwaStore
from web.app import create_app

from tests.conftest import FakeRenderer, make_pwa


@pytest.fixture
def store(settings) -> PwaStore:
    store = PwaStore(settings.db_path)
    store.init_db()
    store.save(make_pwa("a", "2020-01-02T10:00:00Z", "Foo"))
    store.save(make_pwa("b", "2020-01-05T00:00:00Z", "Bar"))
    return store


@pytest.fixture
def client(settings, store):
    app = create_app(settings)
    app.config["TESTING"] = True
    return app.test_client()


class TestJsonRoutes:
    def test_list_defaults_to_json_newest_first(self, client):
        resp = client.get("/api/pwa")
        assert resp.status_code == 200
        assert resp.mimetype == "application/json"
        assert [p["id"] for p in resp.get_json()] == ["b", "a"]
        assert resp.get_json()[1]["created"] == "2020-01-02"

    def test_trailing_slash(self, client):
        assert client.get("/api/pwa/").status_code == 200

    def test_cache_control(self, client):
        resp = client.get("/api/pwa")
        assert resp.headers["Cache-Control"] == "public, max-age=3600"

    def test_pagination(self, client):
        resp = client.get("/api/pwa?skip=1&limit=1")
        assert [p["id"] for p in resp.get_json()] == ["a"]

    def test_oversized_skip_is_empty_page(self, client):
        resp = client.get("/api/pwa?skip=99999999999999999999")
        assert resp.status_code == 200
        assert resp.get_json() == []

    def test_negative_limit_keeps_page_size(self, client):
        resp = client.get("/api/pwa?limit=-1")
        assert resp.status_code == 200
        assert len(resp.get_json()) == 2

    def test_single(self, client):
        resp = client.get("/api/pwa/a")
        assert resp.status_code == 200
        assert [p["id"] for p in resp.get_json()] == ["a"]

    def test_single_unknown_is_404(self, client):
        resp = client.get("/api/pwa/nope?format=csv")
        assert resp.status_code == 404
        assert resp.get_json() == {"error": "PWA not found: nope"}


class TestCsvRoute:
    def test_csv_listing(self, client):
        resp = client.get("/api/pwa?format=csv")
        rows = list(csv.reader(io.StringIO(resp.get_data(as_text=True))))

        assert resp.status_code == 200
        assert resp.mimetype == "text/csv"
        assert rows[0][0] == "id"
        assert [r[0] for r in rows[1:]] == ["b", "a"]


class TestRssRoute:
    def test_rss_listing_renders_real_template(self, client):
        resp = client.get("/api/pwa?format=rss")
        root = ET.fromstring(resp.get_data())

        assert resp.status_code == 200
        assert resp.mimetype == "application/rss+xml"
        items = root.findall("./channel/item")
        assert [i.findtext("guid") for i in items] == ["b", "a"]
        assert "<h1>PWA Directory: Bar</h1>" in items[0].findtext("description")

    def test_content_only(self, client):
        resp = client.get("/api/pwa/a?format=rss&contentOnly=1")
        item = ET.fromstring(resp.get_data()).find("./channel/item")
        assert "<h1>" not in item.findtext("description")

    def test_control_characters_served_well_formed(self, client, store):
        store.save(make_pwa("ctl", "2021-01-01T00:00:00Z", "Bad\x0bName"))
        resp = client.get("/api/pwa/ctl?format=rss")
        item = ET.fromstring(resp.get_data()).find("./channel/item")

        assert resp.status_code == 200
        assert item.findtext("title") == "BadName"

    def test_render_failure_is_500(self, settings, store):
        app = create_app(settings, renderer=FakeRenderer(fail_on="a"))
        resp = app.test_client().get("/api/pwa?format=rss")

        assert resp.status_code == 500
        assert resp.get_json() == {"error": "Internal server error"}
