"""Tests for pwa/renderer.py — Jinja2 async rendering."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest
from jinja2 import DictLoader, TemplateNotFound

from pwa.renderer import JinjaRenderer

from tests.conftest import make_pwa

TEMPLATES = Path(__file__).parent.parent / "web" / "templates"


def render(renderer: JinjaRenderer, ref: str, **context) -> str:
    return asyncio.run(renderer.render(ref, context))


class TestJinjaRenderer:
    def test_renders_context(self):
        renderer = JinjaRenderer(DictLoader({"t.html": "<b>{{ name }}</b>"}))
        assert render(renderer, "t.html", name="Foo") == "<b>Foo</b>"

    def test_html_autoescaped(self):
        renderer = JinjaRenderer(DictLoader({"t.html": "{{ name }}"}))
        assert render(renderer, "t.html", name="<script>") == "&lt;script&gt;"

    def test_missing_template_raises(self):
        renderer = JinjaRenderer(DictLoader({}))
        with pytest.raises(TemplateNotFound):
            render(renderer, "nope.html")


class TestRssItemTemplate:
    @pytest.fixture
    def renderer(self) -> JinjaRenderer:
        return JinjaRenderer.from_directory(TEMPLATES)

    def context(self, **overrides):
        pwa = make_pwa("a", "2020-01-02T10:00:00Z", "Foo")
        context = {
            "url": "/api/pwa?format=rss",
            "base_url": "https://pwa-directory.appspot.com/",
            "pwa": pwa,
            "title": "PWA Directory: Foo",
            "description": "PWA Directory: Foo - Description of a",
            "backlink": True,
            "content_only": False,
        }
        context.update(overrides)
        return context

    def test_full_page_includes_heading_and_backlink(self, renderer):
        html = asyncio.run(renderer.render("pwas/view-rss.html", self.context()))
        assert "<h1>PWA Directory: Foo</h1>" in html
        assert 'href="https://pwa-directory.appspot.com/pwas/a"' in html
        assert "Lighthouse score: 80" in html

    def test_content_only_omits_heading(self, renderer):
        html = asyncio.run(
            renderer.render("pwas/view-rss.html", self.context(content_only=True))
        )
        assert "<h1>" not in html
        assert "https://a.example.com/icon-128.png" in html
