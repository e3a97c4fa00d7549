"""RSS 2.0 feed assembly for PWA listings.

Flow
────
1. FeedBuilder.build(pwas, meta, content_only)
     → renders each record's HTML description through the Renderer, one at
       a time and in list order, each render bounded by a timeout
     → appends one <item> per record (title, link, CDATA description, guid,
       pubDate, media:thumbnail, l:link)
     → serialises the finished document once

2. RssWriter.write(...)
     → wraps the serialised feed in a 200 application/rss+xml response

A failed or timed-out render raises FeedRenderError and no feed is produced.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Any, Optional
from xml.sax.saxutils import escape, quoteattr

from config.settings import Settings
from pwa.models import ListingQuery, ListingResponse, Pwa, RequestMeta, as_utc
from pwa.renderer import Renderer

logger = logging.getLogger(__name__)

GENERATOR = "pwa-directory"

#: Namespaces declared on the <rss> root element.
NAMESPACES: dict[str, str] = {
    "atom":  "http://www.w3.org/2005/Atom",
    "rdf":   "http://www.w3.org/1999/02/22-rdf-syntax-ns#",
    "l":     "http://purl.org/rss/1.0/modules/link/",
    "media": "http://search.yahoo.com/mrss/",
}

LINK_ALTERNATE = "http://purl.org/rss/1.0/modules/link/#alternate"
THUMBNAIL_SIZE = "128"

_XML_ILLEGAL = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")


class FeedRenderError(RuntimeError):
    """Raised when an item description cannot be rendered."""

    def __init__(self, pwa_id: str, reason: str) -> None:
        super().__init__(f"Could not render feed item {pwa_id}: {reason}")
        self.pwa_id = pwa_id


# ── XML helpers ────────────────────────────────────────────────────────────


def rfc822(value: datetime) -> str:
    """Format a timestamp the way RSS expects (``Thu, 02 Jan 2020 10:00:00 GMT``)."""
    return format_datetime(as_utc(value), usegmt=True)


def xml_safe(text: str) -> str:
    """Drop characters XML 1.0 does not allow, even when escaped."""
    return _XML_ILLEGAL.sub("", text)


def cdata(text: str) -> str:
    """Wrap *text* in a CDATA section, splitting any embedded ``]]>``."""
    return "<![CDATA[" + xml_safe(text).replace("]]>", "]]]]><![CDATA[>") + "]]>"


def _text(value: str) -> str:
    return escape(xml_safe(value))


def _attrs(attrs: dict[str, str]) -> str:
    return "".join(f" {name}={quoteattr(xml_safe(value))}" for name, value in attrs.items())


def _element(tag: str, text: str, **attrs: str) -> str:
    return f"<{tag}{_attrs(attrs)}>{text}</{tag}>"


def _empty(tag: str, attrs: dict[str, str]) -> str:
    return f"<{tag}{_attrs(attrs)}/>"


# ── Feed document ──────────────────────────────────────────────────────────


@dataclass
class FeedItem:
    """One <item> of the channel."""

    title: str
    url: str
    description: str
    guid: str
    date: datetime
    thumbnail_url: str
    alternate_url: str

    def to_xml(self) -> str:
        return "".join([
            "<item>",
            _element("title", cdata(self.title)),
            _element("description", cdata(self.description)),
            _element("link", _text(self.url)),
            _element("guid", _text(self.guid), isPermaLink="false"),
            _element("pubDate", rfc822(self.date)),
            _empty("media:thumbnail", {
                "url": self.thumbnail_url,
                "height": THUMBNAIL_SIZE,
                "width": THUMBNAIL_SIZE,
            }),
            _empty("l:link", {
                "l:rel": LINK_ALTERNATE,
                "l:type": "application/json",
                "rdf:resource": self.alternate_url,
            }),
            "</item>",
        ])


@dataclass
class FeedDocument:
    """Channel metadata plus the items appended so far."""

    title: str
    description: str
    feed_url: str
    site_url: str
    image_url: str
    pub_date: datetime
    items: list[FeedItem] = field(default_factory=list)

    def add(self, item: FeedItem) -> None:
        self.items.append(item)

    def to_xml(self) -> str:
        namespaces = "".join(
            f" xmlns:{prefix}={quoteattr(uri)}" for prefix, uri in NAMESPACES.items()
        )
        stamp = rfc822(self.pub_date)
        parts = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            f'<rss version="2.0"{namespaces}>',
            "<channel>",
            _element("title", cdata(self.title)),
            _element("description", cdata(self.description)),
            _element("link", _text(self.site_url)),
            "<image>",
            _element("url", _text(self.image_url)),
            _element("title", _text(self.title)),
            _element("link", _text(self.site_url)),
            "</image>",
            _element("generator", GENERATOR),
            _element("lastBuildDate", stamp),
            _empty("atom:link", {
                "href": self.feed_url,
                "rel": "self",
                "type": "application/rss+xml",
            }),
            _element("pubDate", stamp),
        ]
        parts.extend(item.to_xml() for item in self.items)
        parts.append("</channel></rss>")
        return "".join(parts)


# ── Builder ────────────────────────────────────────────────────────────────


class FeedBuilder:
    """Builds the RSS document for a list of records."""

    def __init__(self, renderer: Renderer, settings: Settings) -> None:
        self.renderer = renderer
        self.settings = settings

    def item_url(self, pwa: Pwa) -> str:
        return f"{self.settings.site_url}pwas/{pwa.id}"

    def api_url(self, pwa: Pwa) -> str:
        return f"{self.settings.site_url}api/pwa/{pwa.id}"

    def item_context(
        self,
        pwa: Pwa,
        meta: RequestMeta,
        content_only: bool,
    ) -> dict[str, Any]:
        """Template context for one item description."""
        prefix = f"{self.settings.feed_title}: {pwa.name}"
        context = meta.as_context()
        context.update(
            pwa=pwa,
            title=prefix,
            description=f"{prefix} - {pwa.description}",
            backlink=True,
            content_only=content_only,
        )
        return context

    async def render_item(
        self,
        pwa: Pwa,
        meta: RequestMeta,
        content_only: bool,
    ) -> str:
        """Render one description, bounded by ``settings.render_timeout``.

        Raises:
            FeedRenderError: If rendering fails or exceeds the timeout.
        """
        context = self.item_context(pwa, meta, content_only)
        try:
            return await asyncio.wait_for(
                self.renderer.render(self.settings.rss_item_template, context),
                timeout=self.settings.render_timeout,
            )
        except asyncio.TimeoutError as exc:
            raise FeedRenderError(
                pwa.id, f"timed out after {self.settings.render_timeout}s"
            ) from exc
        except Exception as exc:
            raise FeedRenderError(pwa.id, str(exc)) from exc

    async def build(
        self,
        pwas: list[Pwa],
        meta: RequestMeta,
        content_only: bool = False,
        now: Optional[datetime] = None,
    ) -> str:
        """Render every item in order and return the serialised feed.

        Args:
            pwas: Records to include, in output order.
            meta: Request metadata passed to each description template.
            content_only: Forwarded to the template as ``content_only``.
            now: Channel publish time; defaults to the current UTC time.

        Returns:
            The complete RSS 2.0 document as a string.

        Raises:
            FeedRenderError: If any item description cannot be rendered.
        """
        settings = self.settings
        feed = FeedDocument(
            title=settings.feed_title,
            description=settings.feed_description,
            feed_url=settings.feed_url,
            site_url=settings.site_url,
            image_url=settings.feed_image_url,
            pub_date=now or datetime.now(timezone.utc),
        )

        # Item N+1 is not rendered until item N has finished
        for pwa in pwas:
            html = await self.render_item(pwa, meta, content_only)
            feed.add(FeedItem(
                title=pwa.display_name,
                url=self.item_url(pwa),
                description=html,
                guid=pwa.id,
                date=pwa.created,
                thumbnail_url=pwa.icon_url_128,
                alternate_url=self.api_url(pwa),
            ))

        logger.info("Built RSS feed with %d items", len(feed.items))
        return feed.to_xml()


class RssWriter:
    """Format strategy for ``format=rss``."""

    content_type = "application/rss+xml"

    def __init__(self, builder: FeedBuilder) -> None:
        self.builder = builder

    async def write(
        self,
        pwas: list[Pwa],
        query: ListingQuery,
        meta: RequestMeta,
    ) -> ListingResponse:
        xml = await self.builder.build(pwas, meta, content_only=query.content_only)
        return ListingResponse(status=200, body=xml, content_type=self.content_type)
