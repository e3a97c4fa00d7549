"""
Flask web server for the PWA Directory listing API.

Routes
──────
GET  /api/pwa?format=&sort=&skip=&limit=   List PWAs (json | csv | rss)
GET  /api/pwa/<id>?format=                 A single PWA in the same formats
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask, Response, request

# Allow running as `python web/app.py` from the project root
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

load_dotenv()

from config.settings import Settings
from pwa.dispatch import PwaListing
from pwa.models import ListingQuery, RequestMeta
from pwa.renderer import JinjaRenderer, Renderer
from pwa.store import PwaStore, RecordSource

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    source: RecordSource | None = None,
    renderer: Renderer | None = None,
) -> Flask:
    """Build the Flask app.

    Args:
        settings: Configuration; read from the environment when omitted.
        source: Record source; defaults to a PwaStore at ``settings.db_path``.
        renderer: Description renderer; defaults to Jinja2 over ``web/templates``.

    Returns:
        A configured Flask application.
    """
    settings = settings or Settings()
    settings.validate()

    app = Flask(__name__)

    if source is None:
        store = PwaStore(settings.db_path)
        store.init_db()
        source = store
    if renderer is None:
        renderer = JinjaRenderer.from_directory(
            Path(app.root_path) / (app.template_folder or "templates")
        )

    listing = PwaListing(source, renderer, settings)

    # ── Listing API ────────────────────────────────────────────────────────

    @app.route("/api/pwa", defaults={"pwa_id": None}, strict_slashes=False)
    @app.route("/api/pwa/<pwa_id>")
    async def list_pwas(pwa_id: str | None):
        """Return one or many PWAs as JSON, CSV or RSS.

        Query params:
          format       json (default) | csv | rss
          sort         newest (default) | updated | score | name
          skip, limit  pagination (limit defaults to 100)
          contentOnly  forwarded to the RSS description template
        """
        query = ListingQuery.from_request(pwa_id, request.args, settings)
        meta = RequestMeta(
            url=request.full_path.rstrip("?"),
            base_url=request.host_url,
        )
        result = await listing.respond(query, meta)
        return Response(
            result.body,
            status=result.status,
            headers=result.headers,
            content_type=result.content_type,
        )

    logger.info("PWA listing API ready (db=%s)", settings.db_path)
    return app


# ── Entry point ────────────────────────────────────────────────────────────

if __name__ == "__main__":
    settings = Settings()
    create_app(settings).run(debug=settings.debug, host="0.0.0.0", port=settings.port)
