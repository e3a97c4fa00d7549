"""HTML fragment rendering for feed item descriptions."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Protocol

from jinja2 import BaseLoader, Environment, FileSystemLoader, select_autoescape

logger = logging.getLogger(__name__)


class Renderer(Protocol):
    """Asynchronous template renderer."""

    async def render(self, template_ref: str, context: dict[str, Any]) -> str: ...


class JinjaRenderer:
    """Renders templates with an async-enabled Jinja2 environment."""

    def __init__(self, loader: BaseLoader) -> None:
        self.env = Environment(
            loader=loader,
            enable_async=True,
            autoescape=select_autoescape(["html", "xml"]),
        )

    @classmethod
    def from_directory(cls, template_dir: Path | str) -> "JinjaRenderer":
        return cls(FileSystemLoader(str(template_dir)))

    async def render(self, template_ref: str, context: dict[str, Any]) -> str:
        """Render *template_ref* with *context*.

        Raises:
            jinja2.TemplateError: If the template is missing or fails to render.
        """
        template = self.env.get_template(template_ref)
        html = await template.render_async(**context)
        logger.debug("Rendered %s (%d chars)", template_ref, len(html))
        return html
