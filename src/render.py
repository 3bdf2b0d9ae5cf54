"""Markdown to HTML rendering."""

import markdown

from ghostdraft.errors import RenderError

MARKDOWN_EXTENSIONS = ["extra", "sane_lists"]


def render_markdown(text: str) -> str:
    """Render an article body to the HTML Ghost ingests with ``source=html``."""
    try:
        return markdown.markdown(text, extensions=MARKDOWN_EXTENSIONS, output_format="html")
    except Exception as exc:
        raise RenderError(f"Markdown rendering failed: {exc}") from exc
