"""Tests for Markdown rendering."""

from unittest.mock import patch

import pytest
from ghostdraft.errors import RenderError
from ghostdraft.render import render_markdown


class TestRenderMarkdown:
    def test_heading_and_paragraph(self):
        html = render_markdown("# Title\n\nSome *text*.")
        assert "<h1>Title</h1>" in html
        assert "<em>text</em>" in html

    def test_image(self):
        html = render_markdown("![cover](https://cdn/a.png)")
        assert "<img" in html
        assert 'src="https://cdn/a.png"' in html
        assert 'alt="cover"' in html

    def test_fenced_code(self):
        html = render_markdown("```\nprint('x')\n```")
        assert "<code>" in html

    def test_table(self):
        html = render_markdown("| a | b |\n|---|---|\n| 1 | 2 |")
        assert "<table>" in html

    def test_empty(self):
        assert render_markdown("") == ""

    def test_renderer_failure_wrapped(self):
        with patch("ghostdraft.render.markdown.markdown", side_effect=ValueError("bad")):
            with pytest.raises(RenderError, match="bad"):
                render_markdown("x")
