"""Markdown rendering for reading questions and event descriptions.

Readings and events are authored as short markdown snippets. The API returns
the raw text alongside an HTML fragment so that browser clients do not need a
markdown library of their own.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from markdown_it import MarkdownIt


@dataclass(slots=True)
class MarkdownRenderer:
    """Converts markdown into HTML fragments."""

    enable_html: bool = False
    _markdown: MarkdownIt = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._markdown = (
            MarkdownIt("commonmark", {"html": self.enable_html})
            .enable("table")
            .enable("strikethrough")
        )

    def render_fragment(self, markdown_text: str | None) -> str | None:
        """Render markdown to HTML, or return None when there is nothing to render."""
        sanitized = (markdown_text or "").strip()
        if not sanitized:
            return None
        return self._markdown.render(sanitized)


renderer = MarkdownRenderer()
# MarkdownIt is safe for concurrent read-only renders, so the API threads share
# this instance.
