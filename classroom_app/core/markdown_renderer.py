"""Markdown rendering for shared text content and AI answers.

Teachers write text material in Markdown and the AI replies in Markdown, so
both are turned into HTML fragments on the server. Raw HTML in the source is
escaped unless ``allow_html`` is set.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import html

from markdown_it import MarkdownIt

EMPTY_PLACEHOLDER = "<p><em>No content provided.</em></p>"


@dataclass(slots=True)
class MarkdownRenderer:
    """Turns Markdown into HTML fragments, or a bare page for previews."""

    allow_html: bool = False
    placeholder: str = EMPTY_PLACEHOLDER
    _parser: MarkdownIt = field(init=False, repr=False)

    def __post_init__(self) -> None:
        parser = MarkdownIt("commonmark", {"html": self.allow_html})
        self._parser = parser.enable(["table", "strikethrough"])

    def render_fragment(self, markdown_text: str) -> str:
        source = markdown_text.strip()
        return self._parser.render(source) if source else self.placeholder

    def wrap_document(self, body_html: str, title: str = "Preview") -> str:
        """Embed a rendered fragment in a standalone HTML page."""

        return (
            "<!doctype html>\n"
            '<html lang="en">\n'
            "  <head>\n"
            '    <meta charset="utf-8" />\n'
            f"    <title>{html.escape(title)}</title>\n"
            "  </head>\n"
            f'  <body><article class="preview">{body_html}</article></body>\n'
            "</html>"
        )


# MarkdownIt is safe to share for read-only renders across request threads.
renderer = MarkdownRenderer()
