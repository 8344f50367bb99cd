"""
ClinRx Interaction Copilot – Markdown-lite Renderer
====================================================
Turns the report's ``markdown_summary`` into display blocks.

Supported, one line at a time:
  - leading ``#`` heading markers   → stripped
  - ``* `` / ``- `` bullet markers  → stripped, block flagged as bullet
  - ``**bold**`` spans              → emphasised span

Nothing else (links, tables, nested emphasis, multi-line constructs).
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass
from typing import List, Tuple

_HEADING = re.compile(r"^#+\s*")
_BULLET = re.compile(r"^\s*[*\-]\s+")
_BOLD_SPLIT = re.compile(r"(\*\*.*?\*\*)")


@dataclass(frozen=True)
class TextSpan:
    text: str
    bold: bool = False


@dataclass(frozen=True)
class TextBlock:
    spans: Tuple[TextSpan, ...]
    is_bullet: bool = False

    @property
    def text(self) -> str:
        return "".join(span.text for span in self.spans)


def _split_bold(content: str) -> Tuple[TextSpan, ...]:
    spans = []
    for part in _BOLD_SPLIT.split(content):
        if not part:
            continue
        if len(part) >= 4 and part.startswith("**") and part.endswith("**"):
            spans.append(TextSpan(part[2:-2], bold=True))
        else:
            spans.append(TextSpan(part))
    return tuple(spans)


def parse_markdown_lite(text: str) -> List[TextBlock]:
    """Split *text* into display blocks. Same input, same blocks."""
    if not text:
        return []

    blocks: List[TextBlock] = []
    for line in text.splitlines():
        if not line.strip():
            continue
        content = _HEADING.sub("", line, count=1)
        is_bullet = bool(_BULLET.match(content))
        if is_bullet:
            content = _BULLET.sub("", content, count=1)
        blocks.append(TextBlock(spans=_split_bold(content), is_bullet=is_bullet))
    return blocks


def blocks_to_html(blocks: List[TextBlock]) -> str:
    """Render blocks as escaped HTML paragraphs / bullet rows."""
    rows = []
    for block in blocks:
        inner = "".join(
            f'<strong style="color:#0F3460;">{html.escape(s.text)}</strong>' if s.bold
            else html.escape(s.text)
            for s in block.spans
        )
        if block.is_bullet:
            rows.append(
                '<div style="display:flex;gap:8px;margin:0 0 6px 16px;">'
                '<span style="color:#2563EB;font-size:0.7rem;margin-top:4px;">●</span>'
                f'<p style="margin:0;flex:1;line-height:1.55;">{inner}</p></div>'
            )
        else:
            rows.append(f'<p style="margin:0 0 8px;line-height:1.55;">{inner}</p>')
    return "\n".join(rows)
