"""
Small markdown to HTML converter for ``ui.markdown`` nodes.

Input is escaped before any markup is produced, so the result is safe to
emit without further escaping.
"""

from __future__ import annotations

import re

from markupsafe import Markup, escape

_HEADER = re.compile(r"^(#{1,6}) (.*)$")
_BOLD = re.compile(r"\*\*(.+?)\*\*")
_ITALIC = re.compile(r"\*(.+?)\*")
_CODE = re.compile(r"`([^`]+)`")
_LINK = re.compile(r"\[([^\]]+)\]\(((?:https?://|/|#)[^)\s]*)\)")


def _inline(line: str) -> str:
    line = _CODE.sub(r"<code>\1</code>", line)
    line = _BOLD.sub(r"<strong>\1</strong>", line)
    line = _ITALIC.sub(r"<em>\1</em>", line)
    return _LINK.sub(r'<a href="\2">\1</a>', line)


def markdown_to_html(text: str) -> Markup:
    """
    Convert basic markdown to HTML.

    Supports:
    - Headers (h1 to h6)
    - Unordered lists
    - Bold, italic and inline code
    - Links (http, https, absolute and fragment targets only)
    - Fenced code blocks
    - Paragraphs

    Args:
        text: Markdown text to convert

    Returns:
        Markup safe for direct insertion
    """
    html_lines: list[str] = []
    in_list = False
    in_code = False

    for raw in str(escape(text)).split("\n"):
        stripped = raw.strip()

        if stripped.startswith("```"):
            html_lines.append("</code></pre>" if in_code else "<pre><code>")
            in_code = not in_code
            continue
        if in_code:
            html_lines.append(raw)
            continue

        is_item = stripped.startswith("- ") or stripped.startswith("* ")
        if in_list and not is_item:
            html_lines.append("</ul>")
            in_list = False

        header = _HEADER.match(raw)
        if header:
            level = len(header.group(1))
            html_lines.append(f"<h{level}>{_inline(header.group(2))}</h{level}>")
        elif is_item:
            if not in_list:
                html_lines.append("<ul>")
                in_list = True
            html_lines.append(f"<li>{_inline(stripped[2:])}</li>")
        elif stripped:
            html_lines.append(f"<p>{_inline(raw)}</p>")

    if in_list:
        html_lines.append("</ul>")
    if in_code:
        html_lines.append("</code></pre>")

    return Markup("\n".join(html_lines))
