"""Plain-text and HTML output for stop blocks."""

from html import escape
from typing import Iterable

from .models import StopBlock


def render_text(blocks: Iterable[StopBlock]) -> str:
    """One header line per stop followed by its indented arrivals."""
    out = []
    for block in blocks:
        header = block.label
        if not block.predictions_available:
            header += " (schedule only)"
        out.append(f"{header}:")
        out.extend(f"  {line}" for line in block.lines)
    return "\n".join(out) + "\n"


def render_html(blocks: Iterable[StopBlock], title: str = "Bus arrivals") -> str:
    """A minimal standalone HTML page, one list per stop."""
    out = [
        "<!DOCTYPE html>",
        "<html>",
        "<head>",
        '<meta charset="utf-8">',
        f"<title>{escape(title)}</title>",
        "</head>",
        "<body>",
    ]
    for block in blocks:
        out.append(f'<h2 id="stop-{escape(block.stop_id)}">{escape(block.label)}</h2>')
        out.append("<ul>")
        out.extend(f"<li>{escape(line)}</li>" for line in block.lines)
        out.append("</ul>")
    out.extend(["</body>", "</html>"])
    return "\n".join(out) + "\n"
