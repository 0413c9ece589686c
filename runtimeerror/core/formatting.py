"""Render structured (JSON) error payloads as HTML for ticket bodies."""

import html
import json


def _text(value) -> str:
    if isinstance(value, str):
        return html.escape(value, quote=False)
    return html.escape(json.dumps(value), quote=False)


def json_to_html_tables(data: dict) -> str:
    """Render *data* as a sequence of key/value tables.

    Consecutive scalar entries share one ``<table>``. A nested object gets an
    ``<h4>`` heading followed by its own tables; a list gets an ``<h4>``
    heading and a ``<pre>`` block with one item per line.
    """
    parts: list[str] = []
    rows: list[str] = []

    def flush():
        if rows:
            parts.append("<table>" + "".join(rows) + "</table>")
            rows.clear()

    for key, value in data.items():
        if isinstance(value, dict):
            flush()
            parts.append(f"<h4>{_text(key)}</h4>")
            parts.append(json_to_html_tables(value))
        elif isinstance(value, list):
            flush()
            lines = "".join(f"{_text(item)}\n" for item in value)
            parts.append(f"<h4>{_text(key)}</h4>\n<pre>\n{lines}</pre>\n")
        else:
            rows.append(
                f'<tr><th align="left">{_text(key)}</th><td align="left">{_text(value)}</td></tr>'
            )
    flush()
    return "".join(parts)
