"""Occurrence history embedded at the end of a ticket body.

The history is a short list of ``(day label, count)`` pairs. It travels
inside the ticket itself as the trailing fragment::

    <br/>\\n<img src='<chart url>' alt='<json>' title='<json>'/>

where ``<json>`` is ``{"runtimeerror":["Jan 04",3,"Jan 05",1]}``. The image
renders a sparkline of the recent counts and the attributes carry the data
so the next occurrence can pick it up again.
"""

import html
import json
import re
from datetime import date, timedelta
from typing import NamedTuple

import structlog

logger = structlog.get_logger()

NAMESPACE = "runtimeerror"
SUFFIX_SEPARATOR = "<br/>\n"
LABEL_FORMAT = "%b %d"

_LABEL = re.compile(r"^[A-Z][a-z]{2} [0-9]{2}$")
_PLACEHOLDER = re.compile(r"\{([^{}]*)\}")
_HTML_WRAPPER = re.compile(
    r"^\s*(?:<!doctype[^>]*>\s*)?(?:<!--.*?-->\s*)*"
    r"<html\b[^>]*>.*?(<body\b[^>]*>.*</body>).*</html>\s*$",
    re.IGNORECASE | re.DOTALL,
)
_SUFFIX = re.compile(
    r"<br/>\r?\n(?P<tail><img\b[^>]*>|\{[^\n]*\})\s*$",
    re.IGNORECASE,
)
_ATTRIBUTE = re.compile(
    r"\b(?P<name>title|alt)\s*=\s*(?P<quote>['\"])(?P<value>.*?)(?P=quote)",
    re.IGNORECASE | re.DOTALL,
)


class Occurrence(NamedTuple):
    label: str
    count: int


def day_label(day: date) -> str:
    return day.strftime(LABEL_FORMAT)


def flatten(history: list[Occurrence]) -> list:
    """``[Occurrence("Jan 05", 2)]`` -> ``["Jan 05", 2]``."""
    flat: list = []
    for occurrence in history:
        flat.extend([occurrence.label, occurrence.count])
    return flat


def unflatten(values) -> list[Occurrence] | None:
    """Parse the flat ``[label, count, ...]`` list; ``None`` when it is malformed."""
    if not isinstance(values, list) or len(values) % 2:
        return None
    history: list[Occurrence] = []
    for label, count in zip(values[0::2], values[1::2]):
        if not isinstance(label, str) or not _LABEL.match(label):
            return None
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            return None
        history.append(Occurrence(label, count))
    return history


def build_chart_url(values: list[int], template: str) -> str:
    """Fill ``{MIN}``, ``{MAX}`` and ``{RAW}`` in *template*; unknown placeholders vanish."""
    replacements = {
        "MIN": "0",
        "MAX": str(max(values)) if values else "0",
        "RAW": ",".join(str(v) for v in values),
    }
    return _PLACEHOLDER.sub(lambda m: replacements.get(m.group(1), ""), template)


def strip_html_wrapper(body: str | None) -> str:
    """Reduce a full ``<html>...</html>`` document to its ``<body>`` element.

    A leading doctype and comments before ``<html>`` are dropped with the rest
    of the wrapper.
    """
    if not body:
        return ""
    match = _HTML_WRAPPER.match(body)
    if match:
        return match.group(1)
    return body


class SparklineChart:
    """Chart reference for the last *days* days of a history, ending today."""

    def __init__(self, url_template: str, days: int = 7):
        self.url_template = url_template
        self.days = days

    def values_for(self, history: list[Occurrence], today: date) -> list[int]:
        """Counts for each day of the window, oldest first.

        Labels carry no year, so entries are matched walking back from the
        newest one. An entry that does not fit the rest of the window is older
        than it, and so is everything before it.
        """
        values = [0] * self.days
        offset = 0
        for occurrence in reversed(history):
            while offset < self.days and day_label(today - timedelta(days=offset)) != occurrence.label:
                offset += 1
            if offset >= self.days:
                break
            values[self.days - 1 - offset] = occurrence.count
            offset += 1
        return values

    def url_for(self, history: list[Occurrence], today: date) -> str:
        return build_chart_url(self.values_for(history, today), self.url_template)


class OccurrenceCodec:
    def __init__(self, chart: SparklineChart, namespace: str = NAMESPACE):
        self.chart = chart
        self.namespace = namespace

    def decode(self, body: str | None) -> tuple[str, list[Occurrence]]:
        """Split *body* into its visible part and the embedded history.

        A body without a recognisable suffix, or whose embedded data does
        not validate, comes back unchanged with an empty history.
        """
        body = strip_html_wrapper(body)
        match = _SUFFIX.search(body)
        if not match:
            return body, []

        history = self._parse_tail(match.group("tail"))
        if history is None:
            logger.warning("occurrence_history_invalid", tail=match.group("tail")[:200])
            return body, []
        return body[: match.start()], history

    def encode(self, visible_body: str, history: list[Occurrence], today: date) -> str:
        data = self.serialize(history)
        src = self.chart.url_for(history, today)
        return f"{visible_body}{SUFFIX_SEPARATOR}<img src='{src}' alt='{data}' title='{data}'/>"

    def serialize(self, history: list[Occurrence]) -> str:
        return json.dumps({self.namespace: flatten(history)}, separators=(",", ":"))

    @staticmethod
    def merge(history: list[Occurrence], count: int, today: date) -> list[Occurrence]:
        """Fold *count* new occurrences dated *today* into *history*."""
        label = day_label(today)
        merged = list(history)
        if merged and merged[-1].label == label:
            merged[-1] = Occurrence(label, merged[-1].count + count)
        else:
            merged.append(Occurrence(label, count))
        return merged

    def update_body_suffix(
        self,
        body: str | None,
        count: int = 1,
        *,
        prior_body: str | None = None,
        today: date | None = None,
    ) -> str:
        """Re-encode *body* with *count* more occurrences for today.

        The prior history is read from *prior_body* (the ticket as the tracker
        has it) when given, otherwise from *body* itself.
        """
        today = today or date.today()
        visible, history = self.decode(body)
        if prior_body is not None:
            _, history = self.decode(prior_body)
        return self.encode(visible, self.merge(history, count, today), today)

    def _parse_tail(self, tail: str) -> list[Occurrence] | None:
        if tail.startswith("{"):
            candidates = [tail]
        else:
            # title first, then alt; either one is enough
            found = {m.group("name").lower(): html.unescape(m.group("value")) for m in _ATTRIBUTE.finditer(tail)}
            candidates = [found[name] for name in ("title", "alt") if name in found]

        for raw in candidates:
            try:
                data = json.loads(raw)
            except ValueError:
                continue
            if isinstance(data, dict) and self.namespace in data:
                history = unflatten(data[self.namespace])
                if history is not None:
                    return history
        return None
