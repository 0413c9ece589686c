"""Turn free-text error titles into generic grouping keys.

Two reports describe the "same" error when their titles only differ in
reply prefixes, numbers or hex identifiers (object ids, addresses, tokens).
"""

import re

_REPLY_PREFIX = re.compile(r"^\s*(?:(?:re|fwd?)\s*:\s*)+", re.IGNORECASE)
_HEX_TOKEN = re.compile(
    r"\b(?:0x[0-9a-f]+|(?=[0-9a-f]*[0-9])(?=[0-9a-f]*[a-f])[0-9a-f]+)\b",
    re.IGNORECASE,
)
_DIGITS = re.compile(r"[0-9]+")


def normalize_title(title: str | None) -> str:
    """Return the generic form of *title*.

    Hex tokens are replaced before digit runs so ``0x1234567`` collapses to a
    single ``{HEX}``.
    """
    if not title:
        return ""
    generic = _REPLY_PREFIX.sub("", str(title)).strip()
    generic = _HEX_TOKEN.sub("{HEX}", generic)
    return _DIGITS.sub("{N}", generic)
