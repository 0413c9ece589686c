"""Fold bursts of identical error reports into one pending tracker write.

The first report for an ``(account, generic title)`` pair goes ahead and
looks the ticket up; reports arriving while that lookup is in flight only
bump a counter. The handler drains the counter once the lookup returns, so
the single write carries the whole burst.
"""

import threading
from typing import NamedTuple, Protocol


class _Keyed(Protocol):
    key: tuple[str, str, str]


class DuplicateKey(NamedTuple):
    account: tuple[str, str, str]
    generic_title: str


def key_for(account: _Keyed, generic_title: str) -> DuplicateKey:
    """Key by the account's value triple, never by object identity."""
    return DuplicateKey(tuple(account.key), generic_title)


class DuplicateCounter:
    def __init__(self):
        self._counts: dict[DuplicateKey, int] = {}
        self._lock = threading.Lock()

    def note_occurrence(self, account: _Keyed, generic_title: str) -> bool:
        """Count one occurrence. Returns True when a lookup is already pending."""
        key = key_for(account, generic_title)
        with self._lock:
            pending = self._counts.get(key, 0)
            self._counts[key] = pending + 1
        return pending > 0

    def consume_and_reset(self, account: _Keyed, generic_title: str) -> int:
        """Return every occurrence counted since the first one and forget the key."""
        with self._lock:
            return self._counts.pop(key_for(account, generic_title), 0)

    def pending(self, account: _Keyed, generic_title: str) -> int | None:
        with self._lock:
            return self._counts.get(key_for(account, generic_title))

    def __contains__(self, key: DuplicateKey) -> bool:
        with self._lock:
            return key in self._counts

    def __len__(self) -> int:
        with self._lock:
            return len(self._counts)
