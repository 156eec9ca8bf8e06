"""Shared table of source URLs to their new Notion URLs.

Every branch of a migration records the page it created here, and every
branch rewrites its Markdown against what has been recorded so far.
Entries are only ever added, so a branch that links to a page which has
not been migrated yet simply keeps the original link.
"""

from __future__ import annotations

import threading


class RemapTable:
    """Append-only, lock-guarded mapping of source URL to Notion URL.

    Safe for concurrent use from coroutines and from threads.
    """

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, str] = dict(initial or {})

    def insert_if_absent(self, key: str, value: str) -> bool:
        """Record *key* -> *value* unless *key* is already present.

        Returns ``True`` if the entry was added.
        """
        with self._lock:
            if key in self._entries:
                return False
            self._entries[key] = value
            return True

    def get(self, key: str, default: str | None = None) -> str | None:
        with self._lock:
            return self._entries.get(key, default)

    def snapshot(self) -> dict[str, str]:
        """Return a point-in-time copy of every entry."""
        with self._lock:
            return dict(self._entries)

    def remap(self, text: str) -> str:
        """Replace every recorded source URL in *text* with its Notion URL.

        Plain substring replacement over a snapshot: the text is not
        parsed, so a source URL that happens to be a prefix of another
        URL in the text is replaced inside it too.  Longer keys are
        replaced first to keep that to a minimum.
        """
        for source, target in sorted(
            self.snapshot().items(), key=lambda item: len(item[0]), reverse=True,
        ):
            if source:
                text = text.replace(source, target)
        return text

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries
