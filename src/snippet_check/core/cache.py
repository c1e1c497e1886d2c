"""Epoch-scoped cache of declaration file reads shared across validation calls."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Hashable
from pathlib import Path
from typing import Final, TypeVar

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


class _Missing:
    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Final = _Missing()


class DeclarationCache:
    """Memoize file reads (hits and misses) until the next :meth:`invalidate`.

    Every entry is tagged with the epoch it was created in. ``invalidate`` bumps
    the epoch, so entries from an earlier epoch read as absent even if a reader
    raced the clear.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._epoch = 0
        self._files: dict[str, tuple[int, str | _Missing]] = {}
        self._memo: dict[Hashable, tuple[int, object]] = {}

    @property
    def epoch(self) -> int:
        return self._epoch

    def __len__(self) -> int:
        epoch = self._epoch
        return sum(1 for tag, _ in self._files.values() if tag == epoch)

    def invalidate(self) -> None:
        with self._lock:
            self._epoch += 1
            self._files = {}
            self._memo = {}
        logger.info("Declaration cache invalidated (epoch %d)", self._epoch)

    def read_text(self, path: str | Path) -> str | None:
        """Return the file's text, or ``None`` if it cannot be read."""
        key = str(path)
        epoch = self._epoch
        entry = self._files.get(key)
        if entry is not None and entry[0] == epoch:
            cached = entry[1]
            return cached if isinstance(cached, str) else None

        value: str | _Missing
        try:
            value = Path(key).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            value = MISSING
        self._files[key] = (epoch, value)
        return value if isinstance(value, str) else None

    def exists(self, path: str | Path) -> bool:
        return self.read_text(path) is not None

    def memoize(self, key: Hashable, compute: Callable[[], _T]) -> _T:
        """Return ``compute()``, computed at most once per epoch for ``key``."""
        epoch = self._epoch
        entry = self._memo.get(key)
        if entry is not None and entry[0] == epoch:
            return entry[1]  # type: ignore[return-value]
        value = compute()
        self._memo[key] = (epoch, value)
        return value


_declaration_cache = DeclarationCache()


def get_declaration_cache() -> DeclarationCache:
    return _declaration_cache
