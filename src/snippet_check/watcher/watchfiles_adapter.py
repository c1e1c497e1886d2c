from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable, Coroutine
from pathlib import Path
from typing import Any

from watchfiles import Change, awatch

logger = logging.getLogger(__name__)

_DECLARATION_SUFFIXES: frozenset[str] = frozenset({".pyi", ".py"})


def _is_declaration_change(change: Change, path: Path) -> bool:
    """Any removal counts, since a deleted directory is reported without its files."""
    return change == Change.deleted or path.suffix in _DECLARATION_SUFFIXES


class DeclarationTreeWatcher:
    """Watch a declaration tree and report changes that can alter its declarations.

    Implements the ``DeclarationWatcherPort`` protocol.
    """

    def __init__(
        self,
        directory: str | Path,
        on_change: Callable[[set[Path]], Coroutine[Any, Any, None]],
    ) -> None:
        self._directory = Path(directory)
        self._on_change = on_change
        self._task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        if self._task is not None:
            return
        self._task = asyncio.create_task(self._watch())
        logger.info("Watching declarations in %s", self._directory)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Stopped watching %s", self._directory)

    async def _watch(self) -> None:
        async for changes in awatch(self._directory):
            paths = {Path(p) for change, p in changes if _is_declaration_change(change, Path(p))}
            if paths:
                logger.info("Detected %d declaration change(s)", len(paths))
                try:
                    await self._on_change(paths)
                except Exception:
                    logger.exception("Error in declaration watcher callback")


def invalidate_on_change(invalidate: Callable[[], None]) -> Callable[[set[Path]], Coroutine[Any, Any, None]]:
    """Adapt a synchronous cache invalidation into a watcher callback."""

    async def _on_change(paths: set[Path]) -> None:
        logger.debug("Invalidating declaration cache for %s", sorted(str(p) for p in paths))
        invalidate()

    return _on_change
