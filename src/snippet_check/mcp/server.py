"""FastMCP server exposing snippet validation tools."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager

from fastmcp import FastMCP

from snippet_check.config import ValidatorSettings, load_settings
from snippet_check.core.ports.watcher import DeclarationWatcherPort
from snippet_check.core.resolver import resolve_declaration_root
from snippet_check.core.validate import invalidate_declaration_cache as _invalidate_declaration_cache
from snippet_check.core.validate import validate_code as _validate_code
from snippet_check.models import ValidationResult
from snippet_check.watcher.watchfiles_adapter import DeclarationTreeWatcher, invalidate_on_change

logger = logging.getLogger(__name__)


def format_result(result: ValidationResult, library: str) -> str:
    """Render a validation result the way the ``validate_code`` tool reports it."""
    if result.success:
        import_note = f" ({library} imports auto-added)" if result.imports_prepended else ""
        return f"Validation PASSED{import_note}\n\nThe code is type-correct."

    lines = []
    for d in result.diagnostics:
        code = f" [{d.code}]" if d.code else ""
        lines.append(f"- Line {d.line}, Col {d.column}: {d.message}{code}")
    import_note = f"\n\nNote: {library} imports were auto-added." if result.imports_prepended else ""
    body = "\n".join(lines)
    return f"Validation FAILED — {len(result.diagnostics)} error(s):\n\n{body}{import_note}"


def _watch_declarations(
    settings: ValidatorSettings,
) -> Callable[[FastMCP], AbstractAsyncContextManager[None]]:
    @asynccontextmanager
    async def lifespan(server: FastMCP) -> AsyncIterator[None]:
        root = resolve_declaration_root(settings)
        if root is None or not root.is_dir():
            logger.warning("Not watching declarations: no declaration tree found for %s", settings.library)
            yield
            return
        watcher: DeclarationWatcherPort = DeclarationTreeWatcher(root, invalidate_on_change(_invalidate_declaration_cache))
        await watcher.start()
        try:
            yield
        finally:
            await watcher.stop()

    return lifespan


def create_mcp_server(settings: ValidatorSettings | None = None, *, watch: bool = False) -> FastMCP:
    """Create a FastMCP server validating snippets against the configured library."""
    settings = settings or load_settings()
    library = settings.library

    mcp = FastMCP(
        "snippet-check",
        instructions=(
            f"Type-check Python snippets written against the {library} library before presenting them. "
            f"Use validate_code; call invalidate_declaration_cache after {library} was reinstalled."
        ),
        lifespan=_watch_declarations(settings) if watch else None,
    )

    @mcp.tool()
    async def validate_code(code: str, auto_import: bool = True) -> str:
        """Type-check a snippet with mypy; returns PASSED or the errors with line/column/message."""
        result = await asyncio.to_thread(_validate_code, code, auto_import, settings=settings)
        return format_result(result, library)

    @mcp.tool()
    async def invalidate_declaration_cache() -> str:
        """Drop cached declaration files so the next validation re-reads the installed library."""
        _invalidate_declaration_cache()
        return "Declaration cache cleared."

    return mcp
