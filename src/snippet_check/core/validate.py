"""Type-check library snippets in memory with mypy."""

from __future__ import annotations

import importlib
import io
import logging
import os
import re
import sys
import threading
from collections.abc import Sequence
from pathlib import Path

from mypy import build
from mypy.errors import CompileError
from mypy.options import Options

from snippet_check.config import ValidatorSettings, load_settings
from snippet_check.core.cache import DeclarationCache, get_declaration_cache
from snippet_check.core.host import VIRTUAL_LIBRARY_ROOT, VirtualCompilationHost
from snippet_check.core.resolver import resolve_declaration_root
from snippet_check.core.source import SourceUnit, build_import_prefix
from snippet_check.models import Diagnostic, Severity, ValidationResult

logger = logging.getLogger(__name__)

_STRICT_FLAGS = (
    "check_untyped_defs",
    "disallow_incomplete_defs",
    "disallow_untyped_calls",
    "disallow_any_generics",
    "strict_equality",
    "warn_redundant_casts",
    "warn_return_any",
)

# path:line[:column]: severity: message[  [code]]
_MESSAGE_PATTERN = re.compile(
    r"^(?P<file>.+?):(?P<line>\d+)(?::(?P<column>\d+))?: (?P<severity>error|warning|note): "
    r"(?P<message>.*?)(?:  \[(?P<code>[a-z0-9-]+)\])?$"
)


def _is_located_in(message: str, path: str) -> bool:
    match = _MESSAGE_PATTERN.match(message)
    return match is not None and os.path.abspath(match["file"]) == os.path.abspath(path)


# one mypy build at a time
_engine_lock = threading.Lock()


def has_library_import(code: str, library: str) -> bool:
    name = re.escape(library)
    pattern = (
        rf"^[ \t]*(?:from[ \t]+{name}(?:\.\w+)*[ \t]+import\b"
        rf"|import[ \t]+(?:[\w.]+(?:[ \t]+as[ \t]+\w+)?[ \t]*,[ \t]*)*{name}(?:\.\w+)*(?![\w.]))"
    )
    return re.search(pattern, code, flags=re.MULTILINE) is not None


def build_options(settings: ValidatorSettings) -> Options:
    options = Options()
    options.python_version = sys.version_info[:2]
    options.incremental = False
    options.cache_dir = os.devnull
    options.mypy_path = [VIRTUAL_LIBRARY_ROOT]
    options.show_column_numbers = True
    options.show_absolute_path = True
    options.hide_error_codes = False
    options.error_summary = False
    options.color_output = False
    options.pretty = False
    # the native parser reads sources from disk and never sees the virtual file
    options.native_parser = False
    for flag in _STRICT_FLAGS:
        setattr(options, flag, True)
    options.per_module_options[f"{settings.library}.*"] = {"ignore_errors": True}
    return options


def run_engine(host: VirtualCompilationHost, options: Options) -> list[str]:
    """Run mypy over the host's virtual file and return every formatted message.

    A blocking error is part of the result only when it points into the
    snippet (a syntax error, say). Any other blocker means mypy could not
    check the snippet at all, so the ``CompileError`` propagates.
    """
    messages: list[str] = []
    blocking: list[str] = []

    def _collect(filename: str | None, new_messages: list[str], is_serious: bool) -> None:
        messages.extend(new_messages)
        # blocking errors are flushed without a file name
        if filename is None:
            blocking.extend(new_messages)

    stdout, stderr = io.StringIO(), io.StringIO()
    try:
        build.build(
            [host.materialize(host.virtual_filename)],
            options,
            flush_errors=_collect,
            fscache=host,
            stdout=stdout,
            stderr=stderr,
        )
    except CompileError as exc:
        if not any(_is_located_in(message, host.virtual_filename) for message in blocking):
            exc.messages = exc.messages or blocking
            raise
        logger.debug("mypy stopped on a blocking error in %s", exc.module_with_blocker)
    if stderr.getvalue():
        logger.debug("mypy stderr: %s", stderr.getvalue().strip())
    return messages


def collect_diagnostics(messages: Sequence[str], source: SourceUnit, virtual_path: str) -> list[Diagnostic]:
    target = os.path.abspath(virtual_path)
    diagnostics: list[Diagnostic] = []
    suppressed_errors = 0
    for raw in messages:
        match = _MESSAGE_PATTERN.match(raw)
        if match is None:
            if raw.startswith(f"{virtual_path}:"):
                raise RuntimeError(f"mypy could not check the snippet: {raw}")
            continue
        if os.path.abspath(match["file"]) != target:
            continue
        severity: Severity = "error" if match["severity"] == "error" else "warning"
        column = int(match["column"]) if match["column"] else 1
        position = source.to_raw_position(int(match["line"]), column)
        if position is None:
            if severity == "error":
                suppressed_errors += 1
            continue
        line, column = position
        diagnostics.append(
            Diagnostic(line=line, column=column, message=match["message"], code=match["code"], severity=severity)
        )
    if suppressed_errors:
        logger.warning(
            "Suppressed %d error(s) reported against the generated import prefix; "
            "the target library may be missing or incompatible",
            suppressed_errors,
        )
    return diagnostics


def _declaration_root(settings: ValidatorSettings, cache: DeclarationCache) -> Path | None:
    key = ("declaration-root", settings.library, settings.manifest, settings.declaration_dir, settings.max_hops)
    return cache.memoize(key, lambda: resolve_declaration_root(settings))


def validate_code(
    code: str,
    auto_import: bool = True,
    *,
    settings: ValidatorSettings | None = None,
    cache: DeclarationCache | None = None,
) -> ValidationResult:
    """Type-check *code* against the configured library's declarations.

    Problems in the snippet come back as diagnostics in the snippet's own
    coordinates; this only raises when mypy itself fails.
    """
    settings = settings or load_settings()
    cache = cache if cache is not None else get_declaration_cache()

    prefix = ""
    if auto_import and not has_library_import(code, settings.library):
        prefix = build_import_prefix(settings.default_imports)
    source = SourceUnit(code, prefix)

    declaration_root = _declaration_root(settings, cache)
    options = build_options(settings)
    with _engine_lock:
        host = VirtualCompilationHost(source, settings.library, declaration_root, options=options, cache=cache)
        messages = run_engine(host, options)

    diagnostics = collect_diagnostics(messages, source, host.virtual_filename)
    logger.debug(
        "Validated %d line(s) against %s: %d diagnostic(s)",
        len(code.splitlines()),
        settings.library,
        len(diagnostics),
    )
    return ValidationResult(
        success=not any(d.severity == "error" for d in diagnostics),
        diagnostics=diagnostics,
        imports_prepended=bool(prefix),
    )


def invalidate_declaration_cache() -> None:
    """Forget every cached declaration read, e.g. after the library was reinstalled."""
    get_declaration_cache().invalidate()
    importlib.invalidate_caches()
