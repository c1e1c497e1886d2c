import importlib.util
import logging
from pathlib import Path

from snippet_check.config import ValidatorSettings

logger = logging.getLogger(__name__)


def resolve_entry_point(library: str) -> Path | None:
    """Locate the library's importable entry point without importing it."""
    try:
        spec = importlib.util.find_spec(library)
    except (ImportError, ValueError):
        return None
    if spec is None:
        return None
    if spec.origin and spec.has_location:
        return Path(spec.origin).resolve()
    locations = list(spec.submodule_search_locations or [])
    if locations:
        # namespace package: no __init__, use the first portion
        return Path(locations[0]).resolve()
    return None


def find_declaration_root(
    entry_point: Path,
    *,
    manifest: str = "pyproject.toml",
    declaration_dir: str = "stubs",
    max_hops: int = 5,
) -> Path:
    """Walk up from *entry_point* to the package root and return its declaration tree.

    The first ancestor holding *manifest* is the package root and declarations
    live in ``<root>/<declaration_dir>``. Without a manifest within *max_hops*
    directories the entry point's own directory is returned.
    """
    start = entry_point if entry_point.is_dir() else entry_point.parent
    current = start
    for _ in range(max_hops):
        if (current / manifest).is_file():
            logger.debug("Found %s in %s", manifest, current)
            return current / declaration_dir
        if current.parent == current:
            break
        current = current.parent
    logger.debug("No %s within %d levels of %s, using it directly", manifest, max_hops, start)
    return start


def resolve_declaration_root(settings: ValidatorSettings) -> Path | None:
    entry_point = resolve_entry_point(settings.library)
    if entry_point is None:
        logger.debug("Library '%s' is not importable", settings.library)
        return None
    return find_declaration_root(
        entry_point,
        manifest=settings.manifest,
        declaration_dir=settings.declaration_dir,
        max_hops=settings.max_hops,
    )
