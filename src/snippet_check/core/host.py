"""In-memory compilation host handed to mypy as its filesystem cache.

One virtual module (the snippet) is served from memory. The target library's
declaration tree is exposed under a virtual search root that sits first on
``mypy_path``; every lookup mypy makes there is answered by
:meth:`VirtualCompilationHost.resolve_specifier`, so only the declaration file
chosen by that resolution is visible. Everything else is read from disk
through the shared :class:`DeclarationCache`.
"""

from __future__ import annotations

import errno
import logging
import os
import stat
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from mypy.build import default_data_dir
from mypy.fscache import FileSystemCache
from mypy.modulefinder import (
    BuildSource,
    FindModuleCache,
    ModuleNotFoundReason,
    SearchPaths,
    compute_search_paths,
)
from mypy.options import Options
from mypy.util import hash_digest

from snippet_check.core.cache import DeclarationCache, get_declaration_cache
from snippet_check.core.source import SourceUnit

logger = logging.getLogger(__name__)

VIRTUAL_FILENAME = "/__snippet__.py"
VIRTUAL_MODULE = "__snippet__"
VIRTUAL_LIBRARY_ROOT = "/__snippet_library__"

_DECLARATION_SUFFIXES = (".pyi", ".py")


@dataclass(frozen=True)
class ResolvedModule:
    specifier: str
    path: Path | None
    is_external_library: bool = False

    @property
    def resolved(self) -> bool:
        return self.path is not None


def is_library_specifier(specifier: str, library: str) -> bool:
    return specifier == library or specifier.startswith(library + ".")


def declaration_candidates(specifier: str, library: str, root: Path) -> list[Path]:
    """Candidate declaration files for a library specifier, in lookup order.

    ``lib`` maps to the package index (``__init__``) at *root*; ``lib.a.b``
    maps to ``a/b.pyi`` first and to ``a/b/__init__.pyi`` second, each also
    accepting an inline-typed ``.py`` module.
    """
    if specifier == library:
        return [root / f"__init__{suffix}" for suffix in _DECLARATION_SUFFIXES]
    parts = specifier[len(library) + 1 :].split(".")
    if not all(parts):
        return []
    base = root.joinpath(*parts)
    direct = [base.with_name(base.name + suffix) for suffix in _DECLARATION_SUFFIXES]
    index = [base / f"__init__{suffix}" for suffix in _DECLARATION_SUFFIXES]
    return direct + index


class VirtualCompilationHost(FileSystemCache):
    def __init__(
        self,
        source: SourceUnit,
        library: str,
        declaration_root: Path | None,
        *,
        options: Options | None = None,
        cache: DeclarationCache | None = None,
    ) -> None:
        super().__init__()
        self.source = source
        self.library = library
        self.declaration_root = declaration_root
        self.options = options or Options()
        self.cache = cache if cache is not None else get_declaration_cache()
        self.virtual_filename = VIRTUAL_FILENAME
        self.virtual_library_root = VIRTUAL_LIBRARY_ROOT
        self._source_bytes = source.effective_text.encode("utf-8")
        self._engine_finder: FindModuleCache | None = None
        self._search_paths: SearchPaths | None = None
        self._shadowed: tuple[tuple[str, ...], frozenset[str]] | None = None

    # -- virtual file --------------------------------------------------------

    def is_virtual(self, path: str) -> bool:
        return os.path.normpath(path) == self.virtual_filename

    def materialize(self, path: str) -> BuildSource:
        if self.is_virtual(path):
            return BuildSource(self.virtual_filename, VIRTUAL_MODULE, text=self.source.effective_text)
        return BuildSource(path, None)

    def _virtual_stat(self) -> os.stat_result:
        return os.stat_result((stat.S_IFREG | 0o644, 0, 0, 1, 0, 0, len(self._source_bytes), 0, 0, 0))

    # -- module resolution ---------------------------------------------------

    def resolve_specifier(self, specifier: str) -> ResolvedModule:
        if not is_library_specifier(specifier, self.library):
            return self._resolve_with_engine(specifier)
        if self.declaration_root is None:
            return ResolvedModule(specifier, None, is_external_library=True)
        for candidate in declaration_candidates(specifier, self.library, self.declaration_root):
            if self.cache.exists(candidate):
                return ResolvedModule(specifier, candidate, is_external_library=True)
        logger.debug("No declarations for %s under %s", specifier, self.declaration_root)
        return ResolvedModule(specifier, None, is_external_library=True)

    def resolve_specifiers(self, specifiers: Iterable[str]) -> list[ResolvedModule]:
        return [self.resolve_specifier(specifier) for specifier in specifiers]

    def _resolve_with_engine(self, specifier: str) -> ResolvedModule:
        if self._engine_finder is None:
            self._engine_finder = FindModuleCache(self._engine_search_paths(), self, self.options)
        result = self._engine_finder.find_module(specifier)
        if isinstance(result, ModuleNotFoundReason):
            return ResolvedModule(specifier, None)
        return ResolvedModule(specifier, Path(result))

    def _engine_search_paths(self) -> SearchPaths:
        if self._search_paths is None:
            self._search_paths = compute_search_paths([], self.options, default_data_dir())
        return self._search_paths

    def _shadowed_locations(self) -> tuple[tuple[str, ...], frozenset[str]]:
        """The library's package directories and module files on mypy's other search paths."""
        if self._shadowed is None:
            paths = self._engine_search_paths()
            directories = {os.path.normpath(d) for d in (*paths.python_path, *paths.mypy_path, *paths.package_path)}
            directories.discard(self.virtual_library_root)
            packages = tuple(
                os.path.join(d, name) for d in sorted(directories) for name in (self.library, f"{self.library}-stubs")
            )
            modules = frozenset(
                os.path.join(d, self.library + suffix) for d in directories for suffix in _DECLARATION_SUFFIXES
            )
            self._shadowed = (packages, modules)
        return self._shadowed

    def _is_shadowed(self, path: str) -> bool:
        """True for copies of the library that mypy could find outside the virtual root.

        Hiding them keeps :meth:`resolve_specifier` authoritative: a library
        module it cannot resolve stays unresolved.
        """
        normalized = os.path.normpath(path)
        packages, modules = self._shadowed_locations()
        return normalized in modules or any(
            normalized == package or normalized.startswith(package + os.sep) for package in packages
        )

    def _translate(self, path: str) -> str | None:
        """Map a path under the virtual library root to the real declaration file."""
        if self.declaration_root is None:
            return None
        relative = os.path.relpath(os.path.normpath(path), self.virtual_library_root)
        if relative == os.curdir:
            return str(self.declaration_root)
        parts = relative.split(os.sep)
        if parts[0] != self.library:
            return None
        inner = parts[1:]
        if not inner:
            return str(self.declaration_root)
        stem, suffix = os.path.splitext(inner[-1])
        if suffix not in _DECLARATION_SUFFIXES:
            return str(self.declaration_root.joinpath(*inner))
        module_parts = inner[:-1] if stem == "__init__" else [*inner[:-1], stem]
        resolved = self.resolve_specifier(".".join([self.library, *module_parts]))
        candidate = self.declaration_root.joinpath(*inner)
        return str(candidate) if resolved.path == candidate else None

    def _under_library_root(self, path: str) -> bool:
        normalized = os.path.normpath(path)
        return normalized == self.virtual_library_root or normalized.startswith(self.virtual_library_root + os.sep)

    # -- FileSystemCache overrides -------------------------------------------

    def _real_path(self, path: str) -> str | None:
        if self._under_library_root(path):
            return self._translate(path)
        if self._is_shadowed(path):
            return None
        return path

    def stat_or_none(self, path: str) -> os.stat_result | None:
        if self.is_virtual(path):
            return self._virtual_stat()
        real = self._real_path(path)
        return None if real is None else super().stat_or_none(real)

    def listdir(self, path: str) -> list[str]:
        if os.path.normpath(path) == self.virtual_library_root:
            if self.declaration_root is not None and self.declaration_root.is_dir():
                return [self.library]
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), path)
        real = self._real_path(path)
        if real is None:
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), path)
        return super().listdir(real)

    def read(self, path: str) -> bytes:
        if self.is_virtual(path):
            data = self._source_bytes
        else:
            real = self._real_path(path)
            if real is None:
                raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), path)
            text = self.cache.read_text(real)
            data = super().read(real) if text is None else text.encode("utf-8")
        self.read_cache[path] = data
        self.hash_cache[path] = hash_digest(data)
        return data
