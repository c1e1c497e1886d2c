"""Shared fixtures and helpers for tests."""

import logging
import textwrap
from pathlib import Path

import pytest

from snippet_check.config import ValidatorSettings
from snippet_check.core.cache import DeclarationCache

logger = logging.getLogger(__name__)

_REPO_ROOT = Path(__file__).parent.parent

LIBRARY_NAME = "fpkit"


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# TypedLibrary: a throw-away library laid out like a source checkout:
#   <root>/pyproject.toml, <root>/src/fpkit/__init__.py, <root>/stubs/*.pyi
# ---------------------------------------------------------------------------

_OPTION_STUB = """
from collections.abc import Callable
from typing import Generic, TypeVar

_T = TypeVar("_T")
_U = TypeVar("_U")

class Option(Generic[_T]):
    def __init__(self, value: _T | None) -> None: ...
    def map(self, f: Callable[[_T], _U]) -> Option[_U]: ...
    def filter(self, predicate: Callable[[_T], bool]) -> Option[_T]: ...
    def or_else(self, default: _T) -> _T: ...
    def is_some(self) -> bool: ...

def Some(value: _T) -> Option[_T]: ...
def Nothing() -> Option[int]: ...
"""

_EITHER_STUB = """
from collections.abc import Callable
from typing import Any, Generic, TypeVar

_L = TypeVar("_L")
_R = TypeVar("_R")
_U = TypeVar("_U")

class Either(Generic[_L, _R]):
    def map(self, f: Callable[[_R], _U]) -> Either[_L, _U]: ...
    def get_or_else(self, default: _R) -> _R: ...
    def is_right(self) -> bool: ...

def Right(value: _R) -> Either[Any, _R]: ...
def Left(value: _L) -> Either[_L, Any]: ...
"""

_COLLECTION_STUB = """
from collections.abc import Callable, Iterable
from typing import Generic, TypeVar

_T = TypeVar("_T")
_U = TypeVar("_U")

class List(Generic[_T]):
    def __init__(self, items: Iterable[_T]) -> None: ...
    def map(self, f: Callable[[_T], _U]) -> List[_U]: ...
    def to_list(self) -> list[_T]: ...
"""

_INDEX_STUB = """
from fpkit.collection import List as List
from fpkit.either import Either as Either, Left as Left, Right as Right
from fpkit.option import Nothing as Nothing, Option as Option, Some as Some
"""

DEFAULT_IMPORTS = {LIBRARY_NAME: ("Option", "Some", "Nothing", "Either", "Right", "Left", "List")}


class TypedLibrary:
    def __init__(self, root: Path) -> None:
        self.root = root
        self.source_dir = root / "src"
        self.package_dir = self.source_dir / LIBRARY_NAME
        self.stubs_dir = root / "stubs"

    @staticmethod
    def build(root: Path) -> "TypedLibrary":
        library = TypedLibrary(root)
        (root / "pyproject.toml").parent.mkdir(parents=True, exist_ok=True)
        (root / "pyproject.toml").write_text(f'[project]\nname = "{LIBRARY_NAME}"\nversion = "1.0.0"\n')
        library.package_dir.mkdir(parents=True)
        (library.package_dir / "__init__.py").write_text("")
        library.write_stub("__init__.pyi", _INDEX_STUB)
        library.write_stub("option.pyi", _OPTION_STUB)
        library.write_stub("either/__init__.pyi", _EITHER_STUB)
        library.write_stub("collection.pyi", _COLLECTION_STUB)
        logger.debug("Built typed library at %s", root)
        return library

    def write_stub(self, relative: str, content: str) -> Path:
        path = self.stubs_dir / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(content).lstrip(), encoding="utf-8")
        return path


# ---------------------------------------------------------------------------
# Shared fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def typed_library(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> TypedLibrary:
    """Build the test library and make it importable."""
    library = TypedLibrary.build(tmp_path / f"{LIBRARY_NAME}-1.0")
    monkeypatch.syspath_prepend(str(library.source_dir))
    return library


@pytest.fixture
def settings() -> ValidatorSettings:
    return ValidatorSettings(library=LIBRARY_NAME, default_imports=DEFAULT_IMPORTS)


@pytest.fixture
def cache() -> DeclarationCache:
    return DeclarationCache()
