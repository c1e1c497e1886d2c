import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

_DEFAULT_LIBRARY = "returns"

_DEFAULT_IMPORTS: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "returns.maybe": ("Maybe", "Some", "Nothing", "maybe"),
        "returns.result": ("Result", "Success", "Failure", "safe"),
        "returns.io": ("IO", "IOResult", "IOSuccess", "IOFailure", "impure_safe"),
        "returns.pipeline": ("flow", "pipe", "is_successful"),
    }
)


@dataclass(frozen=True)
class ValidatorSettings:
    """Which library snippets are checked against and how its declarations are found."""

    library: str = _DEFAULT_LIBRARY
    default_imports: Mapping[str, tuple[str, ...]] = field(default_factory=lambda: _DEFAULT_IMPORTS)
    manifest: str = "pyproject.toml"
    declaration_dir: str = "stubs"
    max_hops: int = 5

    def __post_init__(self) -> None:
        if not self.library or not all(part.isidentifier() for part in self.library.split(".")):
            raise ValueError(f"Invalid library name '{self.library}'")
        if "." in self.library:
            raise ValueError(f"Library must be a top-level package, got '{self.library}'")
        if self.max_hops < 0:
            raise ValueError(f"max_hops must be >= 0, got {self.max_hops}")


def parse_default_imports(value: str) -> dict[str, tuple[str, ...]]:
    """Parse ``module:Name,Name;module:Name`` into an ordered module -> names mapping."""
    imports: dict[str, tuple[str, ...]] = {}
    for chunk in value.split(";"):
        chunk = chunk.strip()
        if not chunk:
            continue
        module, sep, names = chunk.partition(":")
        module = module.strip()
        if not sep or not module:
            raise ValueError(f"Malformed default import entry '{chunk}', expected 'module:Name,Name'")
        parsed = tuple(n.strip() for n in names.split(",") if n.strip())
        if not parsed:
            raise ValueError(f"No names given for module '{module}'")
        for name in parsed:
            if not name.isidentifier():
                raise ValueError(f"Invalid import name '{name}' for module '{module}'")
        imports[module] = imports.get(module, ()) + parsed
    return imports


def load_settings() -> ValidatorSettings:
    library = os.getenv("SNIPPET_CHECK_LIBRARY", _DEFAULT_LIBRARY)
    raw_imports = os.getenv("SNIPPET_CHECK_DEFAULT_IMPORTS")
    if raw_imports is not None:
        default_imports: Mapping[str, tuple[str, ...]] = parse_default_imports(raw_imports)
    elif library == _DEFAULT_LIBRARY:
        default_imports = _DEFAULT_IMPORTS
    else:
        default_imports = {}
    return ValidatorSettings(
        library=library,
        default_imports=default_imports,
        manifest=os.getenv("SNIPPET_CHECK_MANIFEST", "pyproject.toml"),
        declaration_dir=os.getenv("SNIPPET_CHECK_DECLARATION_DIR", "stubs"),
        max_hops=int(os.getenv("SNIPPET_CHECK_MAX_HOPS", "5")),
    )
