from collections.abc import Mapping, Sequence
from dataclasses import dataclass


def build_import_prefix(default_imports: Mapping[str, Sequence[str]]) -> str:
    """Render one ``from <module> import <names>`` line per module."""
    lines = [f"from {module} import {', '.join(names)}\n" for module, names in default_imports.items() if names]
    return "".join(lines)


@dataclass(frozen=True)
class SourceUnit:
    """The snippet as the caller wrote it plus any generated prefix.

    Positions follow mypy: lines are 1-based, columns are 1-based character
    offsets within the line.
    """

    raw_text: str
    prefix: str = ""

    def __post_init__(self) -> None:
        if self.prefix and not self.prefix.endswith("\n"):
            raise ValueError("Generated prefix must end with a newline")

    @property
    def effective_text(self) -> str:
        return self.prefix + self.raw_text

    @property
    def prefix_line_count(self) -> int:
        return self.prefix.count("\n")

    def to_raw_position(self, line: int, column: int) -> tuple[int, int] | None:
        """Translate an effective-text position to raw-text coordinates.

        Returns ``None`` for positions inside the generated prefix.
        """
        if line <= self.prefix_line_count:
            return None
        return line - self.prefix_line_count, max(column, 1)
