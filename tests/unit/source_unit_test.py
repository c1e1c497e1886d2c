import pytest

from snippet_check.core.source import SourceUnit, build_import_prefix


class TestBuildImportPrefix:
    def test_one_line_per_module(self) -> None:
        prefix = build_import_prefix({"lib": ("A", "B"), "lib.extra": ("C",)})
        assert prefix == "from lib import A, B\nfrom lib.extra import C\n"

    def test_skips_modules_without_names(self) -> None:
        assert build_import_prefix({"lib": (), "lib.x": ("Y",)}) == "from lib.x import Y\n"

    def test_empty_mapping_yields_empty_prefix(self) -> None:
        assert build_import_prefix({}) == ""


class TestSourceUnit:
    def test_without_prefix_text_is_unchanged(self) -> None:
        unit = SourceUnit("x = 1\n")
        assert unit.effective_text == "x = 1\n"
        assert unit.prefix_line_count == 0

    def test_prefix_is_prepended(self) -> None:
        unit = SourceUnit("x = 1", "from lib import A\n")
        assert unit.effective_text == "from lib import A\nx = 1"
        assert unit.prefix_line_count == 1

    def test_multi_line_prefix_is_counted(self) -> None:
        unit = SourceUnit("x = 1", "from a import A\nfrom b import B\n")
        assert unit.prefix_line_count == 2

    def test_prefix_must_end_with_newline(self) -> None:
        with pytest.raises(ValueError):
            SourceUnit("x = 1", "from lib import A")

    def test_positions_inside_prefix_are_hidden(self) -> None:
        unit = SourceUnit("x = 1", "from a import A\nfrom b import B\n")
        assert unit.to_raw_position(1, 1) is None
        assert unit.to_raw_position(2, 17) is None

    def test_positions_after_prefix_are_shifted(self) -> None:
        unit = SourceUnit("a = 1\nb = 2", "from a import A\nfrom b import B\n")
        assert unit.to_raw_position(3, 1) == (1, 1)
        assert unit.to_raw_position(4, 5) == (2, 5)

    def test_positions_without_prefix_pass_through(self) -> None:
        unit = SourceUnit("a = 1\nb = 2")
        assert unit.to_raw_position(2, 3) == (2, 3)

    def test_column_is_at_least_one(self) -> None:
        assert SourceUnit("a = 1").to_raw_position(1, 0) == (1, 1)

    def test_is_immutable(self) -> None:
        unit = SourceUnit("a = 1")
        with pytest.raises(AttributeError):
            unit.raw_text = "b = 2"  # type: ignore[misc]
