"""Run the ``validate`` command end-to-end with settings taken from the environment."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from snippet_check.cli.app import app
from snippet_check.core.validate import invalidate_declaration_cache
from tests.conftest import LIBRARY_NAME, TypedLibrary

runner = CliRunner()


@pytest.fixture(autouse=True)
def _env(typed_library: TypedLibrary, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SNIPPET_CHECK_LIBRARY", LIBRARY_NAME)
    monkeypatch.setenv("SNIPPET_CHECK_DEFAULT_IMPORTS", f"{LIBRARY_NAME}:Option,Some,Right")
    invalidate_declaration_cache()


def test_valid_snippet_passes() -> None:
    result = runner.invoke(app, ["validate", "--code", "x: int = Option(1).or_else(2)"])

    assert result.exit_code == 0
    assert "Validation PASSED" in result.output


def test_invalid_snippet_reports_caller_line(tmp_path: Path) -> None:
    snippet = tmp_path / "snippet.py"
    snippet.write_text("a = Some(1)\nb: str = a.or_else(0)\n", encoding="utf-8")

    result = runner.invoke(app, ["validate", str(snippet), "--json"])

    assert result.exit_code == 1
    payload = json.loads(result.output)
    assert payload["imports_prepended"] is True
    assert [d["line"] for d in payload["diagnostics"] if d["severity"] == "error"] == [2]
