from typing import Literal

from pydantic import BaseModel, Field

Severity = Literal["error", "warning"]


class Diagnostic(BaseModel):
    line: int = Field(ge=1)
    column: int = Field(ge=1)
    message: str
    code: str | None = None
    severity: Severity


class ValidationResult(BaseModel):
    success: bool
    diagnostics: list[Diagnostic]
    imports_prepended: bool

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == "error"]
