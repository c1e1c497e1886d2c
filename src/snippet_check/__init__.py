from snippet_check.config import ValidatorSettings, load_settings
from snippet_check.core.cache import DeclarationCache, get_declaration_cache
from snippet_check.core.host import ResolvedModule, VirtualCompilationHost
from snippet_check.core.resolver import find_declaration_root, resolve_declaration_root, resolve_entry_point
from snippet_check.core.source import SourceUnit
from snippet_check.core.validate import invalidate_declaration_cache, validate_code
from snippet_check.models import Diagnostic, ValidationResult

__all__ = [
    "DeclarationCache",
    "Diagnostic",
    "ResolvedModule",
    "SourceUnit",
    "ValidationResult",
    "ValidatorSettings",
    "VirtualCompilationHost",
    "find_declaration_root",
    "get_declaration_cache",
    "invalidate_declaration_cache",
    "load_settings",
    "resolve_declaration_root",
    "resolve_entry_point",
    "validate_code",
]
