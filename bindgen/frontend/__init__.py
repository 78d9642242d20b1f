"""Frontend package - analyzer output -> validated declaration model."""

from .load import LoadError, load_module, load_modules, loads
from .validate import InvalidDeclaration, ValidationResult, Violation, check_module

__all__ = [
    "InvalidDeclaration",
    "LoadError",
    "ValidationResult",
    "Violation",
    "check_module",
    "load_module",
    "load_modules",
    "loads",
]
