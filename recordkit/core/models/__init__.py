"""
Core data models for the record validation pipeline.

All models use Pydantic for runtime validation and type safety.
"""

from .field_error import ErrorKind, FieldError
from .validation_result import ValidationResult

__all__ = [
    "ErrorKind",
    "FieldError",
    "ValidationResult",
]
