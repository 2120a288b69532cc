"""
ValidationResult model representing the outcome of validating a record (ephemeral).
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .field_error import FieldError


class ValidationResult(BaseModel):
    """
    Outcome of one validation run (ephemeral, never persisted).

    Attributes:
        record: Name of the validated record definition
        valid: Overall validation status (including nested records)
        changes: Coerced, derived and mapped values; nested records as dicts
        errors: Errors attached to this record's own fields
        nested_errors: Rendered messages of nested records, keyed by nested field
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "record": "Person",
                "valid": False,
                "changes": {"age": -1, "name": "Bob"},
                "errors": [
                    {
                        "field": "age",
                        "message": "must be greater than {number}",
                        "kind": "constraint",
                        "validation": "number",
                        "constraint": "greater_than",
                        "metadata": {"number": 0},
                    }
                ],
                "nested_errors": {"address": {"city": ["can't be blank"]}},
            }
        }
    )

    record: str
    valid: bool
    changes: dict[str, Any] = Field(default_factory=dict)
    errors: list[FieldError] = Field(default_factory=list)
    nested_errors: dict[str, Any] = Field(default_factory=dict)

    @field_validator("errors")
    @classmethod
    def check_valid_consistency(cls, v, info):
        """Validate that valid=True implies errors is empty."""
        if info.data.get("valid") and len(v) > 0:
            raise ValueError("valid=True but errors is not empty")
        return v

    def errors_for(self, field: str) -> list[FieldError]:
        """Return the errors attached to one field."""
        return [error for error in self.errors if error.field == field]
