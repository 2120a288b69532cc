"""
FieldError model representing one problem found on one field during a run.
"""

import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

PLACEHOLDER = re.compile(r"\{(\w+)\}")


class ErrorKind(str, Enum):
    """What produced an error."""

    COERCION = "coercion"
    REQUIRED = "required"
    CONSTRAINT = "constraint"
    BLOCK_CLAUSE = "block_clause"
    GUARD_FAILED = "guard_failed"
    EVALUATOR = "evaluator"


class FieldError(BaseModel):
    """
    A single field error (ephemeral, accumulated on a validation session).

    Attributes:
        field: Field the error is attached to
        message: Message template; may contain {name} placeholders
        kind: What produced the error
        validation: Validation family ("number", "length", "inclusion", "block", ...)
        constraint: Specific constraint ("less_than", "min", ...)
        clause: 1-based block clause index for block errors
        metadata: Values used to fill message placeholders
    """

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "field": "age",
                "message": "must be less than {number}",
                "kind": "constraint",
                "validation": "number",
                "constraint": "less_than",
                "clause": None,
                "metadata": {"number": 100},
            }
        },
    )

    field: str = Field(..., min_length=1)
    message: str
    kind: ErrorKind
    validation: str | None = None
    constraint: str | None = None
    clause: int | None = Field(None, ge=1)
    metadata: dict[str, Any] = Field(default_factory=dict)

    def render(self) -> str:
        """Return the message with {name} placeholders replaced from metadata."""
        def substitute(match: re.Match) -> str:
            key = match.group(1)
            return str(self.metadata.get(key, key))

        return PLACEHOLDER.sub(substitute, self.message)
