"""
ValidationSession - the mutable state of one validation run for one record.

One session exists per record instance, including every nested instance.
Sessions are never reused across runs.
"""

from collections.abc import Iterator
from enum import Enum
from typing import Any

from recordkit.core.errors import SessionStateError
from recordkit.core.models import ErrorKind, FieldError, ValidationResult


class SessionState(str, Enum):
    INITIALIZED = "initialized"
    COERCED = "coerced"
    STAGED = "staged"
    FINALIZED = "finalized"


_STATE_ORDER = {state: position for position, state in enumerate(SessionState)}


class ValidationSession:
    """
    Accumulates the changes and errors of one run.

    Nested records are held in ``changes`` as child sessions (a session for
    an embedded one, a list of sessions for an embedded many) and indexed in
    ``nested`` by field name.

    Attributes:
        definition: The RecordDefinition being validated
        params: Raw input, unchanged
        changes: Field -> value for every field touched in this run
        errors: Errors attached to this record's own fields
        nested: Child sessions keyed by nested field name
        coercion_failed: Fields whose coercion failed (terminal for that field)
        state: Lifecycle state
    """

    def __init__(self, definition, params: dict[str, Any] | None = None):
        self.definition = definition
        self.params: dict[str, Any] = dict(params or {})
        self.changes: dict[str, Any] = {}
        self.errors: list[FieldError] = []
        self.nested: dict[str, Any] = {}
        self.coercion_failed: set[str] = set()
        self.state = SessionState.INITIALIZED

    @property
    def valid(self) -> bool:
        """No own errors and every child session valid."""
        return not self.errors and all(child.valid for child in self.iter_children())

    def advance(self, state: SessionState) -> None:
        """
        Move the session forward in its lifecycle.

        Raises:
            SessionStateError: On a repeated or backward transition
        """
        if _STATE_ORDER[state] <= _STATE_ORDER[self.state]:
            raise SessionStateError(
                f"Cannot move session of {self.definition.name} from {self.state.value} to {state.value}"
            )
        self.state = state

    def add_error(
        self,
        field: str,
        message: str,
        kind: ErrorKind,
        *,
        validation: str | None = None,
        constraint: str | None = None,
        clause: int | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> FieldError:
        error = FieldError(
            field=field,
            message=message,
            kind=kind,
            validation=validation,
            constraint=constraint,
            clause=clause,
            metadata=metadata or {},
        )
        self.errors.append(error)
        return error

    def errors_on(self, field: str) -> list[FieldError]:
        return [error for error in self.errors if error.field == field]

    def holds_value(self, field: str) -> bool:
        """True when the field has a non-None entry in the changes."""
        return self.changes.get(field) is not None

    def get_value(self, field: str, default: Any = None) -> Any:
        return self.changes.get(field, default)

    def iter_children(self) -> Iterator["ValidationSession"]:
        for child in self.nested.values():
            if isinstance(child, list):
                yield from child
            elif child is not None:
                yield child

    def to_bindings(self) -> dict[str, Any]:
        """Changes with child sessions converted to plain dicts."""
        plain: dict[str, Any] = {}
        for name, value in self.changes.items():
            if isinstance(value, ValidationSession):
                plain[name] = value.to_bindings()
            elif isinstance(value, list) and name in self.nested:
                plain[name] = [item.to_bindings() for item in value]
            else:
                plain[name] = value
        return plain

    def error_messages(self) -> dict[str, Any]:
        """
        Rendered messages as a tree.

        Own fields map to a list of messages, embedded one fields to the child's
        tree and embedded many fields to a list with one tree per element.
        """
        messages: dict[str, Any] = {}
        for error in self.errors:
            messages.setdefault(error.field, []).append(error.render())

        for name, child in self.nested.items():
            if isinstance(child, list):
                if any(not item.valid for item in child):
                    messages[name] = [item.error_messages() for item in child]
            elif child is not None and not child.valid:
                messages[name] = child.error_messages()
        return messages

    def nested_error_messages(self) -> dict[str, Any]:
        messages = self.error_messages()
        return {name: messages[name] for name in self.nested if name in messages}

    def to_result(self) -> ValidationResult:
        return ValidationResult(
            record=self.definition.name,
            valid=self.valid,
            changes=self.to_bindings(),
            errors=list(self.errors),
            nested_errors=self.nested_error_messages(),
        )

    def __repr__(self) -> str:
        return (
            f"ValidationSession({self.definition.name}, state={self.state.value}, "
            f"valid={self.valid}, changes={list(self.changes)}, errors={len(self.errors)})"
        )
