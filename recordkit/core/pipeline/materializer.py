"""
Entity materialization.

Turns a staged session into an entity: an instance of the pydantic model
generated for the record definition, holding declared defaults overridden by
the session changes. Nested sessions become nested entities.
"""

from typing import Any

from pydantic import BaseModel

from recordkit.core.errors import SessionStateError

from .session import SessionState, ValidationSession


class AggregateValidationFailure(Exception):
    """
    Raised by strict materialization when a session is invalid.

    Carries every message of the run at once, never one exception per field.

    Attributes:
        record: Name of the record definition
        params: Raw input of the run
        messages: Rendered messages as a tree (see ValidationSession.error_messages)
        details: params merged with messages
        session: The invalid session
    """

    def __init__(
        self,
        record: str,
        params: dict[str, Any],
        messages: dict[str, Any],
        session: ValidationSession | None = None,
    ):
        self.record = record
        self.params = params
        self.messages = messages
        self.details = {**params, **messages}
        self.session = session
        super().__init__(f"Validation failed for {record}: {messages}")


def _build_entity(session: ValidationSession) -> BaseModel:
    values: dict[str, Any] = {}
    for name, value in session.changes.items():
        if isinstance(value, ValidationSession):
            values[name] = _build_entity(value)
        elif name in session.nested and isinstance(value, list):
            values[name] = [_build_entity(child) for child in value]
        else:
            values[name] = value
    return session.definition.entity_model.model_construct(**values)


def _finalize(session: ValidationSession) -> None:
    if session.state is not SessionState.STAGED:
        raise SessionStateError(
            f"Only staged sessions can be materialized; {session.definition.name} is {session.state.value}"
        )
    for child in session.iter_children():
        _finalize(child)
    session.advance(SessionState.FINALIZED)


def materialize(session: ValidationSession) -> BaseModel:
    """
    Apply all changes onto a default entity, regardless of validity.

    Raises:
        SessionStateError: If the session was not staged or is already finalized
    """
    entity = _build_entity(session)
    _finalize(session)
    return entity


def materialize_strict(session: ValidationSession) -> BaseModel:
    """
    Materialize a valid session.

    Raises:
        AggregateValidationFailure: If the session (or any nested session) is invalid
        SessionStateError: If the session was not staged or is already finalized
    """
    if not session.valid:
        _finalize(session)
        raise AggregateValidationFailure(
            record=session.definition.name,
            params=dict(session.params),
            messages=session.error_messages(),
            session=session,
        )
    return materialize(session)


def dump_entity(definition, entity: BaseModel) -> dict[str, Any]:
    """
    Convert an entity back into external values through each field type's dump.
    """
    dumped: dict[str, Any] = {}
    for field in definition.fields:
        value = getattr(entity, field.name, None)
        dumped[field.name] = None if value is None else field.type.dump(value)

    for nested in definition.nested:
        value = getattr(entity, nested.name, None)
        if nested.cardinality == "many":
            dumped[nested.name] = [dump_entity(nested.definition, item) for item in value or []]
        else:
            dumped[nested.name] = None if value is None else dump_entity(nested.definition, value)
    return dumped
