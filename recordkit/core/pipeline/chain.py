"""
Pipeline chain - runs one record (and its nested records) through all stages.

The run is a fold over the session:

    coerce -> required -> definition.stages... -> nested dispatch

Nested records are dispatched after the parent's stages. Each child runs with
the parent's bindings plus the parent's changes.
"""

from collections.abc import Mapping
from typing import Any

from recordkit.core.models import ErrorKind
from recordkit.utils.inputs import is_record_input, to_params

from .session import SessionState, ValidationSession
from .stages import CoerceStage, RequiredStage, get_stage

COERCE = CoerceStage()
REQUIRED = RequiredStage()


def run_pipeline(definition, data: Any = None, bindings: Mapping[str, Any] | None = None) -> ValidationSession:
    """
    Validate input against a record definition.

    Args:
        definition: The RecordDefinition
        data: Mapping, entity, session or None
        bindings: External names visible to rule expressions

    Returns:
        A staged ValidationSession holding changes and errors
    """
    session = ValidationSession(definition, to_params(data))
    return run_session(session, bindings)


def run_session(session: ValidationSession, bindings: Mapping[str, Any] | None = None) -> ValidationSession:
    bindings = dict(bindings or {})
    stages = [get_stage(name) for name in session.definition.stages]

    COERCE(session, bindings)
    session.advance(SessionState.COERCED)

    REQUIRED(session, bindings)
    for stage in stages:
        stage(session, bindings)

    dispatch_nested(session, bindings)
    session.advance(SessionState.STAGED)
    return session


def dispatch_nested(session: ValidationSession, bindings: Mapping[str, Any]) -> None:
    """Run every nested relationship of the session's definition."""
    definition = session.definition
    if not definition.nested:
        return

    child_bindings = {**bindings, **session.to_bindings()}
    for nested in definition.nested:
        raw = session.params.get(nested.name)
        if nested.cardinality == "many":
            _dispatch_many(session, nested, raw, child_bindings)
        else:
            _dispatch_one(session, nested, raw, child_bindings)


def _required_error(session: ValidationSession, name: str) -> None:
    session.add_error(name, "can't be blank", ErrorKind.REQUIRED, validation="required")


def _invalid_error(session: ValidationSession, name: str, type_name: str) -> None:
    session.add_error(name, "is invalid", ErrorKind.COERCION, validation="cast", metadata={"type": type_name})


def _dispatch_one(session: ValidationSession, nested, raw: Any, bindings: Mapping[str, Any]) -> None:
    if raw is None or (isinstance(raw, Mapping) and not raw):
        if session.definition.is_required(nested.name):
            _required_error(session, nested.name)
        return

    if not is_record_input(raw):
        _invalid_error(session, nested.name, "map")
        return

    child = run_pipeline(nested.definition, raw, bindings)
    session.nested[nested.name] = child
    session.changes[nested.name] = child


def _dispatch_many(session: ValidationSession, nested, raw: Any, bindings: Mapping[str, Any]) -> None:
    required = session.definition.is_required(nested.name)

    if raw is None:
        raw = []
    if not isinstance(raw, (list, tuple)) or not all(is_record_input(item) for item in raw):
        _invalid_error(session, nested.name, "list")
        return

    if not raw and required:
        _required_error(session, nested.name)

    children = [run_pipeline(nested.definition, item, bindings) for item in raw]
    session.nested[nested.name] = children
    session.changes[nested.name] = children
