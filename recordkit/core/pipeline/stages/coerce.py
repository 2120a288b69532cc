"""
Coercion - converts raw input values into internal field values.

Runs once per session before any configurable stage. Absent, None and blank
values fall back to the field default. A coercion failure is terminal for the
field: later stages skip it.
"""

import copy
from collections.abc import Mapping
from typing import Any

from recordkit.core.models import ErrorKind
from recordkit.core.types import CoercionError
from recordkit.core.validators.required_field_validator import is_blank
from recordkit.observability.logger import get_logger

from .base import PipelineStage

logger = get_logger(__name__)


class CoerceStage(PipelineStage):
    name = "coerce"

    def __call__(self, session, bindings: Mapping[str, Any] | None = None):
        for field in session.definition.fields:
            self.apply(session, field, bindings or {})
        return session

    def apply(self, session, field, bindings: Mapping[str, Any]) -> None:
        raw = session.params.get(field.name)

        if is_blank(raw, field.allow_empty):
            if field.default is not None:
                session.changes[field.name] = copy.deepcopy(field.default)
            return

        try:
            session.changes[field.name] = field.type.coerce(raw)
        except CoercionError as e:
            logger.debug(
                "Coercion failed",
                extra={"record": session.definition.name, "field": field.name, "error_message": str(e)},
            )
            session.coercion_failed.add(field.name)
            session.add_error(
                field.name,
                "is invalid",
                ErrorKind.COERCION,
                validation="cast",
                metadata={"type": field.type.name},
            )
