"""
Requiredness - required scalar fields must hold a value after coercion.

Required nested relationships are checked during nested dispatch.
"""

from collections.abc import Mapping
from typing import Any

from recordkit.core.models import ErrorKind
from recordkit.core.validators import RequiredFieldValidator, ValidationError

from .base import PipelineStage


class RequiredStage(PipelineStage):
    name = "required"

    def __call__(self, session, bindings: Mapping[str, Any] | None = None):
        for field in session.definition.fields:
            if session.definition.is_required(field.name) and field.name not in session.coercion_failed:
                self.apply(session, field, bindings or {})
        return session

    def apply(self, session, field, bindings: Mapping[str, Any]) -> None:
        validator = RequiredFieldValidator(field.name, allow_empty_string=field.allow_empty)
        try:
            validator.validate(session.changes)
        except ValidationError as e:
            session.add_error(field.name, e.message, ErrorKind.REQUIRED, validation=e.validation)
