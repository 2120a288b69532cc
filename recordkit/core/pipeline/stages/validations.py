"""
Validations - standard constraints (number, length, membership, format).

Every declared constraint is checked independently; one failure never hides
another. Constraints only apply to fields holding a non-None value.
"""

from collections.abc import Mapping
from typing import Any

from recordkit.core.expressions import RuleKind, is_failure
from recordkit.core.models import ErrorKind
from recordkit.core.validators import VALIDATION_OPTIONS, ValidationError

from .base import PipelineStage


class ValidationsStage(PipelineStage):
    name = "validations"
    options = VALIDATION_OPTIONS

    def applies_to(self, session, field) -> bool:
        return bool(field.validators) and super().applies_to(session, field) and session.holds_value(field.name)

    def apply(self, session, field, bindings: Mapping[str, Any]) -> None:
        value = session.changes[field.name]

        for validator in field.validators:
            if validator.bound.kind is RuleKind.CONSTANT:
                bound = validator.bound.body
            else:
                bound = self.evaluate_rule(session, field, validator.bound, bindings)
                if is_failure(bound):
                    self._bound_error(session, field, validator.option)
                    continue
                try:
                    bound = validator.check_bound(bound)
                except (TypeError, ValueError):
                    self._bound_error(session, field, validator.option)
                    continue

            try:
                validator.validate(value, bound)
            except ValidationError as e:
                session.add_error(
                    field.name,
                    e.message,
                    ErrorKind.CONSTRAINT,
                    validation=e.validation,
                    constraint=e.rule_name,
                    metadata=e.metadata,
                )
            except (TypeError, ValueError):
                self.evaluator_error(
                    session,
                    field,
                    "cannot apply `{constraint}` to this value",
                    validator.option,
                    validation=validator.validation,
                    constraint=validator.option,
                    metadata={"constraint": validator.option},
                )

    def _bound_error(self, session, field, option: str) -> None:
        self.evaluator_error(
            session,
            field,
            "error evaluating `{constraint}` expression",
            option,
            constraint=option,
            metadata={"constraint": option},
        )
