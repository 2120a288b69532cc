"""
Guard - the `when` option: a boolean rule the field value must satisfy.
"""

from collections.abc import Mapping
from typing import Any

from recordkit.core.expressions import is_failure
from recordkit.core.models import ErrorKind
from recordkit.observability.metrics import evaluation_failures_total, increment_counter

from .base import PipelineStage


class GuardStage(PipelineStage):
    name = "when"
    options = ("when",)

    def applies_to(self, session, field) -> bool:
        return super().applies_to(session, field) and session.holds_value(field.name)

    def apply(self, session, field, bindings: Mapping[str, Any]) -> None:
        result = self.evaluate_rule(session, field, field.when, bindings)
        if is_failure(result):
            increment_counter(evaluation_failures_total, record=session.definition.name, option="when")
        elif result:
            return
        session.add_error(field.name, "failed `when` guard", ErrorKind.GUARD_FAILED, validation="when")
