"""
Derive - computes a field value before validation.

Derive rules see every change made so far. Expression and zero-argument rules
always run; one-argument rules only when the field holds a value.
"""

from collections.abc import Mapping
from typing import Any

from recordkit.core.expressions import SKIPPED, is_failure

from .base import PipelineStage


class DeriveStage(PipelineStage):
    name = "derive"
    options = ("derive",)
    scope = "all"

    def apply(self, session, field, bindings: Mapping[str, Any]) -> None:
        result = self.evaluate_rule(session, field, field.derive, bindings)
        if result is SKIPPED:
            return
        if is_failure(result):
            self.evaluator_error(session, field, "error evaluating `derive` expression", "derive", validation="derive")
            return
        session.changes[field.name] = result
