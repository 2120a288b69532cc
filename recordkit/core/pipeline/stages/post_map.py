"""
Map - transforms the validated value as the last step.

Runs even when the field has errors. Expression and zero-argument maps always
run; one-argument maps only when the field holds a value.
"""

from collections.abc import Mapping
from typing import Any

from recordkit.core.expressions import SKIPPED, is_failure

from .base import PipelineStage


class MapStage(PipelineStage):
    name = "map"
    options = ("map",)

    def apply(self, session, field, bindings: Mapping[str, Any]) -> None:
        result = self.evaluate_rule(session, field, field.map, bindings)
        if result is SKIPPED:
            return
        if is_failure(result):
            self.evaluator_error(session, field, "error evaluating `map` expression", "map", validation="map")
            return
        session.changes[field.name] = result
