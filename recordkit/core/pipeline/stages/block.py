"""
Block - ordered (condition, outcome) clauses.

For each clause whose condition is truthy, the outcome decides:

- None, "ok" or True: pass
- a string: fail with that message
- ("error", reason): fail with the reason
- anything else, or a raised exception: evaluator error

All clauses run; every error records its 1-based clause index.
"""

from collections.abc import Mapping
from typing import Any

from recordkit.core.expressions import is_failure
from recordkit.core.models import ErrorKind

from .base import PipelineStage

CLAUSE_FAILURE = "error evaluating expression in clause #{clause} of block"

_PASS = object()


def interpret_outcome(outcome: Any) -> Any:
    """
    Return _PASS, a failure message, or None when the outcome is unusable.
    """
    if outcome is None or outcome is True or (isinstance(outcome, str) and outcome == "ok"):
        return _PASS
    if isinstance(outcome, str):
        return outcome
    if (
        isinstance(outcome, (tuple, list))
        and len(outcome) == 2
        and isinstance(outcome[0], str)
        and outcome[0] == "error"
        and isinstance(outcome[1], str)
    ):
        return outcome[1]
    return None


class BlockStage(PipelineStage):
    name = "block"
    options = ("block",)

    def applies_to(self, session, field) -> bool:
        return super().applies_to(session, field) and session.holds_value(field.name)

    def apply(self, session, field, bindings: Mapping[str, Any]) -> None:
        for clause, (condition, outcome) in enumerate(field.block, start=1):
            matched = self.evaluate_rule(session, field, condition, bindings)
            if is_failure(matched):
                self._clause_error(session, field, clause)
                continue
            if not matched:
                continue

            result = self.evaluate_rule(session, field, outcome, bindings)
            message = None if is_failure(result) else interpret_outcome(result)
            if message is _PASS:
                continue
            if message is None:
                self._clause_error(session, field, clause)
                continue

            session.add_error(
                field.name,
                message,
                ErrorKind.BLOCK_CLAUSE,
                validation="block",
                clause=clause,
                metadata={"clause": clause},
            )

    def _clause_error(self, session, field, clause: int) -> None:
        self.evaluator_error(
            session,
            field,
            CLAUSE_FAILURE,
            "block",
            validation="block",
            clause=clause,
            metadata={"clause": clause},
        )
