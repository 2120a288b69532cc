"""
Pipeline stage interface and the stage registry.

A stage receives a session and the run's bindings, records changes and
errors on the session and returns it. Stages never raise for data problems.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from recordkit.core.errors import DefinitionError
from recordkit.core.expressions import MISSING, Rule, build_context, evaluate
from recordkit.core.models import ErrorKind
from recordkit.observability.metrics import evaluation_failures_total, increment_counter


class PipelineStage(ABC):
    """
    Base class for pipeline stages.

    Subclasses set ``name`` (the name used in a definition's stage list),
    ``options`` (the field options they consume) and ``scope`` (which sibling
    values their rules see) and implement apply().
    """

    name: str = ""
    options: tuple[str, ...] = ()
    scope: str = "prior"

    def __call__(self, session, bindings: Mapping[str, Any] | None = None):
        for field in session.definition.fields:
            if self.applies_to(session, field):
                self.apply(session, field, bindings or {})
        return session

    def applies_to(self, session, field) -> bool:
        if field.name in session.coercion_failed:
            return False
        return any(field.has_option(option) for option in self.options)

    @abstractmethod
    def apply(self, session, field, bindings: Mapping[str, Any]) -> None:
        """Run this stage for one field of one session."""

    def evaluate_rule(self, session, field, rule: Rule, bindings: Mapping[str, Any]) -> Any:
        """Evaluate a rule against this stage's context for the field."""
        context = build_context(session, bindings, field.name, scope=self.scope)
        value = session.changes[field.name] if session.holds_value(field.name) else MISSING
        return evaluate(rule, context, value)

    def evaluator_error(self, session, field, message: str, option: str, **kwargs: Any) -> None:
        increment_counter(evaluation_failures_total, record=session.definition.name, option=option)
        session.add_error(field.name, message, ErrorKind.EVALUATOR, **kwargs)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name})"


STAGE_REGISTRY: dict[str, PipelineStage] = {}


def register_stage(stage: PipelineStage, replace: bool = False) -> PipelineStage:
    """
    Register a stage under its name so definitions can list it.

    Raises:
        DefinitionError: If the name is empty or already taken (unless replace=True)
    """
    if not stage.name:
        raise DefinitionError(f"{stage.__class__.__name__} has no name")
    if stage.name in STAGE_REGISTRY and not replace:
        raise DefinitionError(f"A stage named '{stage.name}' is already registered")
    STAGE_REGISTRY[stage.name] = stage
    return stage


def get_stage(name: str) -> PipelineStage:
    try:
        return STAGE_REGISTRY[name]
    except KeyError:
        raise DefinitionError(f"Unknown pipeline stage: {name}") from None


def recognized_options(stage_names) -> set[str]:
    """All field options consumed by the given stages."""
    options: set[str] = set()
    for name in stage_names:
        options.update(get_stage(name).options)
    return options

