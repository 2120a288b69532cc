"""
Rule compilation and isolated evaluation.

A rule body is compiled once, when the record is defined, into a Rule whose
kind decides how it is evaluated:

- context:  an Expression, evaluated against the evaluation context
- thunk:    a callable taking no arguments
- value:    a callable taking exactly one argument, the current field value
- constant: any other object, returned as is

evaluate() never raises. Any exception coming out of a rule body is caught
and returned as an EvaluationFailure.
"""

import inspect
from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any

from recordkit.core.errors import DefinitionError
from recordkit.observability.logger import get_logger

from .nodes import Expression

logger = get_logger(__name__)


class _Sentinel:
    def __init__(self, name: str):
        self.name = name

    def __repr__(self) -> str:
        return self.name

    def __bool__(self) -> bool:
        return False


MISSING = _Sentinel("MISSING")
SKIPPED = _Sentinel("SKIPPED")


class RuleKind(str, Enum):
    CONTEXT = "context"
    THUNK = "thunk"
    VALUE = "value"
    CONSTANT = "constant"


class Rule:
    """A compiled rule body."""

    __slots__ = ("body", "kind", "option")

    def __init__(self, body: Any, kind: RuleKind, option: str):
        self.body = body
        self.kind = kind
        self.option = option

    @property
    def arity(self) -> int:
        return 1 if self.kind is RuleKind.VALUE else 0

    @property
    def needs_value(self) -> bool:
        return self.kind is RuleKind.VALUE

    def __repr__(self) -> str:
        return f"Rule({self.option}, {self.kind.value}, {self.body!r})"


class EvaluationFailure:
    """Returned by evaluate() when a rule body raised."""

    __slots__ = ("rule", "exception")

    def __init__(self, rule: Rule, exception: BaseException):
        self.rule = rule
        self.exception = exception

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return f"EvaluationFailure({self.rule.option}: {type(self.exception).__name__}: {self.exception})"


def _callable_arity(func: Callable[..., Any]) -> int | None:
    """Number of required positional parameters, or None if not introspectable."""
    try:
        sig = inspect.signature(func)
    except (TypeError, ValueError):
        return None

    required = 0
    for param in sig.parameters.values():
        if param.kind in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD):
            if param.default is param.empty:
                required += 1
        elif param.kind is param.KEYWORD_ONLY and param.default is param.empty:
            return -1
    return required


def compile_rule(body: Any, option: str, *, record: str | None = None, field: str | None = None) -> Rule:
    """
    Compile a rule body.

    Args:
        body: Expression, callable or constant
        option: The rule option the body belongs to (for diagnostics)
        record: Record name (for error messages)
        field: Field name (for error messages)

    Raises:
        DefinitionError: If a callable takes anything other than zero or one argument
    """
    if isinstance(body, Rule):
        return body

    if isinstance(body, Expression):
        return Rule(body, RuleKind.CONTEXT, option)

    if callable(body) and not isinstance(body, type):
        arity = _callable_arity(body)
        if arity is None or arity == 1:
            return Rule(body, RuleKind.VALUE, option)
        if arity == 0:
            return Rule(body, RuleKind.THUNK, option)
        raise DefinitionError(
            f"Functions provided to `{option}` must take zero arguments or exactly one "
            f"argument (the field value)",
            record=record,
            field=field,
        )

    if isinstance(body, type):
        # Types are converters such as int or str: applied to the field value
        return Rule(body, RuleKind.VALUE, option)

    return Rule(body, RuleKind.CONSTANT, option)


def evaluate(rule: Rule, context: Mapping[str, Any], value: Any = MISSING) -> Any:
    """
    Evaluate a compiled rule.

    Args:
        rule: The compiled rule
        context: Evaluation context for expressions
        value: Current field value, or MISSING when the field holds none

    Returns:
        The result, SKIPPED when a value rule has no value to work on, or an
        EvaluationFailure if the body raised
    """
    try:
        if rule.kind is RuleKind.CONTEXT:
            return rule.body.evaluate(context)
        if rule.kind is RuleKind.THUNK:
            return rule.body()
        if rule.kind is RuleKind.VALUE:
            if value is MISSING:
                return SKIPPED
            return rule.body(value)
        return rule.body
    except Exception as e:
        logger.debug(
            "Rule evaluation failed",
            extra={"option": rule.option, "error_type": type(e).__name__, "error_message": str(e)},
        )
        return EvaluationFailure(rule, e)


def is_failure(result: Any) -> bool:
    return isinstance(result, EvaluationFailure)
