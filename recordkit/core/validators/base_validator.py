"""
Base validator interface for all standard constraints.

Each validator checks one declared constraint (one option such as
less_than or format) on one field. Constraint bounds are declared as data:
a constant, or a rule evaluated against the evaluation context at run time.
"""

from abc import ABC, abstractmethod
from typing import Any

from recordkit.core.errors import DefinitionError
from recordkit.core.expressions.evaluator import Rule, RuleKind, compile_rule


class ValidationError(Exception):
    """Raised when a constraint is not satisfied."""

    def __init__(
        self,
        rule_name: str,
        field_name: str,
        message: str,
        validation: str | None = None,
        metadata: dict[str, Any] | None = None,
    ):
        self.rule_name = rule_name
        self.field_name = field_name
        self.message = message
        self.validation = validation
        self.metadata = metadata or {}
        super().__init__(f"[{rule_name}] {field_name}: {message}")


class BaseValidator(ABC):
    """
    Abstract base class for all validators.

    Subclasses set ``validation`` (the constraint family) and ``options``
    (the option names they implement) and implement validate().
    """

    validation: str = ""
    options: tuple[str, ...] = ()

    def __init__(self, field_name: str, option: str, bound: Any, parameters: dict[str, Any] | None = None):
        """
        Initialize validator.

        Args:
            field_name: Name of the field to validate
            option: The constraint option (e.g. "less_than")
            bound: Constant bound, or an expression/callable resolved per run
            parameters: Extra constraint parameters shared by the field (e.g. length count mode)

        Raises:
            DefinitionError: If a constant bound is not acceptable for this constraint
        """
        if option not in self.options:
            raise DefinitionError(f"{self.__class__.__name__} does not implement '{option}'", field=field_name)

        self.field_name = field_name
        self.option = option
        self.parameters = parameters or {}
        rule = compile_rule(bound, option, field=field_name)

        if rule.kind is RuleKind.CONSTANT:
            try:
                rule = Rule(self.check_bound(rule.body), RuleKind.CONSTANT, option)
            except (TypeError, ValueError) as e:
                raise DefinitionError(f"Invalid bound for '{option}': {e}", field=field_name) from e

        self.bound = rule

    def check_bound(self, bound: Any) -> Any:
        """
        Check (and optionally normalize) a bound.

        Called at definition time for constant bounds and at run time for
        evaluated ones.

        Raises:
            TypeError, ValueError: If the bound is not acceptable
        """
        return bound

    @abstractmethod
    def validate(self, value: Any, bound: Any) -> None:
        """
        Validate a value against this constraint.

        Args:
            value: The field value (never None)
            bound: The resolved bound

        Raises:
            ValidationError: If the constraint is not satisfied
            TypeError: If the constraint cannot be applied to the value
        """

    def fail(self, message: str, **metadata: Any) -> ValidationError:
        return ValidationError(
            rule_name=self.option,
            field_name=self.field_name,
            message=message,
            validation=self.validation,
            metadata={"kind": self.option, **metadata},
        )

    @property
    def rule_type(self) -> str:
        return self.option

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(field={self.field_name}, option={self.option}, bound={self.bound.body!r})"
