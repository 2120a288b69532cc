"""
Evaluation context construction.

The context a rule sees is an ordered merge of three sources, later sources
shadowing earlier ones:

1. external bindings supplied by the caller
2. values of fields already present in the session changes
3. the current field's own value

Which sibling fields are visible depends on the scope: "all" exposes every
change made so far, "prior" only fields declared before the current one.
"""

from collections.abc import Iterator, Mapping
from typing import Any

SCOPES = ("prior", "all")


class UnboundNameError(NameError, KeyError):
    """Raised when an expression reads a name the context does not hold."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"name '{name}' is not bound in the evaluation context")

    def __str__(self) -> str:
        return self.args[0]


class EvaluationContext(Mapping):
    """Read-only name -> value mapping with attribute access."""

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, Any] | None = None):
        object.__setattr__(self, "_values", dict(values or {}))

    def __getitem__(self, name: str) -> Any:
        try:
            return self._values[name]
        except KeyError:
            raise UnboundNameError(name) from None

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__"):
            raise AttributeError(name)
        return self[name]

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("EvaluationContext is read-only")

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"EvaluationContext({self._values!r})"


def _plain(value: Any) -> Any:
    """Child sessions are exposed as plain dicts (lists of dicts for many)."""
    if hasattr(value, "to_bindings"):
        return value.to_bindings()
    if isinstance(value, list):
        return [_plain(item) for item in value]
    return value


def build_context(
    session: Any,
    bindings: Mapping[str, Any] | None,
    field_name: str,
    *,
    scope: str = "prior",
) -> EvaluationContext:
    """
    Build the evaluation context for one field of one session.

    Args:
        session: The validation session being run
        bindings: External bindings for this run
        field_name: The field whose rule is being evaluated
        scope: "all" to expose every change, "prior" for fields declared earlier only

    Returns:
        A fresh EvaluationContext
    """
    if scope not in SCOPES:
        raise ValueError(f"scope must be one of {SCOPES}, got {scope!r}")

    values: dict[str, Any] = dict(bindings or {})
    definition = session.definition

    if scope == "all":
        for name, value in session.changes.items():
            values[name] = _plain(value)
    else:
        position = definition.field_index(field_name)
        for name, value in session.changes.items():
            if definition.field_index(name) < position:
                values[name] = _plain(value)

    if field_name in session.changes:
        values[field_name] = _plain(session.changes[field_name])

    return EvaluationContext(values)
