"""
Rule expressions: node trees, source parsing, compilation and evaluation.
"""

from .context import EvaluationContext, UnboundNameError, build_context
from .evaluator import (
    MISSING,
    SKIPPED,
    EvaluationFailure,
    Rule,
    RuleKind,
    compile_rule,
    evaluate,
    is_failure,
)
from .nodes import Expression, call, const, expr, ref, wrap
from .parser import DEFAULT_FUNCTIONS, parse_expression

__all__ = [
    "Expression",
    "ref",
    "const",
    "expr",
    "call",
    "wrap",
    "parse_expression",
    "DEFAULT_FUNCTIONS",
    "Rule",
    "RuleKind",
    "EvaluationFailure",
    "MISSING",
    "SKIPPED",
    "compile_rule",
    "evaluate",
    "is_failure",
    "EvaluationContext",
    "UnboundNameError",
    "build_context",
]
