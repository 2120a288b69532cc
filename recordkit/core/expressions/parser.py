"""
Compile expression source text into expression trees.

Source text is parsed with the ast module and translated node by node into
the Expression classes in nodes.py. Nothing is ever passed to eval(); only
the constructs listed below are accepted:

- names (looked up in the evaluation context) and constants
- arithmetic: + - * / // % ** and unary minus
- comparisons, including chained comparisons and in / not in / is / is not
- and / or / not
- list, tuple, set and dict literals
- subscripts and attribute access (a["x"], a.x)
- calls to whitelisted helper functions
"""

import ast
import operator
from collections.abc import Callable, Mapping
from typing import Any

from recordkit.core.errors import DefinitionError

from .nodes import (
    BinaryOp,
    BoolOp,
    Call,
    Collection,
    Const,
    DictLiteral,
    Expression,
    Item,
    Ref,
    UnaryOp,
)

DEFAULT_FUNCTIONS: dict[str, Callable[..., Any]] = {
    "len": len,
    "abs": abs,
    "min": min,
    "max": max,
    "round": round,
    "sum": sum,
    "str": str,
    "int": int,
    "float": float,
    "bool": bool,
}

BINARY_OPERATORS = {
    ast.Add: ("+", operator.add),
    ast.Sub: ("-", operator.sub),
    ast.Mult: ("*", operator.mul),
    ast.Div: ("/", operator.truediv),
    ast.FloorDiv: ("//", operator.floordiv),
    ast.Mod: ("%", operator.mod),
    ast.Pow: ("**", operator.pow),
}

COMPARE_OPERATORS = {
    ast.Eq: ("==", operator.eq),
    ast.NotEq: ("!=", operator.ne),
    ast.Lt: ("<", operator.lt),
    ast.LtE: ("<=", operator.le),
    ast.Gt: (">", operator.gt),
    ast.GtE: (">=", operator.ge),
    ast.In: ("in", lambda x, y: x in y),
    ast.NotIn: ("not in", lambda x, y: x not in y),
    ast.Is: ("is", operator.is_),
    ast.IsNot: ("is not", operator.is_not),
}

UNARY_OPERATORS = {
    ast.USub: ("-", operator.neg),
    ast.UAdd: ("+", operator.pos),
    ast.Not: ("not", operator.not_),
}

NAMED_CONSTANTS = {"True": True, "False": False, "None": None}


class _Translator:
    def __init__(self, source: str, functions: Mapping[str, Callable[..., Any]]):
        self.source = source
        self.functions = functions

    def fail(self, node: ast.AST, message: str) -> DefinitionError:
        return DefinitionError(f"Invalid expression {self.source!r}: {message}")

    def translate(self, node: ast.AST) -> Expression:
        if isinstance(node, ast.Constant):
            return Const(node.value)

        if isinstance(node, ast.Name):
            if node.id in NAMED_CONSTANTS:
                return Const(NAMED_CONSTANTS[node.id])
            return Ref(node.id)

        if isinstance(node, ast.BinOp):
            if type(node.op) not in BINARY_OPERATORS:
                raise self.fail(node, f"unsupported operator {type(node.op).__name__}")
            symbol, func = BINARY_OPERATORS[type(node.op)]
            return BinaryOp(symbol, func, self.translate(node.left), self.translate(node.right))

        if isinstance(node, ast.UnaryOp):
            if type(node.op) not in UNARY_OPERATORS:
                raise self.fail(node, f"unsupported operator {type(node.op).__name__}")
            symbol, func = UNARY_OPERATORS[type(node.op)]
            return UnaryOp(symbol, func, self.translate(node.operand))

        if isinstance(node, ast.BoolOp):
            symbol = "and" if isinstance(node.op, ast.And) else "or"
            return BoolOp(symbol, tuple(self.translate(value) for value in node.values))

        if isinstance(node, ast.Compare):
            return self.translate_compare(node)

        if isinstance(node, (ast.List, ast.Tuple, ast.Set)):
            kind = {ast.List: list, ast.Tuple: tuple, ast.Set: set}[type(node)]
            return Collection(kind, tuple(self.translate(item) for item in node.elts))

        if isinstance(node, ast.Dict):
            if any(key is None for key in node.keys):
                raise self.fail(node, "dict unpacking is not supported")
            return DictLiteral(tuple(
                (self.translate(key), self.translate(value))
                for key, value in zip(node.keys, node.values)
            ))

        if isinstance(node, ast.Subscript):
            if isinstance(node.slice, ast.Slice):
                raise self.fail(node, "slices are not supported")
            return Item(self.translate(node.value), self.translate(node.slice))

        if isinstance(node, ast.Attribute):
            if node.attr.startswith("_"):
                raise self.fail(node, f"access to private attribute {node.attr!r} is not allowed")
            return Item(self.translate(node.value), Const(node.attr))

        if isinstance(node, ast.Call):
            if not isinstance(node.func, ast.Name) or node.func.id not in self.functions:
                raise self.fail(node, "only calls to registered helper functions are allowed")
            if any(isinstance(arg, ast.Starred) for arg in node.args):
                raise self.fail(node, "starred arguments are not supported")
            if any(keyword.arg is None for keyword in node.keywords):
                raise self.fail(node, "keyword unpacking is not supported")
            return Call(
                self.functions[node.func.id],
                *(self.translate(arg) for arg in node.args),
                **{keyword.arg: self.translate(keyword.value) for keyword in node.keywords},
            )

        raise self.fail(node, f"unsupported syntax {type(node).__name__}")

    def translate_compare(self, node: ast.Compare) -> Expression:
        terms = [self.translate(node.left)] + [self.translate(item) for item in node.comparators]
        parts = []
        for index, op in enumerate(node.ops):
            if type(op) not in COMPARE_OPERATORS:
                raise self.fail(node, f"unsupported comparison {type(op).__name__}")
            symbol, func = COMPARE_OPERATORS[type(op)]
            parts.append(BinaryOp(symbol, func, terms[index], terms[index + 1]))
        if len(parts) == 1:
            return parts[0]
        # a < b < c  ->  (a < b) and (b < c)
        return BoolOp("and", tuple(parts))


def parse_expression(
    source: str,
    functions: Mapping[str, Callable[..., Any]] | None = None,
) -> Expression:
    """
    Parse expression source text into an expression tree.

    Args:
        source: Python expression syntax, e.g. "rating + category"
        functions: Extra helper functions callable by name from the expression

    Returns:
        The compiled expression

    Raises:
        DefinitionError: If the source is not valid or uses unsupported syntax

    Examples:
        >>> parse_expression("score > rating").evaluate({"score": 81, "rating": 80})
        True
    """
    if not isinstance(source, str) or not source.strip():
        raise DefinitionError("Expression source must be a non-empty string")

    try:
        tree = ast.parse(source.strip(), mode="eval")
    except SyntaxError as e:
        raise DefinitionError(f"Invalid expression {source!r}: {e.msg}") from e

    available = dict(DEFAULT_FUNCTIONS)
    if functions:
        available.update(functions)

    return _Translator(source, available).translate(tree.body)
