"""
Expression tree nodes.

Expressions are small typed trees evaluated against an evaluation context
(a name -> value mapping). They are built either with Python operators:

    ref("rating") + ref("category")
    (ref("score") > ref("rating")) & ref("active")

or parsed from source text with parse_expression(). Evaluation looks names up
in the context at run time; nothing is captured when the tree is built.
"""

import operator
from collections.abc import Callable, Mapping
from typing import Any


class Expression:
    """Base class for all expression nodes."""

    def evaluate(self, context: Mapping[str, Any]) -> Any:
        raise NotImplementedError

    def names(self) -> set[str]:
        """Return the context names this expression reads."""
        return set()

    # Arithmetic
    def __add__(self, other): return BinaryOp("+", operator.add, self, wrap(other))
    def __radd__(self, other): return BinaryOp("+", operator.add, wrap(other), self)
    def __sub__(self, other): return BinaryOp("-", operator.sub, self, wrap(other))
    def __rsub__(self, other): return BinaryOp("-", operator.sub, wrap(other), self)
    def __mul__(self, other): return BinaryOp("*", operator.mul, self, wrap(other))
    def __rmul__(self, other): return BinaryOp("*", operator.mul, wrap(other), self)
    def __truediv__(self, other): return BinaryOp("/", operator.truediv, self, wrap(other))
    def __rtruediv__(self, other): return BinaryOp("/", operator.truediv, wrap(other), self)
    def __floordiv__(self, other): return BinaryOp("//", operator.floordiv, self, wrap(other))
    def __rfloordiv__(self, other): return BinaryOp("//", operator.floordiv, wrap(other), self)
    def __mod__(self, other): return BinaryOp("%", operator.mod, self, wrap(other))
    def __rmod__(self, other): return BinaryOp("%", operator.mod, wrap(other), self)
    def __pow__(self, other): return BinaryOp("**", operator.pow, self, wrap(other))
    def __neg__(self): return UnaryOp("-", operator.neg, self)
    def __abs__(self): return UnaryOp("abs", abs, self)

    # Comparison
    def __eq__(self, other): return BinaryOp("==", operator.eq, self, wrap(other))  # type: ignore[override]
    def __ne__(self, other): return BinaryOp("!=", operator.ne, self, wrap(other))  # type: ignore[override]
    def __lt__(self, other): return BinaryOp("<", operator.lt, self, wrap(other))
    def __le__(self, other): return BinaryOp("<=", operator.le, self, wrap(other))
    def __gt__(self, other): return BinaryOp(">", operator.gt, self, wrap(other))
    def __ge__(self, other): return BinaryOp(">=", operator.ge, self, wrap(other))

    # Logical
    def __and__(self, other): return BoolOp("and", (self, wrap(other)))
    def __rand__(self, other): return BoolOp("and", (wrap(other), self))
    def __or__(self, other): return BoolOp("or", (self, wrap(other)))
    def __ror__(self, other): return BoolOp("or", (wrap(other), self))
    def __invert__(self): return UnaryOp("not", operator.not_, self)

    __hash__ = object.__hash__

    def __bool__(self):
        raise TypeError(
            "Expressions have no truth value until evaluated; "
            "use & | ~ instead of and/or/not and avoid chained comparisons"
        )

    def __getitem__(self, key):
        return Item(self, wrap(key))

    def is_in(self, collection) -> "Expression":
        return BinaryOp("in", lambda a, b: a in b, self, wrap(collection))

    def not_in(self, collection) -> "Expression":
        return BinaryOp("not in", lambda a, b: a not in b, self, wrap(collection))

    def is_none(self) -> "Expression":
        return UnaryOp("is None", lambda a: a is None, self)


class Const(Expression):
    def __init__(self, value: Any):
        self.value = value

    def evaluate(self, context):
        return self.value

    def __repr__(self) -> str:
        return repr(self.value)


class Ref(Expression):
    """Looks a name up in the evaluation context."""

    def __init__(self, name: str):
        self.name = name

    def evaluate(self, context):
        return context[self.name]

    def names(self):
        return {self.name}

    def __repr__(self) -> str:
        return self.name


class Item(Expression):
    """Subscript or attribute access on an evaluated value."""

    def __init__(self, target: Expression, key: Expression):
        self.target = target
        self.key = key

    def evaluate(self, context):
        target = self.target.evaluate(context)
        key = self.key.evaluate(context)
        if isinstance(target, Mapping) or isinstance(key, int):
            return target[key]
        return getattr(target, key)

    def names(self):
        return self.target.names() | self.key.names()

    def __repr__(self) -> str:
        return f"{self.target!r}[{self.key!r}]"


class UnaryOp(Expression):
    def __init__(self, symbol: str, func: Callable[[Any], Any], operand: Expression):
        self.symbol = symbol
        self.func = func
        self.operand = operand

    def evaluate(self, context):
        return self.func(self.operand.evaluate(context))

    def names(self):
        return self.operand.names()

    def __repr__(self) -> str:
        return f"({self.symbol} {self.operand!r})"


class BinaryOp(Expression):
    def __init__(self, symbol: str, func: Callable[[Any, Any], Any], left: Expression, right: Expression):
        self.symbol = symbol
        self.func = func
        self.left = left
        self.right = right

    def evaluate(self, context):
        return self.func(self.left.evaluate(context), self.right.evaluate(context))

    def names(self):
        return self.left.names() | self.right.names()

    def __repr__(self) -> str:
        return f"({self.left!r} {self.symbol} {self.right!r})"


class BoolOp(Expression):
    """Short-circuiting and/or with Python semantics (returns an operand)."""

    def __init__(self, symbol: str, operands: tuple[Expression, ...]):
        if symbol not in ("and", "or"):
            raise ValueError(f"Unsupported boolean operator: {symbol}")
        self.symbol = symbol
        self.operands = operands

    def evaluate(self, context):
        result = None
        for operand in self.operands:
            result = operand.evaluate(context)
            if self.symbol == "and" and not result:
                return result
            if self.symbol == "or" and result:
                return result
        return result

    def names(self):
        return set().union(*(operand.names() for operand in self.operands))

    def __repr__(self) -> str:
        return "(" + f" {self.symbol} ".join(repr(operand) for operand in self.operands) + ")"


class Collection(Expression):
    """A list, tuple or set literal whose items are expressions."""

    def __init__(self, kind: type, items: tuple[Expression, ...]):
        self.kind = kind
        self.items = items

    def evaluate(self, context):
        return self.kind(item.evaluate(context) for item in self.items)

    def names(self):
        return set().union(*(item.names() for item in self.items)) if self.items else set()

    def __repr__(self) -> str:
        return f"{self.kind.__name__}({list(self.items)!r})"


class DictLiteral(Expression):
    def __init__(self, pairs: tuple[tuple[Expression, Expression], ...]):
        self.pairs = pairs

    def evaluate(self, context):
        return {key.evaluate(context): value.evaluate(context) for key, value in self.pairs}

    def names(self):
        found: set[str] = set()
        for key, value in self.pairs:
            found |= key.names() | value.names()
        return found


class Call(Expression):
    """Calls a Python function with evaluated arguments."""

    def __init__(self, func: Callable[..., Any], *args: Any, **kwargs: Any):
        if not callable(func):
            raise ValueError("Call requires a callable")
        self.func = func
        self.args = tuple(wrap(arg) for arg in args)
        self.kwargs = {name: wrap(arg) for name, arg in kwargs.items()}

    def evaluate(self, context):
        args = [arg.evaluate(context) for arg in self.args]
        kwargs = {name: arg.evaluate(context) for name, arg in self.kwargs.items()}
        return self.func(*args, **kwargs)

    def names(self):
        found: set[str] = set()
        for arg in (*self.args, *self.kwargs.values()):
            found |= arg.names()
        return found

    def __repr__(self) -> str:
        name = getattr(self.func, "__name__", repr(self.func))
        return f"{name}({', '.join(repr(arg) for arg in self.args)})"


class Lambda(Expression):
    """Wraps a function that receives the whole evaluation context."""

    def __init__(self, func: Callable[[Mapping[str, Any]], Any]):
        if not callable(func):
            raise ValueError("Lambda requires a callable")
        self.func = func

    def evaluate(self, context):
        return self.func(context)

    def __repr__(self) -> str:
        return f"expr({getattr(self.func, '__name__', 'lambda')})"


def wrap(value: Any) -> Expression:
    """Return value unchanged if it is an Expression, otherwise a constant node."""
    return value if isinstance(value, Expression) else Const(value)


def ref(name: str) -> Ref:
    return Ref(name)


def const(value: Any) -> Const:
    return Const(value)


def expr(func: Callable[[Mapping[str, Any]], Any]) -> Lambda:
    """
    Build an expression from a function of the evaluation context.

    Examples:
        >>> rule = expr(lambda ctx: ctx["rating"] + ctx["category"])
    """
    return Lambda(func)


def call(func: Callable[..., Any], *args: Any, **kwargs: Any) -> Call:
    return Call(func, *args, **kwargs)
