"""Load shape functions written as mathematical expressions of time ``t``."""

from __future__ import annotations

import math
import re
from collections.abc import Callable, Sequence

ShapeFunction = Callable[[float], float]


class SimulationError(ValueError):
    """Raised when a load shape expression cannot be parsed."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Bad Shape function - {message}")


def rect(x: float) -> float:
    """Rectangle: 1 inside |x| < 0.5, 0.5 on the edges, 0 outside."""
    if abs(x) > 0.5:
        return 0.0
    if abs(x) == 0.5:
        return 0.5
    return 1.0


def tri(x: float) -> float:
    """Triangle: 1 - |x| inside |x| < 1, 0 outside."""
    return 1.0 - abs(x) if abs(x) < 1.0 else 0.0


def step(x: float) -> float:
    """Heaviside step with value 0.5 at zero."""
    if x < 0.0:
        return 0.0
    if x == 0.0:
        return 0.5
    return 1.0


def trapz(x: float, b_low: float, b_sup: float) -> float:
    """Trapezoid with lower base ``b_low`` and upper base ``b_sup``."""
    if abs(x) > b_low / 2.0:
        return 0.0
    if abs(x) < b_sup / 2.0:
        return 1.0
    return _div(abs(x) * 2.0 - b_low, b_sup - b_low)


def costrapz(x: float, b_low: float, b_sup: float) -> float:
    """Trapezoid whose sides are shaped by a squared cosine."""
    if abs(x) > b_low / 2.0:
        return 0.0
    if abs(x) < b_sup / 2.0:
        return 1.0
    angle = (abs(x) - b_sup / 2.0) * _div(math.pi, b_low - b_sup)
    return _safe(math.cos, angle) ** 2


def _safe(func: Callable[..., float], *args: float) -> float:
    try:
        return float(func(*args))
    except ValueError:
        return math.nan
    except OverflowError:
        return math.inf


def _div(a: float, b: float) -> float:
    if b == 0.0:
        if a == 0.0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


def _rem(a: float, b: float) -> float:
    if b == 0.0:
        return math.nan
    return _safe(math.fmod, a, b)


def _pow(a: float, b: float) -> float:
    if a == 0.0 and b < 0.0:
        return math.inf
    return _safe(math.pow, a, b)


def _integral(func: Callable[[float], float]) -> Callable[[float], float]:
    def apply(x: float) -> float:
        if not math.isfinite(x):
            return x
        return float(func(x))

    return apply


def _round_half_away(x: float) -> float:
    return math.copysign(math.floor(abs(x) + 0.5), x)


def _signum(x: float) -> float:
    return x if math.isnan(x) else math.copysign(1.0, x)


def _log(x: float) -> float:
    if x == 0.0:
        return -math.inf
    return _safe(math.log, x)


_UNARY: dict[str, Callable[[float], float]] = {
    "sqrt": math.sqrt,
    "exp": math.exp,
    "ln": _log,
    "abs": abs,
    "sin": math.sin,
    "cos": math.cos,
    "tan": math.tan,
    "asin": math.asin,
    "acos": math.acos,
    "atan": math.atan,
    "sinh": math.sinh,
    "cosh": math.cosh,
    "tanh": math.tanh,
    "asinh": math.asinh,
    "acosh": math.acosh,
    "atanh": math.atanh,
    "floor": _integral(math.floor),
    "ceil": _integral(math.ceil),
    "round": _integral(_round_half_away),
    "signum": _signum,
    "rect": rect,
    "tri": tri,
    "step": step,
}

_FIXED: dict[str, tuple[int, Callable[..., float]]] = {
    **{name: (1, func) for name, func in _UNARY.items()},
    "atan2": (2, math.atan2),
    "trapz": (3, trapz),
    "costrapz": (3, costrapz),
}

_VARIADIC: dict[str, Callable[..., float]] = {"max": max, "min": min}

_CONSTANTS = {"pi": math.pi, "e": math.e}

_VARIABLE = "t"

_LEXEME = re.compile(
    r"\s*(?:(?P<num>(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)"
    r"|(?P<name>[A-Za-z_][A-Za-z0-9_]*)|(?P<op>\S))"
)

_BINARY: dict[str, Callable[[float, float], float]] = {
    "+": lambda a, b: a + b,
    "-": lambda a, b: a - b,
    "*": lambda a, b: a * b,
    "/": _div,
    "%": _rem,
    "^": _pow,
}


def _tokenize(text: str) -> list[tuple[str, str]]:
    lexemes: list[tuple[str, str]] = []
    pos = 0
    while pos < len(text):
        match = _LEXEME.match(text, pos)
        if match is None:
            break
        kind = match.lastgroup or "op"
        lexemes.append((kind, match.group(kind)))
        pos = match.end()
    lexemes.append(("end", ""))
    return lexemes


def _binary(op: str, left: ShapeFunction, right: ShapeFunction) -> ShapeFunction:
    func = _BINARY[op]
    return lambda t: func(left(t), right(t))


def _call(func: Callable[..., float], args: Sequence[ShapeFunction]) -> ShapeFunction:
    return lambda t: _safe(func, *(arg(t) for arg in args))


class _Parser:
    def __init__(self, text: str) -> None:
        self._lexemes = _tokenize(text)
        self._pos = 0

    def _peek(self) -> tuple[str, str]:
        return self._lexemes[self._pos]

    def _advance(self) -> tuple[str, str]:
        lexeme = self._lexemes[self._pos]
        self._pos += 1
        return lexeme

    def _at_op(self, *ops: str) -> bool:
        kind, value = self._peek()
        return kind == "op" and value in ops

    def _expect(self, op: str) -> None:
        if not self._at_op(op):
            raise SimulationError(f"expected '{op}', found {self._describe()}")
        self._advance()

    def _describe(self) -> str:
        kind, value = self._peek()
        return "end of input" if kind == "end" else f"'{value}'"

    def parse(self) -> ShapeFunction:
        node = self._expression()
        if self._peek()[0] != "end":
            raise SimulationError(f"unexpected token {self._describe()}")
        return node

    def _expression(self) -> ShapeFunction:
        node = self._term()
        while self._at_op("+", "-"):
            op = self._advance()[1]
            node = _binary(op, node, self._term())
        return node

    def _term(self) -> ShapeFunction:
        node = self._unary()
        while self._at_op("*", "/", "%"):
            op = self._advance()[1]
            node = _binary(op, node, self._unary())
        return node

    def _unary(self) -> ShapeFunction:
        if self._at_op("-"):
            self._advance()
            inner = self._unary()
            return lambda t: -inner(t)
        if self._at_op("+"):
            self._advance()
            return self._unary()
        return self._power()

    def _power(self) -> ShapeFunction:
        base = self._atom()
        if self._at_op("^"):
            self._advance()
            return _binary("^", base, self._unary())
        return base

    def _atom(self) -> ShapeFunction:
        kind, value = self._peek()
        if kind == "num":
            self._advance()
            number = float(value)
            return lambda t: number
        if kind == "name":
            self._advance()
            if self._at_op("("):
                return self._function(value)
            if value == _VARIABLE:
                return lambda t: t
            if value in _CONSTANTS:
                constant = _CONSTANTS[value]
                return lambda t: constant
            raise SimulationError(f"unknown variable '{value}'")
        if self._at_op("("):
            self._advance()
            node = self._expression()
            self._expect(")")
            return node
        raise SimulationError(f"unexpected token {self._describe()}")

    def _function(self, name: str) -> ShapeFunction:
        self._expect("(")
        args: list[ShapeFunction] = []
        if not self._at_op(")"):
            args.append(self._expression())
            while self._at_op(","):
                self._advance()
                args.append(self._expression())
        self._expect(")")
        if name in _VARIADIC:
            if not args:
                raise SimulationError(f"function '{name}' needs at least one argument")
            return _call(_VARIADIC[name], args)
        if name not in _FIXED:
            raise SimulationError(f"unknown function '{name}'")
        arity, func = _FIXED[name]
        if len(args) != arity:
            raise SimulationError(
                f"function '{name}' takes {arity} argument(s), found {len(args)}"
            )
        return _call(func, args)


def parse_shape_fun(fun: str) -> ShapeFunction:
    """Parse an expression of ``t`` into a function from float to float.

    Besides arithmetic (``+ - * / % ^``), the usual functions and the
    constants ``pi`` and ``e``, the shapes ``rect``, ``tri``, ``step``,
    ``trapz`` and ``costrapz`` are available.
    """
    node = _Parser(fun).parse()

    def shape(t: float) -> float:
        return node(float(t))

    return shape