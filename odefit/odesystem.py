"""Systems of ordinary differential equations written as text, and their solution."""

from __future__ import annotations

import math
import re
import sys
from dataclasses import dataclass, field
from os import PathLike
from typing import Callable, Iterable, Mapping, Sequence

import numpy as np
from scipy.integrate import solve_ivp

from odefit.config import GAArgument
from odefit.genetic import _format_float

__all__ = [
    "ExpressionError",
    "Expression",
    "OdeSystem",
    "solve",
    "create_ode_system",
    "save",
]

_Node = Callable[[Mapping[str, float]], float]

_LEXEME_PATTERN = re.compile(
    r"\s*(?:"
    r"(?P<number>(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)"
    r"|(?P<name>[A-Za-z_][A-Za-z0-9_]*)"
    r"|(?P<op>\*\*|[-+*/^(),])"
    r")"
)

_CONSTANTS = {"pi": math.pi, "e": math.e}


class ExpressionError(ValueError):
    """An expression could not be parsed or evaluated."""


def _guarded(func: Callable[..., float]) -> Callable[..., float]:
    def apply(*args: float) -> float:
        try:
            return float(func(*args))
        except ValueError:
            return math.nan
        except OverflowError:
            return math.inf

    return apply


_FUNCTIONS: dict[str, tuple[Callable[..., float], int]] = {
    "sin": (_guarded(math.sin), 1),
    "cos": (_guarded(math.cos), 1),
    "tan": (_guarded(math.tan), 1),
    "asin": (_guarded(math.asin), 1),
    "acos": (_guarded(math.acos), 1),
    "atan": (_guarded(math.atan), 1),
    "sinh": (_guarded(math.sinh), 1),
    "cosh": (_guarded(math.cosh), 1),
    "tanh": (_guarded(math.tanh), 1),
    "exp": (_guarded(math.exp), 1),
    "ln": (_guarded(math.log), 1),
    "log": (_guarded(math.log), 1),
    "log10": (_guarded(math.log10), 1),
    "sqrt": (_guarded(math.sqrt), 1),
    "abs": (_guarded(abs), 1),
    "floor": (_guarded(math.floor), 1),
    "ceil": (_guarded(math.ceil), 1),
}


def _divide(a: float, b: float) -> float:
    if b == 0.0:
        if a == 0.0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


def _power(a: float, b: float) -> float:
    try:
        return math.pow(a, b)
    except ValueError:
        return math.nan
    except OverflowError:
        return math.inf


def _tokenize(text: str) -> list[tuple[str, str]]:
    lexemes: list[tuple[str, str]] = []
    pos = 0
    while pos < len(text):
        if text[pos:].strip() == "":
            break
        match = _LEXEME_PATTERN.match(text, pos)
        if match is None or match.end() == pos:
            raise ExpressionError(f"unexpected character at {pos} in {text!r}")
        kind = match.lastgroup
        assert kind is not None
        lexemes.append((kind, match.group(kind)))
        pos = match.end()
    return lexemes


class _Parser:
    def __init__(self, text: str) -> None:
        self.text = text
        self.tokens = _tokenize(text)
        self.pos = 0
        self.variables: set[str] = set()

    def _peek(self) -> tuple[str, str] | None:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _accept(self, *ops: str) -> str | None:
        lexeme = self._peek()
        if lexeme is not None and lexeme[0] == "op" and lexeme[1] in ops:
            self.pos += 1
            return lexeme[1]
        return None

    def _expect(self, op: str) -> None:
        if self._accept(op) is None:
            raise ExpressionError(f"expected {op!r} in {self.text!r}")

    def parse(self) -> _Node:
        if not self.tokens:
            raise ExpressionError("empty expression")
        node = self._sum()
        if self._peek() is not None:
            raise ExpressionError(f"unexpected {self._peek()[1]!r} in {self.text!r}")
        return node

    def _sum(self) -> _Node:
        node = self._product()
        while (op := self._accept("+", "-")) is not None:
            left, right = node, self._product()
            if op == "+":
                node = lambda ctx, l=left, r=right: l(ctx) + r(ctx)
            else:
                node = lambda ctx, l=left, r=right: l(ctx) - r(ctx)
        return node

    def _product(self) -> _Node:
        node = self._unary()
        while (op := self._accept("*", "/")) is not None:
            left, right = node, self._unary()
            if op == "*":
                node = lambda ctx, l=left, r=right: l(ctx) * r(ctx)
            else:
                node = lambda ctx, l=left, r=right: _divide(l(ctx), r(ctx))
        return node

    def _unary(self) -> _Node:
        op = self._accept("-", "+")
        if op == "-":
            operand = self._unary()
            return lambda ctx, o=operand: -o(ctx)
        if op == "+":
            return self._unary()
        return self._power()

    def _power(self) -> _Node:
        base = self._atom()
        if self._accept("^", "**") is not None:
            exponent = self._unary()
            return lambda ctx, b=base, e=exponent: _power(b(ctx), e(ctx))
        return base

    def _atom(self) -> _Node:
        lexeme = self._peek()
        if lexeme is None:
            raise ExpressionError(f"unexpected end of {self.text!r}")
        kind, text = lexeme
        self.pos += 1
        if kind == "number":
            value = float(text)
            return lambda ctx, v=value: v
        if kind == "name":
            if self._accept("(") is not None:
                return self._call(text)
            self.variables.add(text)
            return lambda ctx, n=text: _lookup(ctx, n)
        if text == "(":
            node = self._sum()
            self._expect(")")
            return node
        raise ExpressionError(f"unexpected {text!r} in {self.text!r}")

    def _call(self, name: str) -> _Node:
        if name not in _FUNCTIONS:
            raise ExpressionError(f"unknown function {name!r}")
        func, arity = _FUNCTIONS[name]
        args: list[_Node] = []
        if self._accept(")") is None:
            args.append(self._sum())
            while self._accept(",") is not None:
                args.append(self._sum())
            self._expect(")")
        if len(args) != arity:
            raise ExpressionError(
                f"{name} takes {arity} argument(s), {len(args)} given"
            )
        return lambda ctx, f=func, a=tuple(args): f(*(arg(ctx) for arg in a))


def _lookup(context: Mapping[str, float], name: str) -> float:
    if name in context:
        return float(context[name])
    if name in _CONSTANTS:
        return _CONSTANTS[name]
    raise ExpressionError(f"unknown variable {name!r}")


@dataclass(frozen=True)
class Expression:
    """A parsed arithmetic expression over named variables."""

    source: str
    variables: frozenset[str]
    _node: _Node = field(repr=False, compare=False)

    @classmethod
    def parse(cls, text: str) -> "Expression":
        """Parse text; raise ExpressionError when it is not a valid expression."""
        parser = _Parser(text)
        node = parser.parse()
        return cls(text.strip(), frozenset(parser.variables), node)

    def evaluate(self, context: Mapping[str, float]) -> float:
        """Evaluate with the given variables; unknown names raise ExpressionError."""
        return self._node(context)


@dataclass
class OdeSystem:
    """Equations keyed by the population they describe, plus a variable context."""

    equations: dict[str, Expression] = field(default_factory=dict)
    context: dict[str, float] = field(default_factory=dict)

    def _ordered(self) -> list[tuple[str, Expression]]:
        return sorted(self.equations.items())

    def set_context(self, args: Iterable[GAArgument]) -> None:
        """Set each argument's value as a variable."""
        for arg in args:
            self.context[arg.name] = arg.value

    def update_context(
        self, args: Iterable[GAArgument], values: Iterable[float]
    ) -> None:
        """Set each argument's name to the matching value, pairing them in order."""
        for arg, value in zip(args, values):
            self.context[arg.name] = float(value)

    def update_context_with_state(self, y: Iterable[float]) -> None:
        """Set each population, in name order, to its entry of the state."""
        for (name, _), value in zip(self._ordered(), y):
            self.context[name] = float(value)

    def derivatives(self, t: float, y: Sequence[float]) -> np.ndarray:
        """The right-hand sides at state y; an equation that fails gives 0."""
        self.update_context_with_state(y)
        ordered = self._ordered()
        dydt = np.zeros(len(ordered))
        for i, (_, equation) in enumerate(ordered):
            try:
                dydt[i] = equation.evaluate(self.context)
            except ExpressionError:
                pass
        return dydt


def solve(
    ode_system: OdeSystem,
    y: Sequence[float],
    t_ini: float,
    t_final: float,
    dt: float,
    args: Iterable[GAArgument],
    values: Iterable[float],
) -> list[np.ndarray]:
    """Integrate from t_ini to t_final and return the state at every step of dt.

    The given system is left unchanged. When integration fails, the error is
    reported on stderr and an empty list is returned.
    """
    if dt <= 0:
        raise ValueError("dt must be positive")
    system = OdeSystem(dict(ode_system.equations), dict(ode_system.context))
    system.update_context(args, values)

    y0 = np.asarray(y, dtype=float)
    steps = math.floor((t_final - t_ini) / dt + 1e-9)
    if steps <= 0:
        return [y0.copy()]
    times = np.minimum(t_ini + dt * np.arange(steps + 1), t_final)

    try:
        result = solve_ivp(
            system.derivatives,
            (t_ini, t_final),
            y0,
            method="DOP853",
            t_eval=times,
            rtol=1.0e-8,
            atol=1.0e-8,
        )
    except (ValueError, ArithmeticError) as exc:
        print(f"Error integrating system: {exc}", file=sys.stderr)
        return []
    if not result.success:
        print(f"Error integrating system: {result.message}", file=sys.stderr)
        return []
    return [result.y[:, k].copy() for k in range(result.y.shape[1])]


def create_ode_system(
    text: str, terms: Iterable[tuple[str, float]]
) -> OdeSystem:
    """Build a system from lines such as "S = -b*S*I".

    terms gives (symbol, initial value) pairs that seed the context. Lines
    that do not split into exactly two parts around "=" are ignored; an
    invalid right-hand side raises ExpressionError.
    """
    system = OdeSystem()
    for symbol, initial_value in terms:
        system.context[symbol.strip()] = float(initial_value)

    for line in text.split("\n"):
        parts = [part for part in line.strip().split("=") if part]
        if len(parts) == 2:
            population = parts[0].strip()
            system.equations[population] = Expression.parse(parts[1].strip())
    return system


def save(
    times: Sequence[float],
    states: Iterable[Sequence[float]],
    filename: str | PathLike[str],
) -> None:
    """Write one CSV line per state: the time, then the state's values."""
    with open(filename, "w", encoding="utf-8") as handle:
        for time, state in zip(times, states):
            values = "".join(f", {_format_float(float(v))}" for v in state)
            handle.write(f"{time:.6f}{values}\n")