"""
Arithmetic formula evaluation for problem templates.

Formulas are single expressions over named variables, e.g. ``distance / time``
or ``0.5 * mass * velocity^2``. They are tokenized and parsed by a small
recursive-descent parser into a tuple tree, then evaluated against a mapping
of variable bindings. Nothing here ever reaches ``eval``.

Grammar (lowest to highest precedence)::

    expr    := term (("+" | "-") term)*
    term    := unary (("*" | "/") unary)*
    unary   := ("+" | "-") unary | power
    power   := primary (("^" | "**") unary)?
    primary := NUMBER | NAME | FUNC "(" expr ")" | "(" expr ")"

``^`` is exponentiation (right-associative) and binds tighter than a leading
minus, so ``-2^2 == -4``.
"""
from __future__ import annotations

import math
import re
from functools import lru_cache
from typing import Any, Dict, Mapping, Set, Tuple

from physics_practice.core.config import MAX_FORMULA_LENGTH

FUNCTIONS = {
    "sqrt": math.sqrt,
    "abs": abs,
    "sin": math.sin,
    "cos": math.cos,
    "tan": math.tan,
    "asin": math.asin,
    "acos": math.acos,
    "atan": math.atan,
    "exp": math.exp,
    "log": math.log,
    "ln": math.log,
    "log10": math.log10,
}

CONSTANTS = {
    "pi": math.pi,
    "e": math.e,
}

# parentheses, calls, signs and exponents each open one level
MAX_NESTING_DEPTH = 50

_TOKEN_RE = re.compile(
    r"""
    (?P<number>(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)
    |(?P<name>[A-Za-z_][A-Za-z_0-9]*)
    |(?P<op>\*\*|[-+*/^()])
    """,
    re.VERBOSE,
)

Node = Tuple[Any, ...]


class FormulaError(ValueError):
    """The formula cannot be parsed or evaluated with the given bindings."""


def tokenize(formula: str) -> list[Tuple[str, str]]:
    if not isinstance(formula, str) or not formula.strip():
        raise FormulaError("Formula is empty.")
    if len(formula) > MAX_FORMULA_LENGTH:
        raise FormulaError(f"Formula too long (> {MAX_FORMULA_LENGTH}).")

    tokens: list[Tuple[str, str]] = []
    pos = 0
    while pos < len(formula):
        if formula[pos].isspace():
            pos += 1
            continue
        m = _TOKEN_RE.match(formula, pos)
        if m is None:
            raise FormulaError(f"Unexpected character {formula[pos]!r} at position {pos}.")
        kind = m.lastgroup
        text = m.group(kind)
        # "**" is an alias for "^"
        if kind == "op" and text == "**":
            text = "^"
        tokens.append((kind, text))
        pos = m.end()
    return tokens


class _Parser:
    def __init__(self, tokens: list[Tuple[str, str]]):
        self.tokens = tokens
        self.pos = 0
        self.depth = 0

    def nested(self, rule):
        self.depth += 1
        if self.depth > MAX_NESTING_DEPTH:
            raise FormulaError("Formula is nested too deeply.")
        try:
            return rule()
        finally:
            self.depth -= 1

    def peek(self) -> Tuple[str, str] | None:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def accept(self, *ops: str) -> str | None:
        tok = self.peek()
        if tok is not None and tok[0] == "op" and tok[1] in ops:
            self.pos += 1
            return tok[1]
        return None

    def expect(self, op: str) -> None:
        if self.accept(op) is None:
            tok = self.peek()
            found = "end of formula" if tok is None else repr(tok[1])
            raise FormulaError(f"Expected {op!r} but found {found}.")

    def parse(self) -> Node:
        node = self.expr()
        tok = self.peek()
        if tok is not None:
            raise FormulaError(f"Unexpected {tok[1]!r} after end of expression.")
        return node

    def expr(self) -> Node:
        node = self.term()
        while True:
            op = self.accept("+", "-")
            if op is None:
                return node
            node = ("bin", op, node, self.term())

    def term(self) -> Node:
        node = self.unary()
        while True:
            op = self.accept("*", "/")
            if op is None:
                return node
            node = ("bin", op, node, self.unary())

    def unary(self) -> Node:
        op = self.accept("+", "-")
        if op == "-":
            return ("neg", self.nested(self.unary))
        if op == "+":
            return self.nested(self.unary)
        return self.power()

    def power(self) -> Node:
        base = self.primary()
        if self.accept("^") is not None:
            # right-associative: the exponent may itself be a power
            return ("bin", "^", base, self.nested(self.unary))
        return base

    def primary(self) -> Node:
        tok = self.peek()
        if tok is None:
            raise FormulaError("Unexpected end of formula.")
        kind, text = tok

        if kind == "number":
            self.pos += 1
            return ("num", float(text))

        if kind == "name":
            self.pos += 1
            if text in FUNCTIONS and self.accept("(") is not None:
                arg = self.nested(self.expr)
                self.expect(")")
                return ("call", text, arg)
            return ("name", text)

        if self.accept("(") is not None:
            node = self.nested(self.expr)
            self.expect(")")
            return node

        raise FormulaError(f"Unexpected {text!r}.")


@lru_cache(maxsize=256)
def parse(formula: str) -> Node:
    """Parse `formula` into an expression tree. Raises FormulaError."""
    return _Parser(tokenize(formula)).parse()


def free_names(formula: str) -> Set[str]:
    """Identifiers the formula reads (function names excluded)."""
    names: Set[str] = set()
    stack = [parse(formula)]
    while stack:
        node = stack.pop()
        kind = node[0]
        if kind == "name":
            names.add(node[1])
        elif kind == "neg":
            stack.append(node[1])
        elif kind == "bin":
            stack.extend(node[2:])
        elif kind == "call":
            stack.append(node[2])
    return names


def _eval(node: Node, scope: Dict[str, float]) -> float:
    kind = node[0]

    if kind == "num":
        return node[1]

    if kind == "name":
        name = node[1]
        if name in scope:
            return scope[name]
        if name in CONSTANTS:
            return CONSTANTS[name]
        raise FormulaError(f"Unknown variable {name!r}.")

    if kind == "neg":
        return -_eval(node[1], scope)

    if kind == "call":
        return float(FUNCTIONS[node[1]](_eval(node[2], scope)))

    _, op, left, right = node
    a = _eval(left, scope)
    b = _eval(right, scope)
    if op == "+":
        return a + b
    if op == "-":
        return a - b
    if op == "*":
        return a * b
    if op == "/":
        return a / b
    return math.pow(a, b)


def evaluate(formula: str, values: Mapping[str, Any]) -> float:
    """
    Evaluate `formula` with `values` bound to its variable names.

    Raises FormulaError when the formula does not parse, references an
    unbound name, or does not produce a finite number (division by zero,
    math domain errors, overflow).
    """
    tree = parse(formula)

    scope: Dict[str, float] = {}
    for name, value in values.items():
        if isinstance(value, bool):
            raise FormulaError(f"Variable {name!r} is not a number.")
        try:
            scope[name] = float(value)
        except (TypeError, ValueError) as e:
            raise FormulaError(f"Variable {name!r} is not a number.") from e

    try:
        result = _eval(tree, scope)
    except ZeroDivisionError as e:
        raise FormulaError("Division by zero.") from e
    except OverflowError as e:
        raise FormulaError("Result is too large.") from e
    except RecursionError as e:
        raise FormulaError("Formula is nested too deeply.") from e
    except ValueError as e:
        if isinstance(e, FormulaError):
            raise
        raise FormulaError(f"Math domain error: {e}.") from e

    if not math.isfinite(result):
        raise FormulaError("Result is not finite.")
    return result
