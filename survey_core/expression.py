"""Restricted arithmetic evaluator used by formula scoring.

Expressions are parsed with :mod:`ast` and walked node by node; nothing is
ever passed to ``eval``. Allowed: numbers, variable names, ``+ - * / // % **``,
unary sign, parentheses and the functions ``min``, ``max``, ``abs``, ``round``.
"""
from __future__ import annotations

import ast
import math
import operator
from typing import Any, Callable, Dict, Mapping

from .errors import ExpressionError

MAX_EXPRESSION_LENGTH = 2000
MAX_EXPONENT = 64
MAX_RESULT_DIGITS = 300
MAX_DEPTH = 200

_BIN_OPS: Dict[type, Callable[[float, float], float]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
}

_UNARY_OPS: Dict[type, Callable[[float], float]] = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}

_FUNCS: Dict[str, Callable[..., float]] = {
    "min": min,
    "max": max,
    "abs": abs,
    "round": round,
}


def _number(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ExpressionError(f"variable {name!r} is not numeric")
    return value


def _check_power(base: float, exponent: float) -> None:
    if abs(exponent) > MAX_EXPONENT:
        raise ExpressionError("exponent too large")
    # result digits, checked before computing the power
    if abs(base) > 1 and exponent > 0 and math.log10(abs(base)) * exponent > MAX_RESULT_DIGITS:
        raise ExpressionError("power result too large")


def evaluate(expression: str, variables: Mapping[str, Any]) -> float:
    """Evaluate ``expression`` against ``variables``; raise ExpressionError on anything unsafe."""

    if not isinstance(expression, str) or not expression.strip():
        raise ExpressionError("expression must be a non-empty string")
    if len(expression) > MAX_EXPRESSION_LENGTH:
        raise ExpressionError("expression too long")

    def _eval(node: ast.AST, depth: int) -> float:
        if depth > MAX_DEPTH:
            raise ExpressionError("expression nested too deeply")
        depth += 1
        if isinstance(node, ast.Constant):
            return _number(node.value, repr(node.value))
        if isinstance(node, ast.Name):
            if node.id not in variables:
                raise ExpressionError(f"unknown variable: {node.id}")
            return _number(variables[node.id], node.id)
        if isinstance(node, ast.BinOp):
            op = _BIN_OPS.get(type(node.op))
            if op is None:
                raise ExpressionError(f"unsupported operator: {type(node.op).__name__}")
            left, right = _eval(node.left, depth), _eval(node.right, depth)
            if isinstance(node.op, ast.Pow):
                _check_power(left, right)
            try:
                return op(left, right)
            except (ZeroDivisionError, OverflowError) as exc:
                raise ExpressionError(str(exc)) from exc
        if isinstance(node, ast.UnaryOp):
            op = _UNARY_OPS.get(type(node.op))
            if op is None:
                raise ExpressionError(f"unsupported operator: {type(node.op).__name__}")
            return op(_eval(node.operand, depth))
        if isinstance(node, ast.Call):
            # Only bare whitelisted names, no keywords.
            if not isinstance(node.func, ast.Name) or node.func.id not in _FUNCS or node.keywords:
                raise ExpressionError("function calls are limited to min, max, abs, round")
            args = [_eval(a, depth) for a in node.args]
            if not args:
                raise ExpressionError(f"{node.func.id}() needs arguments")
            try:
                return _FUNCS[node.func.id](*args)
            except TypeError as exc:
                raise ExpressionError(str(exc)) from exc
        raise ExpressionError(f"unsupported expression element: {type(node).__name__}")

    try:
        tree = ast.parse(expression.strip(), mode="eval")
    except SyntaxError as exc:
        raise ExpressionError(f"invalid expression: {exc.msg}") from exc
    except (RecursionError, MemoryError, ValueError) as exc:
        raise ExpressionError("expression could not be parsed") from exc
    result = _eval(tree.body, 0)
    if isinstance(result, complex):
        raise ExpressionError("expression did not produce a real number")
    try:
        finite = math.isfinite(result)
    except OverflowError as exc:
        raise ExpressionError("expression result too large") from exc
    if not finite:
        raise ExpressionError("expression did not produce a finite number")
    return result


__all__ = ["evaluate", "MAX_DEPTH", "MAX_EXPRESSION_LENGTH"]
