# SetAnalysis - Formula Evaluator
# Copyright (c) 2024 SetAnalysis Contributors. All rights reserved.

"""
Sandboxed evaluation of user formulas.

Formulas use a small calculator language:

    (-1)^n / n
    sqrt(x^2 + y^2) - 1
    cos(t) * exp(-t / 10)

The text is first screened against a denylist of host-escape tokens, then
parsed with Python's ``ast`` module (``^`` is read as a power) and checked
node by node against a whitelist. Evaluation walks the tree with float
arithmetic only; nothing from the host is ever executed.

Example:
    >>> evaluator = FormulaEvaluator()
    >>> evaluator.evaluate("1/n", {"n": 4})
    0.25
    >>> evaluator.try_evaluate("1/n", {"n": 0})
    EvalOutcome(value=None, reason='evaluation_error')
"""

from __future__ import annotations
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Mapping, Optional, Iterable
import ast
import math
import operator
import re

from loguru import logger

from .exceptions import FormulaError, ParseError, UnsafeExpressionError, EvaluationError


def _round_half_up(x: float) -> float:
    return float(math.floor(x + 0.5))


def _sign(x: float) -> float:
    if x > 0:
        return 1.0
    if x < 0:
        return -1.0
    return 0.0


def _log(x: float, base: Optional[float] = None) -> float:
    if base is None:
        return math.log(x)
    return math.log(x, base)


FUNCTIONS: dict[str, Callable[..., float]] = {
    "abs": abs,
    "sqrt": math.sqrt,
    "sin": math.sin,
    "cos": math.cos,
    "tan": math.tan,
    "asin": math.asin,
    "acos": math.acos,
    "atan": math.atan,
    "sinh": math.sinh,
    "cosh": math.cosh,
    "tanh": math.tanh,
    "exp": math.exp,
    "log": _log,
    "log2": math.log2,
    "log10": math.log10,
    "floor": lambda x: float(math.floor(x)),
    "ceil": lambda x: float(math.ceil(x)),
    "round": _round_half_up,
    "sign": _sign,
    "pow": lambda x, y: x ** y,
}

CONSTANTS: dict[str, float] = {
    "pi": math.pi,
    "e": math.e,
}

# Checked against the raw text before parsing
DENYLIST = re.compile(
    r"import|require|eval|exec|compile|lambda|function|process|global|"
    r"locals|getattr|setattr|delattr|builtins|window|document|open\s*\(|"
    r"subprocess|system|__|=>|\.\.|;|\\|['\"`]|\b(os|sys)\b",
    re.IGNORECASE,
)

_BINARY_OPS: dict[type, Callable[[float, float], float]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.Pow: operator.pow,
}

_UNARY_OPS: dict[type, Callable[[float], float]] = {
    ast.USub: operator.neg,
    ast.UAdd: operator.pos,
}


@dataclass(frozen=True)
class EvalOutcome:
    """
    Result of a non-raising evaluation.

    Attributes:
        value: The finite result, or None if evaluation failed
        reason: Failure code ('parse_error', 'unsafe_expression',
                'evaluation_error') or None on success
    """
    value: Optional[float]
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.value is not None


class _Checker(ast.NodeVisitor):
    """Rejects every node outside the formula language."""

    def __init__(self, expression: str):
        self.expression = expression
        self.names: set[str] = set()

    def generic_visit(self, node: ast.AST) -> None:
        raise ParseError(
            f"unsupported syntax '{type(node).__name__}' in formula",
            self.expression,
        )

    def visit_Expression(self, node: ast.Expression) -> None:
        self.visit(node.body)

    def visit_BinOp(self, node: ast.BinOp) -> None:
        if type(node.op) not in _BINARY_OPS:
            raise ParseError(
                f"unsupported operator '{type(node.op).__name__}'", self.expression
            )
        self.visit(node.left)
        self.visit(node.right)

    def visit_UnaryOp(self, node: ast.UnaryOp) -> None:
        if type(node.op) not in _UNARY_OPS:
            raise ParseError(
                f"unsupported operator '{type(node.op).__name__}'", self.expression
            )
        self.visit(node.operand)

    def visit_Constant(self, node: ast.Constant) -> None:
        # bool is an int subclass
        if isinstance(node.value, bool) or not isinstance(node.value, (int, float)):
            raise ParseError(f"unsupported literal {node.value!r}", self.expression)

    def visit_Name(self, node: ast.Name) -> None:
        if node.id in FUNCTIONS:
            raise ParseError(f"function '{node.id}' used as a value", self.expression)
        if node.id not in CONSTANTS:
            self.names.add(node.id)

    def visit_Call(self, node: ast.Call) -> None:
        if not isinstance(node.func, ast.Name):
            raise UnsafeExpressionError("only plain function calls are allowed", self.expression)
        if node.func.id not in FUNCTIONS:
            raise ParseError(f"unknown function '{node.func.id}'", self.expression)
        if node.keywords:
            raise UnsafeExpressionError("keyword arguments are not allowed", self.expression)
        for arg in node.args:
            if isinstance(arg, ast.Starred):
                raise UnsafeExpressionError("argument unpacking is not allowed", self.expression)
            self.visit(arg)

    def visit_Attribute(self, node: ast.Attribute) -> None:
        raise UnsafeExpressionError("attribute access is not allowed", self.expression)

    def visit_Subscript(self, node: ast.Subscript) -> None:
        raise UnsafeExpressionError("subscripts are not allowed", self.expression)

    def visit_Lambda(self, node: ast.Lambda) -> None:
        raise UnsafeExpressionError("lambdas are not allowed", self.expression)

    def visit_ListComp(self, node: ast.AST) -> None:
        raise UnsafeExpressionError("comprehensions are not allowed", self.expression)

    visit_SetComp = visit_DictComp = visit_GeneratorExp = visit_ListComp


@dataclass(frozen=True)
class CompiledFormula:
    """A screened, parsed formula ready for repeated evaluation."""
    expression: str
    tree: ast.Expression
    variables: frozenset[str]

    def __call__(self, bindings: Mapping[str, float]) -> float:
        try:
            value = _eval_node(self.tree.body, bindings, self.expression)
        except FormulaError:
            raise
        except (ZeroDivisionError, OverflowError, ValueError, TypeError) as e:
            raise EvaluationError(f"{type(e).__name__}: {e}", self.expression) from e
        except (RecursionError, MemoryError) as e:
            raise EvaluationError("formula is nested too deeply", self.expression) from e
        if isinstance(value, complex):
            raise EvaluationError("complex result", self.expression)
        value = float(value)
        if not math.isfinite(value):
            raise EvaluationError("non-finite result", self.expression)
        return value


def _eval_node(node: ast.AST, bindings: Mapping[str, float], expression: str) -> float:
    if isinstance(node, ast.Constant):
        return float(node.value)
    if isinstance(node, ast.Name):
        if node.id in bindings:
            return float(bindings[node.id])
        if node.id in CONSTANTS:
            return CONSTANTS[node.id]
        raise EvaluationError(f"unbound variable '{node.id}'", expression)
    if isinstance(node, ast.BinOp):
        left = _eval_node(node.left, bindings, expression)
        right = _eval_node(node.right, bindings, expression)
        result = _BINARY_OPS[type(node.op)](left, right)
        if isinstance(result, complex):
            raise EvaluationError("complex result", expression)
        return result
    if isinstance(node, ast.UnaryOp):
        return _UNARY_OPS[type(node.op)](_eval_node(node.operand, bindings, expression))
    if isinstance(node, ast.Call):
        args = [_eval_node(a, bindings, expression) for a in node.args]
        result = FUNCTIONS[node.func.id](*args)
        if isinstance(result, complex):
            raise EvaluationError("complex result", expression)
        return result
    raise ParseError(f"unsupported syntax '{type(node).__name__}'", expression)


@lru_cache(maxsize=512)
def compile_formula(expression: str) -> CompiledFormula:
    """
    Screen and parse a formula.

    Raises:
        UnsafeExpressionError: The raw text matches the denylist, or the
            parsed tree uses a forbidden construct
        ParseError: The text is not valid formula syntax
    """
    if DENYLIST.search(expression):
        raise UnsafeExpressionError("formula contains a forbidden token", expression)
    source = expression.replace("^", "**").strip()
    if not source:
        raise ParseError("empty formula", expression)
    try:
        tree = ast.parse(source, mode="eval")
    except SyntaxError as e:
        raise ParseError(f"invalid syntax: {e.msg}", expression) from e
    except (RecursionError, MemoryError) as e:
        raise ParseError("formula is nested too deeply", expression) from e
    checker = _Checker(expression)
    try:
        checker.visit(tree)
    except RecursionError as e:
        raise ParseError("formula is nested too deeply", expression) from e
    return CompiledFormula(expression, tree, frozenset(checker.names))


class FormulaEvaluator:
    """
    Evaluates user formulas at given variable bindings.

    Parsed formulas are cached, so evaluating the same text over a grid of
    points only parses it once.
    """

    def compile(self, expression: str) -> CompiledFormula:
        return compile_formula(expression)

    def evaluate(self, expression: str, bindings: Mapping[str, float]) -> float:
        """
        Evaluate a formula.

        Args:
            expression: Formula text
            bindings: Variable name to value

        Returns:
            The finite float result.

        Raises:
            ParseError, UnsafeExpressionError, EvaluationError
        """
        return compile_formula(expression)(bindings)

    def try_evaluate(self, expression: str, bindings: Mapping[str, float]) -> EvalOutcome:
        """Evaluate without raising; failures come back as a reason code."""
        try:
            return EvalOutcome(self.evaluate(expression, bindings))
        except FormulaError as e:
            logger.trace("formula {!r} failed at {}: {}", expression, dict(bindings), e)
            return EvalOutcome(None, e.code)

    def validate(
        self,
        expression: str,
        variables: Optional[Iterable[str]] = None,
    ) -> list[str]:
        """
        Check a formula without evaluating it.

        Args:
            expression: Formula text
            variables: Allowed free variable names (None allows any)

        Returns:
            List of problems; empty if the formula is acceptable.
        """
        try:
            compiled = compile_formula(expression)
        except FormulaError as e:
            return [f"{e.code}: {e}"]
        if variables is None:
            return []
        unknown = sorted(compiled.variables - set(variables))
        return [f"unknown variable '{name}'" for name in unknown]
