# SetAnalysis - Exceptions
# Copyright (c) 2024 SetAnalysis Contributors. All rights reserved.

"""
Exception hierarchy for SetAnalysis.

Formula errors never cross the analysis boundary: the engine catches them,
excludes the affected component and records the reason code. Validation
errors are raised by the boundary parser before the engine runs.
"""

from __future__ import annotations


class SetAnalysisError(Exception):
    """Base class for all SetAnalysis errors."""


class FormulaError(SetAnalysisError):
    """A user formula could not be evaluated."""

    code = "formula_error"

    def __init__(self, message: str, expression: str = ""):
        super().__init__(message)
        self.expression = expression


class ParseError(FormulaError):
    """The formula text is not a valid expression."""

    code = "parse_error"


class UnsafeExpressionError(FormulaError):
    """The formula text contains a host-escape token or construct."""

    code = "unsafe_expression"


class EvaluationError(FormulaError):
    """Evaluation raised, produced a non-finite value or hit an unbound name."""

    code = "evaluation_error"


class DomainError(SetAnalysisError, ValueError):
    """A component or bounding domain was constructed with invalid bounds."""


class ValidationError(SetAnalysisError):
    """
    Malformed request payload, rejected before analysis.

    Attributes:
        errors: One human-readable message per problem found
    """

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "invalid request")
