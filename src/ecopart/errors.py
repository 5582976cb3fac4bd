"""
Error taxonomy for matrix screening, transformation and variance partitioning.

Every error is raised where the computation fails and is never replaced by a
default value downstream. They all derive from ValueError so callers that
already catch ValueError keep working.
"""
from __future__ import annotations
from typing import Any, Hashable, Optional


class EcopartError(ValueError):
    """Base class for all ecopart errors."""


class EmptyColumnError(EcopartError):
    """A column has no present values, so its mean/median is undefined."""

    def __init__(self, column: Hashable):
        self.column = column
        super().__init__(f"Column {column!r} has no present values.")


class MissingValueError(EcopartError):
    """A transform or fit received a matrix that still contains missing cells."""

    def __init__(self, row: Hashable, column: Hashable, operation: str = "operation"):
        self.row = row
        self.column = column
        super().__init__(
            f"{operation} requires a complete matrix; "
            f"missing value at row {row!r}, column {column!r}. Impute or filter first."
        )


class DomainError(EcopartError):
    """A cell value lies outside the mathematical domain of a transform."""

    def __init__(self, row: Hashable, column: Hashable, value: Any, requirement: str):
        self.row = row
        self.column = column
        self.value = value
        super().__init__(
            f"Value {value!r} at row {row!r}, column {column!r} is outside the domain: {requirement}."
        )


class DegenerateAxisError(EcopartError):
    """A standardization divisor (sd, sum or max) is zero along one axis slice."""

    def __init__(self, axis: str, label: Hashable, quantity: str):
        self.axis = axis
        self.label = label
        super().__init__(f"Cannot standardize: {quantity} of {axis[:-1]} {label!r} is zero.")


class PartitionInvariantError(EcopartError):
    """Variance fractions are inconsistent with each other."""

    def __init__(self, message: str, total: Optional[float] = None):
        self.total = total
        super().__init__(message)


class NotTestableError(EcopartError):
    """No fitted model estimates this fraction directly."""

    def __init__(self, fraction: str, reason: str = "it is obtained only by subtraction"):
        self.fraction = fraction
        super().__init__(f"Fraction {fraction!r} is not testable: {reason}.")
