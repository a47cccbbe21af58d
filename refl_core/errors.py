"""Exceptions raised by the reflection kernel."""

from __future__ import annotations


class DomainPreconditionError(ValueError):
    """Pre-step point (or batch column) lies outside the reflecting box."""


class DimensionMismatchError(ValueError):
    """Points, arrays or bounds have inconsistent dimensions."""


class ReflectionNonConvergenceError(RuntimeError):
    """Reflection did not settle inside the box within the pass cap."""

    def __init__(self, message: str, passes: int):
        super().__init__(message)
        self.passes = passes
