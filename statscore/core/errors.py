"""Shared error codes and exceptions.

Validation problems are raised synchronously to the caller. Data-quality
problems on the recording path (negative or non-finite values) are dropped
and logged by the recorder instead of raising.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorCode(str, Enum):
    VALIDATION_FAILED = "VALIDATION_FAILED"
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"  # None where a value is mandatory
    DUPLICATE_DATA = "DUPLICATE_DATA"  # metric name or time series registered twice
    DIMENSION_MISMATCH = "DIMENSION_MISMATCH"  # label values vs label keys length
    UNSUPPORTED_FORMAT = "UNSUPPORTED_FORMAT"  # unknown derived-value source
    INVALID_VALUE = "INVALID_VALUE"  # negative delta, NaN or infinity


class StatsError(Exception):
    """Base exception for stats and metrics errors."""

    code: ErrorCode = ErrorCode.VALIDATION_FAILED

    def __init__(self, message: str, code: Optional[ErrorCode] = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


class ValidationError(StatsError, ValueError):
    """Raised when a constructor or call argument is invalid."""

    pass


class DuplicateMetricError(ValidationError):
    """Raised when a metric name is registered twice."""

    code = ErrorCode.DUPLICATE_DATA


class DuplicateTimeSeriesError(ValidationError):
    """Raised when a derived meter already has a series for the label values."""

    code = ErrorCode.DUPLICATE_DATA


class LabelSizeMismatchError(ValidationError):
    """Raised when label values don't line up with the declared label keys."""

    code = ErrorCode.DIMENSION_MISMATCH


class UnknownSourceTypeError(ValidationError):
    """Raised when a derived meter can't extract a value from a source."""

    code = ErrorCode.UNSUPPORTED_FORMAT


class InvalidValueError(StatsError, TypeError):
    """Raised when a cumulative value would decrease or is not a finite number."""

    code = ErrorCode.INVALID_VALUE


__all__ = [
    "ErrorCode",
    "StatsError",
    "ValidationError",
    "DuplicateMetricError",
    "DuplicateTimeSeriesError",
    "LabelSizeMismatchError",
    "UnknownSourceTypeError",
    "InvalidValueError",
]
