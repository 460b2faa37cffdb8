"""Argument validation helpers shared by meters, views and the registry."""

from __future__ import annotations

from typing import Iterable, Mapping, Sequence, TypeVar

from statscore.core.errors import ErrorCode, ValidationError

T = TypeVar("T")


def validate_not_null(reference: T, name: str) -> T:
    if reference is None:
        raise ValidationError(
            f"Missing mandatory {name} parameter", ErrorCode.MISSING_REQUIRED_FIELD
        )
    return reference


def validate_array_elements_not_null(array: Iterable[T], name: str) -> None:
    if any(element is None for element in array):
        raise ValidationError(f"{name} elements should not be a NULL")


def validate_map_elements_not_null(mapping: Mapping, name: str) -> None:
    for key, value in mapping.items():
        if key is None or value is None:
            raise ValidationError(f"{name} elements should not be a NULL")


def validate_duplicate_keys(keys: Sequence, constant_keys: Iterable) -> None:
    """Reject constant label keys that repeat a label key (or each other)."""
    constant_keys = list(constant_keys)
    names = {_key_name(k) for k in keys} | {_key_name(k) for k in constant_keys}
    if len(names) != len(keys) + len(constant_keys):
        raise ValidationError(
            "The keys from LabelKeys should not be present in constantLabels",
            ErrorCode.DUPLICATE_DATA,
        )


def validate_unique(keys: Sequence, name: str) -> None:
    names = [_key_name(k) for k in keys]
    if len(set(names)) != len(names):
        raise ValidationError(f"Duplicate {name} entries are not allowed", ErrorCode.DUPLICATE_DATA)


def _key_name(key) -> str:
    # LabelKey and TagKey expose different attribute names
    for attr in ("key", "name"):
        if hasattr(key, attr):
            return getattr(key, attr)
    return key
