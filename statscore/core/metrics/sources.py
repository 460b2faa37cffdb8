"""Value sources for derived meters.

A source is resolved once, at registration, into one of a closed set of
variants holding a single extractor. Probing order is: plain function,
``get_value()``, ``length`` (attribute or method), ``size`` (attribute or
method). Python sequences without either attribute are read with ``len()``.
"""

from __future__ import annotations

import functools
import inspect
import numbers
from dataclasses import dataclass
from typing import Any, Callable, Union

from statscore.core.errors import UnknownSourceTypeError

ValueExtractor = Callable[[], Union[int, float]]

ERROR_MESSAGE_UNKNOWN_INTERFACE = "Unknown interface/object type"


@dataclass(frozen=True)
class FunctionSource:
    """A zero-argument callable returning the value."""
    extractor: ValueExtractor
    kind: str = "function"


@dataclass(frozen=True)
class ValueSource:
    """An object exposing ``get_value()`` (or ``getValue()``)."""
    extractor: ValueExtractor
    kind: str = "value"


@dataclass(frozen=True)
class LengthSource:
    """An object with a numeric or callable ``length``, or a sized collection."""
    extractor: ValueExtractor
    kind: str = "length"


@dataclass(frozen=True)
class SizeSource:
    """An object with a numeric or callable ``size``."""
    extractor: ValueExtractor
    kind: str = "size"


DerivedSource = Union[FunctionSource, ValueSource, LengthSource, SizeSource]


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _attribute_extractor(obj: Any, attr: str) -> Union[ValueExtractor, None]:
    value = getattr(obj, attr, None)
    if value is None:
        return None
    if callable(value):
        return lambda: getattr(obj, attr)()
    if _is_number(value):
        return lambda: getattr(obj, attr)
    return None


def _is_plain_function(obj: Any) -> bool:
    return (
        inspect.isfunction(obj)
        or inspect.ismethod(obj)
        or inspect.isbuiltin(obj)
        or isinstance(obj, functools.partial)
    )


def resolve_source(obj: Any) -> DerivedSource:
    """Pick the extractor for ``obj`` once so snapshots don't re-probe it."""
    if obj is None:
        raise UnknownSourceTypeError(ERROR_MESSAGE_UNKNOWN_INTERFACE)
    if isinstance(obj, (FunctionSource, ValueSource, LengthSource, SizeSource)):
        return obj

    if _is_plain_function(obj):
        return FunctionSource(extractor=obj)

    for method in ("get_value", "getValue"):
        if callable(getattr(obj, method, None)):
            return ValueSource(extractor=getattr(obj, method))

    extractor = _attribute_extractor(obj, "length")
    if extractor is not None:
        return LengthSource(extractor=extractor)
    if hasattr(obj, "__len__"):
        return LengthSource(extractor=lambda: len(obj))

    extractor = _attribute_extractor(obj, "size")
    if extractor is not None:
        return SizeSource(extractor=extractor)

    # Instances implementing __call__
    if callable(obj):
        return FunctionSource(extractor=obj)

    raise UnknownSourceTypeError(ERROR_MESSAGE_UNKNOWN_INTERFACE)
