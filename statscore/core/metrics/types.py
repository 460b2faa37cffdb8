"""Meter base classes and options shared by the gauge and cumulative families."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple, Union

from statscore.core.clock import Clock, Timestamp, get_clock
from statscore.core.errors import LabelSizeMismatchError
from statscore.core.export.types import (
    UNSET_LABEL_VALUE,
    LabelKey,
    LabelValue,
    Metric,
    MetricDescriptor,
    MetricDescriptorType,
)
from statscore.core.stats.types import MeasureUnit
from statscore.core.validation import (
    validate_array_elements_not_null,
    validate_duplicate_keys,
    validate_map_elements_not_null,
    validate_not_null,
    validate_unique,
)

LabelKeyArg = Union[LabelKey, str]
LabelValueArg = Union[LabelValue, str]


@dataclass
class MetricOptions:
    """Options for the MetricRegistry factories.

    Attributes:
        description: Human readable description.
        unit: Unit of the values, defaults to ``"1"``.
        label_keys: Ordered keys callers pass label values for.
        constant_labels: Labels appended to every time series.
    """

    description: str = ""
    unit: str = MeasureUnit.UNIT.value
    label_keys: List[LabelKeyArg] = field(default_factory=list)
    constant_labels: Dict[LabelKeyArg, LabelValueArg] = field(default_factory=dict)


class Meter(ABC):
    """Anything that can produce a Metric."""

    @abstractmethod
    def get_metric(self) -> Optional[Metric]:
        """Snapshot of all time series, or ``None`` when there are none."""
        pass


def to_label_key(key: LabelKeyArg) -> LabelKey:
    return LabelKey(key) if isinstance(key, str) else key


def to_label_value(value: LabelValueArg) -> LabelValue:
    return LabelValue(value) if isinstance(value, str) else value


class LabeledMeter(Meter):
    """Descriptor, label bookkeeping and locking shared by concrete meters."""

    ERROR_MESSAGE_INVALID_SIZE = "Label Keys and Label Values don't have same size"

    def __init__(
        self,
        name: str,
        description: str,
        unit: str,
        type: MetricDescriptorType,
        label_keys: Sequence[LabelKeyArg],
        constant_labels: Optional[Dict[LabelKeyArg, LabelValueArg]] = None,
        clock: Optional[Clock] = None,
    ):
        validate_not_null(name, "name")
        validate_not_null(description, "description")
        validate_not_null(unit, "unit")
        validate_not_null(label_keys, "labelKeys")
        validate_array_elements_not_null(label_keys, "labelKey")
        constant_labels = dict(constant_labels or {})
        validate_map_elements_not_null(constant_labels, "constantLabels")

        keys = [to_label_key(k) for k in label_keys]
        validate_unique(keys, "labelKey")
        constant_keys = [to_label_key(k) for k in constant_labels.keys()]
        validate_duplicate_keys(keys, constant_keys)

        self.label_keys: Tuple[LabelKey, ...] = tuple(keys)
        self.constant_label_values: Tuple[LabelValue, ...] = tuple(
            to_label_value(v) for v in constant_labels.values()
        )
        self._label_keys_length = len(keys)
        self._clock = clock
        self._lock = threading.Lock()
        self.metric_descriptor = MetricDescriptor(
            name=name,
            description=description,
            unit=unit,
            type=type,
            label_keys=tuple(keys) + tuple(constant_keys),
        )

    @property
    def name(self) -> str:
        return self.metric_descriptor.name

    def _now(self) -> Timestamp:
        return (self._clock or get_clock()).now()

    def _default_label_values(self) -> List[LabelValue]:
        return [UNSET_LABEL_VALUE] * self._label_keys_length

    def _normalize_label_values(self, label_values: Sequence[LabelValueArg]) -> List[LabelValue]:
        validate_not_null(label_values, "labelValues")
        validate_array_elements_not_null(label_values, "labelValue")
        return [to_label_value(v) for v in label_values]

    def _check_size(self, label_values: Sequence[LabelValue]) -> None:
        if len(label_values) != self._label_keys_length:
            raise LabelSizeMismatchError(self.ERROR_MESSAGE_INVALID_SIZE)

    def _series_label_values(self, label_values: Sequence[LabelValue]) -> Tuple[LabelValue, ...]:
        return tuple(label_values) + self.constant_label_values
