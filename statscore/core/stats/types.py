"""Measures, measurements and the stats listener contract."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Mapping, Optional, Union

from statscore.core.tags import TagMap

if TYPE_CHECKING:
    from statscore.core.stats.view import View


class MeasureType(Enum):
    INT64 = "INT64"
    DOUBLE = "DOUBLE"


class MeasureUnit(str, Enum):
    """Common units, following https://unitsofmeasure.org/ucum.html."""
    UNIT = "1"
    BYTE = "by"
    KBYTE = "kb"
    SEC = "s"
    MS = "ms"
    NS = "ns"


class AggregationType(Enum):
    """How recorded values are accumulated by a View."""
    COUNT = 0
    SUM = 1
    LAST_VALUE = 2
    DISTRIBUTION = 3


@dataclass(frozen=True)
class Measure:
    """Definition of a quantity that can be measured.

    Attributes:
        name: Unique name, e.g. ``rpc_server_latency``.
        unit: Unit of the recorded values.
        type: Whether values are integers or floats.
        description: Human readable description.
    """

    name: str
    unit: str
    type: MeasureType
    description: str = ""


@dataclass(frozen=True)
class Measurement:
    """One recorded value for a measure. Tags are usually passed to ``record``."""

    measure: Measure
    value: Union[int, float]
    tags: Optional[Union[TagMap, Mapping]] = None


class StatsEventListener(ABC):
    """Push-style observer of a ``Stats`` registrar."""

    @abstractmethod
    def on_register_view(self, view: "View") -> None:
        """Called once when a view is first registered."""

    @abstractmethod
    def on_record(
        self,
        views: List["View"],
        measurement: Measurement,
        tags: Dict,
    ) -> None:
        """Called once per recorded measurement with the views it updated."""

    def start(self) -> None:
        pass

    def stop(self) -> None:
        pass
