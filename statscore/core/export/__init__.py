"""Export data model and metric producers.

Exporters (``console``, ``prometheus``) are imported from their modules.
"""

from statscore.core.export.producer import MetricProducer, MetricProducerManager
from statscore.core.export.types import (
    UNSET_LABEL_VALUE,
    Bucket,
    BucketOptions,
    DistributionValue,
    Exemplar,
    LabelKey,
    LabelValue,
    Metric,
    MetricDescriptor,
    MetricDescriptorType,
    Point,
    TimeSeries,
)

__all__ = [
    "MetricProducer",
    "MetricProducerManager",
    "UNSET_LABEL_VALUE",
    "Bucket",
    "BucketOptions",
    "DistributionValue",
    "Exemplar",
    "LabelKey",
    "LabelValue",
    "Metric",
    "MetricDescriptor",
    "MetricDescriptorType",
    "Point",
    "TimeSeries",
]
