"""Process-wide telemetry context.

Holds the Stats registrar, the MetricRegistry and the MetricProducerManager
exporters poll. Libraries that want the shared instances call
``get_context()``; tests and embedders can build isolated contexts.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from statscore.core.clock import Clock, get_clock
from statscore.core.config import Settings, get_settings
from statscore.core.export.producer import MetricProducerManager
from statscore.core.metrics.registry import MetricRegistry
from statscore.core.stats.stats import Stats

logger = logging.getLogger(__name__)


class TelemetryContext:
    """Shared stats and metrics state.

    The stats and registry producers are added to ``metric_producer_manager``
    on construction, so exporters polling the manager see both.
    """

    def __init__(
        self,
        clock: Optional[Clock] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.clock = clock or get_clock()
        self.stats = Stats(clock=self.clock)
        self.metric_registry = MetricRegistry(clock=self.clock)
        self.metric_producer_manager = MetricProducerManager()
        self.metric_producer_manager.add(self.stats.get_metric_producer())
        self.metric_producer_manager.add(self.metric_registry.get_metric_producer())


_context: Optional[TelemetryContext] = None
_context_lock = threading.Lock()


def init_context(
    clock: Optional[Clock] = None, settings: Optional[Settings] = None
) -> TelemetryContext:
    """Create the process context. Fails if one already exists."""
    global _context
    with _context_lock:
        if _context is not None:
            raise RuntimeError("Telemetry context already initialized")
        _context = TelemetryContext(clock=clock, settings=settings)
    logger.info("Telemetry context initialized")
    return _context


def get_context() -> TelemetryContext:
    """Get the process context, creating a default one on first use."""
    global _context
    with _context_lock:
        if _context is None:
            _context = TelemetryContext()
        return _context


def reset_context() -> None:
    """Drop the process context (for testing)."""
    global _context
    with _context_lock:
        _context = None
