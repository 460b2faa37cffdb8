"""Explicit bucket boundaries for distribution aggregations."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

logger = logging.getLogger(__name__)


class BucketBoundaries:
    """Validated, strictly increasing, positive bucket boundaries.

    Non-positive boundaries are dropped because no supported backend accepts
    them. Unsorted or repeated boundaries are logged; sorting and
    deduplicating them keeps the invariant that the result is strictly
    increasing.
    """

    def __init__(self, boundaries: Optional[Sequence[float]] = None):
        self._boundaries = self._normalize(list(boundaries or []))

    @staticmethod
    def _normalize(boundaries: List[float]) -> List[float]:
        positive = [b for b in boundaries if b > 0]
        dropped = len(boundaries) - len(positive)
        if dropped:
            logger.warning(
                f"Dropping {dropped} negative bucket boundaries, the values must be strictly > 0.",
                extra={"dropped": dropped},
            )

        for current, following in zip(positive, positive[1:]):
            if current > following:
                logger.error("Bucket boundaries not sorted.")
                break
        for current, following in zip(positive, positive[1:]):
            if current == following:
                logger.error("Bucket boundaries not unique.")
                break

        return sorted(set(positive))

    @property
    def boundaries(self) -> List[float]:
        return list(self._boundaries)

    def initial_counts(self) -> List[int]:
        """One counter per bucket, including the overflow bucket."""
        return [0] * (len(self._boundaries) + 1)

    def __len__(self) -> int:
        return len(self._boundaries)
