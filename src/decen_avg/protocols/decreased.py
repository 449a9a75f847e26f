# src/decen_avg/protocols/decreased.py
"""AllReduce with a reduced, constant aggregation frequency."""

import logging
from numbers import Integral
from typing import Optional

from .allreduce import AllReduce
from .base import SharingProtocol

logger = logging.getLogger(__name__)


class DecreasedAllReduce(SharingProtocol):
    """Only run the wrapped protocol on every ``frequency``-th sharing step.

    On the other steps there is no network activity at all: the node goes
    straight back to training with its current weights.
    """

    def __init__(self, frequency: int, inner: Optional[SharingProtocol] = None):
        """
        Args:
            frequency: Aggregate once every ``frequency`` invocations (>= 1)
            inner: Protocol to delegate to (a fresh ``AllReduce`` if None)
        """
        if isinstance(frequency, bool) or not isinstance(frequency, Integral) or frequency < 1:
            raise ValueError(f"Share frequency must be a positive integer, got {frequency}")
        self.frequency = int(frequency)
        self.inner = inner if inner is not None else AllReduce()
        self.cycle_count = 0

    def share_weights(self, node) -> None:
        self.cycle_count += 1

        if self.cycle_count % self.frequency != 0:
            logger.debug(
                f"[Node {node.id}] Skipping aggregation "
                f"({self.cycle_count % self.frequency}/{self.frequency})"
            )
            node.set_train()
            return

        self.inner.share_weights(node)

    def __repr__(self) -> str:
        return f"DecreasedAllReduce(frequency={self.frequency}, inner={self.inner!r})"
