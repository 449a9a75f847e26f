# src/decen_avg/protocols/allreduce.py
"""AllReduce-style averaging with every neighbor."""

import logging
from typing import Optional

from ..aggregators import BaseAggregator, MeanAggregator
from ..core.errors import WeightLengthMismatchError
from .base import SharingProtocol

logger = logging.getLogger(__name__)


class AllReduce(SharingProtocol):
    """Broadcast, then average own weights with everything received.

    Every sharing step sends the node's weights to all neighbors, drains
    the inbox and replaces the weights with the aggregate of the node's
    own vector and the drained ones. With an empty inbox the node's own
    vector is the result. The node always resumes training afterwards.
    """

    def __init__(self, aggregator: Optional[BaseAggregator] = None):
        self.aggregator = aggregator or MeanAggregator()
        self.rounds = 0

    def share_weights(self, node) -> None:
        node.broadcast()
        received = node.drain_inbox()

        try:
            result = self.aggregator([node.weights, *received])
            node.update_weights(result.vector)
        except WeightLengthMismatchError as e:
            # Keep the previous weights; the received vectors are discarded.
            node.report_failure("aggregation", e)
        else:
            self.rounds += 1
            logger.debug(
                f"[Node {node.id}] Averaged {result.metadata['n_vectors']} vectors"
            )

        node.set_train()

    def __repr__(self) -> str:
        return f"AllReduce(aggregator={self.aggregator.__class__.__name__})"
