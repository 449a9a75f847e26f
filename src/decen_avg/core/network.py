"""Simulated network linking nodes to their neighbors.

The network resolves neighbor indices to node handles and hands weight
vectors over by value. Nothing is serialized on this path; the only
binary encoding in the system is the one used with external units.
"""

import logging
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from .errors import InvalidNeighborIndexError

logger = logging.getLogger(__name__)

LatencyModel = Callable[[int, int, int], float]


def zero_latency(source_id: int, dest_id: int, num_values: int) -> float:
    """Reference latency model: every transfer is instantaneous."""
    return 0.0


class UniformLatency:
    """Latency drawn uniformly from ``[low, high]`` per transfer."""

    def __init__(self, low: float = 0.0, high: float = 0.0, seed: Optional[int] = None):
        if low < 0 or high < low:
            raise ValueError(
                f"Invalid latency range [{low}, {high}]: "
                "bounds must satisfy 0 <= low <= high"
            )
        self.low = low
        self.high = high
        self._rng = np.random.default_rng(seed)

    def __call__(self, source_id: int, dest_id: int, num_values: int) -> float:
        return float(self._rng.uniform(self.low, self.high))

    def __repr__(self) -> str:
        return f"UniformLatency(low={self.low}, high={self.high})"


def create_latency_model(config) -> LatencyModel:
    """Build a latency model from a ``NetworkConfig``."""
    if config.latency == "zero":
        return zero_latency
    if config.latency == "uniform":
        return UniformLatency(config.latency_low, config.latency_high, config.seed)
    raise ValueError(
        f"Unknown latency model: {config.latency}. Available: ['zero', 'uniform']"
    )


class Network:
    """Neighbor lookup and synchronous delivery between nodes."""

    def __init__(self, latency_model: LatencyModel = zero_latency):
        self.latency_model = latency_model
        self._nodes: Dict[int, object] = {}
        self._neighbors: Dict[int, Tuple[int, ...]] = {}
        self._frozen = False

        # Running latency totals, for observability only
        self.send_latencies: Dict[int, float] = {}
        self.total_latency = 0.0
        self.messages_sent = 0

    # ========== Topology ==========

    def add_node(self, node) -> None:
        """Register a node handle under its id."""
        if node.id in self._nodes:
            raise ValueError(f"Node {node.id} is already registered")
        self._nodes[node.id] = node
        self._neighbors.setdefault(node.id, ())
        self.send_latencies.setdefault(node.id, 0.0)

    def set_neighbors(self, node_id: int, neighbors: Sequence[int]) -> None:
        """Assign the ordered neighbor list of ``node_id``."""
        if self._frozen:
            raise RuntimeError("Topology is frozen for the duration of the run")
        self._neighbors[node_id] = tuple(int(n) for n in neighbors)

    def freeze(self) -> None:
        """Lock the topology and check that every neighbor is registered."""
        for node_id, neighbors in self._neighbors.items():
            missing = [n for n in neighbors if n not in self._nodes]
            if missing:
                raise ValueError(
                    f"Node {node_id} lists unknown neighbors {missing}"
                )
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def neighbors(self, node_id: int) -> Tuple[int, ...]:
        return self._neighbors.get(node_id, ())

    def degree(self, node_id: int) -> int:
        return len(self.neighbors(node_id))

    def get_node(self, node_id: int):
        return self._nodes[node_id]

    @property
    def node_ids(self) -> List[int]:
        return sorted(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    # ========== Delivery ==========

    def send_to(self, source_id: int, neighbor_index: int, vector) -> float:
        """Deliver a copy of ``vector`` to the ``neighbor_index``-th neighbor.

        Args:
            source_id: Sending node id
            neighbor_index: Position in the sender's neighbor list
            vector: Weight vector to deliver

        Returns:
            Simulated latency of this transfer

        Raises:
            InvalidNeighborIndexError: Index outside the neighbor list
        """
        neighbors = self.neighbors(source_id)
        if not 0 <= neighbor_index < len(neighbors):
            raise InvalidNeighborIndexError(source_id, neighbor_index, len(neighbors))

        dest_id = neighbors[neighbor_index]
        payload = np.array(vector, dtype=np.float32, copy=True)

        latency = float(self.latency_model(source_id, dest_id, payload.size))
        if latency < 0:
            raise ValueError(
                f"Latency model returned negative latency {latency} "
                f"for {source_id} -> {dest_id}"
            )

        self._nodes[dest_id].push_weights(payload)
        self.send_latencies[source_id] = self.send_latencies.get(source_id, 0.0) + latency
        self.total_latency += latency
        self.messages_sent += 1

        logger.debug(
            f"[Network] {source_id} -> {dest_id}: "
            f"{payload.size} values, latency={latency:.4f}"
        )
        return latency

    def __repr__(self) -> str:
        return (
            f"Network(nodes={len(self._nodes)}, "
            f"latency_model={self.latency_model!r}, "
            f"frozen={self._frozen})"
        )
