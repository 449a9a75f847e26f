"""Node implementation for cycle-driven decentralized averaging."""

from typing import List, Optional
import logging

import numpy as np

from .errors import (
    NodeInitializationError,
    UnitError,
    WeightLengthMismatchError,
    WireFormatError,
)
from .external import ExternalUnits
from .network import Network
from .node_state import NodeState

logger = logging.getLogger(__name__)


class Node:
    """A participant that alternates local training with weight sharing.

    Responsibilities:
    - Local training through the external trainer unit
    - Evaluation through the external evaluator unit, every cycle
    - Receiving peer vectors into its inbox
    - Delegating the sharing phase to its sharing protocol

    The node starts in the training phase. A training cycle always moves it
    to the sharing phase; only ``set_train()`` (called by the protocol)
    moves it back.
    """

    def __init__(
        self,
        node_id: int,
        protocol,
        network: Network,
        units: ExternalUnits,
        total_iterations: int,
        network_size: int,
    ):
        """Initialize node and fetch its initial weights.

        Args:
            node_id: Stable index assigned by the topology
            protocol: Sharing protocol bound to this node only
            network: Network used to reach neighbors
            units: External initializer/trainer/evaluator commands
            total_iterations: Configured number of training iterations
            network_size: Number of nodes in the simulation

        Raises:
            NodeInitializationError: The initializer produced no usable vector
        """
        self.id = node_id
        self.protocol = protocol
        self.network = network
        self.units = units
        self.total_iterations = total_iterations
        self.network_size = network_size

        self.state = NodeState()
        self.state.weights = self._initialize_weights()
        self.network.add_node(self)

    def _initialize_weights(self) -> np.ndarray:
        try:
            weights = self.units.run_initializer(self.id, self.network_size)
        except (UnitError, WireFormatError) as e:
            raise NodeInitializationError(
                f"[Node {self.id}] Failed to initialize weights: {e}"
            ) from e
        if weights is None or weights.size == 0:
            raise NodeInitializationError(
                f"[Node {self.id}] Initializer returned an empty weight vector"
            )
        logger.debug(f"[Node {self.id}] Initialized {weights.size} weights")
        return weights

    # ========== Properties ==========

    @property
    def weights(self) -> np.ndarray:
        return self.state.weights

    @property
    def vector_length(self) -> int:
        return int(self.state.weights.size)

    @property
    def is_training(self) -> bool:
        """True if the next cycle is a training cycle."""
        return self.state.train_cycle

    @property
    def iteration(self) -> int:
        return self.state.iteration

    @property
    def test_accuracy(self) -> float:
        return self.state.test_accuracy

    @property
    def test_loss(self) -> float:
        return self.state.test_loss

    @property
    def neighbors(self) -> tuple:
        return self.network.neighbors(self.id)

    # ========== Cycle ==========

    def next_cycle(self) -> None:
        """Run one simulation cycle: train or share, then evaluate."""
        if self.state.train_cycle:
            self._train()
            self.state.increment_iteration()
            self.state.train_cycle = False
        else:
            self.protocol.share_weights(self)
        self._test()

    def set_train(self) -> None:
        """Make the next cycle a training cycle."""
        self.state.train_cycle = True

    def _train(self) -> None:
        try:
            updated = self.units.run_trainer(
                self.state.weights,
                self.id,
                self.network_size,
                self.state.iteration,
                self.total_iterations,
            )
            if updated.size != self.vector_length:
                raise WeightLengthMismatchError(self.vector_length, updated.size)
        except (UnitError, WireFormatError) as e:
            self.report_failure("training", e)
            return
        self.state.weights = updated

    def _test(self) -> None:
        try:
            accuracy, loss = self.units.run_evaluator(
                self.state.weights, self.id, self.network_size
            )
        except UnitError as e:
            self.report_failure("evaluation", e)
            return
        self.state.update_metrics(accuracy, loss)
        logger.debug(
            f"[Node {self.id}] Iteration {self.state.iteration}: "
            f"Acc={accuracy:.2f}, Loss={loss:.4f}"
        )

    def report_failure(self, stage: str, error: Exception) -> None:
        """Record a recoverable per-cycle failure."""
        self.state.record_failure(error)
        logger.error(f"[Node {self.id}] {stage} failed: {error}")

    # ========== Communication ==========

    def push_weights(self, weights: np.ndarray) -> None:
        """Receive a weight vector from a peer."""
        self.state.inbox.append(weights)

    def drain_inbox(self) -> List[np.ndarray]:
        """Take every received vector, in arrival order."""
        return self.state.drain_inbox()

    def broadcast(self, weights: Optional[np.ndarray] = None) -> float:
        """Send ``weights`` (own weights by default) to every neighbor.

        Returns:
            Sum of the simulated latencies
        """
        if weights is None:
            weights = self.state.weights
        latency = 0.0
        for index in range(self.network.degree(self.id)):
            latency += self.network.send_to(self.id, index, weights)
        return latency

    def update_weights(self, new_weights: np.ndarray) -> None:
        """Replace the model with a combined vector of the same length."""
        new_weights = np.asarray(new_weights, dtype=np.float32)
        if new_weights.size != self.vector_length:
            raise WeightLengthMismatchError(self.vector_length, new_weights.size)
        self.state.weights = new_weights.copy()

    def __repr__(self) -> str:
        return (
            f"Node(id={self.id}, "
            f"neighbors={len(self.neighbors)}, "
            f"protocol={self.protocol.__class__.__name__}, "
            f"training={self.is_training})"
        )
