"""Node state management."""

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List, Optional

import numpy as np


@dataclass
class NodeState:
    """Encapsulates the mutable state of a node.

    Only the owning node writes ``weights``; peers reach the state solely
    through the inbox append in ``Node.push_weights``.
    """

    # Model parameters
    weights: np.ndarray = field(
        default_factory=lambda: np.empty(0, dtype=np.float32)
    )

    # Received vectors in arrival order
    inbox: Deque[np.ndarray] = field(default_factory=deque)

    # Cycle scheduling
    train_cycle: bool = True
    iteration: int = 0

    # Evaluation metrics
    test_accuracy: float = 0.0
    test_loss: float = 0.0

    # Diagnostics
    failures: int = 0
    last_error: Optional[str] = None

    def drain_inbox(self) -> List[np.ndarray]:
        """Remove and return all received vectors, oldest first."""
        drained = list(self.inbox)
        self.inbox.clear()
        return drained

    def increment_iteration(self) -> None:
        self.iteration += 1

    def update_metrics(self, accuracy: float, loss: float) -> None:
        """Update evaluation metrics."""
        self.test_accuracy = accuracy
        self.test_loss = loss

    def record_failure(self, error: Exception) -> None:
        self.failures += 1
        self.last_error = f"{error.__class__.__name__}: {error}"

    def num_received(self) -> int:
        """Return the number of vectors waiting in the inbox."""
        return len(self.inbox)

    def to_dict(self) -> Dict:
        """Serialize state to dictionary (for checkpointing)."""
        return {
            "weights": self.weights.copy(),
            "train_cycle": self.train_cycle,
            "iteration": self.iteration,
            "test_accuracy": self.test_accuracy,
            "test_loss": self.test_loss,
            "failures": self.failures,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "NodeState":
        """Restore state from dictionary."""
        state = cls()
        state.weights = np.asarray(
            data.get("weights", state.weights), dtype=np.float32
        ).copy()
        state.train_cycle = data.get("train_cycle", True)
        state.iteration = data.get("iteration", 0)
        state.test_accuracy = data.get("test_accuracy", 0.0)
        state.test_loss = data.get("test_loss", 0.0)
        state.failures = data.get("failures", 0)
        return state
