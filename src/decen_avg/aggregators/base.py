# src/decen_avg/aggregators/base.py
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Sequence

import numpy as np
import torch

from ..core.errors import WeightLengthMismatchError


@dataclass
class AggregationResult:
    """Standardized output from all aggregators."""
    vector: np.ndarray
    metadata: dict = None

    def __post_init__(self):
        self.metadata = self.metadata or {}


class BaseAggregator(ABC):
    """Abstract base class for vector combination rules."""

    @abstractmethod
    def aggregate(self, vectors: torch.Tensor) -> torch.Tensor:
        """
        Combine stacked vectors.

        Args:
            vectors: Shape (n, d) float32 tensor of n vectors in d dimensions

        Returns:
            Combined vector of shape (d,)
        """
        pass

    def __call__(self, vectors: Sequence[np.ndarray]) -> AggregationResult:
        tensor = self._validate_input(vectors)
        combined = self.aggregate(tensor)
        return AggregationResult(
            vector=combined.detach().cpu().numpy().astype(np.float32),
            metadata={"n_vectors": int(tensor.shape[0])},
        )

    def _validate_input(self, vectors: Sequence[np.ndarray]) -> torch.Tensor:
        if len(vectors) == 0:
            raise ValueError("Cannot aggregate an empty set of vectors")
        expected = len(vectors[0])
        for vector in vectors[1:]:
            if len(vector) != expected:
                raise WeightLengthMismatchError(expected, len(vector))
        stacked = np.stack(
            [np.asarray(v, dtype=np.float32) for v in vectors], axis=0
        )
        return torch.from_numpy(stacked)
