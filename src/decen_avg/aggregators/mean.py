# src/decen_avg/aggregators/mean.py
import torch
from .base import BaseAggregator


class MeanAggregator(BaseAggregator):
    """Unweighted element-wise mean."""

    def aggregate(self, vectors: torch.Tensor) -> torch.Tensor:
        return vectors.mean(dim=0)
