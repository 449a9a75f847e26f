# src/decen_avg/aggregators/__init__.py
from typing import Dict, Type
from .base import BaseAggregator, AggregationResult
from .mean import MeanAggregator

AGGREGATORS: Dict[str, Type[BaseAggregator]] = {
    "mean": MeanAggregator,
}

def get_aggregator(name: str, **kwargs) -> BaseAggregator:
    """Factory function for creating aggregators."""
    if name not in AGGREGATORS:
        raise ValueError(f"Unknown aggregator: {name}. Available: {list(AGGREGATORS.keys())}")
    return AGGREGATORS[name](**kwargs)


__all__ = [
    "AGGREGATORS",
    "AggregationResult",
    "BaseAggregator",
    "MeanAggregator",
    "get_aggregator",
]
