# src/decen_avg/protocols/__init__.py
from typing import Dict, Type
from .base import SharingProtocol
from .allreduce import AllReduce
from .decreased import DecreasedAllReduce
from ..aggregators import get_aggregator

PROTOCOLS: Dict[str, Type[SharingProtocol]] = {
    "allreduce": AllReduce,
    "decreased_allreduce": DecreasedAllReduce,
}

def get_protocol(name: str, **kwargs) -> SharingProtocol:
    """Factory function for creating sharing protocols."""
    if name not in PROTOCOLS:
        raise ValueError(f"Unknown protocol: {name}. Available: {list(PROTOCOLS.keys())}")
    return PROTOCOLS[name](**kwargs)


def build_protocol(config) -> SharingProtocol:
    """Create a fresh protocol instance from a ``ProtocolConfig``.

    Called once per node so that no state is shared between nodes.
    """
    aggregator = get_aggregator(config.aggregator)
    if config.type == "allreduce":
        return AllReduce(aggregator=aggregator)
    if config.type == "decreased_allreduce":
        return DecreasedAllReduce(
            frequency=config.share_frequency,
            inner=AllReduce(aggregator=aggregator),
        )
    return get_protocol(config.type)


__all__ = [
    "PROTOCOLS",
    "SharingProtocol",
    "AllReduce",
    "DecreasedAllReduce",
    "get_protocol",
    "build_protocol",
]
