# src/decen_avg/core/__init__.py
"""Core components for averaging nodes."""

from .codec import decode, encode, iter_decode
from .errors import (
    DecenAvgError,
    WireFormatError,
    TruncatedFrameError,
    WeightLengthMismatchError,
    InvalidNeighborIndexError,
    UnitError,
    UnitExitError,
    UnitTimeoutError,
    UnitOutputError,
    NodeInitializationError,
)
from .external import ExternalUnits, parse_metrics
from .network import Network, UniformLatency, create_latency_model, zero_latency
from .node import Node
from .node_state import NodeState

__all__ = [
    "encode",
    "decode",
    "iter_decode",
    "DecenAvgError",
    "WireFormatError",
    "TruncatedFrameError",
    "WeightLengthMismatchError",
    "InvalidNeighborIndexError",
    "UnitError",
    "UnitExitError",
    "UnitTimeoutError",
    "UnitOutputError",
    "NodeInitializationError",
    "ExternalUnits",
    "parse_metrics",
    "Network",
    "UniformLatency",
    "create_latency_model",
    "zero_latency",
    "Node",
    "NodeState",
]
