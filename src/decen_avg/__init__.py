# src/decen_avg/__init__.py
"""Cycle-driven simulation of decentralized weight averaging."""

__version__ = "0.1.0"

from .protocols import get_protocol, build_protocol, PROTOCOLS
from .config import SimulationConfig

__all__ = [
    "get_protocol",
    "build_protocol",
    "PROTOCOLS",
    "SimulationConfig",
]
