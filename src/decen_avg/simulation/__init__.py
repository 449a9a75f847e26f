"""Simulation host for decentralized averaging."""

from .engine import (
    CycleSimulator,
    build_node,
    create_nodes,
    create_simulation_from_config,
)
from .topology import (
    assign_topology,
    build_topology,
    load_topology,
    create_topology_erdos_renyi,
    create_topology_ring,
)

__all__ = [
    # Engine
    "CycleSimulator",
    "build_node",
    "create_nodes",
    "create_simulation_from_config",
    # Topology
    "assign_topology",
    "build_topology",
    "load_topology",
    "create_topology_erdos_renyi",
    "create_topology_ring",
]
