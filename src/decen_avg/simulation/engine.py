# src/decen_avg/simulation/engine.py
"""Cycle-driven host engine for the averaging simulation."""

from __future__ import annotations

import time
from pathlib import Path
from typing import List, Optional

import numpy as np

from ..config import SimulationConfig
from ..core import ExternalUnits, Network, Node, create_latency_model
from ..protocols import build_protocol
from .topology import assign_topology, build_topology


class CycleSimulator:
    """Advances every node one cycle at a time.

    Within a cycle each node's ``next_cycle()`` runs exactly once, in
    ascending node id order, and the cycle completes before the next one
    starts. Nothing runs concurrently.
    """

    def __init__(
        self,
        nodes: List[Node],
        network: Network,
        results_dir: Optional[Path] = None,
        log_interval: int = 5,
    ):
        """Initialize simulator.

        Args:
            nodes: Participating nodes, indexed by id
            network: Network the nodes are registered with
            results_dir: Directory for saving results (not written if None)
            log_interval: Print a summary every N cycles
        """
        self.nodes = sorted(nodes, key=lambda node: node.id)
        self.network = network
        self.results_dir = Path(results_dir) if results_dir else None
        self.log_interval = max(1, log_interval)
        self.cycle = 0

        if self.results_dir is not None:
            self.results_dir.mkdir(parents=True, exist_ok=True)

        # Metrics tracking, one row per cycle, one column per node
        self.accuracy_history: List[np.ndarray] = []
        self.loss_history: List[np.ndarray] = []
        self.training_history: List[np.ndarray] = []

        print(f"Initialized simulator with {len(self.nodes)} nodes")
        if self.nodes:
            print(f"\tProtocol: {self.nodes[0].protocol!r}")
        if self.results_dir is not None:
            print(f"\tResults dir: {self.results_dir}")

    def run(self, cycles: int) -> dict:
        """Run the simulation for a number of cycles.

        Args:
            cycles: Number of cycles

        Returns:
            Dictionary with metric history and communication totals
        """
        print(f"\n{'='*60}")
        print(f"Starting simulation for {cycles} cycles")
        print(f"{'='*60}\n")

        for _ in range(cycles):
            cycle_start = time.time()
            self.step()
            cycle_time = time.time() - cycle_start

            if self.cycle % self.log_interval == 0:
                print(
                    f"Cycle {self.cycle:4d} | "
                    f"Acc: {self.accuracy_history[-1].mean():.2f} | "
                    f"Loss: {self.loss_history[-1].mean():.4f} | "
                    f"Training: {int(self.training_history[-1].sum())}/{len(self.nodes)} | "
                    f"Time: {cycle_time:.2f}s"
                )

        print(f"\n{'='*60}")
        print("Simulation complete!")
        print(f"{'='*60}\n")
        self._save_history()

        return {
            "accuracy": np.array(self.accuracy_history),
            "loss": np.array(self.loss_history),
            "latency": self.network.total_latency,
            "messages": self.network.messages_sent,
            "failures": {node.id: node.state.failures for node in self.nodes},
        }

    def step(self) -> None:
        """Run one cycle over all nodes."""
        for node in self.nodes:
            node.next_cycle()
        self.cycle += 1

        self.accuracy_history.append(
            np.array([node.test_accuracy for node in self.nodes])
        )
        self.loss_history.append(
            np.array([node.test_loss for node in self.nodes])
        )
        self.training_history.append(
            np.array([node.is_training for node in self.nodes], dtype=bool)
        )

    def _save_history(self) -> None:
        """Persist per-cycle mean accuracy and loss."""
        if self.results_dir is None or not self.accuracy_history:
            return

        accuracy = np.array(self.accuracy_history)
        loss = np.array(self.loss_history)
        history = np.column_stack(
            (
                np.arange(1, len(accuracy) + 1),
                accuracy.mean(axis=1),
                loss.mean(axis=1),
                accuracy.min(axis=1),
                accuracy.max(axis=1),
            )
        )

        np.savetxt(
            self.results_dir / "cycle_history.csv",
            history,
            delimiter=",",
            header="cycle,mean_accuracy,mean_loss,min_accuracy,max_accuracy",
            comments="",
            fmt=["%d", "%.6f", "%.6f", "%.6f", "%.6f"],
        )

    def __repr__(self) -> str:
        return (
            f"CycleSimulator("
            f"nodes={len(self.nodes)}, "
            f"cycle={self.cycle})"
        )


def build_node(
    config: SimulationConfig,
    node_id: int,
    network: Network,
    units: ExternalUnits,
) -> Node:
    """Create one node with its own protocol instance."""
    return Node(
        node_id=node_id,
        protocol=build_protocol(config.protocol),
        network=network,
        units=units,
        total_iterations=config.iterations,
        network_size=config.topology.num_nodes,
    )


def create_nodes(
    config: SimulationConfig,
    network: Network,
    units: ExternalUnits,
) -> List[Node]:
    """Create every node described by ``config``."""
    return [
        build_node(config, node_id, network, units)
        for node_id in range(config.topology.num_nodes)
    ]


def create_simulation_from_config(
    config: SimulationConfig,
    units: Optional[ExternalUnits] = None,
) -> CycleSimulator:
    """Factory function to wire network, nodes and topology from config.

    Args:
        config: SimulationConfig instance
        units: External units (built from ``config.units`` if None)

    Returns:
        Configured simulator
    """
    network = Network(latency_model=create_latency_model(config.network))
    units = units or ExternalUnits.from_config(config.units)
    nodes = create_nodes(config, network, units)
    assign_topology(network, build_topology(config))
    return CycleSimulator(
        nodes=nodes,
        network=network,
        results_dir=config.results_dir / config.name,
        log_interval=config.log_interval,
    )
