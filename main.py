# main.py
"""Entry point for the decentralized averaging simulation."""

import argparse
import logging
import time
from pathlib import Path

import numpy as np

from decen_avg.config import SimulationConfig
from decen_avg.protocols import PROTOCOLS
from decen_avg.simulation import create_simulation_from_config


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Cycle-driven decentralized weight averaging"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to YAML config file",
    )
    parser.add_argument(
        "--protocol",
        type=str,
        choices=list(PROTOCOLS.keys()),
        help="Override sharing protocol"
    )
    parser.add_argument(
        "--share-frequency",
        type=int,
        help="Aggregate every N sharing steps (decreased_allreduce)"
    )
    parser.add_argument(
        "--iterations",
        type=int,
        help="Total number of training iterations"
    )
    parser.add_argument(
        "--cycles",
        type=int,
        help="Number of simulation cycles"
    )
    parser.add_argument(
        "--num-nodes",
        type=int,
        help="Number of nodes in network"
    )
    parser.add_argument(
        "--topology",
        type=str,
        choices=["erdos_renyi", "ring", "file"],
        help="Network topology type"
    )
    parser.add_argument(
        "--topology-file",
        type=str,
        help="Path to topology file (if topology=file)"
    )
    parser.add_argument(
        "--unit-timeout",
        type=float,
        help="Seconds to wait for an external unit before giving up"
    )
    parser.add_argument(
        "--results-dir",
        type=str,
        help="Directory for saving results"
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Random seed"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity"
    )
    return parser.parse_args()


def load_config_from_args(args: argparse.Namespace) -> SimulationConfig:
    """Load simulation configuration and apply CLI overrides."""
    if args.config:
        config = SimulationConfig.from_yaml(Path(args.config))
    else:
        config = SimulationConfig()

    if args.protocol:
        config.protocol.type = args.protocol
    if args.share_frequency is not None:
        config.protocol.share_frequency = args.share_frequency
    if args.iterations is not None:
        config.iterations = args.iterations
    if args.cycles is not None:
        config.cycles = args.cycles
    if args.num_nodes is not None:
        config.topology.num_nodes = args.num_nodes
    if args.topology:
        config.topology.type = args.topology
    if args.topology_file:
        config.topology_file = Path(args.topology_file)
        config.topology.type = "file"
    if args.unit_timeout is not None:
        config.units.timeout = args.unit_timeout
    if args.results_dir:
        config.results_dir = Path(args.results_dir)
    if args.seed is not None:
        config.seed = args.seed
        config.topology.seed = args.seed

    config.validate()
    return config


def main():
    args = parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = load_config_from_args(args)

    print(f"Simulation: {config.name}")
    print(f"  Protocol: {config.protocol.type} (frequency={config.protocol.share_frequency})")
    print(f"  Nodes: {config.topology.num_nodes}, Topology: {config.topology.type}")
    print(f"  Iterations: {config.iterations}, Cycles: {config.cycles}")

    start = time.time()
    simulator = create_simulation_from_config(config)
    config.save(simulator.results_dir / "config.yaml")
    results = simulator.run(config.cycles)

    final_acc = results["accuracy"][-1] if len(results["accuracy"]) else np.zeros(0)
    print(f"Final mean accuracy: {final_acc.mean() if final_acc.size else float('nan'):.2f}")
    print(f"Messages sent: {results['messages']}, total latency: {results['latency']:.4f}")
    failed = {node_id: n for node_id, n in results["failures"].items() if n}
    if failed:
        print(f"Nodes with failed cycles: {failed}")
    print(f"Total time: {time.time() - start:.1f}s")


if __name__ == "__main__":
    main()
