# src/decen_avg/simulation/topology.py
"""Topology construction and assignment."""

from pathlib import Path
from typing import Optional

import numpy as np


def assign_topology(network, adjacency_matrix: np.ndarray) -> None:
    """Assign neighbors to every registered node from an adjacency matrix.

    Row ``i`` lists the nodes that node ``i`` sends to; neighbor order is
    ascending node id.

    Args:
        network: Network with all nodes registered
        adjacency_matrix: Binary adjacency matrix (n x n)
    """
    adjacency_matrix = np.asarray(adjacency_matrix)
    n = len(network)
    if adjacency_matrix.shape != (n, n):
        raise ValueError(
            f"Adjacency matrix shape {adjacency_matrix.shape} "
            f"does not match {n} nodes"
        )
    for node_id in network.node_ids:
        neighbors = np.nonzero(adjacency_matrix[node_id])[0]
        network.set_neighbors(node_id, [int(j) for j in neighbors if j != node_id])
    network.freeze()

    degrees = np.array([network.degree(node_id) for node_id in network.node_ids], dtype=int)
    print(f"Network frozen: {n} nodes, {int(degrees.sum())} links")
    if n:
        print(f"  Out-degree: min={int(degrees.min())}, "
              f"avg={degrees.mean():.2f}, max={int(degrees.max())}")


def load_topology(path: Path) -> np.ndarray:
    """Load topology from file.

    Args:
        path: Path to adjacency matrix file

    Returns:
        Adjacency matrix as numpy array
    """
    adj = np.atleast_2d(np.loadtxt(path))
    print(f"Read {adj.shape[0]}x{adj.shape[1]} adjacency matrix from {path}")
    return adj


def create_topology_erdos_renyi(
    num_nodes: int,
    avg_degree: int,
    seed: Optional[int] = None,
) -> np.ndarray:
    """Create Erdős-Rényi random graph topology.

    Args:
        num_nodes: Number of nodes
        avg_degree: Target average degree
        seed: Random seed

    Returns:
        Adjacency matrix
    """
    import networkx as nx

    if num_nodes < 2:
        raise ValueError(f"erdos_renyi topology needs at least 2 nodes, got {num_nodes}")

    num_edges = int(num_nodes * avg_degree / 2)

    # Keep generating until every node has at least one neighbor
    rng = np.random.default_rng(seed)
    graph_seed = seed if seed is not None else int(rng.integers(0, 2**31))

    for attempt in range(100):
        G = nx.gnm_random_graph(num_nodes, num_edges, seed=graph_seed)
        adj = nx.to_numpy_array(G, dtype=int)

        degrees = adj.sum(axis=1)
        if (degrees >= 1).all():
            print(f"Random graph: {num_nodes} nodes, {num_edges} undirected edges "
                  f"(seed {graph_seed})")
            return adj

        graph_seed += 1

    raise RuntimeError(
        f"Failed to create valid topology after 100 attempts. "
        f"Try increasing avg_degree."
    )


def create_topology_ring(num_nodes: int, degree: int) -> np.ndarray:
    """Create ring lattice topology.

    Args:
        num_nodes: Number of nodes
        degree: Number of neighbors on each side

    Returns:
        Adjacency matrix
    """
    adj = np.zeros((num_nodes, num_nodes), dtype=int)

    for i in range(num_nodes):
        for j in range(1, degree + 1):
            neighbor = (i + j) % num_nodes
            if neighbor == i:
                continue
            adj[i, neighbor] = 1
            adj[neighbor, i] = 1  # Undirected

    print(f"Ring: {num_nodes} nodes, {degree} neighbor(s) per side")

    return adj


def build_topology(config) -> np.ndarray:
    """Build the adjacency matrix described by a ``SimulationConfig``."""
    topo = config.topology
    if topo.type == "file":
        if config.topology_file is None:
            raise ValueError("topology.type 'file' requires topology_file")
        adj = load_topology(config.topology_file)
        if adj.shape != (topo.num_nodes, topo.num_nodes):
            raise ValueError(
                f"Topology file has {adj.shape[0]} nodes, "
                f"config expects {topo.num_nodes}"
            )
        return adj
    if topo.type == "ring":
        return create_topology_ring(topo.num_nodes, topo.degree)
    if topo.type == "erdos_renyi":
        return create_topology_erdos_renyi(topo.num_nodes, topo.degree, topo.seed)
    raise ValueError(
        f"Unknown topology: {topo.type}. Available: ['ring', 'erdos_renyi', 'file']"
    )
