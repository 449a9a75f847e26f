# tests/test_simulation.py
"""Tests for topology helpers and the cycle simulator."""

import numpy as np
import pytest

from decen_avg.config import SimulationConfig, TopologyConfig
from decen_avg.core import ExternalUnits, Network
from decen_avg.protocols import AllReduce, DecreasedAllReduce
from decen_avg.simulation import (
    CycleSimulator,
    assign_topology,
    build_node,
    build_topology,
    create_nodes,
    create_simulation_from_config,
    create_topology_erdos_renyi,
    create_topology_ring,
    load_topology,
)

INIT_SCRIPT = """
    import struct, sys
    sys.stdout.buffer.write(struct.pack("<2f", float(sys.argv[3]), 0.0))
"""

TRAIN_SCRIPT = """
    import struct, sys
    values = struct.unpack("<2f", sys.stdin.buffer.read())
    sys.stdout.buffer.write(struct.pack("<2f", *[v + 1.0 for v in values]))
"""

TEST_SCRIPT = """
    import struct, sys
    values = struct.unpack("<2f", sys.stdin.buffer.read())
    print(values[0], 0.5)
"""


class TestTopology:

    def test_ring(self):
        adj = create_topology_ring(6, 1)
        assert adj.shape == (6, 6)
        np.testing.assert_array_equal(adj, adj.T)
        assert (adj.sum(axis=1) == 2).all()
        assert np.trace(adj) == 0

    def test_ring_two_nodes(self):
        adj = create_topology_ring(2, 1)
        np.testing.assert_array_equal(adj, [[0, 1], [1, 0]])

    def test_erdos_renyi(self):
        adj = create_topology_erdos_renyi(20, 4, seed=1)
        assert adj.shape == (20, 20)
        assert (adj.sum(axis=1) >= 1).all()
        np.testing.assert_array_equal(adj, create_topology_erdos_renyi(20, 4, seed=1))

    def test_erdos_renyi_single_node(self):
        with pytest.raises(ValueError, match="at least 2 nodes"):
            create_topology_erdos_renyi(1, 2, seed=0)

    def test_load_topology(self, tmp_path):
        path = tmp_path / "topo.txt"
        np.savetxt(path, create_topology_ring(4, 1), fmt="%d")
        np.testing.assert_array_equal(load_topology(path), create_topology_ring(4, 1))

    def test_assign_topology(self, network, fake_units, make_node):
        for i in range(3):
            make_node(i, AllReduce(), network, fake_units)
        adj = np.array([[1, 1, 1], [0, 0, 1], [0, 0, 0]])

        assign_topology(network, adj)

        assert network.neighbors(0) == (1, 2)
        assert network.neighbors(1) == (2,)
        assert network.neighbors(2) == ()
        assert network.frozen

    def test_assign_topology_reports_links(self, network, fake_units, make_node, capsys):
        for i in range(3):
            make_node(i, AllReduce(), network, fake_units)

        assign_topology(network, np.array([[1, 1, 1], [0, 0, 1], [0, 0, 0]]))

        out = capsys.readouterr().out
        assert "Network frozen: 3 nodes, 3 links" in out
        assert "min=0, avg=1.00, max=2" in out

    def test_assign_topology_shape_mismatch(self, network, fake_units, make_node):
        make_node(0, AllReduce(), network, fake_units)
        with pytest.raises(ValueError):
            assign_topology(network, np.zeros((2, 2)))

    def test_build_topology_from_config(self, tmp_path):
        config = SimulationConfig(topology=TopologyConfig(type="ring", num_nodes=5, degree=2))
        assert build_topology(config).sum() == 20

        config.topology.type = "file"
        with pytest.raises(ValueError):
            build_topology(config)

        path = tmp_path / "topo.txt"
        np.savetxt(path, create_topology_ring(3, 1), fmt="%d")
        config.topology_file = path
        with pytest.raises(ValueError):
            build_topology(config)

        config.topology.type = "star"
        with pytest.raises(ValueError):
            build_topology(config)


class TestCycleSimulator:

    @pytest.fixture
    def ring(self, fake_units, make_node):
        fake_units.initial = lambda node_id: [float(node_id), 0.0]
        network = Network()
        nodes = [make_node(i, AllReduce(), network, fake_units) for i in range(4)]
        assign_topology(network, create_topology_ring(4, 1))
        return nodes, network

    def test_each_node_once_per_cycle(self, ring, fake_units, tmp_path):
        nodes, network = ring
        simulator = CycleSimulator(nodes, network, results_dir=tmp_path)

        simulator.step()

        trains = [c for c in fake_units.calls if c[0] == "train"]
        assert [c[1] for c in trains] == [0, 1, 2, 3]
        assert all(not node.is_training for node in nodes)

    def test_run_records_history(self, ring, tmp_path):
        nodes, network = ring
        simulator = CycleSimulator(nodes, network, results_dir=tmp_path, log_interval=1)

        results = simulator.run(4)

        assert results["accuracy"].shape == (4, 4)
        assert results["loss"].shape == (4, 4)
        assert results["messages"] == 16
        assert results["latency"] == 0.0
        assert results["failures"] == {0: 0, 1: 0, 2: 0, 3: 0}
        history = np.loadtxt(tmp_path / "cycle_history.csv", delimiter=",", skiprows=1)
        assert history.shape == (4, 5)

    def test_averaging_reaches_consensus(self, fake_units, make_node):
        fake_units.train_delta = 0.0
        fake_units.initial = lambda node_id: [float(node_id), 0.0]
        network = Network()
        nodes = [make_node(i, AllReduce(), network, fake_units) for i in range(4)]
        adj = np.ones((4, 4)) - np.eye(4)
        assign_topology(network, adj)

        CycleSimulator(nodes, network).run(40)

        values = np.array([node.weights[0] for node in nodes])
        assert np.ptp(values) < 1e-3

    def test_decreased_frequency_sends_less(self, fake_units, make_node):
        def messages(protocol_factory):
            network = Network()
            nodes = [make_node(i, protocol_factory(), network, fake_units) for i in range(3)]
            assign_topology(network, np.ones((3, 3)) - np.eye(3))
            return CycleSimulator(nodes, network).run(12)["messages"]

        assert messages(AllReduce) == 36
        assert messages(lambda: DecreasedAllReduce(frequency=3)) == 12

    def test_failing_node_does_not_stop_simulation(self, ring, fake_units):
        nodes, network = ring
        fake_units.fail_test = True
        results = CycleSimulator(nodes, network).run(2)
        assert all(count == 2 for count in results["failures"].values())


class TestFactories:

    def test_build_node_has_own_protocol(self, network, fake_units):
        config = SimulationConfig()
        config.protocol.type = "decreased_allreduce"
        config.protocol.share_frequency = 2

        a = build_node(config, 0, network, fake_units)
        b = build_node(config, 1, network, fake_units)

        assert a.protocol is not b.protocol
        assert a.network_size == config.topology.num_nodes
        assert a.total_iterations == config.iterations

    def test_create_nodes(self, network, fake_units):
        config = SimulationConfig(topology=TopologyConfig(num_nodes=3))
        nodes = create_nodes(config, network, fake_units)
        assert [node.id for node in nodes] == [0, 1, 2]
        assert len(network) == 3

    def test_end_to_end_with_subprocess_units(self, tmp_path, write_script):
        units = ExternalUnits(
            init_command=write_script("init.py", INIT_SCRIPT),
            train_command=write_script("train.py", TRAIN_SCRIPT),
            test_command=write_script("test.py", TEST_SCRIPT),
            timeout=60.0,
        )
        config = SimulationConfig(
            name="e2e",
            iterations=2,
            topology=TopologyConfig(type="ring", num_nodes=2, degree=1),
            results_dir=tmp_path,
        )

        simulator = create_simulation_from_config(config, units=units)
        results = simulator.run(4)

        # Node 1 averages with node 0 every share cycle: [1.5, 1] then [2.25, 2]
        node0, node1 = simulator.nodes
        assert node0.iteration == node1.iteration == 2
        np.testing.assert_allclose(node1.weights, [2.25, 2.0])
        assert results["messages"] == 4
        assert (tmp_path / "e2e" / "cycle_history.csv").exists()
