# tests/conftest.py
"""Shared fixtures: in-process stand-ins for the external units."""

import sys
import textwrap

import numpy as np
import pytest

from decen_avg.core import Network, Node, UnitExitError, UnitOutputError


class FakeUnits:
    """Records calls and answers like the external units would."""

    def __init__(self, initial=(1.0, 2.0), train_delta=1.0, metrics=(50.0, 0.5)):
        self.initial = initial
        self.train_delta = train_delta
        self.metrics = metrics
        self.fail_init = False
        self.fail_train = False
        self.fail_test = False
        self.calls = []

    def run_initializer(self, node_id, network_size):
        self.calls.append(("init", node_id))
        if self.fail_init:
            raise UnitExitError(["init"], 1)
        initial = self.initial(node_id) if callable(self.initial) else self.initial
        return np.asarray(initial, dtype=np.float32)

    def run_trainer(self, weights, node_id, network_size, iteration, total_iterations):
        self.calls.append(("train", node_id, iteration, total_iterations))
        if self.fail_train:
            raise UnitExitError(["train"], 1)
        return weights + np.float32(self.train_delta)

    def run_evaluator(self, weights, node_id, network_size):
        self.calls.append(("test", node_id))
        if self.fail_test:
            raise UnitOutputError("Malformed evaluator output")
        return self.metrics


@pytest.fixture
def fake_units():
    return FakeUnits()


@pytest.fixture
def network():
    return Network()


@pytest.fixture
def make_node():
    """Create nodes the way the simulation factory does."""
    def _make(node_id, protocol, network, units, total_iterations=10, network_size=4):
        return Node(
            node_id=node_id,
            protocol=protocol,
            network=network,
            units=units,
            total_iterations=total_iterations,
            network_size=network_size,
        )
    return _make


@pytest.fixture
def write_script(tmp_path):
    """Write a Python script and return the command prefix that runs it."""
    def _write(name, body):
        path = tmp_path / name
        path.write_text(textwrap.dedent(body))
        return [sys.executable, str(path)]
    return _write
