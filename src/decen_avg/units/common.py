# src/decen_avg/units/common.py
"""Shared pieces of the reference external units.

The units train a small MLP on a seeded synthetic classification task.
Every node sees the same test set and its own shard of the training set,
so node ``i`` of ``n`` always gets the same data across invocations.
"""

import argparse
import sys
from typing import Tuple

import numpy as np
import torch
import torch.nn as nn
from torch.nn.utils import parameters_to_vector, vector_to_parameters
from torch.utils.data import DataLoader, TensorDataset

from ..core.codec import decode, encode

NUM_FEATURES = 10
NUM_CLASSES = 2
HIDDEN_SIZE = 16
TRAIN_SAMPLES = 2000
TEST_SAMPLES = 500
DATA_SEED = 1234
MODEL_SEED = 0
BATCH_SIZE = 16
LEARNING_RATE = 0.1


class TinyMLP(nn.Module):
    """Two-layer perceptron used by the reference units."""

    def __init__(
        self,
        num_features: int = NUM_FEATURES,
        hidden_size: int = HIDDEN_SIZE,
        num_classes: int = NUM_CLASSES,
    ):
        super().__init__()
        self.net = nn.Sequential(
            nn.Linear(num_features, hidden_size),
            nn.ReLU(),
            nn.Linear(hidden_size, num_classes),
        )

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return self.net(x)

    def get_num_parameters(self) -> int:
        """Return total number of trainable parameters."""
        return sum(p.numel() for p in self.parameters() if p.requires_grad)


def parse_unit_args(description: str, with_iteration: bool = False) -> argparse.Namespace:
    """Parse ``<vector_length> <network_size> <node_id> [<iteration> <total>]``."""
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument("vector_length", type=int)
    parser.add_argument("network_size", type=int)
    parser.add_argument("node_id", type=int)
    if with_iteration:
        parser.add_argument("iteration", type=int)
        parser.add_argument("total_iterations", type=int)
    args = parser.parse_args()
    if not 0 <= args.node_id < args.network_size:
        parser.error(f"node_id {args.node_id} outside network of {args.network_size}")
    return args


def make_dataset(num_samples: int, seed: int) -> Tuple[torch.Tensor, torch.Tensor]:
    """Gaussian blobs, one center per class."""
    rng = np.random.default_rng(DATA_SEED)
    centers = rng.normal(0.0, 1.5, size=(NUM_CLASSES, NUM_FEATURES))
    sample_rng = np.random.default_rng(seed)
    labels = sample_rng.integers(0, NUM_CLASSES, size=num_samples)
    features = centers[labels] + sample_rng.normal(0.0, 1.0, size=(num_samples, NUM_FEATURES))
    return (
        torch.as_tensor(features, dtype=torch.float32),
        torch.as_tensor(labels, dtype=torch.long),
    )


def get_trainloader(node_id: int, network_size: int) -> DataLoader:
    """IID shard ``node_id`` of the training set."""
    X, y = make_dataset(TRAIN_SAMPLES, DATA_SEED + 1)
    shard = slice(node_id, None, network_size)
    dataset = TensorDataset(X[shard], y[shard])
    generator = torch.Generator().manual_seed(DATA_SEED + node_id)
    return DataLoader(dataset, batch_size=BATCH_SIZE, shuffle=True, generator=generator)


def get_testloader() -> DataLoader:
    X, y = make_dataset(TEST_SAMPLES, DATA_SEED + 2)
    return DataLoader(TensorDataset(X, y), batch_size=256)


def load_model(vector_length: int) -> TinyMLP:
    """Build the model and load weights from stdin."""
    model = TinyMLP()
    expected = model.get_num_parameters()
    if vector_length != expected:
        sys.exit(f"Vector length {vector_length} does not match model size {expected}")
    weights = decode(sys.stdin.buffer, expected_length=expected)
    vector_to_parameters(torch.from_numpy(weights.copy()), model.parameters())
    return model


def write_model(model: nn.Module) -> None:
    """Write the flattened parameters to stdout."""
    flat = parameters_to_vector(model.parameters()).detach().cpu().numpy()
    sys.stdout.buffer.write(encode(flat))
    sys.stdout.buffer.flush()
