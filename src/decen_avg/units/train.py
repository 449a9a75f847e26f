# src/decen_avg/units/train.py
"""Trainer unit: one local epoch on this node's shard."""

import math

import torch

from .common import LEARNING_RATE, get_trainloader, load_model, parse_unit_args, write_model


def cosine_learning_rate(iteration: int, total_iterations: int) -> float:
    """Cosine-annealed learning rate for ``iteration`` of ``total_iterations``."""
    progress = min(iteration, total_iterations) / max(1, total_iterations)
    return LEARNING_RATE * 0.5 * (1.0 + math.cos(math.pi * progress))


def train_epoch(model, dataloader, learning_rate: float) -> float:
    """Run one SGD epoch and return the average loss."""
    criterion = torch.nn.CrossEntropyLoss()
    optimizer = torch.optim.SGD(model.parameters(), lr=learning_rate)
    model.train()

    total_loss = 0.0
    for inputs, targets in dataloader:
        optimizer.zero_grad()
        loss = criterion(model(inputs), targets)
        loss.backward()
        optimizer.step()
        total_loss += loss.item()

    return total_loss / max(1, len(dataloader))


def main() -> None:
    args = parse_unit_args("Train one iteration", with_iteration=True)
    model = load_model(args.vector_length)
    torch.manual_seed(args.node_id * 100003 + args.iteration)

    lr = cosine_learning_rate(args.iteration, args.total_iterations)
    train_epoch(model, get_trainloader(args.node_id, args.network_size), lr)
    write_model(model)


if __name__ == "__main__":
    main()
