# src/decen_avg/units/test.py
"""Evaluator unit: print ``<accuracy> <loss>`` for the given weights."""

from typing import Tuple

import torch

from .common import get_testloader, load_model, parse_unit_args


@torch.no_grad()
def evaluate(model, dataloader) -> Tuple[float, float]:
    """Return ``(accuracy, average_loss)``, accuracy in percent."""
    criterion = torch.nn.CrossEntropyLoss()
    model.eval()

    total_loss = 0.0
    correct = 0
    total = 0
    for inputs, targets in dataloader:
        outputs = model(inputs)
        total_loss += criterion(outputs, targets).item() * targets.size(0)
        _, predicted = outputs.max(1)
        total += targets.size(0)
        correct += predicted.eq(targets).sum().item()

    avg_loss = total_loss / total if total > 0 else 0.0
    accuracy = 100.0 * correct / total if total > 0 else 0.0
    return accuracy, avg_loss


def main() -> None:
    args = parse_unit_args("Evaluate model weights")
    model = load_model(args.vector_length)
    accuracy, loss = evaluate(model, get_testloader())
    print(f"{accuracy:.4f} {loss:.6f}")


if __name__ == "__main__":
    main()
