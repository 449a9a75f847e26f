# src/decen_avg/units/init.py
"""Initializer unit: write freshly initialized weights to stdout."""

import torch

from .common import MODEL_SEED, TinyMLP, parse_unit_args, write_model


def main() -> None:
    parse_unit_args("Initialize model weights")
    # Same seed everywhere: all nodes start from one model.
    torch.manual_seed(MODEL_SEED)
    write_model(TinyMLP())


if __name__ == "__main__":
    main()
