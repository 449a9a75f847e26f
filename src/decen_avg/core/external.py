"""Blocking invocation of the external initializer, trainer and evaluator.

Each unit is a separate process. Positional arguments are
``<vector_length> <network_size> <node_id>`` followed by any extra
arguments (the trainer also gets ``<iteration> <total_iterations>``).
Weight vectors travel over stdin/stdout using the codec in ``codec``;
the evaluator prints ``<accuracy> <loss>`` as text. stderr is inherited
so unit diagnostics show up on the simulator's terminal.
"""

import logging
import subprocess
import threading
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .codec import decode, encode
from .errors import (
    UnitError,
    UnitExitError,
    UnitOutputError,
    UnitTimeoutError,
    WireFormatError,
)

logger = logging.getLogger(__name__)


@dataclass
class UnitResult:
    """What a finished unit process left behind."""
    stdout: bytes = b""
    weights: Optional[np.ndarray] = None


@dataclass
class ExternalUnits:
    """Command prefixes for the three external units.

    Attributes:
        init_command: Prefix for the initializer (e.g. ``["python3", "init.py"]``)
        train_command: Prefix for the trainer
        test_command: Prefix for the evaluator
        timeout: Seconds to wait for any unit, ``None`` to wait forever
    """
    init_command: List[str] = field(default_factory=list)
    train_command: List[str] = field(default_factory=list)
    test_command: List[str] = field(default_factory=list)
    timeout: Optional[float] = None

    @classmethod
    def from_config(cls, config) -> "ExternalUnits":
        """Build from a ``UnitsConfig``."""
        return cls(
            init_command=list(config.init_command),
            train_command=list(config.train_command),
            test_command=list(config.test_command),
            timeout=config.timeout,
        )

    # ========== Units ==========

    def run_initializer(self, node_id: int, network_size: int) -> np.ndarray:
        """Fetch the initial weight vector for ``node_id``.

        The vector length is not known yet, so ``0`` is passed in its place.
        """
        args = self._build_args(self.init_command, 0, network_size, node_id)
        result = self._run(args, payload=None, decode_weights=True)
        return result.weights

    def run_trainer(
        self,
        weights: np.ndarray,
        node_id: int,
        network_size: int,
        iteration: int,
        total_iterations: int,
    ) -> np.ndarray:
        """Run one training iteration and return the updated vector."""
        args = self._build_args(
            self.train_command,
            len(weights),
            network_size,
            node_id,
            str(iteration),
            str(total_iterations),
        )
        result = self._run(args, payload=encode(weights), decode_weights=True)
        return result.weights

    def run_evaluator(
        self,
        weights: np.ndarray,
        node_id: int,
        network_size: int,
    ) -> Tuple[float, float]:
        """Evaluate ``weights`` and return ``(accuracy, loss)``."""
        args = self._build_args(self.test_command, len(weights), network_size, node_id)
        result = self._run(args, payload=encode(weights), decode_weights=False)
        return parse_metrics(result.stdout)

    # ========== Process handling ==========

    @staticmethod
    def _build_args(
        prefix: Sequence[str],
        vector_length: int,
        network_size: int,
        node_id: int,
        *extra: str,
    ) -> List[str]:
        if not prefix:
            raise UnitError("No command configured for external unit")
        return [
            *prefix,
            str(vector_length),
            str(network_size),
            str(node_id),
            *extra,
        ]

    def _run(
        self,
        args: List[str],
        payload: Optional[bytes],
        decode_weights: bool,
    ) -> UnitResult:
        logger.debug(f"Running unit: {' '.join(args)}")
        try:
            proc = subprocess.Popen(
                args,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=None,
            )
        except OSError as e:
            raise UnitError(f"Failed to start {args[0]}: {e}") from e

        timed_out = threading.Event()
        timer = None
        if self.timeout is not None:
            def _kill() -> None:
                timed_out.set()
                proc.kill()

            timer = threading.Timer(self.timeout, _kill)
            timer.daemon = True
            timer.start()

        # The unit may start writing before it has read all of stdin.
        writer = threading.Thread(
            target=_write_payload,
            args=(proc.stdin, payload),
            daemon=True,
        )
        writer.start()

        result = UnitResult()
        wire_error = None
        try:
            if decode_weights:
                result.weights = decode(proc.stdout)
            else:
                result.stdout = proc.stdout.read()
        except WireFormatError as e:
            wire_error = e
        finally:
            proc.stdout.close()
            returncode = proc.wait()
            writer.join()
            if timer is not None:
                timer.cancel()

        # A killed unit leaves a cut-off stream; report the timeout, not the cut.
        if timed_out.is_set():
            raise UnitTimeoutError(args, self.timeout)
        if returncode != 0:
            raise UnitExitError(args, returncode)
        if wire_error is not None:
            raise UnitOutputError(f"{args[0]}: {wire_error}") from wire_error
        return result


def _write_payload(stdin, payload: Optional[bytes]) -> None:
    try:
        if payload:
            stdin.write(payload)
            stdin.flush()
    except BrokenPipeError:
        # Unit exited without reading its input.
        pass
    finally:
        try:
            stdin.close()
        except BrokenPipeError:
            pass


def parse_metrics(output: bytes) -> Tuple[float, float]:
    """Parse ``<accuracy> <loss>`` from evaluator output.

    Raises:
        UnitOutputError: Fewer than two values or non-numeric text
    """
    tokens = output.decode("utf-8", errors="replace").split()
    if len(tokens) < 2:
        raise UnitOutputError(
            f"Expected accuracy and loss, got {len(tokens)} value(s): {tokens!r}"
        )
    try:
        return float(tokens[0]), float(tokens[1])
    except ValueError as e:
        raise UnitOutputError(f"Malformed evaluator output: {tokens[:2]!r}") from e
