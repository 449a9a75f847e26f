"""Exception hierarchy for the averaging simulator."""


class DecenAvgError(Exception):
    """Base class for all simulator errors."""


class WireFormatError(DecenAvgError):
    """A weight vector violated the binary float protocol."""


class TruncatedFrameError(WireFormatError):
    """The stream ended in the middle of a 4-byte float."""

    def __init__(self, leftover: int, decoded: int):
        self.leftover = leftover
        self.decoded = decoded
        super().__init__(
            f"Stream ended with {leftover} dangling byte(s) "
            f"after {decoded} complete float(s)"
        )


class WeightLengthMismatchError(WireFormatError):
    """Two weight vectors that must be combined differ in length."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Expected weight vector of length {expected}, got {actual}"
        )


class InvalidNeighborIndexError(DecenAvgError, IndexError):
    """A neighbor index outside the node's neighbor list was requested."""

    def __init__(self, node_id: int, index: int, degree: int):
        self.node_id = node_id
        self.index = index
        self.degree = degree
        super().__init__(
            f"Node {node_id} has {degree} neighbor(s), "
            f"index {index} is out of range"
        )


class UnitError(DecenAvgError):
    """An external computation unit failed."""


class UnitExitError(UnitError):
    """The unit terminated with a non-zero exit status."""

    def __init__(self, command, returncode: int):
        self.command = command
        self.returncode = returncode
        super().__init__(f"{' '.join(command)} exited with status {returncode}")


class UnitTimeoutError(UnitError):
    """The unit did not finish within the configured timeout."""

    def __init__(self, command, timeout: float):
        self.command = command
        self.timeout = timeout
        super().__init__(f"{' '.join(command)} timed out after {timeout:g}s")


class UnitOutputError(UnitError):
    """The unit produced output that could not be parsed."""


class NodeInitializationError(DecenAvgError):
    """A node could not obtain its initial weight vector."""
