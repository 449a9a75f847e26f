# src/decen_avg/protocols/base.py
from abc import ABC, abstractmethod


class SharingProtocol(ABC):
    """Decides what a node does during its sharing phase.

    One instance is bound to exactly one node; any counters it keeps are
    private to that node. Implementations return the node to training by
    calling ``node.set_train()``; otherwise the node stays in the sharing
    phase and the protocol is invoked again next cycle.
    """

    @abstractmethod
    def share_weights(self, node) -> None:
        """Run one sharing step for ``node``."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
