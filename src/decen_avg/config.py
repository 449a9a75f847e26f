# src/decen_avg/config.py
import sys
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import List, Optional
import yaml


def _unit_command(name: str) -> List[str]:
    return [sys.executable, "-m", f"decen_avg.units.{name}"]


@dataclass
class TopologyConfig:
    type: str = "ring"
    num_nodes: int = 8
    degree: int = 2
    seed: int = 42

@dataclass
class ProtocolConfig:
    type: str = "allreduce"
    share_frequency: int = 1
    aggregator: str = "mean"

@dataclass
class NetworkConfig:
    latency: str = "zero"
    latency_low: float = 0.0
    latency_high: float = 0.0
    seed: Optional[int] = None

@dataclass
class UnitsConfig:
    init_command: List[str] = field(default_factory=lambda: _unit_command("init"))
    train_command: List[str] = field(default_factory=lambda: _unit_command("train"))
    test_command: List[str] = field(default_factory=lambda: _unit_command("test"))
    timeout: Optional[float] = None

@dataclass
class SimulationConfig:
    name: str = "default"
    iterations: int = 20
    cycles: int = 40
    log_interval: int = 5
    topology: TopologyConfig = field(default_factory=TopologyConfig)
    topology_file: Optional[Path] = None
    protocol: ProtocolConfig = field(default_factory=ProtocolConfig)
    network: NetworkConfig = field(default_factory=NetworkConfig)
    units: UnitsConfig = field(default_factory=UnitsConfig)
    seed: int = 42
    results_dir: Path = Path("./results")

    @classmethod
    def from_yaml(cls, path: Path) -> "SimulationConfig":
        with open(path) as f:
            data = yaml.safe_load(f)
        if data is None:
            data = {}

        topology_data = data.get("topology", {})
        protocol_data = data.get("protocol", {})
        network_data = data.get("network", {})
        units_data = data.get("units", {})

        if isinstance(topology_data, dict):
            # Allow users to nest topology_file inside topology, but keep it at root
            topo_file = topology_data.pop("topology_file", None)
            if topo_file and "topology_file" not in data:
                data["topology_file"] = topo_file
            data["topology"] = TopologyConfig(**topology_data)
        if isinstance(protocol_data, dict):
            data["protocol"] = ProtocolConfig(**protocol_data)
        if isinstance(network_data, dict):
            data["network"] = NetworkConfig(**network_data)
        if isinstance(units_data, dict):
            data["units"] = UnitsConfig(**units_data)

        config = cls(**data)
        config._normalize_paths()
        config.validate()
        return config

    def _normalize_paths(self) -> None:
        self.results_dir = Path(self.results_dir)
        if self.topology_file:
            self.topology_file = Path(self.topology_file)

    def validate(self) -> None:
        """Reject settings the simulation cannot run with."""
        if self.topology.num_nodes < 1:
            raise ValueError(f"num_nodes must be positive, got {self.topology.num_nodes}")
        if self.topology.type == "erdos_renyi" and self.topology.num_nodes < 2:
            raise ValueError(
                f"erdos_renyi topology needs at least 2 nodes, got {self.topology.num_nodes}"
            )
        if self.iterations < 1:
            raise ValueError(f"iterations must be positive, got {self.iterations}")
        if self.cycles < 0:
            raise ValueError(f"cycles must be non-negative, got {self.cycles}")
        frequency = self.protocol.share_frequency
        if isinstance(frequency, bool) or not isinstance(frequency, int):
            raise ValueError(
                f"share_frequency must be an integer, got {frequency!r}"
            )
        if frequency < 1:
            raise ValueError(f"share_frequency must be >= 1, got {frequency}")
        if self.units.timeout is not None and self.units.timeout <= 0:
            raise ValueError(f"units.timeout must be positive, got {self.units.timeout}")

    def save(self, path: Path) -> None:
        data = asdict(self)
        data["results_dir"] = str(self.results_dir)
        data["topology_file"] = str(self.topology_file) if self.topology_file else None
        with open(path, "w") as f:
            yaml.safe_dump(data, f)
