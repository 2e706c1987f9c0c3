"""
meshflood Configuration Management

Handles loading and validation of configuration from TOML file.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field

import toml


# Default configuration path
DEFAULT_CONFIG_PATH = Path("meshflood.toml")

# Supported generated topologies
TOPOLOGIES = ("line", "ring", "grid", "full")


@dataclass
class MeshConfig:
    """Protocol parameters shared by every node."""
    max_ttl: int = 10
    relay_probability: float = 0.8
    beacon_interval: float = 30.0  # logical seconds
    route_timeout: float = 60.0  # logical seconds
    cache_capacity: int = 1000

    # Heartbeat cadence (base period +/- jitter)
    heartbeat_interval: float = 10.0
    heartbeat_jitter: float = 2.0
    heartbeat_start_min: float = 1.0
    heartbeat_start_max: float = 5.0

    # Data traffic piggybacked on heartbeats
    data_probability: float = 0.3
    data_size_min: int = 50
    data_size_max: int = 200
    data_deadline: float = 30.0

    # Medium-access latency added on every dispatch
    tx_delay_min: float = 0.001
    tx_delay_max: float = 0.01

    def validate(self) -> None:
        """
        Validate protocol parameters.

        Raises:
            ValueError: If a parameter is out of range
        """
        if self.max_ttl < 1 or self.max_ttl > 255:
            raise ValueError(f"Invalid max TTL: {self.max_ttl}")

        if not 0.0 <= self.relay_probability <= 1.0:
            raise ValueError(f"Invalid relay probability: {self.relay_probability}")

        if self.beacon_interval <= 0:
            raise ValueError(f"Invalid beacon interval: {self.beacon_interval}")

        if self.route_timeout <= 0:
            raise ValueError(f"Invalid route timeout: {self.route_timeout}")

        if self.cache_capacity < 1:
            raise ValueError(f"Invalid cache capacity: {self.cache_capacity}")

        if self.heartbeat_interval - self.heartbeat_jitter <= 0:
            raise ValueError(
                f"Invalid heartbeat cadence: {self.heartbeat_interval} +/- {self.heartbeat_jitter}"
            )

        if self.heartbeat_start_min < 0 or self.heartbeat_start_max < self.heartbeat_start_min:
            raise ValueError(
                f"Invalid heartbeat start window: "
                f"[{self.heartbeat_start_min}, {self.heartbeat_start_max}]"
            )

        if not 0.0 <= self.data_probability <= 1.0:
            raise ValueError(f"Invalid data probability: {self.data_probability}")

        if self.data_size_min < 0 or self.data_size_max < self.data_size_min:
            raise ValueError(
                f"Invalid data size range: [{self.data_size_min}, {self.data_size_max}]"
            )

        if self.tx_delay_min < 0 or self.tx_delay_max < self.tx_delay_min:
            raise ValueError(
                f"Invalid transmission delay range: [{self.tx_delay_min}, {self.tx_delay_max}]"
            )


@dataclass
class MediumConfig:
    """Virtual medium configuration."""
    latency: float = 0.002  # logical seconds per hop
    loss_probability: float = 0.0
    corruption_probability: float = 0.0


@dataclass
class SimulationConfig:
    """Simulation run configuration."""
    duration: float = 300.0
    seed: Optional[int] = None
    node_count: int = 5
    topology: str = "line"

    # Explicit neighbour table, overrides the generated topology
    neighbors: Dict[str, List[str]] = field(default_factory=dict)


@dataclass
class Config:
    """
    Complete meshflood configuration.
    """
    mesh: MeshConfig = field(default_factory=MeshConfig)
    medium: MediumConfig = field(default_factory=MediumConfig)
    simulation: SimulationConfig = field(default_factory=SimulationConfig)

    config_path: Optional[Path] = None

    # Logging
    log_level: str = "INFO"
    log_file: Optional[Path] = None

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> 'Config':
        """
        Load configuration from file.

        A missing file yields the defaults.

        Args:
            config_path: Path to config file (default: ./meshflood.toml)

        Returns:
            Loaded configuration

        Raises:
            ValueError: If the file cannot be parsed or holds wrong-typed values
        """
        path = config_path or DEFAULT_CONFIG_PATH
        config = cls()
        config.config_path = path

        if not path.exists():
            return config

        try:
            data = toml.load(path)
        except toml.TomlDecodeError as e:
            raise ValueError(f"Cannot parse {path}: {e}") from e

        config.apply_dict(data)
        return config

    def apply_dict(self, data: Dict[str, Any]) -> None:
        """Apply dictionary data to config."""
        try:
            self._apply_dict(data)
        except (AttributeError, TypeError, ValueError) as e:
            raise ValueError(f"Invalid configuration value: {e}") from e

    def _apply_dict(self, data: Dict[str, Any]) -> None:
        # Top-level settings
        if "log_level" in data:
            self.log_level = str(data["log_level"]).upper()
        if "log_file" in data:
            self.log_file = Path(data["log_file"])

        # Mesh config
        if "mesh" in data:
            m = data["mesh"]
            for name in ("max_ttl", "cache_capacity", "data_size_min", "data_size_max"):
                if name in m:
                    setattr(self.mesh, name, int(m[name]))
            for name in (
                "relay_probability", "beacon_interval", "route_timeout",
                "heartbeat_interval", "heartbeat_jitter",
                "heartbeat_start_min", "heartbeat_start_max",
                "data_probability", "data_deadline",
                "tx_delay_min", "tx_delay_max",
            ):
                if name in m:
                    setattr(self.mesh, name, float(m[name]))

        # Medium config
        if "medium" in data:
            md = data["medium"]
            if "latency" in md:
                self.medium.latency = float(md["latency"])
            if "loss_probability" in md:
                self.medium.loss_probability = float(md["loss_probability"])
            if "corruption_probability" in md:
                self.medium.corruption_probability = float(md["corruption_probability"])

        # Simulation config
        if "simulation" in data:
            s = data["simulation"]
            if "duration" in s:
                self.simulation.duration = float(s["duration"])
            if "seed" in s:
                self.simulation.seed = int(s["seed"])
            if "node_count" in s:
                self.simulation.node_count = int(s["node_count"])
            if "topology" in s:
                self.simulation.topology = str(s["topology"]).lower()

        # Explicit topology
        if "topology" in data:
            if not isinstance(data["topology"], dict):
                raise ValueError("[topology] must be a table of neighbour lists")
            self.simulation.neighbors = {
                str(node): [str(n) for n in neighbors]
                for node, neighbors in data["topology"].items()
            }

    def validate(self) -> None:
        """
        Validate configuration.

        Raises:
            ValueError: If configuration is invalid
        """
        self.mesh.validate()

        # Validate medium
        if self.medium.latency < 0:
            raise ValueError(f"Invalid medium latency: {self.medium.latency}")
        if not 0.0 <= self.medium.loss_probability <= 1.0:
            raise ValueError(f"Invalid loss probability: {self.medium.loss_probability}")
        if not 0.0 <= self.medium.corruption_probability <= 1.0:
            raise ValueError(
                f"Invalid corruption probability: {self.medium.corruption_probability}"
            )

        # Validate simulation
        if self.simulation.duration <= 0:
            raise ValueError(f"Invalid duration: {self.simulation.duration}")

        if not self.simulation.neighbors:
            if self.simulation.node_count < 1:
                raise ValueError(f"Invalid node count: {self.simulation.node_count}")
            if self.simulation.topology not in TOPOLOGIES:
                raise ValueError(f"Unknown topology: {self.simulation.topology}")
        else:
            known = set(self.simulation.neighbors)
            for node, neighbors in self.simulation.neighbors.items():
                for neighbor in neighbors:
                    if neighbor not in known:
                        raise ValueError(f"Node {node} lists unknown neighbor {neighbor}")
                    if neighbor == node:
                        raise ValueError(f"Node {node} lists itself as neighbor")
