"""Top-level tool settings."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class PortForwardingConfig:
    enabled: bool = True
    host: str = "127.0.0.1"
    start_port: int = 8081
    end_port: int = 65535


@dataclass
class ForgeConfig:
    base_directory: str | None = None
    port_forwarding: PortForwardingConfig = field(default_factory=PortForwardingConfig)
    monitoring_enabled: bool = True
    database_url: str | None = None
    container_runtime: str | None = None

    @classmethod
    def load(cls) -> ForgeConfig:
        """Load the settings; currently always the defaults."""
        return cls()

    def resolved_base_directory(self) -> Path:
        """The configured base directory, or ~/.forge when none is set."""
        if self.base_directory is not None:
            return Path(self.base_directory)
        return Path.home() / ".forge"