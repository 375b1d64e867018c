"""Development environment tooling: agents, HTTP endpoint management, configuration, dev containers and environments."""

__version__ = "0.1.0"

__all__ = [
    "advanced_agent",
    "agents",
    "api",
    "devcontainer",
    "environment",
    "parser",
    "settings",
]