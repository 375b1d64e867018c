"""Development environment definitions and their on-disk management."""

from __future__ import annotations

import json
import os
import shutil
import subprocess
import sys
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, TypeVar

CONFIG_FILE_NAME = "dem_config.json"
_OTHER = "Other"


class ProgrammingLanguage(Enum):
    """Known languages; any other language is given as a plain string."""

    RUST = "Rust"
    PYTHON = "Python"
    JAVASCRIPT = "JavaScript"
    TYPESCRIPT = "TypeScript"
    GO = "Go"
    JAVA = "Java"


class PackageManager(Enum):
    """Known package managers; any other is given as a plain string."""

    CARGO = "Cargo"
    PIP = "Pip"
    NPM = "Npm"
    YARN = "Yarn"
    MAVEN = "Maven"
    GRADLE = "Gradle"


class IDEType(Enum):
    """Known IDEs; any other is given as a plain string."""

    VSCODE = "VSCode"
    JETBRAINS_SUITE = "JetBrainsSuite"
    INTELLIJ = "IntelliJ"
    WEBSTORM = "WebStorm"
    PYCHARM = "PyCharm"


Language = ProgrammingLanguage | str
Manager = PackageManager | str
IDE = IDEType | str

_E = TypeVar("_E", bound=Enum)


def _encode_variant(value: Enum | str) -> Any:
    if isinstance(value, Enum):
        return value.value
    return {_OTHER: value}


def _decode_variant(enum_cls: type[_E], raw: Any) -> _E | str:
    if isinstance(raw, str):
        try:
            return enum_cls(raw)
        except ValueError:
            raise ValueError(f"unknown {enum_cls.__name__} variant: {raw!r}") from None
    if isinstance(raw, Mapping) and set(raw) == {_OTHER} and isinstance(raw[_OTHER], str):
        return raw[_OTHER]
    raise ValueError(f"invalid {enum_cls.__name__} value: {raw!r}")


def _require_mapping(raw: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(raw, Mapping):
        raise ValueError(f"{what} must be an object")
    return raw


def _optional_str(raw: Mapping[str, Any], key: str) -> str | None:
    value = raw.get(key)
    if value is not None and not isinstance(value, str):
        raise ValueError(f"'{key}' must be a string")
    return value


def _required_str(raw: Mapping[str, Any], key: str) -> str:
    value = raw.get(key)
    if not isinstance(value, str):
        raise ValueError(f"'{key}' must be a string")
    return value


def _optional_uint(raw: Mapping[str, Any], key: str, maximum: int | None = None) -> int | None:
    value = raw.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"'{key}' must be a non-negative integer")
    if maximum is not None and value > maximum:
        raise ValueError(f"'{key}' must be at most {maximum}")
    return value


def _str_dict(raw: Mapping[str, Any], key: str) -> dict[str, str]:
    value = raw.get(key, {})
    if not isinstance(value, Mapping) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in value.items()
    ):
        raise ValueError(f"'{key}' must map strings to strings")
    return dict(value)


def _list(raw: Mapping[str, Any], key: str) -> list[Any]:
    value = raw.get(key, [])
    if not isinstance(value, list):
        raise ValueError(f"'{key}' must be a list")
    return value


@dataclass
class DependencyConfig:
    manager: Manager
    name: str
    version: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "manager": _encode_variant(self.manager),
            "name": self.name,
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: Any) -> DependencyConfig:
        data = _require_mapping(data, "dependency")
        return cls(
            _decode_variant(PackageManager, data.get("manager")),
            _required_str(data, "name"),
            _optional_str(data, "version"),
        )


@dataclass
class IDEConfig:
    ide: IDE
    settings_path: Path | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "ide": _encode_variant(self.ide),
            "settings_path": None if self.settings_path is None else str(self.settings_path),
        }

    @classmethod
    def from_dict(cls, data: Any) -> IDEConfig:
        data = _require_mapping(data, "IDE configuration")
        path = _optional_str(data, "settings_path")
        return cls(_decode_variant(IDEType, data.get("ide")), None if path is None else Path(path))


@dataclass
class GitConfig:
    repo_url: str
    branch: str | None = None
    commit: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"repo_url": self.repo_url, "branch": self.branch, "commit": self.commit}

    @classmethod
    def from_dict(cls, data: Any) -> GitConfig:
        data = _require_mapping(data, "git configuration")
        return cls(
            _required_str(data, "repo_url"),
            _optional_str(data, "branch"),
            _optional_str(data, "commit"),
        )


@dataclass
class ResourceConfig:
    """CPU cores, memory in MB and disk in GB; None means unspecified."""

    cpu_cores: int | None = None
    memory_mb: int | None = None
    disk_gb: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"cpu_cores": self.cpu_cores, "memory_mb": self.memory_mb, "disk_gb": self.disk_gb}

    @classmethod
    def from_dict(cls, data: Any) -> ResourceConfig:
        data = _require_mapping(data, "resource configuration")
        return cls(
            _optional_uint(data, "cpu_cores", 255),
            _optional_uint(data, "memory_mb"),
            _optional_uint(data, "disk_gb"),
        )


@dataclass
class VPNConfig:
    provider: str
    connection_details: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"provider": self.provider, "connection_details": dict(self.connection_details)}

    @classmethod
    def from_dict(cls, data: Any) -> VPNConfig:
        data = _require_mapping(data, "VPN configuration")
        return cls(_required_str(data, "provider"), _str_dict(data, "connection_details"))


@dataclass
class NetworkConfig:
    exposed_ports: list[int] = field(default_factory=list)
    vpn: VPNConfig | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "exposed_ports": list(self.exposed_ports),
            "vpn": None if self.vpn is None else self.vpn.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Any) -> NetworkConfig:
        data = _require_mapping(data, "network configuration")
        ports = _list(data, "exposed_ports")
        if not all(
            isinstance(p, int) and not isinstance(p, bool) and 0 <= p <= 65535 for p in ports
        ):
            raise ValueError("'exposed_ports' must be a list of port numbers")
        vpn = data.get("vpn")
        return cls(list(ports), None if vpn is None else VPNConfig.from_dict(vpn))


@dataclass
class DevEnvironmentConfig:
    name: str
    project_root: Path
    languages: list[Language] = field(default_factory=list)
    dependencies: list[DependencyConfig] = field(default_factory=list)
    env_vars: dict[str, str] = field(default_factory=dict)
    ide_configs: list[IDEConfig] = field(default_factory=list)
    git_config: GitConfig | None = None
    resources: ResourceConfig = field(default_factory=ResourceConfig)
    network: NetworkConfig = field(default_factory=NetworkConfig)
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    def to_dict(self) -> dict[str, Any]:
        """JSON-compatible form, as stored in the environment's config file."""
        return {
            "id": str(self.id),
            "name": self.name,
            "project_root": str(self.project_root),
            "languages": [_encode_variant(lang) for lang in self.languages],
            "dependencies": [dep.to_dict() for dep in self.dependencies],
            "env_vars": dict(self.env_vars),
            "ide_configs": [ide.to_dict() for ide in self.ide_configs],
            "git_config": None if self.git_config is None else self.git_config.to_dict(),
            "resources": self.resources.to_dict(),
            "network": self.network.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Any) -> DevEnvironmentConfig:
        """Build a configuration from its JSON form; raises ValueError when malformed."""
        data = _require_mapping(data, "environment configuration")
        try:
            env_id = uuid.UUID(_required_str(data, "id"))
        except ValueError as error:
            raise ValueError(f"invalid environment id: {error}") from error
        git = data.get("git_config")
        return cls(
            id=env_id,
            name=_required_str(data, "name"),
            project_root=Path(_required_str(data, "project_root")),
            languages=[
                _decode_variant(ProgrammingLanguage, lang) for lang in _list(data, "languages")
            ],
            dependencies=[DependencyConfig.from_dict(d) for d in _list(data, "dependencies")],
            env_vars=_str_dict(data, "env_vars"),
            ide_configs=[IDEConfig.from_dict(i) for i in _list(data, "ide_configs")],
            git_config=None if git is None else GitConfig.from_dict(git),
            resources=ResourceConfig.from_dict(data.get("resources", {})),
            network=NetworkConfig.from_dict(data.get("network", {})),
        )


_LANGUAGE_DIRS = {
    ProgrammingLanguage.RUST: "src",
    ProgrammingLanguage.PYTHON: "python",
    ProgrammingLanguage.JAVASCRIPT: "js",
    ProgrammingLanguage.TYPESCRIPT: "js",
    ProgrammingLanguage.GO: "go",
    ProgrammingLanguage.JAVA: "java",
}

_VSCODE_SETTINGS = {"rust-analyzer.linkedProjects": ["./Cargo.toml"]}


def _language_dir(language: Language) -> str:
    if isinstance(language, ProgrammingLanguage):
        return _LANGUAGE_DIRS[language]
    return language.lower()


class EnvironmentManager:
    """Creates, lists and deletes environments below a base directory."""

    def __init__(self, base_dir: str | os.PathLike[str]) -> None:
        self.base_dir = Path(base_dir)

    def create_environment(self, config: DevEnvironmentConfig) -> None:
        """Write the environment's config, directories, dependencies and IDE settings."""
        env_dir = self.base_dir / config.name
        env_dir.mkdir(parents=True, exist_ok=True)
        (env_dir / CONFIG_FILE_NAME).write_text(
            json.dumps(config.to_dict(), indent=2), encoding="utf-8"
        )
        self._setup_project_structure(env_dir, config)
        self._initialize_dependencies(config)
        self._configure_ide(config)

    @staticmethod
    def _setup_project_structure(env_dir: Path, config: DevEnvironmentConfig) -> None:
        for language in config.languages:
            (env_dir / _language_dir(language)).mkdir(parents=True, exist_ok=True)

    @staticmethod
    def _initialize_dependencies(config: DevEnvironmentConfig) -> None:
        for dependency in config.dependencies:
            if dependency.manager is PackageManager.CARGO:
                command = ["cargo", "init"]
            elif dependency.manager is PackageManager.PIP:
                command = [sys.executable, "-m", "venv", ".venv"]
            else:
                continue
            # Exit status is not checked; only a failure to start the tool is an error.
            subprocess.run(command, cwd=config.project_root, check=False)

    @staticmethod
    def _configure_ide(config: DevEnvironmentConfig) -> None:
        for ide_config in config.ide_configs:
            if ide_config.ide is IDEType.VSCODE:
                vscode_dir = Path(config.project_root) / ".vscode"
                vscode_dir.mkdir(parents=True, exist_ok=True)
                (vscode_dir / "settings.json").write_text(
                    json.dumps(_VSCODE_SETTINGS, indent=2), encoding="utf-8"
                )

    def list_environments(self) -> list[DevEnvironmentConfig]:
        """Every environment under the base directory that has a config file."""
        environments = []
        for entry in sorted(self.base_dir.iterdir()):
            config_path = entry / CONFIG_FILE_NAME
            if config_path.exists():
                data = json.loads(config_path.read_text(encoding="utf-8"))
                environments.append(DevEnvironmentConfig.from_dict(data))
        return environments

    def delete_environment(self, env_name: str) -> None:
        """Remove an environment's directory; a missing one is not an error."""
        env_dir = self.base_dir / env_name
        if env_dir.exists():
            shutil.rmtree(env_dir)