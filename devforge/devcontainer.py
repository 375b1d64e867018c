"""Dev container configuration files."""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from devforge.parser import ConfigError, ConfigFormat, ConfigParserOptions, parse_str

DEFAULT_NAME = "dev-container"
_LENIENT_SUFFIXES = frozenset({".jsonc", ".json5"})


def _optional_str(data: Mapping[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"'{key}' must be a string")
    return value


def _mapping(data: Mapping[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigError(f"'{key}' must be an object")
    return dict(value)


def _require_mapping(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ConfigError(f"{what} must be an object")
    return data


@dataclass
class BuildConfig:
    context: str | None = None
    dockerfile: str | None = None
    args: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> BuildConfig:
        data = _require_mapping(data, "'build'")
        args = _mapping(data, "args")
        if not all(isinstance(v, str) for v in args.values()):
            raise ConfigError("'args' values must be strings")
        return cls(_optional_str(data, "context"), _optional_str(data, "dockerfile"), args)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.context is not None:
            out["context"] = self.context
        if self.dockerfile is not None:
            out["dockerfile"] = self.dockerfile
        out["args"] = dict(self.args)
        return out


@dataclass
class VSCodeConfig:
    extensions: list[str] = field(default_factory=list)
    settings: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> VSCodeConfig:
        data = _require_mapping(data, "'vscode'")
        extensions = data.get("extensions") or []
        if not isinstance(extensions, list) or not all(
            isinstance(e, str) for e in extensions
        ):
            raise ConfigError("'extensions' must be a list of strings")
        return cls(list(extensions), _mapping(data, "settings"))

    def to_dict(self) -> dict[str, Any]:
        return {"extensions": list(self.extensions), "settings": dict(self.settings)}


@dataclass
class CustomizationsConfig:
    vscode: VSCodeConfig | None = None

    @classmethod
    def from_dict(cls, data: Any) -> CustomizationsConfig:
        data = _require_mapping(data, "'customizations'")
        vscode = data.get("vscode")
        return cls(None if vscode is None else VSCodeConfig.from_dict(vscode))

    def to_dict(self) -> dict[str, Any]:
        return {} if self.vscode is None else {"vscode": self.vscode.to_dict()}


@dataclass
class DevContainerConfig:
    name: str = DEFAULT_NAME
    image: str | None = None
    docker_file: str | None = None
    build: BuildConfig | None = None
    features: dict[str, Any] = field(default_factory=dict)
    customizations: CustomizationsConfig | None = None
    forward_ports: list[int] | None = None
    post_create_command: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> DevContainerConfig:
        """Build a configuration from its JSON object form (camelCase keys)."""
        data = _require_mapping(data, "DevContainer configuration")
        name = data.get("name", DEFAULT_NAME)
        if not isinstance(name, str):
            raise ConfigError("'name' must be a string")
        ports = data.get("forwardPorts")
        if ports is not None:
            if not isinstance(ports, list) or not all(
                isinstance(p, int) and not isinstance(p, bool) and 0 <= p <= 65535
                for p in ports
            ):
                raise ConfigError("'forwardPorts' must be a list of port numbers")
            ports = list(ports)
        build = data.get("build")
        customizations = data.get("customizations")
        return cls(
            name=name,
            image=_optional_str(data, "image"),
            docker_file=_optional_str(data, "dockerFile"),
            build=None if build is None else BuildConfig.from_dict(build),
            features=_mapping(data, "features"),
            customizations=(
                None
                if customizations is None
                else CustomizationsConfig.from_dict(customizations)
            ),
            forward_ports=ports,
            post_create_command=_optional_str(data, "postCreateCommand"),
        )

    @classmethod
    def from_file(cls, path: str | os.PathLike[str]) -> DevContainerConfig:
        """Load a .json file, or a .jsonc/.json5 file that may hold comments."""
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as error:
            raise ConfigError(
                "Failed to read DevContainer configuration file"
            ) from error
        if path.suffix.lower() in _LENIENT_SUFFIXES:
            try:
                data = parse_str(text, ConfigParserOptions(ConfigFormat.JSON, True))
            except ConfigError as error:
                raise ConfigError(
                    "Failed to parse JSON5 DevContainer configuration"
                ) from error
        else:
            try:
                data = json.loads(text)
            except json.JSONDecodeError as error:
                raise ConfigError(
                    "Failed to parse JSON DevContainer configuration"
                ) from error
        return cls.from_dict(data)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"name": self.name}
        if self.image is not None:
            out["image"] = self.image
        if self.docker_file is not None:
            out["dockerFile"] = self.docker_file
        if self.build is not None:
            out["build"] = self.build.to_dict()
        out["features"] = dict(self.features)
        if self.customizations is not None:
            out["customizations"] = self.customizations.to_dict()
        if self.forward_ports is not None:
            out["forwardPorts"] = list(self.forward_ports)
        if self.post_create_command is not None:
            out["postCreateCommand"] = self.post_create_command
        return out

    def detect_environment_type(self) -> str:
        if self.docker_file is not None:
            return "dockerfile"
        if self.image is not None:
            return f"docker-image:{self.image}"
        return "custom"


def validate_devcontainer_config(config: DevContainerConfig) -> None:
    """Raise ConfigError unless the configuration names an image or a Dockerfile."""
    if config.image is None and config.docker_file is None:
        raise ConfigError(
            "DevContainer configuration must specify either an image or a Dockerfile"
        )