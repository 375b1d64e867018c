"""Configuration parsing, validation, merging and configuration sources."""

from __future__ import annotations

import copy
import dataclasses
import json
import os
import re
import tomllib
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import jsonschema
import yaml


class ConfigError(ValueError):
    """Raised when configuration cannot be read, parsed or validated."""


class ConfigFormat(Enum):
    JSON = "json"
    JSONC = "jsonc"
    JSON5 = "json5"
    TOML = "toml"
    YAML = "yaml"


@dataclass(frozen=True)
class ConfigParserOptions:
    format: ConfigFormat = ConfigFormat.JSON
    allow_comments: bool = True
    strict_mode: bool = False


_TRAILING_COMMA = re.compile(r",\s*[}\]]")


def _strip_comments(text: str) -> str:
    out: list[str] = []
    in_string = False
    i, n = 0, len(text)
    while i < n:
        char = text[i]
        if in_string:
            out.append(char)
            if char == "\\" and i + 1 < n:
                out.append(text[i + 1])
                i += 2
                continue
            if char == '"':
                in_string = False
            i += 1
        elif char == '"':
            in_string = True
            out.append(char)
            i += 1
        elif text.startswith("//", i):
            end = text.find("\n", i)
            i = n if end == -1 else end
        elif text.startswith("/*", i):
            end = text.find("*/", i + 2)
            if end == -1:
                raise ConfigError("Unterminated block comment")
            out.append(" ")
            i = end + 2
        else:
            out.append(char)
            i += 1
    return "".join(out)


def _drop_trailing_commas(text: str) -> str:
    out: list[str] = []
    in_string = False
    i, n = 0, len(text)
    while i < n:
        char = text[i]
        if in_string:
            out.append(char)
            if char == "\\" and i + 1 < n:
                out.append(text[i + 1])
                i += 2
                continue
            if char == '"':
                in_string = False
        elif char == '"':
            in_string = True
            out.append(char)
        elif char == "," and _TRAILING_COMMA.match(text, i):
            pass
        else:
            out.append(char)
        i += 1
    return "".join(out)


def _loads_lenient_json(content: str) -> Any:
    """Parse JSON that may contain comments and trailing commas."""
    return json.loads(_drop_trailing_commas(_strip_comments(content)))


def parse_str(content: str, options: ConfigParserOptions | None = None) -> Any:
    """Parse configuration text in the format the options name."""
    options = options or ConfigParserOptions()
    fmt = options.format
    if fmt is ConfigFormat.JSON:
        if options.allow_comments:
            try:
                return _loads_lenient_json(content)
            except json.JSONDecodeError as error:
                raise ConfigError("Failed to parse JSON5 configuration") from error
        try:
            return json.loads(content)
        except json.JSONDecodeError as error:
            raise ConfigError("Failed to parse JSON configuration") from error
    if fmt is ConfigFormat.TOML:
        try:
            return tomllib.loads(content)
        except tomllib.TOMLDecodeError as error:
            raise ConfigError("Failed to parse TOML configuration") from error
    if fmt is ConfigFormat.YAML:
        try:
            return yaml.safe_load(content)
        except yaml.YAMLError as error:
            raise ConfigError("Failed to parse YAML configuration") from error
    raise ConfigError("Unsupported configuration format")


def parse_file(path: str | os.PathLike[str], options: ConfigParserOptions | None = None) -> Any:
    """Read a file and parse it with :func:`parse_str`."""
    try:
        content = Path(path).read_text(encoding="utf-8")
    except OSError as error:
        raise ConfigError("Failed to read configuration file") from error
    return parse_str(content, options or ConfigParserOptions())


def _to_value(config: Any) -> Any:
    to_dict = getattr(config, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if dataclasses.is_dataclass(config) and not isinstance(config, type):
        return dataclasses.asdict(config)
    return copy.deepcopy(config)


def _from_value(template: Any, value: Any) -> Any:
    from_dict = getattr(type(template), "from_dict", None)
    if callable(from_dict):
        return from_dict(value)
    if dataclasses.is_dataclass(template) and not isinstance(template, type):
        return type(template)(**value)
    return value


def validate_config(config: Any, schema_path: str | os.PathLike[str]) -> None:
    """Validate a configuration against the JSON schema stored at schema_path."""
    try:
        schema_text = Path(schema_path).read_text(encoding="utf-8")
    except OSError as error:
        raise ConfigError("Failed to read JSON schema") from error
    try:
        schema = json.loads(schema_text)
        validator_class = jsonschema.validators.validator_for(schema)
        validator_class.check_schema(schema)
    except (json.JSONDecodeError, jsonschema.SchemaError) as error:
        raise ConfigError("Invalid JSON schema") from error
    value = _to_value(config)
    messages = [error.message for error in validator_class(schema).iter_errors(value)]
    if messages:
        raise ConfigError(
            "Configuration validation failed:\n" + "\n".join(messages)
        )


def _merge_patch(target: Any, patch: Any) -> Any:
    if not isinstance(patch, dict):
        return copy.deepcopy(patch)
    result = dict(target) if isinstance(target, dict) else {}
    for key, value in patch.items():
        if value is None:
            result.pop(key, None)
        else:
            result[key] = _merge_patch(result.get(key), value)
    return result


def merge_configs(base_config: Any, overlay_config: Any) -> Any:
    """Merge overlay onto base with JSON merge-patch semantics."""
    if base_config is not None and overlay_config is not None:
        merged = _merge_patch(_to_value(base_config), _to_value(overlay_config))
        return _from_value(base_config, merged)
    if base_config is not None:
        return base_config
    if overlay_config is not None:
        return overlay_config
    raise ConfigError("No configuration provided")


class ConfigSource(ABC):
    """Something that may provide a configuration value."""

    @abstractmethod
    def load_config(self) -> Any | None:
        """Return the configuration, or None when the source has none."""


@dataclass
class FileConfigSource(ConfigSource):
    path: Path
    options: ConfigParserOptions = field(default_factory=ConfigParserOptions)

    def load_config(self) -> Any | None:
        path = Path(self.path)
        if not path.exists():
            return None
        try:
            contents = path.read_text(encoding="utf-8")
        except OSError as error:
            raise ConfigError(f"Failed to read config file: {path}") from error
        try:
            return json.loads(contents)
        except json.JSONDecodeError as error:
            raise ConfigError(f"Failed to parse config file: {path}") from error


@dataclass
class EnvConfigSource(ConfigSource):
    """Collects environment variables starting with a prefix."""

    prefix: str
    environ: Mapping[str, str] | None = None

    def _strip_prefix(self, key: str) -> str:
        if not self.prefix:
            return key
        while key.startswith(self.prefix):
            key = key[len(self.prefix):]
        return key

    def load_config(self) -> dict[str, str] | None:
        environ = os.environ if self.environ is None else self.environ
        matching = [(k, v) for k, v in environ.items() if k.startswith(self.prefix)]
        if not matching:
            return None
        return {
            self._strip_prefix(key).lower().replace("_", "."): value
            for key, value in matching
        }