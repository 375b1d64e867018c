# devforge

A library of building blocks for managing development environments from Python.

## Modules

- `devforge.agents`: simple asynchronous analysis agents.
  - `OptimizationAgent` collects metrics with `update_metrics()`. It recommends action when `cpu_usage` is above 0.9 or `memory_usage` is above 0.85.
  - `SecurityAgent.store_secret()` refuses secrets shorter than 8 bytes and stores the SHA-256 digest of each accepted one. The agent flags keys that contain `test` or `default`.
  - `AgentOrchestrator` runs every registered agent in order through `execute_all()`.
  - `AgentConfig` holds global agent settings.
- `devforge.advanced_agent`: capability-based agents.
  - A `CoreAgent` executes a task once its learned confidence for one of its capabilities exceeds 0.7 and the context's `system_load` is below 0.8. Otherwise it defers.
  - `learn_from_execution()` raises or lowers that confidence in steps of 0.1, clamped to 0 to 1. The confidence starts at 0.5.
  - `AgentManager.execute_task()` hands a task to the first agent that decides to execute it. It raises `RuntimeError` when no agent does.
- `devforge.api`: HTTP endpoint management on top of `httpx`.
  - `APIManager` registers `APIEndpoint`s and calls them with `execute_request()`.
  - Calls pass through a fixed-window `RateLimiter`, which by default allows 100 requests per 60 seconds. `RateLimitExceeded` is raised when a call is refused.
  - Transport errors are retried with linear, exponential or constant backoff, set by `RetryConfiguration`.
  - HTTP 429 responses are retried after 2^attempt seconds.
  - Any other unsuccessful status raises `APIRequestError`.
  - `BearerAuth` and `BasicAuth` set the `Authorization` header. `OAuthAuth` is stored but not applied.
  - `APIPerformanceTracker` records response times and failures. It recommends action for failure rates above 10 %, average response times above 0.5 s, and system load above 0.8.
- `devforge.parser`: configuration handling.
  - `parse_str()` and `parse_file()` read JSON (optionally with comments and trailing commas), TOML and YAML.
  - `validate_config()` checks a value against a JSON schema file.
  - `merge_configs()` merges two configurations with JSON merge-patch semantics.
  - `FileConfigSource` and `EnvConfigSource` load configuration from a JSON file or from prefixed environment variables.
  - Failures raise `ConfigError`.
- `devforge.devcontainer`: loads `devcontainer.json` files.
  - `DevContainerConfig.from_file()` reads them; `.jsonc` and `.json5` files may contain comments.
  - `DevContainerConfig.to_dict()` converts a configuration back to its JSON form.
  - `detect_environment_type()` reports how the container is built.
  - `validate_devcontainer_config()` requires an image or a Dockerfile.
- `devforge.settings`: `ForgeConfig` and `PortForwardingConfig` defaults. The base directory defaults to `~/.forge`.
- `devforge.environment`: `EnvironmentManager` creates, lists and deletes environments under a base directory. `DevEnvironmentConfig` describes each environment.

## How environments are created

`create_environment()` does four things:

1. It writes the environment's `dem_config.json`.
2. It creates one source directory per language: `src`, `python`, `js`, `go`, `java`, or the lower-cased name of any other language.
3. For each Cargo dependency it runs `cargo init` in the project root. For each Pip dependency it runs `python -m venv .venv` there, using the current interpreter. Exit statuses of these tools are not checked.
4. For VS Code IDE entries it writes `.vscode/settings.json` into the project root.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Examples

Running the agents:

```python
import asyncio
from devforge.agents import AgentOrchestrator, OptimizationAgent, SecurityAgent

async def main():
    optimizer = OptimizationAgent()
    await optimizer.update_metrics({"cpu_usage": 0.95, "memory_usage": 0.5})

    orchestrator = AgentOrchestrator()
    orchestrator.register_agent(optimizer)
    orchestrator.register_agent(SecurityAgent())

    for result in await orchestrator.execute_all():
        print(result.message, [r.description for r in result.recommendations])

asyncio.run(main())
```

Calling an endpoint:

```python
import asyncio
from devforge.api import APIEndpoint, APIManager, BearerAuth

async def main():
    endpoint = APIEndpoint(
        name="status",
        url="https://api.example.com/status",
        authentication=BearerAuth("token"),
    )
    async with APIManager() as manager:
        await manager.register_endpoint(endpoint)
        response = await manager.execute_request(str(endpoint.id))
        print(response.status_code)
        print(await manager.analyze_performance())

asyncio.run(main())
```

Limiting request rates:

```python
from devforge.api import RateLimiter

limiter = RateLimiter(5, 1.0)
allowed = [limiter.check_request() for _ in range(6)]
# the first five are allowed, the sixth is refused
```

Parsing and merging configuration:

```python
from devforge.parser import ConfigFormat, ConfigParserOptions, merge_configs, parse_str

base = parse_str('{"name": "base", "version": 1}', ConfigParserOptions())
overlay = parse_str("name: overlay\n", ConfigParserOptions(format=ConfigFormat.YAML))
merged = merge_configs(base, overlay)  # {"name": "overlay", "version": 1}
```

Loading a dev-container definition:

```python
from devforge.devcontainer import DevContainerConfig, validate_devcontainer_config

config = DevContainerConfig.from_file(".devcontainer/devcontainer.json")
validate_devcontainer_config(config)
print(config.detect_environment_type())
```

Managing environments on disk:

```python
from pathlib import Path
from devforge.environment import DevEnvironmentConfig, EnvironmentManager, ProgrammingLanguage

manager = EnvironmentManager(Path("environments"))
config = DevEnvironmentConfig(
    name="demo",
    project_root=Path("environments/demo"),
    languages=[ProgrammingLanguage.PYTHON],
)
manager.create_environment(config)
print([env.name for env in manager.list_environments()])
manager.delete_environment("demo")
```

## What this package does not do

- It is a library only. It has no command-line program, no interactive setup wizard and no HTTP server exposing these features.
- It does not manage containers, databases, monitoring or deployments.
- `devcontainer` reads and checks configuration files but does not build or start containers.
- `APIManager` makes plain HTTP requests only: it has no WebSocket support and does not fetch OAuth tokens.
- `ForgeConfig.load()` always returns the defaults; it does not read a settings file.