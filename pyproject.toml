[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "devforge"
version = "0.1.0"
description = "Development environment tooling: analysis agents, HTTP endpoint management, configuration parsing, dev-container files and on-disk environments"
requires-python = ">=3.11"
keywords = ["devcontainer", "development-environment", "configuration", "agents", "rate-limiting"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Software Development",
]
dependencies = [
    "httpx",
    "pyyaml",
    "jsonschema",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
    "respx",
]

[tool.hatch.build.targets.wheel]
packages = ["devforge"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.ruff.lint]
select = ["E", "F", "I", "B", "UP"]

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
