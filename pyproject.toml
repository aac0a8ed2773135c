[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "chainharness"
version = "0.1.0"
description = "Docker-backed test harness for blockchain and data-availability nodes"
requires-python = ">=3.11"
dependencies = [
    "httpx",
    "tomli-w",
]
keywords = [
    "testing",
    "docker",
    "blockchain",
    "integration-tests",
    "data-availability",
    "bech32",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Testing",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[tool.hatch.build.targets.wheel]
packages = ["chainharness"]

[tool.hatch.build.targets.sdist]
include = [
    "chainharness",
    "tests",
    "README.md",
]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
ignore_missing_imports = true
