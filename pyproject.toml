[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kargo"
version = "0.1.0"
description = "Cargo workflow helpers: project analysis, rust-script parsing, output processing, backups, vendoring and background tasks."
requires-python = ">=3.10"
keywords = ["cargo", "rust", "workspace", "dependencies", "build"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Software Development :: Build Tools",
]
dependencies = [
    "tomlkit",
    "pyyaml",
    "platformdirs",
    "semver",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[tool.hatch.build.targets.wheel]
packages = ["kargo"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
