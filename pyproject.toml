[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "legionjeux"
version = "0.1.0"
description = "A daemon supervisor with an interactive command line, and the core pieces of a two-player game server"
requires-python = ">=3.10"
dependencies = []
keywords = ["daemon", "supervisor", "process", "tic-tac-toe", "elo", "protocol"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
    "Topic :: Games/Entertainment :: Board Games",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
legion = "legionjeux.legion.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["legionjeux"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
