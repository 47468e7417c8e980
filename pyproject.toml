[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "b2sync"
version = "0.1.0"
description = "Background service that periodically syncs local folders to Backblaze B2 with desktop notifications"
requires-python = ">=3.10"
dependencies = []
keywords = ["backup", "backblaze", "b2", "sync", "daemon"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Environment :: No Input/Output (Daemon)",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: MacOS",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Archiving :: Backup",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
b2sync = "b2sync.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["b2sync"]

[tool.pytest.ini_options]
addopts = "-ra"
