[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "wbless"
version = "0.13.0"
description = "Status-bar module logic: load, memory, clock, network, Hyprland IPC and niri workspaces"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "status-bar",
    "wayland",
    "hyprland",
    "niri",
    "workspaces",
    "system-monitor",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: End Users/Desktop",
    "Intended Audience :: Developers",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Desktop Environment :: Window Managers :: Applets",
    "Topic :: System :: Monitoring",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["wbless"]

[tool.hatch.build.targets.sdist]
include = ["wbless", "tests", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
