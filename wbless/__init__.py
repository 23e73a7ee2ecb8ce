"""Status-bar module logic for load, memory, clock, network, Hyprland IPC and niri."""

__version__ = "0.13.0"