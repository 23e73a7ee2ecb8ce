"""Hyprland IPC client and window-creation payloads."""