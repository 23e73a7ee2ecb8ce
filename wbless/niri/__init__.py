"""niri IPC, workspaces and keyboard-layout module."""