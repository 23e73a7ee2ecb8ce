"""Client for Hyprland's request socket and event socket."""

from __future__ import annotations

import json
import logging
import os
import socket
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any

log = logging.getLogger(__name__)

EventHandler = Callable[[str], None]

_folder_lock = threading.Lock()
_socket_folders: dict[str, Path] = {}


def get_socket_folder(instance_signature: str) -> Path:
    """Return the folder holding Hyprland's sockets for an instance signature."""
    with _folder_lock:
        cached = _socket_folders.get(instance_signature)
        if cached is not None:
            return cached
        runtime_dir = os.environ.get("XDG_RUNTIME_DIR")
        if runtime_dir and (Path(runtime_dir) / "hypr").exists():
            base = Path(runtime_dir) / "hypr"
        else:
            log.warning("$XDG_RUNTIME_DIR/hypr does not exist, falling back to /tmp/hypr")
            base = Path("/tmp") / "hypr"
        folder = base / instance_signature
        _socket_folders[instance_signature] = folder
        return folder


class HyprlandIPC:
    """Sends requests to Hyprland and relays its events to registered handlers."""

    def __init__(self) -> None:
        self._callback_lock = threading.Lock()
        self._callbacks: list[tuple[str, EventHandler]] = []
        self._running = True
        self._sock: socket.socket | None = None

    def parse_ipc(self, event: str) -> None:
        """Pass an event line to every handler registered for its name."""
        name = event.split(">", 1)[0]
        with self._callback_lock:
            targets = [handler for event_name, handler in self._callbacks if event_name == name]
        for handler in targets:
            handler(event)

    def register_for_ipc(self, event: str, handler: EventHandler | None) -> None:
        """Call `handler(line)` for every event named `event`."""
        if handler is None:
            return
        with self._callback_lock:
            self._callbacks.append((event, handler))

    def unregister_for_ipc(self, handler: EventHandler | None) -> None:
        """Remove every registration of `handler`."""
        if handler is None:
            return
        with self._callback_lock:
            self._callbacks = [(name, cb) for name, cb in self._callbacks if cb != handler]

    @staticmethod
    def _instance_signature() -> str:
        signature = os.environ.get("HYPRLAND_INSTANCE_SIGNATURE")
        if signature is None:
            raise RuntimeError(
                "Hyprland IPC: HYPRLAND_INSTANCE_SIGNATURE was not set! (Is Hyprland running?)"
            )
        return signature

    def get_socket1_reply(self, request: str) -> str:
        """Send a request on the command socket and return the full reply."""
        socket_path = get_socket_folder(self._instance_signature()) / ".socket.sock"
        try:
            sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        except OSError as exc:
            raise RuntimeError("Hyprland IPC: Couldn't open a socket (1)") from exc
        with sock:
            try:
                sock.connect(str(socket_path))
            except OSError as exc:
                raise RuntimeError(f"Hyprland IPC: Couldn't connect to {socket_path}. (3)") from exc
            try:
                sock.sendall(request.encode("utf-8"))
            except OSError:
                log.error("Hyprland IPC: Couldn't write (4)")
                return ""
            chunks: list[bytes] = []
            while True:
                try:
                    chunk = sock.recv(8192)
                except OSError:
                    log.error("Hyprland IPC: Couldn't read (5)")
                    return ""
                if not chunk:
                    break
                chunks.append(chunk)
        return b"".join(chunks).decode("utf-8", errors="replace")

    def get_socket1_json_reply(self, request: str) -> Any:
        """Send a JSON request and return the decoded reply, or None for an empty reply."""
        reply = self.get_socket1_reply("j/" + request)
        if not reply:
            return None
        return json.loads(reply)

    def listen(self) -> None:
        """Read events from the event socket until it closes or `stop()` is called."""
        signature = os.environ.get("HYPRLAND_INSTANCE_SIGNATURE")
        if signature is None:
            log.warning("Hyprland is not running, Hyprland IPC will not be available.")
            return
        if not self._running:
            return

        log.info("Hyprland IPC starting")
        socket_path = get_socket_folder(signature) / ".socket2.sock"
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.connect(str(socket_path))
        except OSError:
            log.error("Hyprland IPC: Unable to connect?")
            sock.close()
            return
        self._sock = sock
        try:
            with sock.makefile("r", encoding="utf-8", errors="replace", newline="\n") as stream:
                for raw in stream:
                    if not self._running:
                        break
                    message = raw.split("\n", 1)[0]
                    log.debug("hyprland IPC received %s", message)
                    try:
                        self.parse_ipc(message)
                    except Exception as exc:  # a bad event must not stop the listener
                        log.warning("Failed to parse IPC message: %s, reason: %s", message, exc)
        except (OSError, ValueError):
            if self._running:
                log.error("Hyprland IPC: event socket failed")
        finally:
            self._sock = None
            sock.close()
        log.debug("Hyprland IPC stopped")

    def stop(self) -> None:
        """Stop listening and shut the event socket down."""
        self._running = False
        log.info("Hyprland IPC stopping...")
        sock = self._sock
        if sock is None:
            return
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            log.error("Hyprland IPC: Couldn't shutdown socket")