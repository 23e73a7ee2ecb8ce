"""Client for the niri compositor's JSON IPC socket."""

from __future__ import annotations

import json
import logging
import os
import socket
import threading
import time
from collections.abc import Callable
from typing import Any

log = logging.getLogger(__name__)

EventHandler = Callable[[dict], None]


def _uint(value: Any) -> int:
    return 0 if value is None else int(value)


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else json.dumps(value)


def _find(items: list[dict], item_id: int) -> int | None:
    return next((i for i, item in enumerate(items) if _uint(item.get("id")) == item_id), None)


class NiriIPC:
    """Tracks niri's workspaces, windows and keyboard layouts from its event stream."""

    def __init__(self, socket_path: str | None = None) -> None:
        self.socket_path = socket_path if socket_path is not None else os.environ.get("NIRI_SOCKET")
        self.data_lock = threading.RLock()
        self._callback_lock = threading.Lock()
        self._callbacks: list[tuple[str, EventHandler]] = []
        self.workspaces: list[dict] = []
        self.windows: list[dict] = []
        self.keyboard_layout_names: list[str] = []
        self.keyboard_layout_current = 0

    def connect(self) -> socket.socket | None:
        """Open a connection to niri, or return None when niri is not running."""
        if self.socket_path is None:
            log.warning("Niri is not running, niri IPC will not be available.")
            return None
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.connect(self.socket_path)
        except OSError as exc:
            sock.close()
            raise ConnectionError("unable to connect") from exc
        return sock

    def start(self) -> threading.Thread:
        """Start listening to the event stream in a daemon thread."""
        thread = threading.Thread(target=self._run_event_stream, name="niri-ipc", daemon=True)
        thread.start()
        return thread

    def _run_event_stream(self) -> None:
        try:
            sock = self.connect()
        except OSError as exc:
            log.error("Niri IPC: failed to start, reason: %s", exc)
            return
        if sock is None:
            return
        log.info("Niri IPC starting")
        try:
            with sock, sock.makefile("rw", encoding="utf-8", newline="\n") as stream:
                stream.write('"EventStream"\n')
                stream.flush()
                if stream.readline().rstrip("\n") != '{"Ok":"Handled"}':
                    log.error("Niri IPC: failed to start event stream")
                    return
                for raw in stream:
                    line = raw.rstrip("\n")
                    log.debug("Niri IPC: received %s", line)
                    try:
                        self.parse_ipc(line)
                    except Exception as exc:  # a bad event must not stop the stream
                        log.warning("Failed to parse IPC message: %s, reason: %s", line, exc)
                    time.sleep(0.001)
        except OSError as exc:
            log.error("Niri IPC: event stream failed: %s", exc)

    def parse_ipc(self, line: str) -> None:
        """Apply one event line to the tracked state and notify registered handlers."""
        event = json.loads(line)
        if not isinstance(event, dict) or len(event) != 1:
            raise ValueError("Event must have a single member")
        ((name, payload),) = event.items()

        handler = self._STATE_HANDLERS.get(name)
        if handler is not None and payload is not None:
            with self.data_lock:
                handler(self, payload)

        with self._callback_lock:
            targets = [callback for event_name, callback in self._callbacks if event_name == name]
        for callback in targets:
            callback(event)

    def _on_workspaces_changed(self, payload: dict) -> None:
        self.workspaces = sorted(
            payload.get("workspaces") or [],
            key=lambda ws: (_text(ws.get("output")), _uint(ws.get("idx"))),
        )

    def _on_workspace_activated(self, payload: dict) -> None:
        ws_id = _uint(payload.get("id"))
        focused = bool(payload.get("focused"))
        index = _find(self.workspaces, ws_id)
        if index is None:
            log.error("Activated unknown workspace")
            return
        output = _text(self.workspaces[index].get("output"))
        for ws in self.workspaces:
            activated = _uint(ws.get("id")) == ws_id
            if ws.get("output") == output:
                ws["is_active"] = activated
            if focused:
                ws["is_focused"] = activated

    def _on_active_window_changed(self, payload: dict) -> None:
        index = _find(self.workspaces, _uint(payload.get("workspace_id")))
        if index is None:
            log.error("Active window changed on unknown workspace")
            return
        self.workspaces[index]["active_window_id"] = payload.get("active_window_id")

    def _on_urgency_changed(self, payload: dict) -> None:
        index = _find(self.workspaces, _uint(payload.get("id")))
        if index is None:
            log.error("Urgency changed for unknown workspace")
            return
        self.workspaces[index]["is_urgent"] = bool(payload.get("urgent"))

    def _on_layouts_changed(self, payload: dict) -> None:
        layouts = payload.get("keyboard_layouts") or {}
        self.keyboard_layout_current = _uint(layouts.get("current_idx"))
        self.keyboard_layout_names = [_text(name) for name in layouts.get("names") or []]

    def _on_layout_switched(self, payload: dict) -> None:
        self.keyboard_layout_current = _uint(payload.get("idx"))

    def _on_windows_changed(self, payload: dict) -> None:
        self.windows = list(payload.get("windows") or [])

    def _on_window_opened_or_changed(self, payload: dict) -> None:
        window = payload.get("window") or {}
        window_id = _uint(window.get("id"))
        index = _find(self.windows, window_id)
        if index is not None:
            self.windows[index] = window
            return
        self.windows.append(window)
        if window.get("is_focused"):
            for win in self.windows:
                win["is_focused"] = _uint(win.get("id")) == window_id

    def _on_window_closed(self, payload: dict) -> None:
        index = _find(self.windows, _uint(payload.get("id")))
        if index is None:
            log.error("Unknown window closed")
            return
        del self.windows[index]

    def _on_window_focus_changed(self, payload: dict) -> None:
        focused = payload.get("id") is not None
        window_id = _uint(payload.get("id"))
        for win in self.windows:
            win["is_focused"] = focused and _uint(win.get("id")) == window_id

    _STATE_HANDLERS: dict[str, Callable[[NiriIPC, dict], None]] = {
        "WorkspacesChanged": _on_workspaces_changed,
        "WorkspaceActivated": _on_workspace_activated,
        "WorkspaceActiveWindowChanged": _on_active_window_changed,
        "WorkspaceUrgencyChanged": _on_urgency_changed,
        "KeyboardLayoutsChanged": _on_layouts_changed,
        "KeyboardLayoutSwitched": _on_layout_switched,
        "WindowsChanged": _on_windows_changed,
        "WindowOpenedOrChanged": _on_window_opened_or_changed,
        "WindowClosed": _on_window_closed,
        "WindowFocusChanged": _on_window_focus_changed,
    }

    def register_for_ipc(self, event: str, handler: EventHandler | None) -> None:
        """Call `handler(event_dict)` whenever an event named `event` arrives."""
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

    def send(self, request: Any) -> Any:
        """Send one request to niri and return its decoded reply."""
        sock = self.connect()
        if sock is None:
            raise RuntimeError("Niri is not running")
        with sock, sock.makefile("rw", encoding="utf-8", newline="\n") as stream:
            try:
                stream.write(json.dumps(request, separators=(",", ":")) + "\n")
                stream.flush()
            except OSError as exc:
                raise RuntimeError("error writing to niri socket") from exc
            line = stream.readline()
        if not line:
            raise RuntimeError("error reading from niri socket")
        return json.loads(line)