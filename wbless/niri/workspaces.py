"""Workspace buttons for the niri compositor."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from wbless.niri.ipc import NiriIPC

log = logging.getLogger(__name__)

_EVENTS = (
    "WorkspacesChanged",
    "WorkspaceActivated",
    "WorkspaceActiveWindowChanged",
    "WorkspaceUrgencyChanged",
)


def _uint(value: Any) -> int:
    return 0 if value is None else int(value)


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float, str)):
        return str(value)
    return json.dumps(value)


def _workspace_name(ws: Mapping[str, Any]) -> str:
    if ws.get("name") is not None:
        return _text(ws.get("name"))
    return str(_uint(ws.get("idx")))


@dataclass
class WorkspaceButton:
    """The displayed state of one workspace button."""

    workspace_id: int
    label: str
    widget_name: str = ""
    markup: bool = True
    classes: set[str] = field(default_factory=set)
    visible: bool = True
    position: int = 0

    def set_class(self, name: str, enabled: bool) -> None:
        if enabled:
            self.classes.add(name)
        else:
            self.classes.discard(name)


def focus_request(workspace_id: int) -> dict[str, Any]:
    """The niri action request that focuses a workspace by id."""
    return {"Action": {"FocusWorkspace": {"reference": {"Id": workspace_id}}}}


class NiriWorkspaces:
    """Keeps one button per niri workspace shown on this bar's output."""

    def __init__(self, config: Mapping[str, Any] | None, output_name: str, ipc: NiriIPC) -> None:
        self.config = dict(config or {})
        self.output_name = output_name
        self.ipc = ipc
        self.buttons: dict[int, WorkspaceButton] = {}
        self.needs_update = True
        for event in _EVENTS:
            ipc.register_for_ipc(event, self.on_event)

    def on_event(self, event: Mapping[str, Any]) -> None:
        """Mark the buttons as out of date."""
        self.needs_update = True

    def get_icon(self, value: str, workspace: Mapping[str, Any]) -> str:
        """Pick the icon for a workspace from 'format-icons', falling back to `value`."""
        icons = self.config.get("format-icons")
        if not isinstance(icons, Mapping):
            return value

        def icon(key: str) -> str | None:
            found = icons.get(key)
            return None if found is None else _text(found)

        candidates = []
        if workspace.get("is_urgent"):
            candidates.append("urgent")
        if workspace.get("active_window_id") is None:
            candidates.append("empty")
        if workspace.get("is_focused"):
            candidates.append("focused")
        if workspace.get("is_active"):
            candidates.append("active")
        if workspace.get("name") is not None:
            candidates.append(_text(workspace.get("name")))
        candidates.append(_text(workspace.get("idx")))
        candidates.append("default")

        for key in candidates:
            found = icon(key)
            if found is not None:
                return found
        return value

    def _add_button(self, ws: Mapping[str, Any]) -> WorkspaceButton:
        button = WorkspaceButton(workspace_id=_uint(ws.get("id")), label=_workspace_name(ws))
        self.buttons[button.workspace_id] = button
        return button

    def do_update(self) -> list[WorkspaceButton]:
        """Bring the buttons in line with the IPC state; return them in display order."""
        all_outputs = bool(self.config.get("all-outputs"))
        fmt = self.config.get("format")
        with self.ipc.data_lock:
            mine = [
                ws
                for ws in self.ipc.workspaces
                if all_outputs or _text(ws.get("output")) == self.output_name
            ]

            wanted = {_uint(ws.get("id")) for ws in mine}
            self.buttons = {key: button for key, button in self.buttons.items() if key in wanted}

            for ws in mine:
                button = self.buttons.get(_uint(ws.get("id"))) or self._add_button(ws)
                button.set_class("focused", bool(ws.get("is_focused")))
                button.set_class("active", bool(ws.get("is_active")))
                button.set_class("urgent", bool(ws.get("is_urgent")))
                button.set_class(
                    "current_output",
                    ws.get("output") is not None and _text(ws.get("output")) == self.output_name,
                )
                button.set_class("empty", ws.get("active_window_id") is None)

                name = _workspace_name(ws)
                button.widget_name = "niri-workspace-" + name
                if isinstance(fmt, str):
                    name = fmt.format(
                        icon=self.get_icon(name, ws),
                        value=name,
                        name=_text(ws.get("name")),
                        index=_uint(ws.get("idx")),
                        output=_text(ws.get("output")),
                    )
                button.label = name
                button.markup = not self.config.get("disable-markup")

                if self.config.get("current-only"):
                    key = "is_focused" if all_outputs else "is_active"
                    button.visible = bool(ws.get(key))
                else:
                    button.visible = True

            ordered = []
            for position, ws in enumerate(mine):
                button = self.buttons[_uint(ws.get("id"))]
                button.position = position if all_outputs else _uint(ws.get("idx")) - 1
                ordered.append(button)

        self.needs_update = False
        return ordered

    def click(self, workspace_id: int) -> bool:
        """Ask niri to focus a workspace; return whether the request went through."""
        if self.config.get("disable-click"):
            return False
        try:
            self.ipc.send(focus_request(workspace_id))
        except (OSError, RuntimeError, ValueError) as exc:
            log.error("Error switching workspace: %s", exc)
            return False
        return True