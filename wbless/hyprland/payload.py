"""A window waiting to be placed on a Hyprland workspace."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

ADDR_PREFIX = "0x"
SPECIAL_PREFIX = "special:"


class RewriteProvider(Protocol):
    window_rewrite_uses_title: bool

    def get_rewrite(self, window_class: str, window_title: str) -> str: ...


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return value if isinstance(value, str) else str(value)


def _clean_address(address: str) -> str:
    # Hyprland's JSON prefixes addresses with "0x"; its events do not.
    return address[len(ADDR_PREFIX) :] if address.startswith(ADDR_PREFIX) else address


def _clean_workspace_name(name: str) -> str:
    if name.startswith(SPECIAL_PREFIX):
        name = name[len(SPECIAL_PREFIX) :]
    return name.split(" ", 1)[0]


class WindowCreationPayload:
    """A window known either by its final representation or by class and title."""

    def __init__(
        self,
        workspace_name: str,
        window_address: str,
        window_repr: str | None = None,
        window_class: str | None = None,
        window_title: str | None = None,
    ) -> None:
        if window_repr is not None and (window_class is not None or window_title is not None):
            raise ValueError("give a window representation or a class and title, not both")
        self.window: str | tuple[str, str] = (
            window_repr if window_repr is not None else (window_class or "", window_title or "")
        )
        self.address = _clean_address(window_address)
        self.workspace_name = _clean_workspace_name(workspace_name)
        self.time_spent_uncreated = 0

    @classmethod
    def from_client(cls, client: Mapping[str, Any]) -> WindowCreationPayload:
        """Build a payload from one entry of Hyprland's 'clients' reply."""
        workspace = client.get("workspace") or {}
        return cls(
            _text(workspace.get("name")),
            _text(client.get("address")),
            window_class=_text(client.get("class")),
            window_title=_text(client.get("title")),
        )

    def is_empty(self, manager: RewriteProvider) -> bool:
        """Whether there is nothing to show for this window."""
        if isinstance(self.window, str):
            return not self.window
        window_class, window_title = self.window
        return not window_class and (not manager.window_rewrite_uses_title or not window_title)

    def render_repr(self, manager: RewriteProvider) -> str:
        """Return the text that represents this window on its workspace."""
        if isinstance(self.window, str):
            return self.window
        window_class, window_title = self.window
        return manager.get_rewrite(window_class, window_title)

    def increment_time_spent_uncreated(self) -> int:
        """Count one more failed placement; return the count before it."""
        previous = self.time_spent_uncreated
        self.time_spent_uncreated += 1
        return previous

    def move_to_workspace(self, name: str) -> None:
        self.workspace_name = name

    def __repr__(self) -> str:
        return (
            f"WindowCreationPayload(workspace_name={self.workspace_name!r}, "
            f"address={self.address!r}, window={self.window!r})"
        )