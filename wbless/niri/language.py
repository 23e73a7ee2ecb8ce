"""Keyboard layout indicator driven by niri's IPC."""

from __future__ import annotations

import logging
import threading
import xml.etree.ElementTree as ET
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from wbless.niri.ipc import NiriIPC

log = logging.getLogger(__name__)

DEFAULT_RULES_PATH = "/usr/share/X11/xkb/rules/evdev.xml"
DEFAULT_FORMAT = "{}"


@dataclass(frozen=True)
class Layout:
    """An XKB layout as described by the rules registry."""

    full_name: str = ""
    short_name: str = ""
    variant: str = ""
    short_description: str = ""


def _child_text(item: ET.Element, tag: str) -> str:
    node = item.find(tag)
    return (node.text or "").strip() if node is not None else ""


def load_layouts(path: str | Path = DEFAULT_RULES_PATH) -> list[Layout]:
    """Read layouts and variants from an XKB rules XML file and its extras file."""
    path = Path(path)
    files = [path]
    extras = path.with_name(f"{path.stem}.extras{path.suffix}")
    if extras.exists():
        files.append(extras)

    layouts: list[Layout] = []
    for rules_file in files:
        root = ET.parse(rules_file).getroot()
        for layout in root.iter("layout"):
            item = layout.find("configItem")
            if item is None:
                continue
            name = _child_text(item, "name")
            brief = _child_text(item, "shortDescription")
            layouts.append(Layout(_child_text(item, "description"), name, "", brief))
            for variant in layout.iterfind("variantList/variant"):
                variant_item = variant.find("configItem")
                if variant_item is None:
                    continue
                layouts.append(
                    Layout(
                        _child_text(variant_item, "description"),
                        name,
                        _child_text(variant_item, "name"),
                        _child_text(variant_item, "shortDescription") or brief,
                    )
                )
    return layouts


def find_layout(full_name: str, layouts: Iterable[Layout]) -> Layout:
    """Return the layout whose description is `full_name`, or an empty Layout."""
    for layout in layouts:
        if layout.full_name == full_name:
            return layout
    log.debug("niri language didn't find matching layout for %s", full_name)
    return Layout()


def _as_text(value: Any) -> str:
    return "" if value is None else str(value)


class NiriLanguage:
    """Shows the active niri keyboard layout."""

    def __init__(
        self,
        config: Mapping[str, Any] | None,
        ipc: NiriIPC,
        layouts: Iterable[Layout] | None = None,
    ) -> None:
        self.config = dict(config or {})
        fmt = self.config.get("format", DEFAULT_FORMAT)
        self.format = fmt if isinstance(fmt, str) else DEFAULT_FORMAT
        self.ipc = ipc
        self.known_layouts = list(layouts) if layouts is not None else load_layouts()
        self.layouts: list[Layout] = []
        self.current_idx = 0
        self._lock = threading.Lock()

        ipc.register_for_ipc("KeyboardLayoutsChanged", self.on_event)
        ipc.register_for_ipc("KeyboardLayoutSwitched", self.on_event)
        self.update_from_ipc()

    def update_from_ipc(self) -> None:
        """Reload layout names and the current index from the IPC state."""
        with self._lock, self.ipc.data_lock:
            self.layouts = [find_layout(name, self.known_layouts) for name in self.ipc.keyboard_layout_names]
            self.current_idx = self.ipc.keyboard_layout_current

    def on_event(self, event: Mapping[str, Any]) -> None:
        """Handle a keyboard layout event from the IPC."""
        if event.get("KeyboardLayoutsChanged") is not None:
            self.update_from_ipc()
        elif event.get("KeyboardLayoutSwitched") is not None:
            with self._lock, self.ipc.data_lock:
                self.current_idx = self.ipc.keyboard_layout_current

    def render(self) -> str | None:
        """Return the label text, or None when the label should be hidden."""
        with self._lock:
            if self.current_idx >= len(self.layouts):
                log.error("niri language layout index out of bounds")
                return None
            layout = self.layouts[self.current_idx]

        variant_key = f"format-{layout.short_description}-{layout.variant}"
        short_key = f"format-{layout.short_description}"
        if variant_key in self.config:
            text = self.format.format(_as_text(self.config[variant_key]))
        elif short_key in self.config:
            text = self.format.format(_as_text(self.config[short_key]))
        else:
            text = self.format.format(
                long=layout.full_name,
                short=layout.short_name,
                shortDescription=layout.short_description,
                variant=layout.variant,
            ).strip()
        return text if self.format else None