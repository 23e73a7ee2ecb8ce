"""System load average module."""

from __future__ import annotations

import math
import os
from collections.abc import Iterable, Mapping
from typing import Any

DEFAULT_FORMAT = "{load1}"
DEFAULT_INTERVAL = 10


class _Shortest(float):
    """A float that formats as its shortest round-trip form, without a trailing '.0'."""

    def __format__(self, spec: str) -> str:
        if spec:
            return float.__format__(self, spec)
        text = repr(float(self))
        return text[:-2] if text.endswith(".0") else text

    def __str__(self) -> str:
        return format(self, "")


def _icon(config: Mapping[str, Any], state: str) -> str:
    icons = config.get("format-icons")
    if isinstance(icons, str):
        return icons
    if isinstance(icons, Mapping):
        return str(icons.get(state, icons.get("default", "")))
    return ""


def get_load() -> tuple[float, float, float]:
    """Return the 1, 5 and 15 minute load averages, rounded up to two decimals."""
    try:
        loads = os.getloadavg()
    except OSError as exc:
        raise RuntimeError("Can't get system load") from exc
    load1, load5, load15 = (math.ceil(value * 100.0) / 100.0 for value in loads)
    return load1, load5, load15


class LoadModule:
    """Renders the system load into a label text and tooltip."""

    def __init__(self, config: Mapping[str, Any] | None = None) -> None:
        self.config = dict(config or {})
        fmt = self.config.get("format", DEFAULT_FORMAT)
        self.format = fmt if isinstance(fmt, str) else DEFAULT_FORMAT
        self.interval = self.config.get("interval", DEFAULT_INTERVAL)

    @property
    def tooltip_enabled(self) -> bool:
        return bool(self.config.get("tooltip", True))

    def render(self, loads: Iterable[float], state: str = "") -> tuple[str | None, str | None]:
        """Return (text, tooltip); text is None when the module should be hidden."""
        load1, load5, load15 = (_Shortest(value) for value in loads)
        tooltip = None
        if self.tooltip_enabled:
            tooltip = f"Load 1: {load1}\nLoad 5: {load5}\nLoad 15: {load15}"

        fmt = self.format
        override = self.config.get(f"format-{state}")
        if state and isinstance(override, str):
            fmt = override
        if not fmt:
            return None, tooltip

        icon = _icon(self.config, state)
        text = fmt.format(
            load1=load1,
            load5=load5,
            load15=load15,
            icon1=icon,
            icon5=icon,
            icon15=icon,
        )
        return text, tooltip

    def update(self, state: str = "") -> tuple[str | None, str | None]:
        """Read the current load and render it."""
        return self.render(get_load(), state)