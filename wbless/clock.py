"""Simple local clock module."""

from __future__ import annotations

import time
from collections.abc import Mapping
from datetime import datetime
from typing import Any

DEFAULT_FORMAT = "{:%H:%M}"
DEFAULT_INTERVAL = 60


def seconds_until_next_tick(now: float, interval: float) -> float:
    """Seconds to sleep from epoch time `now` until the next multiple of `interval`."""
    if interval <= 0:
        raise ValueError("interval must be positive")
    return interval - (now % interval)


class ClockModule:
    """Renders the local time into a label text and tooltip."""

    def __init__(self, config: Mapping[str, Any] | None = None) -> None:
        self.config = dict(config or {})
        fmt = self.config.get("format", DEFAULT_FORMAT)
        self.format = fmt if isinstance(fmt, str) else DEFAULT_FORMAT
        self.interval = self.config.get("interval", DEFAULT_INTERVAL)

    @property
    def tooltip_enabled(self) -> bool:
        return bool(self.config.get("tooltip", True))

    def render(self, now: datetime | None = None) -> tuple[str, str | None]:
        """Return (text, tooltip) for `now`, defaulting to the current local time."""
        if now is None:
            time.tzset()
            now = datetime.now()
        text = self.format.format(now)
        tooltip = None
        if self.tooltip_enabled:
            tooltip_format = self.config.get("tooltip-format")
            tooltip = tooltip_format.format(now) if isinstance(tooltip_format, str) else text
        return text, tooltip