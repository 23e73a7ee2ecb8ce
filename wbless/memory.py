"""Memory usage module."""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

MEMINFO_PATH = "/proc/meminfo"
ARCSTATS_PATH = "/proc/spl/kstat/zfs/arcstats"
DEFAULT_FORMAT = "{}%"
DEFAULT_INTERVAL = 30

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")
_KIB_PER_HUNDREDTH_GIB = 10485.76


class _Shortest(float):
    def __format__(self, spec: str) -> str:
        if spec:
            return float.__format__(self, spec)
        text = repr(float(self))
        return text[:-2] if text.endswith(".0") else text

    def __str__(self) -> str:
        return format(self, "")


def _round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def _gib(kib: int) -> _Shortest:
    return _Shortest(_round_half_away(kib / _KIB_PER_HUNDREDTH_GIB) / 100)


def _icon(config: Mapping[str, Any], state: str) -> str:
    icons = config.get("format-icons")
    if isinstance(icons, str):
        return icons
    if isinstance(icons, Mapping):
        return str(icons.get(state, icons.get("default", "")))
    return ""


def parse_meminfo(text: str) -> dict[str, int]:
    """Parse /proc/meminfo content into a name to kB mapping."""
    info: dict[str, int] = {}
    for line in text.splitlines():
        name, sep, rest = line.partition(":")
        if not sep:
            continue
        match = _LEADING_INT.match(rest)
        if match is None:
            raise ValueError(f"invalid value for {name!r}: {rest.strip()!r}")
        info[name] = int(match.group(1))
    return info


def zfs_arc_size(text: str) -> int:
    """Return the ZFS ARC size in kB from arcstats content, or 0."""
    for line in text.splitlines():
        fields = line.split()
        if len(fields) >= 3 and fields[0] == "size":
            try:
                return int(fields[2]) // 1024
            except ValueError:
                return 0
    return 0


def read_meminfo(meminfo_path: str = MEMINFO_PATH, arcstats_path: str = ARCSTATS_PATH) -> dict[str, int]:
    """Read meminfo and add the ZFS ARC size under 'zfs_size'."""
    try:
        with open(meminfo_path, encoding="utf-8") as handle:
            info = parse_meminfo(handle.read())
    except OSError as exc:
        raise RuntimeError(f"Can't open {meminfo_path}") from exc
    try:
        with open(arcstats_path, encoding="utf-8") as handle:
            info["zfs_size"] = zfs_arc_size(handle.read())
    except OSError:
        info["zfs_size"] = 0
    return info


@dataclass(frozen=True)
class MemoryStats:
    """Derived RAM and swap figures; sizes in GiB."""

    total: float
    swap_total: float
    percentage: int
    swap_percentage: int
    used: float
    swap_used: float
    avail: float
    swap_avail: float
    swap_state: str

    @classmethod
    def from_meminfo(cls, meminfo: Mapping[str, int]) -> MemoryStats | None:
        """Compute statistics, or None when the total memory is unknown."""

        def get(key: str) -> int:
            return meminfo.get(key, 0)

        memtotal = get("MemTotal")
        swaptotal = get("SwapTotal")
        swapfree = get("SwapFree")
        if "MemAvailable" in meminfo:
            memfree = get("MemAvailable") + get("zfs_size")
        else:
            memfree = (
                get("MemFree")
                + get("Buffers")
                + get("Cached")
                + get("SReclaimable")
                - get("Shmem")
                + get("zfs_size")
            )
        if memtotal <= 0:
            return None

        swap_percentage = 0
        if swaptotal and swapfree:
            swap_percentage = 100 * (swaptotal - swapfree) // swaptotal
        return cls(
            total=_gib(memtotal),
            swap_total=_gib(swaptotal),
            percentage=100 * (memtotal - memfree) // memtotal,
            swap_percentage=swap_percentage,
            used=_gib(memtotal - memfree),
            swap_used=_gib(swaptotal - swapfree),
            avail=_gib(memfree),
            swap_avail=_gib(swapfree),
            swap_state="Off" if swaptotal == 0 else "On",
        )


class MemoryModule:
    """Renders memory usage into a label text and tooltip."""

    def __init__(self, config: Mapping[str, Any] | None = None) -> None:
        self.config = dict(config or {})
        fmt = self.config.get("format", DEFAULT_FORMAT)
        self.format = fmt if isinstance(fmt, str) else DEFAULT_FORMAT
        self.interval = self.config.get("interval", DEFAULT_INTERVAL)

    @property
    def tooltip_enabled(self) -> bool:
        return bool(self.config.get("tooltip", True))

    def render(self, meminfo: Mapping[str, int], state: str = "") -> tuple[str | None, str | None]:
        """Return (text, tooltip); text is None when the module should be hidden."""
        stats = MemoryStats.from_meminfo(meminfo)
        if stats is None:
            return None, None

        named = {
            "total": stats.total,
            "swapTotal": stats.swap_total,
            "percentage": stats.percentage,
            "swapState": stats.swap_state,
            "swapPercentage": stats.swap_percentage,
            "used": stats.used,
            "swapUsed": stats.swap_used,
            "avail": stats.avail,
            "swapAvail": stats.swap_avail,
        }

        fmt = self.format
        override = self.config.get(f"format-{state}")
        if state and isinstance(override, str):
            fmt = override

        text = None
        if fmt:
            text = fmt.format(stats.percentage, icon=_icon(self.config, state), **named)

        tooltip = None
        if self.tooltip_enabled:
            tooltip_format = self.config.get("tooltip-format")
            if isinstance(tooltip_format, str):
                tooltip = tooltip_format.format(stats.percentage, **named)
            else:
                tooltip = f"{stats.used:.1f}GiB used"
        return text, tooltip