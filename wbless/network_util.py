"""Interface-name matching, bandwidth counters and netmask helpers."""

from __future__ import annotations

import ipaddress
import logging

log = logging.getLogger(__name__)

NETDEV_PATH = "/proc/net/dev"

# Columns per direction in /proc/net/dev: bytes, packets, errs, drop,
# fifo, frame/colls, compressed, multicast/carrier.
_COLUMNS_PER_DIRECTION = 8


def wildcard_match(pattern: str, text: str) -> bool:
    """Match `text` against a pattern where '*' matches any run and '?' one character."""
    p = t = 0
    star_p = star_t = -1
    while t < len(text):
        if p < len(pattern) and pattern[p] == "*":
            star_p, star_t = p, t
            p += 1
        elif p < len(pattern) and pattern[p] in ("?", text[t]):
            p += 1
            t += 1
        elif star_p >= 0:
            p = star_p + 1
            star_t += 1
            t = star_t
        else:
            return False
    while p < len(pattern) and pattern[p] == "*":
        p += 1
    return p == len(pattern)


def _counter(fields: list[str], index: int) -> int:
    try:
        return int(fields[index])
    except (IndexError, ValueError):
        return 0


def parse_netdev(text: str, ifname: str) -> tuple[int, int]:
    """Sum received and transmitted bytes for `ifname` from /proc/net/dev content."""
    received = transmitted = 0
    for line in text.splitlines()[2:]:
        name, sep, rest = line.partition(":")
        if not sep or name.strip() != ifname:
            continue
        fields = rest.split()
        received += _counter(fields, 0)
        transmitted += _counter(fields, _COLUMNS_PER_DIRECTION)
    return received, transmitted


def read_bandwidth_usage(ifname: str, path: str = NETDEV_PATH) -> tuple[int, int] | None:
    """Return (received, transmitted) byte totals, or None if the file can't be read."""
    try:
        with open(path, encoding="utf-8") as handle:
            text = handle.read()
    except OSError:
        log.warning("Failed to open netdev file %s", path)
        return None
    return parse_netdev(text, ifname)


def ipv4_netmask(prefixlen: int) -> str:
    """Return the dotted IPv4 netmask for a prefix length."""
    if not 0 <= prefixlen <= 32:
        raise ValueError(f"invalid IPv4 prefix length: {prefixlen}")
    return str(ipaddress.IPv4Network(f"0.0.0.0/{prefixlen}").netmask)


def ipv6_netmask(prefixlen: int) -> str:
    """Return the compressed IPv6 netmask for a prefix length."""
    if not 0 <= prefixlen <= 128:
        raise ValueError(f"invalid IPv6 prefix length: {prefixlen}")
    return str(ipaddress.IPv6Network(f"::/{prefixlen}").netmask)