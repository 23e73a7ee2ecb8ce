"""Parsing of wireless BSS information reported by nl80211 scans."""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

HARDWARE_OPTIMUM_DBM = -45
HARDWARE_MIN_DBM = -90
BSSID_LENGTH = 6

_IE_HEADER_LEN = 2

_MARKUP_ESCAPES = str.maketrans(
    {"&": "&amp;", "<": "&lt;", ">": "&gt;", "'": "&#39;", '"': "&quot;"}
)

_QUALITY_LABELS = (
    (-50, "Great Connectivity"),
    (-60, "Good Connectivity"),
    (-67, "Streaming"),
    (-70, "Web Surfing"),
    (-80, "Basic Connectivity"),
)


class BssStatus(enum.IntEnum):
    """Association status of a BSS, as numbered by nl80211."""

    AUTHENTICATED = 0
    ASSOCIATED = 1
    IBSS_JOINED = 2


@dataclass(frozen=True)
class WifiInfo:
    """Wireless details of one BSS; a field is None when the scan did not report it."""

    essid: str | None = None
    bssid: str | None = None
    signal_strength_dbm: int | None = None
    signal_strength: int | None = None
    signal_strength_app: str | None = None
    frequency: float | None = None


def _escape_markup(text: str) -> str:
    return text.translate(_MARKUP_ESCAPES)


def parse_essid(information_elements: bytes) -> str | None:
    """Extract the markup-escaped SSID from raw information elements, or None."""
    ies = bytes(information_elements)
    pos = 0
    remaining = len(ies)
    while remaining > _IE_HEADER_LEN and ies[pos] != 0:
        step = ies[pos + 1] + _IE_HEADER_LEN
        remaining -= step
        pos += step
    if remaining > _IE_HEADER_LEN and remaining > ies[pos + 1] + _IE_HEADER_LEN:
        start = pos + _IE_HEADER_LEN
        raw = ies[start : start + ies[pos + 1]]
        return _escape_markup(raw.decode("utf-8", errors="replace"))
    return None


def signal_strength(dbm: int) -> int:
    """Return a 0-100 quality that penalises signals both too weak and too strong."""
    span = float(HARDWARE_OPTIMUM_DBM - HARDWARE_MIN_DBM)
    strength = int(100 - (abs(dbm - HARDWARE_OPTIMUM_DBM) / span) * 100)
    return max(0, min(100, strength))


def signal_quality_label(dbm: int) -> str:
    """Describe what a signal level in dBm is good for."""
    for threshold, label in _QUALITY_LABELS:
        if dbm >= threshold:
            return label
    return "Poor Connectivity"


def format_bssid(raw: bytes) -> str | None:
    """Format a 6-byte BSSID as unpadded hex groups, or None for another length."""
    raw = bytes(raw)
    if len(raw) != BSSID_LENGTH:
        return None
    return ":".join(f"{octet:x}" for octet in raw)


def is_associated_or_joined(status: int | None) -> bool:
    """Whether a BSS status means we are connected to that BSS."""
    if status is None:
        return False
    return status in (BssStatus.ASSOCIATED, BssStatus.IBSS_JOINED, BssStatus.AUTHENTICATED)


def _mbm_to_dbm(mbm: int) -> int:
    quotient = abs(mbm) // 100
    return quotient if mbm >= 0 else -quotient


def parse_bss(attributes: Mapping[str, Any]) -> WifiInfo | None:
    """Build WifiInfo from BSS attributes, or None when the BSS is not ours.

    Recognised keys: status, information_elements, signal_mbm, signal_unspec,
    frequency (MHz) and bssid.
    """
    if not is_associated_or_joined(attributes.get("status")):
        return None

    fields: dict[str, Any] = {}
    ies = attributes.get("information_elements")
    if ies is not None:
        fields["essid"] = parse_essid(ies)

    mbm = attributes.get("signal_mbm")
    if mbm is not None:
        dbm = _mbm_to_dbm(int(mbm))
        fields["signal_strength_dbm"] = dbm
        fields["signal_strength"] = signal_strength(dbm)
        fields["signal_strength_app"] = signal_quality_label(dbm)
    unspec = attributes.get("signal_unspec")
    if unspec is not None:
        fields["signal_strength"] = int(unspec)

    frequency = attributes.get("frequency")
    if frequency is not None:
        fields["frequency"] = float(frequency) / 1000

    bssid = attributes.get("bssid")
    if bssid is not None:
        fields["bssid"] = format_bssid(bssid)

    return WifiInfo(**fields)