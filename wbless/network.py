"""Network status module driven by routing and link events."""

from __future__ import annotations

import enum
import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from wbless.network_util import (
    NETDEV_PATH,
    ipv4_netmask,
    ipv6_netmask,
    read_bandwidth_usage,
    wildcard_match,
)
from wbless.network_wifi import WifiInfo

log = logging.getLogger(__name__)

DEFAULT_FORMAT = "{ifname}"
DEFAULT_INTERVAL = 60

RT_SCOPE_UNIVERSE = 0
RT_SCOPE_LINK = 253
RT_TABLE_MAIN = 254

_RATE_PREFIXES = ("", "k", "M", "G", "T", "P")


class AddrPreference(enum.Enum):
    """Which address family the module reports."""

    IPV4 = "ipv4"
    IPV6 = "ipv6"
    IPV4_6 = "ipv4_6"


class DumpRequest(enum.Enum):
    """A full state dump to ask the kernel for."""

    ROUTE = "route"
    LINK = "link"
    ADDR = "addr"


@dataclass(frozen=True)
class LinkEvent:
    """A link appeared, changed or was deleted."""

    index: int
    ifname: str | None = None
    up: bool = True
    point_to_point: bool = False
    carrier: bool | None = None
    deleted: bool = False


@dataclass(frozen=True)
class AddressEvent:
    """An address was added to or removed from a link."""

    index: int
    version: int
    prefixlen: int
    address: str | None = None
    local: str | None = None
    scope: int = RT_SCOPE_UNIVERSE
    deleted: bool = False


@dataclass(frozen=True)
class RouteEvent:
    """A routing table entry was added or removed."""

    oif: int = -1
    gateway: str | None = None
    destination: bytes | None = None
    priority: int = 0
    version: int = 4
    table: int = RT_TABLE_MAIN
    deleted: bool = False


def _rate(value: int, unit: str) -> str:
    amount = float(value)
    prefix = 0
    while amount >= 1000 and prefix < len(_RATE_PREFIXES) - 1:
        amount /= 1000
        prefix += 1
    return f"{amount:.3g}{_RATE_PREFIXES[prefix]}{unit}"


def _icon(config: Mapping[str, Any], percentage: int, state: str) -> str:
    icons = config.get("format-icons")
    if isinstance(icons, Mapping):
        icons = icons.get(state, icons.get("default"))
    if isinstance(icons, str):
        return icons
    if isinstance(icons, list) and icons:
        index = max(0, min(len(icons) - 1, percentage * len(icons) // 100))
        return str(icons[index])
    return ""


class Network:
    """Tracks the interface used to reach the outside world and renders its state."""

    netdev_path = NETDEV_PATH

    def __init__(self, config: Mapping[str, Any] | None = None) -> None:
        self.config = dict(config or {})
        self._lock = threading.RLock()
        interval = int(self.config.get("interval", DEFAULT_INTERVAL))
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = interval

        family = self.config.get("family")
        if family == "ipv6":
            self.addr_pref = AddrPreference.IPV6
        elif family == "ipv4_6":
            self.addr_pref = AddrPreference.IPV4_6
        else:
            self.addr_pref = AddrPreference.IPV4

        self.ifid = -1
        self.ifname = ""
        self.essid = ""
        self.bssid = ""
        self.ipaddr = ""
        self.ipaddr6 = ""
        self.gwaddr = ""
        self.netmask = ""
        self.netmask6 = ""
        self.carrier = False
        self.cidr = 0
        self.cidr6 = 0
        self.signal_strength_dbm = 0
        self.signal_strength = 0
        self.signal_strength_app = ""
        self.frequency = 0.0
        self.is_p2p = False
        self.route_priority = 0

        self.alt = False
        self.format = DEFAULT_FORMAT
        self.current_state = ""
        self.label = "<s></s>"

        self.want_route_dump = False
        self.want_link_dump = False
        self.want_addr_dump = False
        self.dump_in_progress = False
        self.requests: list[DumpRequest] = []
        self.link_queries: list[int] = []
        self.dirty = True
        self.wifi_refresh_requested = False

        bandwidth = read_bandwidth_usage(self.ifname, self.netdev_path)
        self.bandwidth_down_total, self.bandwidth_up_total = bandwidth or (0, 0)

        if self._configured_interface() is None:
            self.want_route_dump = True
        else:
            self.want_link_dump = True
            self.want_addr_dump = True
        self.ask_for_state_dump()

    def _configured_interface(self) -> str | None:
        value = self.config.get("interface")
        return value if isinstance(value, str) else None

    def state(self) -> str:
        """One of 'disconnected', 'linked', 'ethernet' or 'wifi'."""
        if self.ifid == -1 or not self.carrier:
            return "disconnected"
        if not self.ipaddr and not self.ipaddr6:
            return "linked"
        if not self.essid:
            return "ethernet"
        return "wifi"

    def check_interface(self, name: str) -> bool:
        """Whether `name` is the configured interface or matches its wildcard."""
        pattern = self._configured_interface()
        if pattern is None:
            return False
        return pattern == name or wildcard_match(pattern, name)

    def _clear_wifi(self) -> None:
        self.essid = ""
        self.bssid = ""
        self.signal_strength_dbm = 0
        self.signal_strength = 0
        self.signal_strength_app = ""
        self.frequency = 0.0

    def clear_iface(self) -> None:
        """Forget everything about the current interface."""
        with self._lock:
            self.ifid = -1
            self.ifname = ""
            self.ipaddr = ""
            self.ipaddr6 = ""
            self.gwaddr = ""
            self.netmask = ""
            self.netmask6 = ""
            self.carrier = False
            self.cidr = 0
            self.cidr6 = 0
            self._clear_wifi()

    def handle_link(self, event: LinkEvent) -> None:
        """Apply a link event."""
        with self._lock:
            if self.ifid != -1 and event.index != self.ifid:
                return

            if self.ifid != -1 and not event.up and self._configured_interface() is None:
                log.debug("network: if%s down", self.ifid)
                self.clear_iface()
                self.dirty = True
                self.want_route_dump = True
                self.ask_for_state_dump()
                return

            if (
                event.ifname is not None
                and event.point_to_point
                and self.check_interface(event.ifname)
            ):
                self.is_p2p = True

            if not event.deleted and event.index == self.ifid:
                if not self.ifname and event.ifname is not None:
                    self.ifname = event.ifname
                if event.carrier is not None:
                    if self.carrier != event.carrier:
                        if event.carrier:
                            self.wifi_refresh_requested = True
                        else:
                            self._clear_wifi()
                    self.carrier = event.carrier
            elif not event.deleted and self.ifid == -1:
                new_ifname = event.ifname or ""
                if self.check_interface(new_ifname):
                    log.debug("network: selecting new interface %s/%s", new_ifname, event.index)
                    self.ifname = new_ifname
                    self.ifid = event.index
                    if event.point_to_point:
                        self.is_p2p = True
                    if event.carrier is not None:
                        self.carrier = event.carrier
                    self.wifi_refresh_requested = True
            elif event.deleted and self.ifid >= 0:
                log.debug("network: interface %s/%s deleted", self.ifname, self.ifid)
                self.clear_iface()
                self.dirty = True

    def handle_address(self, event: AddressEvent) -> None:
        """Apply an address event for the current interface."""
        with self._lock:
            if event.index != self.ifid:
                return
            # Only global addresses are of interest.
            if event.scope >= RT_SCOPE_LINK:
                return

            addresses = []
            if event.address is not None and not self.is_p2p:
                addresses.append(event.address)
            if event.local is not None:
                addresses.append(event.local)

            v4 = self.addr_pref in (AddrPreference.IPV4, AddrPreference.IPV4_6)
            v6 = self.addr_pref in (AddrPreference.IPV6, AddrPreference.IPV4_6)
            for address in addresses:
                if event.deleted:
                    self.ipaddr = ""
                    self.ipaddr6 = ""
                    self.cidr = 0
                    self.cidr6 = 0
                    self.netmask = ""
                    self.netmask6 = ""
                    log.debug(
                        "network: %s addr deleted %s/%s", self.ifname, address, event.prefixlen
                    )
                else:
                    if v4 and self.cidr == 0 and event.version == 4:
                        self.ipaddr = address
                        self.cidr = event.prefixlen
                    elif v6 and self.cidr6 == 0 and event.version == 6:
                        self.ipaddr6 = address
                        self.cidr6 = event.prefixlen
                    if event.version == 4:
                        self.netmask = ipv4_netmask(event.prefixlen)
                        # An IPv4 mask is reported as netmask6 as well.
                        self.netmask6 = self.netmask
                    elif event.version == 6:
                        self.netmask6 = ipv6_netmask(event.prefixlen)
                    log.debug("network: %s, new addr %s/%s", self.ifname, self.ipaddr, self.cidr)
                self.dirty = True

    def handle_route(self, event: RouteEvent) -> None:
        """Apply a route event, following the default route with the best metric."""
        with self._lock:
            if event.table != RT_TABLE_MAIN:
                return
            has_destination = False
            if event.destination is not None:
                expected = 4 if event.version == 4 else 16
                if len(event.destination) == expected:
                    has_destination = not any(event.destination)
            if event.gateway is None or has_destination or event.oif == -1:
                return

            if not event.deleted and (self.ifid == -1 or event.priority < self.route_priority):
                self.clear_iface()
                self.ifid = event.oif
                self.route_priority = event.priority
                self.gwaddr = event.gateway
                log.debug(
                    "network: new default route via %s on if%s metric %s",
                    event.gateway,
                    event.oif,
                    event.priority,
                )
                self.link_queries.append(event.oif)
                self.want_addr_dump = True
                self.ask_for_state_dump()
                self.wifi_refresh_requested = True
            elif (
                event.deleted
                and event.oif == self.ifid
                and self.route_priority == event.priority
            ):
                log.debug(
                    "network: default route deleted %s/if%s metric %s",
                    self.ifname,
                    event.oif,
                    event.priority,
                )
                self.clear_iface()
                self.dirty = True
                self.want_route_dump = True
                self.ask_for_state_dump()

    def apply_wifi(self, info: WifiInfo | None) -> None:
        """Take over the wireless details of the BSS we are connected to."""
        if info is None:
            return
        with self._lock:
            if info.essid is not None:
                self.essid = info.essid
            if info.signal_strength_dbm is not None:
                self.signal_strength_dbm = info.signal_strength_dbm
            if info.signal_strength is not None:
                self.signal_strength = info.signal_strength
            if info.signal_strength_app is not None:
                self.signal_strength_app = info.signal_strength_app
            if info.frequency is not None:
                self.frequency = info.frequency
            if info.bssid is not None:
                self.bssid = info.bssid
            self.dirty = True

    def ask_for_state_dump(self) -> DumpRequest | None:
        """Queue the next wanted dump unless one is already running."""
        with self._lock:
            if self.dump_in_progress:
                return None
            if self.want_route_dump:
                self.want_route_dump = False
                request = DumpRequest.ROUTE
            elif self.want_link_dump:
                self.want_link_dump = False
                request = DumpRequest.LINK
            elif self.want_addr_dump:
                self.want_addr_dump = False
                request = DumpRequest.ADDR
            else:
                return None
            self.dump_in_progress = True
            self.requests.append(request)
            return request

    def dump_done(self) -> DumpRequest | None:
        """Mark the running dump finished and start the next one, if any."""
        with self._lock:
            self.dump_in_progress = False
            return self.ask_for_state_dump()

    def _final_ipaddr(self) -> str:
        if self.addr_pref is AddrPreference.IPV6:
            return self.ipaddr6
        if self.addr_pref is AddrPreference.IPV4_6:
            return f"{self.ipaddr}\n{self.ipaddr6}"
        return self.ipaddr

    def update(self) -> tuple[str, str | None]:
        """Render the label text and tooltip; an empty text means hidden."""
        with self._lock:
            down = up = 0
            bandwidth = read_bandwidth_usage(self.ifname, self.netdev_path)
            if bandwidth is not None:
                down = bandwidth[0] - self.bandwidth_down_total
                up = bandwidth[1] - self.bandwidth_up_total
                self.bandwidth_down_total, self.bandwidth_up_total = bandwidth

            tooltip_format = ""
            if not self.alt:
                state = self.state()
                state_format = self.config.get(f"format-{state}")
                plain_format = self.config.get("format")
                if isinstance(state_format, str):
                    self.format = state_format
                elif isinstance(plain_format, str):
                    self.format = plain_format
                else:
                    self.format = DEFAULT_FORMAT
                state_tooltip = self.config.get(f"tooltip-format-{state}")
                if isinstance(state_tooltip, str):
                    tooltip_format = state_tooltip
                self.current_state = state

            interval = self.interval
            total = up + down
            args = {
                "essid": self.essid,
                "bssid": self.bssid,
                "signaldBm": self.signal_strength_dbm,
                "signalStrength": self.signal_strength,
                "signalStrengthApp": self.signal_strength_app,
                "ifname": self.ifname,
                "netmask": self.netmask,
                "netmask6": self.netmask6,
                "ipaddr": self._final_ipaddr(),
                "gwaddr": self.gwaddr,
                "cidr": self.cidr,
                "cidr6": self.cidr6,
                "frequency": f"{self.frequency:.1f}",
                "icon": _icon(self.config, self.signal_strength, self.current_state),
                "bandwidthDownBits": _rate(down * 8 // interval, "b/s"),
                "bandwidthUpBits": _rate(up * 8 // interval, "b/s"),
                "bandwidthTotalBits": _rate(total * 8 // interval, "b/s"),
                "bandwidthDownOctets": _rate(down // interval, "o/s"),
                "bandwidthUpOctets": _rate(up // interval, "o/s"),
                "bandwidthTotalOctets": _rate(total // interval, "o/s"),
                "bandwidthDownBytes": _rate(down // interval, "B/s"),
                "bandwidthUpBytes": _rate(up // interval, "B/s"),
                "bandwidthTotalBytes": _rate(total // interval, "B/s"),
            }
            text = self.format.format(**args)
            self.label = text

            tooltip = None
            if self.config.get("tooltip", True):
                generic = self.config.get("tooltip-format")
                if not tooltip_format and isinstance(generic, str):
                    tooltip_format = generic
                tooltip = tooltip_format.format(**args) if tooltip_format else text
            self.dirty = False
            return text, tooltip