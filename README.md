# wbless

The logic behind a set of status-bar modules, kept apart from any widget
toolkit. Each module reads its settings from a plain dictionary, shaped
like a JSON bar configuration, and returns the text a bar would show.
Drawing that text is left to the caller.

The package needs nothing outside the Python standard library and runs
on Python 3.10 or newer.

## Modules

| Module | What it does |
| --- | --- |
| `wbless.load` | Load averages from `os.getloadavg`, rounded up to two decimals (`get_load`, `LoadModule`) |
| `wbless.memory` | RAM and swap usage from `/proc/meminfo`, counting the ZFS ARC size as available (`parse_meminfo`, `zfs_arc_size`, `read_meminfo`, `MemoryStats`, `MemoryModule`) |
| `wbless.clock` | A local-time clock and the wait until the next interval boundary (`ClockModule`, `seconds_until_next_tick`) |
| `wbless.network_util` | Interface wildcards, `/proc/net/dev` byte counters and netmasks (`wildcard_match`, `parse_netdev`, `read_bandwidth_usage`, `ipv4_netmask`, `ipv6_netmask`) |
| `wbless.network_wifi` | Wi-Fi BSS details: ESSID, BSSID, signal strength and frequency (`BssStatus`, `WifiInfo`, `parse_bss`, `parse_essid`, `signal_strength`, `signal_quality_label`, `format_bssid`, `is_associated_or_joined`) |
| `wbless.network` | Follows the default route, its interface and addresses from link, address and route events, and renders them (`Network`, `LinkEvent`, `AddressEvent`, `RouteEvent`, `DumpRequest`, `AddrPreference`) |
| `wbless.hyprland.ipc` | Hyprland request and event sockets (`HyprlandIPC`, `get_socket_folder`) |
| `wbless.hyprland.payload` | A window waiting to be placed on a workspace (`WindowCreationPayload`) |
| `wbless.niri.ipc` | niri socket client that tracks workspaces, windows and keyboard layouts (`NiriIPC`) |
| `wbless.niri.workspaces` | One button state per niri workspace (`NiriWorkspaces`, `WorkspaceButton`, `focus_request`) |
| `wbless.niri.language` | Active keyboard layout, looked up in the XKB rules files (`NiriLanguage`, `Layout`, `load_layouts`, `find_layout`) |

The label modules (`LoadModule`, `MemoryModule`, `ClockModule`) return a
`(text, tooltip)` pair. A `None` text from `LoadModule` or
`MemoryModule` means the module should be hidden; a `None` tooltip means
tooltips are turned off with `"tooltip": false`.

## Examples

Interface names are matched the way the `interface` setting does: `*`
stands for any run of characters and `?` for exactly one.

```python
from wbless.network_util import wildcard_match

wildcard_match("wl*", "wlan0")    # True
wildcard_match("eth?", "eth10")   # False
```

Memory, rendered through a format string:

```python
from wbless.memory import MemoryModule, read_meminfo

module = MemoryModule({"format": "{used:0.1f}G / {total:0.1f}G"})
text, tooltip = module.render(read_meminfo())
```

A clock that wakes on each minute:

```python
import time
from wbless.clock import ClockModule, seconds_until_next_tick

clock = ClockModule({"format": "{:%H:%M}"})
text, tooltip = clock.render()
time.sleep(seconds_until_next_tick(time.time(), clock.interval))
```

The network module is fed events and asked for its text:

```python
from wbless.network import Network, RouteEvent, LinkEvent, AddressEvent

net = Network({"format": "{ifname} {ipaddr}/{cidr}"})
net.handle_route(RouteEvent(oif=2, gateway="192.0.2.1"))
net.handle_link(LinkEvent(index=2, ifname="eth0", carrier=True))
net.handle_address(AddressEvent(index=2, version=4, prefixlen=24, local="192.0.2.10"))
text, tooltip = net.update()   # ("eth0 192.0.2.10/24", ...)
```

Hyprland: the IPC object finds its sockets through
`HYPRLAND_INSTANCE_SIGNATURE` and `$XDG_RUNTIME_DIR/hypr`, falling back
to `/tmp/hypr`. `listen()` blocks reading events and hands each line to
the handlers registered for its name; `stop()` ends it.

```python
from wbless.hyprland.ipc import HyprlandIPC

ipc = HyprlandIPC()
monitors = ipc.get_socket1_json_reply("monitors")
ipc.register_for_ipc("workspacev2", print)
```

niri: `NiriIPC` reads the socket path from `NIRI_SOCKET`. `start()`
follows the event stream in a daemon thread, keeping `workspaces`,
`windows`, `keyboard_layout_names` and `keyboard_layout_current` up to
date. `NiriWorkspaces(config, output_name, ipc).do_update()` returns the
buttons for this output in display order, and `click(workspace_id)`
sends a focus request.

## What the package does not do

- It draws nothing; every module returns text and state for a caller to
  show.
- `Network` does not open netlink sockets or run Wi-Fi scans itself. The
  caller turns kernel messages into `LinkEvent`, `AddressEvent` and
  `RouteEvent`, sends the dumps listed in `Network.requests`, and passes
  scan attributes through `parse_bss` to `Network.apply_wifi`.
- There is no Hyprland workspaces module: the package has the Hyprland
  IPC client and `WindowCreationPayload`, but nothing that builds,
  sorts or renders Hyprland workspace buttons.
- There is no command to run; the modules are used as a library.

## Running the tests

Install the `test` extra and run pytest from the project directory.