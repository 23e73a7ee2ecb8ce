import json

import pytest

from wbless.niri.ipc import NiriIPC
from wbless.niri.language import Layout, NiriLanguage, find_layout, load_layouts

RULES = """<?xml version="1.0" encoding="UTF-8"?>
<xkbConfigRegistry version="1.1">
  <layoutList>
    <layout>
      <configItem>
        <name>us</name>
        <shortDescription>en</shortDescription>
        <description>English (US)</description>
      </configItem>
      <variantList>
        <variant>
          <configItem>
            <name>intl</name>
            <description>English (US, intl., with dead keys)</description>
          </configItem>
        </variant>
      </variantList>
    </layout>
    <layout>
      <configItem>
        <name>de</name>
        <shortDescription>de</shortDescription>
        <description>German</description>
      </configItem>
    </layout>
  </layoutList>
</xkbConfigRegistry>
"""


@pytest.fixture
def layouts(tmp_path):
    path = tmp_path / "evdev.xml"
    path.write_text(RULES)
    return load_layouts(path)


def _announce(ipc, names, current=0):
    ipc.parse_ipc(
        json.dumps({"KeyboardLayoutsChanged": {"keyboard_layouts": {"names": names, "current_idx": current}}})
    )


def test_load_layouts(layouts):
    assert layouts == [
        Layout("English (US)", "us", "", "en"),
        Layout("English (US, intl., with dead keys)", "us", "intl", "en"),
        Layout("German", "de", "", "de"),
    ]


def test_load_layouts_reads_extras(tmp_path):
    (tmp_path / "evdev.xml").write_text(RULES)
    (tmp_path / "evdev.extras.xml").write_text(RULES.replace("German", "Deutsch"))
    found = load_layouts(tmp_path / "evdev.xml")
    assert find_layout("Deutsch", found).short_name == "de"
    assert len(found) == 6


def test_find_layout(layouts):
    assert find_layout("German", layouts) == layouts[2]
    assert find_layout("Klingon", layouts) == Layout("", "", "", "")


def test_named_format_follows_events(layouts):
    ipc = NiriIPC("/nonexistent/niri.sock")
    language = NiriLanguage({"format": "{short}-{variant}"}, ipc, layouts)
    assert language.render() is None
    _announce(ipc, ["English (US)", "German"])
    assert language.render() == "us-"
    ipc.parse_ipc('{"KeyboardLayoutSwitched": {"idx": 1}}')
    assert language.render() == "de-"


def test_format_is_stripped(layouts):
    ipc = NiriIPC("/nonexistent/niri.sock")
    _announce(ipc, ["English (US)"])
    language = NiriLanguage({"format": " {long} "}, ipc, layouts)
    assert language.render() == "English (US)"


def test_short_description_override(layouts):
    ipc = NiriIPC("/nonexistent/niri.sock")
    _announce(ipc, ["English (US)"])
    language = NiriLanguage({"format-en": "EN"}, ipc, layouts)
    assert language.render() == "EN"


def test_variant_override_wins(layouts):
    ipc = NiriIPC("/nonexistent/niri.sock")
    _announce(ipc, ["English (US, intl., with dead keys)"])
    config = {"format": "[{}]", "format-en": "EN", "format-en-intl": "INTL"}
    assert NiriLanguage(config, ipc, layouts).render() == "[INTL]"


def test_empty_format_hides(layouts):
    ipc = NiriIPC("/nonexistent/niri.sock")
    _announce(ipc, ["German"])
    assert NiriLanguage({"format": ""}, ipc, layouts).render() is None


def test_index_out_of_range(layouts):
    ipc = NiriIPC("/nonexistent/niri.sock")
    _announce(ipc, ["German"], current=5)
    assert NiriLanguage({"format": "{short}"}, ipc, layouts).render() is None


def test_unknown_layout_renders_empty(layouts):
    ipc = NiriIPC("/nonexistent/niri.sock")
    _announce(ipc, ["Klingon"])
    assert NiriLanguage({"format": "{long}"}, ipc, layouts).render() == ""