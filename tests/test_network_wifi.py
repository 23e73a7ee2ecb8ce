import pytest

from wbless.network_wifi import (
    BssStatus,
    format_bssid,
    is_associated_or_joined,
    parse_bss,
    parse_essid,
    signal_quality_label,
    signal_strength,
)

SUPPORTED_RATES = bytes([1, 1, 0x82])


def ssid_element(ssid: bytes) -> bytes:
    return bytes([0, len(ssid)]) + ssid


@pytest.mark.parametrize("ssid", [b"home", b"cafe-guest", b"x" * 32])
def test_parse_essid_round_trip(ssid):
    assert parse_essid(ssid_element(ssid) + SUPPORTED_RATES) == ssid.decode()


def test_parse_essid_skips_leading_elements():
    ies = bytes([5, 2, 9, 9]) + ssid_element(b"office") + SUPPORTED_RATES
    assert parse_essid(ies) == "office"


def test_parse_essid_escapes_markup():
    assert parse_essid(ssid_element(b"<b>&") + SUPPORTED_RATES) == "&lt;b&gt;&amp;"


def test_parse_essid_requires_trailing_data():
    assert parse_essid(ssid_element(b"alone")) is None


def test_parse_essid_empty_input():
    assert parse_essid(b"") is None


def test_signal_strength_peaks_at_optimum():
    assert signal_strength(-45) == 100


def test_signal_strength_floor():
    assert signal_strength(-90) == 0
    assert signal_strength(-120) == 0


def test_signal_strength_symmetric_and_bounded():
    for delta in range(0, 60):
        weak = signal_strength(-45 - delta)
        strong = signal_strength(-45 + delta)
        assert weak == strong
        assert 0 <= weak <= 100


def test_signal_strength_non_increasing_when_weaker():
    values = [signal_strength(dbm) for dbm in range(-45, -100, -1)]
    assert values == sorted(values, reverse=True)


@pytest.mark.parametrize(
    "dbm, label",
    [
        (-50, "Great Connectivity"),
        (-60, "Good Connectivity"),
        (-67, "Streaming"),
        (-70, "Web Surfing"),
        (-80, "Basic Connectivity"),
        (-81, "Poor Connectivity"),
    ],
)
def test_signal_quality_label(dbm, label):
    assert signal_quality_label(dbm) == label


def test_format_bssid_unpadded_hex():
    assert format_bssid(bytes.fromhex("02005e10000a")) == "2:0:5e:10:0:a"


@pytest.mark.parametrize("raw", [b"", b"\x01\x02\x03", bytes(7)])
def test_format_bssid_rejects_wrong_length(raw):
    assert format_bssid(raw) is None


@pytest.mark.parametrize("status", list(BssStatus))
def test_known_statuses_are_connected(status):
    assert is_associated_or_joined(status) is True


@pytest.mark.parametrize("status", [None, 7])
def test_other_statuses_are_not_connected(status):
    assert is_associated_or_joined(status) is False


def test_parse_bss_not_associated():
    assert parse_bss({"status": 7, "frequency": 2412}) is None
    assert parse_bss({"frequency": 2412}) is None


def test_parse_bss_full():
    mac = bytes.fromhex("02005e10000a")
    info = parse_bss(
        {
            "status": BssStatus.ASSOCIATED,
            "information_elements": ssid_element(b"home") + SUPPORTED_RATES,
            "signal_mbm": -6000,
            "frequency": 2412,
            "bssid": mac,
        }
    )
    assert info.essid == "home"
    assert info.signal_strength_dbm * 100 == -6000
    assert info.signal_strength == signal_strength(info.signal_strength_dbm)
    assert info.signal_strength_app == signal_quality_label(info.signal_strength_dbm)
    assert info.frequency * 1000 == pytest.approx(2412)
    assert info.bssid == format_bssid(mac)


def test_parse_bss_unspec_overrides_strength():
    info = parse_bss({"status": BssStatus.IBSS_JOINED, "signal_mbm": -5000, "signal_unspec": 42})
    assert info.signal_strength == 42
    assert info.signal_strength_dbm * 100 == -5000


def test_parse_bss_missing_fields_stay_none():
    info = parse_bss({"status": BssStatus.AUTHENTICATED})
    assert info.essid is None
    assert info.frequency is None
    assert info.signal_strength is None