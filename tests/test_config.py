"""Tests for configuration parsing."""

import pytest

from wgexporter.config import ExporterConfig, parse_aliases, parse_duration, parse_listen_address
from wgexporter.errors import ConfigError


def test_parse_aliases_comma_list():
    assert parse_aliases(["abc=:alice, def=:bob"]) == {"abc=": "alice", "def=": "bob"}


def test_parse_aliases_repeated_options_merge():
    assert parse_aliases(["abc=:alice", "def=:bob"]) == {"abc=": "alice", "def=": "bob"}


def test_parse_aliases_skips_malformed_pairs():
    assert parse_aliases(["abc=:alice,garbage,x:y:z,,def=:bob"]) == {"abc=": "alice", "def=": "bob"}


def test_parse_aliases_last_one_wins():
    assert parse_aliases(["abc=:alice,abc=:alicia"]) == {"abc=": "alicia"}


def test_parse_aliases_empty():
    assert parse_aliases([]) == {}
    assert parse_aliases([""]) == {}


@pytest.mark.parametrize("text,seconds", [
    ("15s", 15.0),
    ("1m30s", 90.0),
    ("500ms", 0.5),
    ("1h", 3600.0),
    ("1.5m", 90.0),
    ("30", 30.0),
])
def test_parse_duration(text, seconds):
    assert parse_duration(text) == pytest.approx(seconds)


@pytest.mark.parametrize("text", ["", "abc", "15x", "s15", "1m 30s", "inf", "-inf", "nan", "1e400", "1e300", "1e300h"])
def test_parse_duration_rejects_garbage(text):
    with pytest.raises(ConfigError):
        parse_duration(text)


def test_parse_listen_address():
    assert parse_listen_address(":9586") == ("", 9586)
    assert parse_listen_address("127.0.0.1:8080") == ("127.0.0.1", 8080)
    assert parse_listen_address("[::1]:9586") == ("::1", 9586)


@pytest.mark.parametrize("address", ["9586", "host:http", ":70000"])
def test_parse_listen_address_rejects_bad_input(address):
    with pytest.raises(ConfigError):
        parse_listen_address(address)


def test_config_is_immutable():
    config = ExporterConfig(aliases={"abc=": "alice"})

    with pytest.raises(AttributeError):
        config.interval = 1
    with pytest.raises(TypeError):
        config.aliases["abc="] = "eve"


def test_config_validation():
    with pytest.raises(ConfigError):
        ExporterConfig(metrics_path="metrics")
    with pytest.raises(ConfigError):
        ExporterConfig(interval=0)
    with pytest.raises(ConfigError):
        ExporterConfig(scrape_timeout=-1)
    for value in (float("inf"), float("nan")):
        with pytest.raises(ConfigError):
            ExporterConfig(interval=value)
        with pytest.raises(ConfigError):
            ExporterConfig(scrape_timeout=value)


def test_zero_scrape_timeout_disables_deadline():
    assert ExporterConfig(scrape_timeout=0).fetch_timeout is None
    assert ExporterConfig(scrape_timeout=3).fetch_timeout == 3
