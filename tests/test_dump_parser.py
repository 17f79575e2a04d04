"""Tests for parsing `wg show all dump` output."""

from datetime import datetime, timezone

import pytest

from wgexporter.collector.dump_parser import parse_dump
from wgexporter.errors import SnapshotFetchError

SAMPLE_DUMP = "\n".join([
    "\t".join(["wg0", "cHJpdmF0ZQ==", "c2VydmVyMA==", "51820", "off"]),
    "\t".join(["wg0", "YWxpY2U=", "(none)", "203.0.113.7:51820", "10.0.0.2/32",
               "1767225600", "1024", "2048", "25"]),
    "\t".join(["wg0", "Ym9i", "(none)", "(none)", "10.0.0.3/32,fd00::3/128",
               "0", "0", "0", "off"]),
    "\t".join(["wg1", "cHJpdmF0ZTE=", "c2VydmVyMQ==", "51821", "0x1234"]),
    "\t".join(["wg1", "Y2Fyb2w=", "(none)", "[2001:db8::9]:4500", "(none)",
               "1767225660", "5", "6", "off"]),
]) + "\n"


def test_parses_interfaces_in_order():
    devices = parse_dump(SAMPLE_DUMP)
    assert [d.name for d in devices] == ["wg0", "wg1"]
    assert devices[0].listen_port == 51820
    assert devices[0].public_key == "c2VydmVyMA=="
    assert len(devices[0].peers) == 2
    assert len(devices[1].peers) == 1


def test_peer_fields():
    alice = parse_dump(SAMPLE_DUMP)[0].peers[0]

    assert alice.public_key == "YWxpY2U="
    assert alice.endpoint == "203.0.113.7:51820"
    assert alice.endpoint_ip == "203.0.113.7"
    assert alice.allowed_ips == ["10.0.0.2/32"]
    assert alice.last_handshake == datetime(2026, 1, 1, tzinfo=timezone.utc)
    assert alice.receive_bytes == 1024
    assert alice.transmit_bytes == 2048
    assert alice.persistent_keepalive == 25


def test_unset_fields_become_none():
    bob = parse_dump(SAMPLE_DUMP)[0].peers[1]

    assert bob.endpoint is None
    assert bob.endpoint_ip is None
    assert bob.last_handshake is None
    assert bob.persistent_keepalive == 0
    assert bob.allowed_ips == ["10.0.0.3/32", "fd00::3/128"]


def test_ipv6_endpoint():
    carol = parse_dump(SAMPLE_DUMP)[1].peers[0]
    assert carol.endpoint_ip == "2001:db8::9"
    assert carol.allowed_ips == []


def test_empty_output_means_no_interfaces():
    assert parse_dump("") == []
    assert parse_dump("\n\n") == []


def test_wrong_field_count_is_a_fetch_error():
    with pytest.raises(SnapshotFetchError, match="line 1"):
        parse_dump("wg0\tonly\tthree\n")


def test_non_numeric_counter_is_a_fetch_error():
    bad = "\t".join(["wg0", "a2V5", "(none)", "(none)", "(none)", "0", "lots", "0", "off"])
    with pytest.raises(SnapshotFetchError):
        parse_dump(bad)
