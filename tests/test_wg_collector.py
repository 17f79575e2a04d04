"""
Tests for the wg-tool provider, using small shell scripts in place of the
real binary.
"""

import os
import stat
import sys

import pytest

from wgexporter.collector.wg_collector import WgCollector
from wgexporter.errors import ProviderAcquisitionError, SnapshotFetchError

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="needs a POSIX shell")

DUMP = "wg0\tcHJpdg==\tcHVi\t51820\toff\nwg0\tYWxpY2U=\t(none)\t192.0.2.4:51820\t10.0.0.2/32\t0\t10\t20\toff\n"


def _fake_wg(tmp_path, body: str) -> str:
    path = tmp_path / "wg"
    path.write_text("#!/bin/sh\n" + body + "\n")
    path.chmod(path.stat().st_mode | stat.S_IEXEC | stat.S_IXGRP | stat.S_IXOTH)
    return str(path)


def test_reads_devices_from_dump(tmp_path):
    dump_file = tmp_path / "dump.txt"
    dump_file.write_text(DUMP)
    collector = WgCollector(binary=_fake_wg(tmp_path, f'cat "{dump_file}"'))
    collector.open()

    devices = collector.devices()

    assert [d.name for d in devices] == ["wg0"]
    assert devices[0].peers[0].public_key == "YWxpY2U="
    assert devices[0].peers[0].transmit_bytes == 20


def test_missing_binary_fails_acquisition(tmp_path):
    collector = WgCollector(binary=str(tmp_path / "definitely-not-wg"))
    with pytest.raises(ProviderAcquisitionError):
        collector.open()


def test_nonzero_exit_is_a_fetch_error(tmp_path):
    collector = WgCollector(binary=_fake_wg(tmp_path, 'echo "Unable to access interface: Operation not permitted" >&2; exit 1'))
    collector.open()

    with pytest.raises(SnapshotFetchError, match="Operation not permitted"):
        collector.devices()


def test_slow_tool_times_out(tmp_path):
    collector = WgCollector(binary=_fake_wg(tmp_path, "exec sleep 5"), timeout_seconds=0.2)
    collector.open()

    with pytest.raises(SnapshotFetchError, match="timed out"):
        collector.devices()


def test_fetch_before_open_fails():
    with pytest.raises(SnapshotFetchError):
        WgCollector().devices()


def test_name_includes_binary(tmp_path):
    path = _fake_wg(tmp_path, "true")
    collector = WgCollector(binary=path)
    collector.open()
    assert os.path.basename(path) in collector.name()
