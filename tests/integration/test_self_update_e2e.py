"""End-to-end self-update against an in-memory release server.

Uses the real BinaryReplacer on a temporary "installed" binary; only HTTP is
served by httpx.MockTransport.
"""

from __future__ import annotations

import io
import json
from pathlib import Path

import httpx
import pytest

from selfupdater.errors import DownloadError, UserAbortError
from selfupdater.models import UpdateState
from selfupdater.partition import StaticPartition
from selfupdater.replace import BinaryReplacer
from selfupdater.updater import SelfUpdater

ROOT_URL = "https://releases.example.com/cl"


class _ReleaseServer:
    """Serves latest.json and one binary per os/arch."""

    def __init__(self, version: str, binary: bytes, start: int = 0, end: int = 255) -> None:
        self.metadata = json.dumps(
            {
                "version": version,
                "releaseNotes": f"release {version}",
                "startPartition": start,
                "endPartition": end,
            }
        ).encode()
        self.binary = binary
        self.paths: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.paths.append(request.url.path)
        if request.url.path == "/cl/latest.json":
            return httpx.Response(200, content=self.metadata)
        if request.url.path == "/cl/current/linux/amd64/cl":
            return httpx.Response(200, content=self.binary)
        return httpx.Response(404)


def _updater(
    server: _ReleaseServer,
    target: Path,
    answer: str,
    *,
    current_version: str = "1.0.0-aaa",
    partition: int = 3,
    arch: str = "amd64",
) -> SelfUpdater:
    return SelfUpdater(
        binary_name="cl",
        current_version=current_version,
        latest_version_url=f"{ROOT_URL}/latest.json",
        self_update_root_url=ROOT_URL,
        partition_oracle=StaticPartition(partition),
        timeout=5.0,
        replacer=BinaryReplacer(target),
        http_client=httpx.Client(transport=httpx.MockTransport(server)),
        stdin=io.StringIO(answer),
        os_name="linux",
        arch=arch,
    )


@pytest.fixture
def installed(tmp_path: Path) -> Path:
    path = tmp_path / "cl"
    path.write_bytes(b"cl 1.0.0-aaa")
    return path


class TestSelfUpdateEndToEnd:
    """Full check → consent → apply cycles."""

    def test_update_is_installed(self, installed: Path) -> None:
        server = _ReleaseServer("bbb", b"cl 1.1.0-bbb")
        updater = _updater(server, installed, "y\n")

        updater.start_check()
        updater.run_update()

        assert installed.read_bytes() == b"cl 1.1.0-bbb"
        assert updater.state == UpdateState.APPLIED
        assert server.paths == ["/cl/latest.json", "/cl/current/linux/amd64/cl"]

    def test_declined_update_keeps_binary(self, installed: Path) -> None:
        server = _ReleaseServer("bbb", b"cl 1.1.0-bbb")
        updater = _updater(server, installed, "n\n")

        updater.start_check()
        with pytest.raises(UserAbortError):
            updater.run_update()

        assert installed.read_bytes() == b"cl 1.0.0-aaa"
        assert server.paths == ["/cl/latest.json"]

    def test_partition_outside_rollout_keeps_binary(self, installed: Path) -> None:
        server = _ReleaseServer("bbb", b"cl 1.1.0-bbb", start=100, end=199)
        updater = _updater(server, installed, "y\n", partition=3)

        updater.start_check()
        updater.run_update()

        assert installed.read_bytes() == b"cl 1.0.0-aaa"
        assert updater.state == UpdateState.NOT_ELIGIBLE

    def test_missing_artifact_keeps_binary(self, installed: Path) -> None:
        server = _ReleaseServer("bbb", b"cl 1.1.0-bbb")
        updater = _updater(server, installed, "y\n", arch="riscv64")

        updater.start_check()
        with pytest.raises(DownloadError, match="code 404"):
            updater.run_update()

        assert installed.read_bytes() == b"cl 1.0.0-aaa"
        assert list(installed.parent.iterdir()) == [installed]
