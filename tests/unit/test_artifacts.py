"""Tests for selfupdater.artifacts."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from selfupdater.artifacts import binary_file_name, current_arch, current_os, download_url
from selfupdater.errors import SelfUpdateError


class TestBinaryFileName:
    """Tests for binary_file_name()."""

    @pytest.mark.parametrize(
        ("os_name", "expected"),
        [("windows", "cl.exe"), ("linux", "cl"), ("darwin", "cl"), ("freebsd", "cl")],
    )
    def test_exe_suffix_only_on_windows(self, os_name: str, expected: str) -> None:
        assert binary_file_name("cl", os_name) == expected


class TestDownloadUrl:
    """Tests for download_url()."""

    @pytest.mark.parametrize(
        ("root", "expected"),
        [
            ("https://r.example.com", "https://r.example.com/current/linux/amd64/cl"),
            ("https://r.example.com/", "https://r.example.com/current/linux/amd64/cl"),
            (
                "https://r.example.com/tools/cl",
                "https://r.example.com/tools/cl/current/linux/amd64/cl",
            ),
            (
                "https://r.example.com:8443/a/b/",
                "https://r.example.com:8443/a/b/current/linux/amd64/cl",
            ),
        ],
        ids=["bare-host", "trailing-slash", "with-path", "port-and-slash"],
    )
    def test_joins_onto_root_path(self, root: str, expected: str) -> None:
        assert download_url(root, "cl", "linux", "amd64") == expected

    def test_windows(self) -> None:
        url = download_url("https://r.example.com/bin", "cl", "windows", "386")
        assert url == "https://r.example.com/bin/current/windows/386/cl.exe"

    def test_query_is_kept(self) -> None:
        url = download_url("https://r.example.com/bin?token=t", "cl", "darwin", "arm64")
        assert url == "https://r.example.com/bin/current/darwin/arm64/cl?token=t"

    @pytest.mark.parametrize("root", ["", "releases/bin", "/srv/releases"])
    def test_invalid_root(self, root: str) -> None:
        with pytest.raises(SelfUpdateError, match="invalid self-update root url"):
            download_url(root, "cl", "linux", "amd64")


class TestCurrentPlatform:
    """Tests for current_os() / current_arch()."""

    @pytest.mark.parametrize(
        ("platform", "expected"),
        [
            ("linux", "linux"),
            ("darwin", "darwin"),
            ("win32", "windows"),
            ("cygwin", "windows"),
            ("freebsd14", "freebsd"),
            ("aix", "aix"),
        ],
    )
    def test_current_os(
        self, monkeypatch: pytest.MonkeyPatch, platform: str, expected: str
    ) -> None:
        monkeypatch.setattr("selfupdater.artifacts.sys.platform", platform)
        assert current_os() == expected

    @pytest.mark.parametrize(
        ("machine", "expected"),
        [
            ("x86_64", "amd64"),
            ("AMD64", "amd64"),
            ("aarch64", "arm64"),
            ("arm64", "arm64"),
            ("i686", "386"),
            ("armv7l", "arm"),
            ("riscv64", "riscv64"),
        ],
    )
    def test_current_arch(self, machine: str, expected: str) -> None:
        with patch("selfupdater.artifacts.platform.machine", return_value=machine):
            assert current_arch() == expected
