"""Operating system / architecture naming and download URL resolution.

Release artifacts are laid out by OS and architecture names
(``linux/amd64``, ``darwin/arm64``, ``windows/386`` ...).
"""

from __future__ import annotations

import platform
import posixpath
import sys

import httpx

from selfupdater.constants import DOWNLOAD_CHANNEL, WINDOWS_OS, WINDOWS_SUFFIX
from selfupdater.errors import SelfUpdateError

_OS_PREFIXES: tuple[tuple[str, str], ...] = (
    ("win32", "windows"),
    ("cygwin", "windows"),
    ("darwin", "darwin"),
    ("linux", "linux"),
    ("freebsd", "freebsd"),
    ("openbsd", "openbsd"),
    ("netbsd", "netbsd"),
)

_ARCH_ALIASES: dict[str, str] = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "x64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "i386": "386",
    "i686": "386",
    "x86": "386",
    "armv6l": "arm",
    "armv7l": "arm",
    "ppc64le": "ppc64le",
    "s390x": "s390x",
}


def current_os() -> str:
    """Return the release OS name of the running interpreter."""
    for prefix, name in _OS_PREFIXES:
        if sys.platform.startswith(prefix):
            return name
    return sys.platform


def current_arch() -> str:
    """Return the release architecture name of this machine."""
    machine = platform.machine().lower()
    return _ARCH_ALIASES.get(machine, machine)


def binary_file_name(binary_name: str, os_name: str) -> str:
    if os_name == WINDOWS_OS:
        return f"{binary_name}{WINDOWS_SUFFIX}"
    return binary_name


def download_url(root_url: str, binary_name: str, os_name: str, arch: str) -> str:
    """Build ``<root>/current/<os>/<arch>/<binary>`` from the download root.

    The artifact path is joined onto whatever path the root already has.
    """
    try:
        root = httpx.URL(root_url)
    except httpx.InvalidURL as exc:
        raise SelfUpdateError(f"invalid self-update root url {root_url!r}: {exc}") from exc
    if not root.is_absolute_url:
        raise SelfUpdateError(f"invalid self-update root url {root_url!r}: not absolute")

    path = posixpath.join(
        root.path or "/",
        DOWNLOAD_CHANNEL,
        os_name,
        arch,
        binary_file_name(binary_name, os_name),
    )
    return str(root.copy_with(path=path))
