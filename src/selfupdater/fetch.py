"""HTTP helpers used by the updater.

All network access goes through httpx. Callers may inject a shared
``httpx.Client``; otherwise a short-lived client is created per call.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from urllib.parse import unquote, urlsplit

import httpx

from selfupdater.constants import DOWNLOAD_TIMEOUT, METADATA_FETCH_TIMEOUT, USER_AGENT
from selfupdater.errors import FetchError

_HTTP_SCHEMES = frozenset({"http", "https"})


def _new_client(timeout: float) -> httpx.Client:
    return httpx.Client(
        timeout=timeout,
        follow_redirects=True,
        headers={"User-Agent": USER_AGENT},
    )


def load_file(
    url: str,
    client: httpx.Client | None = None,
    timeout: float = METADATA_FETCH_TIMEOUT,
) -> bytes:
    """Return the content behind *url*.

    http(s) URLs are fetched with a GET; ``file://`` URLs and plain paths are
    read from disk. Any failure is raised as ``FetchError``.
    """
    parts = urlsplit(url)
    if parts.scheme not in _HTTP_SCHEMES:
        path = Path(unquote(parts.path)) if parts.scheme == "file" else Path(url)
        try:
            return path.read_bytes()
        except OSError as exc:
            raise FetchError(f"cannot read {url}: {exc}") from exc

    try:
        if client is not None:
            resp = client.get(url)
        else:
            with _new_client(timeout) as owned:
                resp = owned.get(url)
        resp.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise FetchError(f"cannot load {url}: code {exc.response.status_code}") from exc
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise FetchError(f"cannot load {url}: {exc}") from exc
    return resp.content


@contextmanager
def http_get(
    url: str,
    client: httpx.Client | None = None,
    timeout: float = DOWNLOAD_TIMEOUT,
) -> Iterator[httpx.Response]:
    """Issue a streaming GET and yield the response.

    The response is closed when the block exits. Status codes are not checked
    here; transport errors propagate as ``httpx.HTTPError``.
    """
    if client is not None:
        with client.stream("GET", url) as resp:
            yield resp
        return

    with _new_client(timeout) as owned, owned.stream("GET", url) as resp:
        yield resp
