"""Self-update orchestrator.

Typical flow for one run of the tool:
1. ``start_check()`` early at startup, fetching the latest-version metadata
   in the background, bounded by a timeout
2. ``run_update()`` late (usually at exit), waiting for the check, asking the
   operator for consent and applying the update
3. If the swap fails, the previous executable is restored
"""

from __future__ import annotations

import contextvars
import sys
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from typing import TYPE_CHECKING, TextIO

import httpx
from pydantic import ValidationError

from selfupdater import console
from selfupdater.artifacts import current_arch, current_os, download_url
from selfupdater.constants import CONSENT_ANSWERS, DEFAULT_SELF_UPDATE_TIMEOUT, VERSION_DELIMITER
from selfupdater.errors import (
    DownloadError,
    FetchError,
    ReplaceError,
    RollbackError,
    RollbackFailedError,
    SelfUpdateError,
    UserAbortError,
)
from selfupdater.fetch import http_get, load_file
from selfupdater.logging import get_logger
from selfupdater.models import TERMINAL_STATES, LatestVersionInfo, UpdateState
from selfupdater.oneshot import OneShot, race
from selfupdater.partition import PartitionOracle, StaticPartition
from selfupdater.replace import BinaryReplacer, Replacer, executable_path
from selfupdater.utils import timed_operation

if TYPE_CHECKING:
    from selfupdater.config import Settings

log = get_logger("selfupdater.updater")


@dataclass(frozen=True)
class CheckResult:
    """Outcome of the background version check."""

    eligible: bool
    latest: LatestVersionInfo | None = None


def version_key(version: str, delimiter: str = VERSION_DELIMITER) -> str:
    """Return the part of *version* compared against published versions.

    ``"1.2.3-abc123"`` compares as ``"abc123"``; a version without the
    delimiter compares as a whole.
    """
    return version.split(delimiter)[-1]


def is_eligible(
    latest: LatestVersionInfo,
    current_version: str,
    oracle: PartitionOracle,
) -> bool:
    """Return True if *latest* differs from the running build and this
    identity is inside its rollout range."""
    return latest.version != version_key(current_version) and oracle.in_partition(
        latest.start_partition, latest.end_partition
    )


class SelfUpdater:
    """Checks for, confirms and applies a new build of the running tool.

    One instance per process run: ``start_check()`` once, then
    ``run_update()`` at most once.
    """

    def __init__(
        self,
        binary_name: str,
        current_version: str,
        latest_version_url: str,
        self_update_root_url: str,
        partition_oracle: PartitionOracle,
        timeout: float = DEFAULT_SELF_UPDATE_TIMEOUT,
        force_self_update: bool = False,
        replacer: Replacer | None = None,
        http_client: httpx.Client | None = None,
        stdin: TextIO | None = None,
        os_name: str | None = None,
        arch: str | None = None,
    ) -> None:
        self.binary_name = binary_name
        self.current_version = current_version
        self.latest_version_url = latest_version_url
        self.self_update_root_url = self_update_root_url
        self.timeout = timeout

        self._oracle = partition_oracle
        self._force_self_update = force_self_update
        self._replacer = (
            replacer if replacer is not None else BinaryReplacer(binary_name=binary_name)
        )
        self._http_client = http_client
        self._stdin = stdin
        self._os_name = os_name or current_os()
        self._arch = arch or current_arch()

        self._state = UpdateState.IDLE
        self._latest: LatestVersionInfo | None = None
        self._result: OneShot[CheckResult] = OneShot()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        partition_oracle: PartitionOracle | None = None,
        **kwargs: object,
    ) -> SelfUpdater:
        """Build an updater from loaded settings.

        Without an explicit replacer the target is resolved up front, so a
        run that could not install anything fails with ``ReplaceError``
        before the check starts.
        """
        if "replacer" not in kwargs:
            target = settings.target_path or executable_path(settings.binary_name)
            kwargs["replacer"] = BinaryReplacer(target_path=target)
        return cls(
            binary_name=settings.binary_name,
            current_version=settings.current_version,
            latest_version_url=settings.latest_version_url,
            self_update_root_url=settings.self_update_root_url,
            partition_oracle=partition_oracle or StaticPartition(settings.partition),
            timeout=settings.self_update_timeout,
            force_self_update=settings.force_self_update,
            **kwargs,  # type: ignore[arg-type]
        )

    # ------------------------------------------------------------------
    # Public status surface
    # ------------------------------------------------------------------

    @property
    def state(self) -> UpdateState:
        return self._state

    @property
    def latest_version(self) -> LatestVersionInfo | None:
        """Metadata fetched by the check, if it finished before the timeout."""
        return self._latest

    # ------------------------------------------------------------------
    # Check
    # ------------------------------------------------------------------

    def start_check(self) -> None:
        """Start the version check in the background and return immediately.

        The check's result, or ``False`` if the timeout elapses first, is
        published exactly once for ``run_update()`` to consume. A check that
        finishes after the timeout keeps running to completion and its result
        is dropped.
        """
        if self._state is not UpdateState.IDLE:
            raise RuntimeError("start_check() may only be called once per run")
        self._state = UpdateState.CHECKING

        check: Future[CheckResult] = Future()
        workers = (
            (self._run_check, "selfupdate-check"),
            (self._publish, "selfupdate-race"),
        )
        # One context copy per thread; bound log context carries over.
        for target, name in workers:
            ctx = contextvars.copy_context()
            threading.Thread(target=ctx.run, args=(target, check), name=name, daemon=True).start()

    def _run_check(self, future: Future[CheckResult]) -> None:
        future.set_running_or_notify_cancel()
        try:
            future.set_result(self._check())
        except Exception as exc:
            future.set_exception(exc)

    def _check(self) -> CheckResult:
        with timed_operation("self_update_check_finished", log=log, url=self.latest_version_url):
            try:
                data = load_file(self.latest_version_url, client=self._http_client)
            except FetchError as exc:
                log.info("self_update_check_failed", error=str(exc))
                return CheckResult(eligible=False)

            try:
                latest = LatestVersionInfo.from_bytes(data)
            except ValidationError as exc:
                log.error("self_update_metadata_invalid", error=str(exc))
                return CheckResult(eligible=False)

        eligible = is_eligible(latest, self.current_version, self._oracle)
        log.debug(
            "self_update_check_result",
            current=self.current_version,
            latest=latest.version,
            start_partition=latest.start_partition,
            end_partition=latest.end_partition,
            eligible=eligible,
        )
        return CheckResult(eligible=eligible, latest=latest)

    def _publish(self, check: Future[CheckResult]) -> None:
        try:
            result, timed_out = race(check, self.timeout, CheckResult(eligible=False))
        except Exception as exc:
            log.error("self_update_check_crashed", error=str(exc))
            result, timed_out = CheckResult(eligible=False), False

        if timed_out:
            log.info("self_update_check_timed_out", timeout=self.timeout)
            self._state = UpdateState.TIMED_OUT
        else:
            self._latest = result.latest
            self._state = UpdateState.ELIGIBLE if result.eligible else UpdateState.NOT_ELIGIBLE
        self._result.offer(result)

    # ------------------------------------------------------------------
    # Decision
    # ------------------------------------------------------------------

    def run_update(self) -> None:
        """Wait for the check and, if eligible and confirmed, apply the update.

        Returns quietly when no update is due. Raises ``UserAbortError`` when
        the operator declines, and re-raises any apply failure after printing
        it. May be called at most once per run.
        """
        if self._state is UpdateState.IDLE:
            raise RuntimeError("start_check() must be called before run_update()")

        result = self._result.take()
        eligible = result.eligible or self._force_self_update
        if not eligible:
            return
        if not result.eligible:
            log.info("self_update_forced", state=str(self._state))

        self._state = UpdateState.AWAITING_CONSENT
        target = self._latest.version if self._latest else "unknown"
        notes = self._latest.release_notes if self._latest else ""

        console.info("\n-----------------------------------")
        console.info(f"{self.binary_name} version {self.current_version}")
        console.info(f"\nan update of {self.binary_name} ({target}) is available:\n")
        console.info(notes)
        console.info("")
        console.reminder("do you want to update it? [yN]")

        if not self._ask_consent():
            console.info("aborted by user")
            self._state = UpdateState.DECLINED
            raise UserAbortError("aborted by user")

        console.info(f"update and install the latest version of {self.binary_name} ({target})")
        try:
            url = download_url(
                self.self_update_root_url, self.binary_name, self._os_name, self._arch
            )
            self.apply_update(url)
        except SelfUpdateError as exc:
            if self._state not in TERMINAL_STATES:
                self._state = UpdateState.FAILED
            console.error(f"update failed: {exc}")
            raise

        if self._state is UpdateState.APPLIED:
            console.success(f"{self.binary_name} updated to {target}")

    def _ask_consent(self) -> bool:
        # Blocking read: consent is a human-in-the-loop gate.
        stream = self._stdin if self._stdin is not None else sys.stdin
        if stream is None:
            return False
        try:
            answer = stream.readline()
        except (OSError, EOFError, UnicodeDecodeError, ValueError) as exc:
            log.debug("self_update_consent_unreadable", error=str(exc))
            return False
        return answer[:1] in CONSENT_ANSWERS

    # ------------------------------------------------------------------
    # Apply
    # ------------------------------------------------------------------

    def apply_update(self, download_url: str) -> None:
        """Download the binary at *download_url* and swap it in.

        Raises ``DownloadError`` if nothing could be downloaded and
        ``RollbackFailedError`` if the swap and the rollback both failed. A
        failed swap that was rolled back only produces a warning.
        """
        self._state = UpdateState.DOWNLOADING
        log.info("self_update_downloading", url=download_url)

        try:
            with http_get(download_url, client=self._http_client) as resp:
                if resp.status_code != httpx.codes.OK:
                    raise DownloadError(
                        f"cannot download the new version from {download_url}: "
                        f"code {resp.status_code}"
                    )
                self._replacer.apply(resp.iter_bytes())
        except ReplaceError as exc:
            self._recover(exc)
            return
        except httpx.HTTPError as exc:
            self._state = UpdateState.FAILED
            raise DownloadError(
                f"cannot download the new version from {download_url}: {exc}"
            ) from exc
        except DownloadError:
            self._state = UpdateState.FAILED
            raise

        self._state = UpdateState.APPLIED
        log.info("self_update_applied", binary=self.binary_name, url=download_url)

    def _recover(self, replace_error: ReplaceError) -> None:
        log.warning("self_update_replace_failed", error=str(replace_error))
        try:
            self._replacer.rollback()
        except RollbackError as rollback_error:
            self._state = UpdateState.FATAL
            log.error("self_update_rollback_failed", error=str(rollback_error))
            raise RollbackFailedError(replace_error, rollback_error) from rollback_error

        self._state = UpdateState.ROLLED_BACK
        console.warn(f"update failed, rollback to previous version: {replace_error}")
