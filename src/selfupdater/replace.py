"""In-place replacement of the running executable.

The new binary is staged next to the target as ``.<name>.new``, the current
one is moved aside to ``.<name>.old`` and the staged file is renamed into
place. Renames within a directory are atomic on POSIX; on Windows a running
executable can be renamed but not deleted, so the old copy may be left
behind.
"""

from __future__ import annotations

import hashlib
import os
import shutil
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol

from selfupdater.errors import ReplaceError, RollbackError
from selfupdater.logging import get_logger

log = get_logger("selfupdater.replace")


class Replacer(Protocol):
    """Swaps the running executable for streamed content."""

    def apply(self, chunks: Iterable[bytes]) -> None: ...

    def rollback(self) -> None: ...


def executable_path(binary_name: str | None = None) -> Path:
    """Return the path of the executable to replace.

    A frozen build replaces itself. Otherwise the process is an interpreter
    running a script or module, which must never be overwritten, so
    *binary_name* is looked up on ``PATH`` instead.

    Raises ``ReplaceError`` if no executable can be found.
    """
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve()
    found = shutil.which(binary_name) if binary_name else None
    if found is None:
        raise ReplaceError(f"cannot locate the {binary_name or 'running'} executable to replace")
    return Path(found).resolve()


class BinaryReplacer:
    """Swaps a target file for streamed content and can undo the last swap."""

    def __init__(
        self,
        target_path: str | os.PathLike[str] | None = None,
        target_mode: int = 0o755,
        old_save_path: str | os.PathLike[str] | None = None,
        checksum: bytes | None = None,
        binary_name: str | None = None,
    ) -> None:
        self._target_path = Path(target_path) if target_path is not None else None
        self._target_mode = target_mode
        self._old_save_path = Path(old_save_path) if old_save_path is not None else None
        self._checksum = checksum
        self._binary_name = binary_name
        self._pending_restore: Path | None = None

    @property
    def target_path(self) -> Path:
        return self._target_path or executable_path(self._binary_name)

    def _new_path(self, target: Path) -> Path:
        return target.with_name(f".{target.name}.new")

    def _old_path(self, target: Path) -> Path:
        return self._old_save_path or target.with_name(f".{target.name}.old")

    # ------------------------------------------------------------------
    # Apply
    # ------------------------------------------------------------------

    def apply(self, chunks: Iterable[bytes]) -> None:
        """Replace the target with the bytes yielded by *chunks*.

        Raises ``ReplaceError`` if staging or the swap fails; errors raised
        while iterating *chunks* propagate unchanged. If the target had
        already been moved aside, ``rollback()`` puts it back.
        """
        target = self.target_path
        new_path = self._new_path(target)
        old_path = self._old_path(target)
        self._pending_restore = None

        try:
            self._stage(chunks, new_path)
        except BaseException:
            new_path.unlink(missing_ok=True)
            raise

        try:
            old_path.unlink(missing_ok=True)
            os.replace(target, old_path)
        except OSError as exc:
            new_path.unlink(missing_ok=True)
            raise ReplaceError(f"cannot move {target} aside: {exc}") from exc

        self._pending_restore = old_path
        try:
            os.replace(new_path, target)
        except OSError as exc:
            new_path.unlink(missing_ok=True)
            raise ReplaceError(f"cannot move new binary into {target}: {exc}") from exc
        self._pending_restore = None

        log.info("binary_replaced", target=str(target))

        if self._old_save_path is None:
            try:
                old_path.unlink()
            except OSError as exc:
                log.warning("old_binary_not_removed", path=str(old_path), error=str(exc))

    def _stage(self, chunks: Iterable[bytes], new_path: Path) -> None:
        """Write *chunks* to *new_path* and verify them.

        Errors raised by the chunk iterator itself propagate unchanged.
        """
        digest = hashlib.sha256()
        try:
            with open(new_path, "wb") as fh:
                for chunk in chunks:
                    digest.update(chunk)
                    fh.write(chunk)
            os.chmod(new_path, self._target_mode)
        except OSError as exc:
            raise ReplaceError(f"cannot stage new binary at {new_path}: {exc}") from exc

        if self._checksum is not None and digest.digest() != self._checksum:
            raise ReplaceError(
                f"checksum mismatch: expected {self._checksum.hex()}, got {digest.hexdigest()}"
            )

    # ------------------------------------------------------------------
    # Rollback
    # ------------------------------------------------------------------

    def rollback(self) -> None:
        """Restore the executable moved aside by an unfinished ``apply()``.

        Does nothing if the last apply never touched the target.
        Raises ``RollbackError`` if the restore fails.
        """
        old_path = self._pending_restore
        if old_path is None:
            return

        target = self.target_path
        try:
            os.replace(old_path, target)
        except OSError as exc:
            raise RollbackError(f"cannot restore {target} from {old_path}: {exc}") from exc
        self._pending_restore = None
        log.info("binary_restored", target=str(target))
