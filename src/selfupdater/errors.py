"""Exception types raised by the self-update flow.

Only ``FetchError`` is expected to stay inside the version check; everything
else propagates out of ``SelfUpdater.run_update()``.
"""

from __future__ import annotations


class SelfUpdateError(Exception):
    """Base class for self-update failures."""


class FetchError(SelfUpdateError):
    """The latest-version metadata could not be fetched."""


class UserAbortError(SelfUpdateError):
    """The operator declined the update."""


class DownloadError(SelfUpdateError):
    """The new binary could not be downloaded; nothing was replaced."""


class ReplaceError(SelfUpdateError):
    """Swapping the running executable failed."""


class RollbackError(SelfUpdateError):
    """Restoring the previous executable failed."""


class RollbackFailedError(SelfUpdateError):
    """The replacement failed and so did the rollback.

    The binary on disk may be in an inconsistent state.
    """

    def __init__(self, replace_error: ReplaceError, rollback_error: RollbackError) -> None:
        self.replace_error = replace_error
        self.rollback_error = rollback_error
        super().__init__(
            "update failed, unfortunately, the rollback did not work either: "
            f"{rollback_error}\nplease contact the maintainers of this tool "
            "to repair the installation manually"
        )
