"""Main entry point for selfupdater.

Runs the whole check → consent → apply cycle once, configured from the
environment, and maps the outcome to a process exit code.
"""

import sys

from pydantic import ValidationError

from selfupdater import console
from selfupdater.config import get_settings
from selfupdater.errors import RollbackFailedError, SelfUpdateError, UserAbortError
from selfupdater.logging import bind_run_context, get_logger, setup_logging
from selfupdater.updater import SelfUpdater

EXIT_OK = 0
EXIT_ABORTED = 1
EXIT_UPDATE_FAILED = 2
EXIT_FATAL = 3
EXIT_CONFIG_ERROR = 78


def run() -> int:
    """Check for an update and apply it if the operator agrees."""
    try:
        settings = get_settings()
    except ValidationError as exc:
        console.error(f"invalid selfupdater configuration:\n{exc}")
        return EXIT_CONFIG_ERROR

    setup_logging()
    bind_run_context(settings.binary_name, settings.current_version)
    log = get_logger("selfupdater.main")

    if not settings.self_update_enabled:
        log.debug("self_update_disabled")
        return EXIT_OK

    try:
        updater = SelfUpdater.from_settings(settings)
    except SelfUpdateError as exc:
        console.error(f"invalid selfupdater configuration: {exc}; set SELFUPDATER_TARGET_PATH")
        return EXIT_CONFIG_ERROR

    log.debug("self_update_starting", timeout=settings.self_update_timeout)
    updater.start_check()

    try:
        updater.run_update()
    except UserAbortError:
        return EXIT_ABORTED
    except RollbackFailedError:
        return EXIT_FATAL
    except SelfUpdateError:
        return EXIT_UPDATE_FAILED
    finally:
        log.debug("self_update_finished", state=str(updater.state))

    return EXIT_OK


def main() -> None:
    """Run the updater and exit with its status."""
    sys.exit(run())


if __name__ == "__main__":
    main()
