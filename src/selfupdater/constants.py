"""Centralized constants for selfupdater."""

# Version check
DEFAULT_SELF_UPDATE_TIMEOUT = 2.0
VERSION_DELIMITER = "-"

# Staged rollout
PARTITION_MIN = 0
PARTITION_MAX = 255

# Download layout: <root>/current/<os>/<arch>/<binary>
DOWNLOAD_CHANNEL = "current"
WINDOWS_OS = "windows"
WINDOWS_SUFFIX = ".exe"

# HTTP
METADATA_FETCH_TIMEOUT = 10.0
DOWNLOAD_TIMEOUT = 300.0
USER_AGENT = "selfupdater"

# Consent
CONSENT_ANSWERS = frozenset({"y", "Y"})
