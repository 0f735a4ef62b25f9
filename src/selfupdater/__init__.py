"""Self-update orchestration for command-line tools.

Checks a metadata endpoint for a newer build in the background, gates it
behind a staged rollout (partition range), asks the operator for consent and
replaces the running executable, rolling back if the swap fails.
"""

__version__ = "0.1.0"
