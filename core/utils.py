"""
Small helpers shared across packages.

Centralizes the epoch clock so the emitter, verifier and registry agree on
what "now" means and tests can patch a single function.
"""

import time


def epoch_seconds():
    """Return the current time as whole seconds since the Unix epoch."""
    return int(time.time())


def truthy(value):
    return str(value or "").strip().lower() in {"1", "true", "yes", "on"}
