"""Screen-lock probe used to pause heartbeats while a workstation is locked."""

import logging
import sys

import psutil

logger = logging.getLogger("liveness.screen_lock")

# Windows runs the logon UI only while the session is locked or at sign-in.
LOCK_SCREEN_PROCESS = "logonui.exe"


def is_interactive_session_locked(platform=None):
    """Return True when the interactive session is known to be locked.

    Only Windows exposes a usable signal; every other platform reports False.
    """
    platform = platform or sys.platform
    if not platform.startswith("win"):
        return False
    try:
        for proc in psutil.process_iter(["name"]):
            name = (proc.info.get("name") or "").lower()
            if name == LOCK_SCREEN_PROCESS:
                return True
    except psutil.Error as e:
        logger.warning("Could not inspect processes for screen lock: %s", e)
    return False
