"""Process logging setup: one stream handler, ``[LEVEL] message`` lines."""

import logging
import sys

LOG_FORMAT = "[%(levelname)-5s] %(message)s"


def init_logging(level="INFO"):
    """Configure the root logger once; later calls only adjust the level."""
    resolved = logging.getLevelName(str(level or "INFO").upper())
    if not isinstance(resolved, int):
        resolved = logging.INFO
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format=LOG_FORMAT, stream=sys.stdout, level=resolved)
    root.setLevel(resolved)
    return root
