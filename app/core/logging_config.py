"""
Logging setup. Plain text to stdout; level comes from settings.LOG_LEVEL.
"""

import logging
import sys

from app.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def setup_logging() -> None:
    root = logging.getLogger()
    if getattr(root, "_college_admin_configured", False):
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(settings.LOG_LEVEL.upper())

    # Quiet chatty client libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("hpack").setLevel(logging.WARNING)

    root._college_admin_configured = True
