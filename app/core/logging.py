"""
Logging setup. Modules log through logging.getLogger(__name__);
this only configures the root handler once at startup.
"""

import logging
import sys

from app.core.settings import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = None) -> None:
    root = logging.getLogger()
    if getattr(root, "_portal_configured", False):
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel((level or settings.LOG_LEVEL).upper())
    root._portal_configured = True
