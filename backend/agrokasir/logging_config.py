from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(app) -> None:
    """
    One stream handler on the package logger, level from LOG_LEVEL.

    Service modules log through logging.getLogger(__name__) and propagate
    here; app.logger keeps Flask's own handler.
    """
    level = logging.getLevelName(str(app.config.get("LOG_LEVEL", "INFO")).upper())
    if not isinstance(level, int):
        level = logging.INFO

    app.logger.setLevel(level)

    pkg_logger = logging.getLogger("agrokasir")
    pkg_logger.setLevel(level)
    if pkg_logger.handlers:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    pkg_logger.addHandler(handler)
