"""Logging configuration helpers."""

import logging

_FORMAT = "%(levelname)s: %(name)s: %(message)s"


def configure_logging(level: int | str = logging.INFO) -> None:
    """Attach one stream handler to the ``flexcoach_diet`` logger.

    Repeated calls only adjust the level, so app factories may call this
    freely. ``level`` accepts a number or a name such as ``"DEBUG"``.
    """
    logger = logging.getLogger("flexcoach_diet")
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    logger.propagate = False
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(handler)
