"""
Logging setup for the command line.

Application modules log through ``logging.getLogger(__name__)``; this routes
the ``case_configs`` logger to stderr through rich.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

_HANDLER_NAME = "case_configs.rich"


def configure_logging(level: int = logging.WARNING) -> logging.Logger:
    """Attach a rich handler to the package logger at the given level.

    Calling it again replaces the previous handler instead of stacking a
    second one.

    Args:
        level: Minimum level emitted by the ``case_configs`` logger

    Returns:
        The configured package logger
    """
    logger = logging.getLogger("case_configs")
    for handler in list(logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            logger.removeHandler(handler)

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True
    )
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))

    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger
