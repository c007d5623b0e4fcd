"""Configure application logging to stderr."""

import logging
import sys


def setup_logging(level: str | int = logging.INFO) -> logging.Logger:
    """Configure the package logger: stderr at the given level."""
    root = logging.getLogger("ultralight")
    root.setLevel(level)
    root.handlers.clear()

    fmt = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    eh = logging.StreamHandler(sys.stderr)
    eh.setLevel(level)
    eh.setFormatter(fmt)
    root.addHandler(eh)

    root.debug("Logging started at %s", logging.getLevelName(root.level))
    return root
