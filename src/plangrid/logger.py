# SPDX-License-Identifier: MIT

import logging

from rich.logging import RichHandler

_configured = False


def configure_logging(level: str = "WARNING") -> None:
    """Install a rich console handler on the package logger, once."""
    global _configured

    package_logger = logging.getLogger("plangrid")
    package_logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    if _configured:
        return

    handler = RichHandler(show_path=False, rich_tracebacks=True)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    package_logger.addHandler(handler)
    _configured = True
