"""
Process-wide logging setup for the committer CLI and HTTP intake.
"""

import logging

LOG_FORMAT = "%(asctime)s  %(name)-36s  %(levelname)-7s  %(message)s"


def setup_logging(level: str = "INFO") -> logging.Logger:
    """
    Configure root logging once for the process.

    Args:
        level: Log level name (e.g. 'INFO', 'DEBUG'). Unknown names fall back to INFO.

    Returns:
        The package logger.
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
    return logging.getLogger("graphcommitter")
