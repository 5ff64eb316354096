"""Logging configuration utilities."""

import logging

JSON_LOG_FORMAT = (
    '{"time": "%(asctime)s", "logger": "%(name)s", '
    '"level": "%(levelname)s", "message": "%(message)s"}'
)
TEXT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(log_level: str = "INFO", log_format: str = "json") -> None:
    """
    Configure application logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: Format type ('json' or 'text')
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format=JSON_LOG_FORMAT if log_format == "json" else TEXT_LOG_FORMAT,
        handlers=[logging.StreamHandler()],
        force=True,
    )

    # Pillow logs every plugin it probes at DEBUG
    logging.getLogger("PIL").setLevel(max(level, logging.INFO))

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured: level={log_level}, format={log_format}")
