"""Logging configuration for gke-ip-update."""

import logging

from gke_ip_update.config import Config
from gke_ip_update.errors import StorageError

# Module-level logger cache
_logger: logging.Logger | None = None


def setup_logging(config: Config, log_to_file: bool = True) -> logging.Logger:
    """Set up logging based on configuration.

    Args:
        config: Configuration object with log settings.
        log_to_file: Append to the configured log file as well as the console.

    Returns:
        Configured logger instance.

    Raises:
        StorageError: If the log file cannot be created.
    """
    global _logger

    # Return existing logger if already set up (idempotent)
    if _logger is not None:
        return _logger

    logger = logging.getLogger("gke_ip_update")
    logger.setLevel(getattr(logging, config.log_level.upper(), logging.INFO))

    # Clear any existing handlers
    logger.handlers.clear()

    # Log format: 2025-01-27 10:30:45 [INFO] message
    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")
    formatter.datefmt = "%Y-%m-%d %H:%M:%S"

    if log_to_file:
        log_path = config.log_path
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path, mode="a")
        except OSError as e:
            raise StorageError(f"Unable to initialize the log file {log_path}: {e}")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # Prevent propagation to root logger
    logger.propagate = False

    _logger = logger
    return logger


def reset_logging() -> None:
    """Reset logging state. Used for testing."""
    global _logger
    if _logger is not None:
        for handler in _logger.handlers:
            handler.close()
        _logger.handlers.clear()
        _logger.propagate = True
        _logger = None
