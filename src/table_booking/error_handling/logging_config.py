"""
Centralized logging configuration for the booking system.

This module configures loguru for structured logging with different
levels and formats for development vs production.
"""
import functools
import sys
import time
from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger


def configure_logging(
    log_level: str = "INFO",
    log_to_file: bool = True,
    log_dir: str = "logs",
    rotation: str = "100 MB",
    retention: str = "30 days",
    format_type: str = "detailed"
) -> None:
    """
    Configure loguru logging for the application.

    Args:
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_to_file: Whether to log to files in addition to console
        log_dir: Directory for log files
        rotation: When to rotate log files (e.g., "100 MB", "1 day")
        retention: How long to keep old log files
        format_type: Format style ("simple", "detailed")
    """
    logger.remove()

    if format_type == "simple":
        format_string = "<level>{level: <8}</level> | <level>{message}</level>"
    else:  # detailed
        format_string = (
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level>"
        )

    logger.add(
        sys.stderr,
        format=format_string,
        level=log_level,
        colorize=True,
        backtrace=True,
        diagnose=False
    )

    if log_to_file:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_path / "table_booking_{time:YYYY-MM-DD}.log",
            format=format_string,
            level=log_level,
            rotation=rotation,
            retention=retention,
            compression="zip",
            backtrace=True,
            diagnose=False
        )

        logger.add(
            log_path / "errors_{time:YYYY-MM-DD}.log",
            format=format_string,
            level="ERROR",
            rotation=rotation,
            retention=retention,
            compression="zip",
            backtrace=True,
            diagnose=False
        )

        # Audit trail of booking group changes, kept longer
        logger.add(
            log_path / "bookings_{time:YYYY-MM-DD}.log",
            format=format_string,
            level="INFO",
            rotation="1 day",
            retention="1 year",
            compression="zip",
            filter=lambda record: record["extra"].get("category") == "BOOKING"
        )

    logger.debug(
        f"Logging configured: level={log_level}, "
        f"file_logging={log_to_file}, "
        f"format={format_type}"
    )


def log_booking_event(
    event_type: str,
    group_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None
) -> None:
    """
    Log a booking group change for the audit trail.

    Args:
        event_type: Type of event ("CREATED", "EDITED", "CANCELLED")
        group_id: Booking group identifier
        details: Additional event details
    """
    details = details or {}

    logger.bind(category="BOOKING", group_id=group_id).info(
        f"BOOKING {event_type} | "
        f"group_id={group_id} | "
        f"details={details}"
    )


class LogContext:
    """
    Context manager for adding context to all logs within a block.

    Example:
        with LogContext(operation="create_booking_group", phone="0905123456"):
            logger.info("Re-validating slot")
    """

    def __init__(self, **context):
        self.context = context
        self.token = None

    def __enter__(self):
        self.token = logger.contextualize(**self.context)
        self.token.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.token:
            self.token.__exit__(exc_type, exc_val, exc_tb)


def log_performance(operation_name: Optional[str] = None):
    """
    Decorator to log function duration at DEBUG level.

    Args:
        operation_name: Name of operation (defaults to function name)
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            name = operation_name or func.__name__
            start_time = time.perf_counter()

            try:
                result = func(*args, **kwargs)
            except Exception as e:
                duration = time.perf_counter() - start_time
                logger.bind(category="PERFORMANCE").warning(
                    f"Performance | {name} | duration={duration:.3f}s | "
                    f"success=False | error={type(e).__name__}"
                )
                raise

            duration = time.perf_counter() - start_time
            logger.bind(category="PERFORMANCE").debug(
                f"Performance | {name} | duration={duration:.3f}s | success=True"
            )
            return result

        return wrapper
    return decorator


def init_logging(
    environment: str = "development",
    log_level: Optional[str] = None,
    log_to_file: Optional[bool] = None,
    log_dir: str = "logs",
) -> None:
    """
    Initialize logging with environment-specific settings.

    Args:
        environment: Environment name ("development", "production", "test")
        log_level: Overrides the environment's default level
        log_to_file: Overrides the environment's default file logging
        log_dir: Directory for log files
    """
    if environment == "production":
        defaults = {"log_level": "INFO", "log_to_file": True, "format_type": "detailed",
                    "rotation": "100 MB", "retention": "90 days"}
    elif environment == "test":
        defaults = {"log_level": "WARNING", "log_to_file": False, "format_type": "simple"}
    else:  # development
        defaults = {"log_level": "DEBUG", "log_to_file": False, "format_type": "detailed",
                    "rotation": "50 MB", "retention": "7 days"}

    if log_level:
        defaults["log_level"] = log_level.upper()
    if log_to_file is not None:
        defaults["log_to_file"] = log_to_file

    configure_logging(log_dir=log_dir, **defaults)
    logger.debug(f"Logging initialized for {environment} environment")
