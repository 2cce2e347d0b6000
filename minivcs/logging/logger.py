"""
Logging infrastructure for minivcs.

Provides structured logging with:
- Component-specific bound loggers
- Console and rotating file sinks
- Repository operation tracking
"""

import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from loguru import logger


class VCSLogger:
    """
    Logger setup for minivcs.

    Features:
    - Structured logging with context
    - Component-specific loggers
    - Log rotation and retention
    """

    def __init__(
        self,
        log_dir: Optional[Path] = None,
        rotation: str = "10 MB",
        retention: str = "1 month",
        level: str = "WARNING",
        format_string: Optional[str] = None,
        enable_file_logging: bool = False,
        enable_console_logging: bool = True,
    ):
        """
        Initialize the logger.

        Args:
            log_dir: Directory for log files
            rotation: When to rotate log files
            retention: How long to keep old logs
            level: Default log level
            format_string: Custom format string
            enable_file_logging: Whether to log to files
            enable_console_logging: Whether to log to console
        """
        self.log_dir = log_dir or Path("logs")
        self.rotation = rotation
        self.retention = retention
        self.level = level

        self.format_string = format_string or (
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{extra[component]}</cyan> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level>"
        )

        # Records logged through the plain module logger carry no component
        logger.configure(extra={"component": "vcs"})
        logger.remove()

        if enable_console_logging:
            logger.add(
                sys.stderr,
                format=self.format_string,
                level=level,
                colorize=True,
            )

        if enable_file_logging:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            self._add_file_handlers()

        self.logger = logger.bind(component="vcs")

    def _add_file_handlers(self) -> None:
        """Add the main log file and an errors-only file."""
        logger.add(
            self.log_dir / "minivcs.log",
            format=self.format_string,
            level=self.level,
            rotation=self.rotation,
            retention=self.retention,
            compression="zip",
        )

        logger.add(
            self.log_dir / "errors.log",
            format=self.format_string,
            level="ERROR",
            rotation=self.rotation,
            retention=self.retention,
            compression="zip",
        )

    def get_logger(self, component: str) -> Any:
        """
        Get a logger bound to a specific component.

        Args:
            component: Component name (e.g., "storage", "merge", "checkout")

        Returns:
            Logger instance bound to the component
        """
        return logger.bind(component=component)


def get_vcs_logger(component: str = "vcs") -> Any:
    """
    Get a component-specific logger.

    Example:
        >>> log = get_vcs_logger("merge")
        >>> log.info("Replaying branch", branch="test")
    """
    return logger.bind(component=component)


def log_repository_operation(
    logger_instance: Any, operation: str, **kwargs: Any
) -> None:
    """
    Log a repository operation with structured data.

    Args:
        logger_instance: Logger to use
        operation: Operation name (e.g., "commit", "checkout_complete")
        **kwargs: Additional context
    """
    logger_instance.debug(
        f"Repository operation: {operation}",
        operation=operation,
        timestamp=datetime.now(timezone.utc).isoformat(),
        **kwargs,
    )


# Global logger instance
_vcs_logger: Optional[VCSLogger] = None


def initialize_logging(
    log_dir: Optional[Path] = None, level: str = "WARNING", **kwargs: Any
) -> VCSLogger:
    """
    Initialize the logging system.

    This should be called once at application startup.

    Args:
        log_dir: Directory for log files
        level: Default log level
        **kwargs: Additional configuration for VCSLogger

    Returns:
        Configured VCSLogger instance
    """
    global _vcs_logger
    _vcs_logger = VCSLogger(log_dir=log_dir, level=level, **kwargs)
    return _vcs_logger


def get_logger_instance() -> Optional[VCSLogger]:
    """Get the global logger instance."""
    return _vcs_logger
