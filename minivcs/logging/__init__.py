"""
Logging infrastructure for minivcs.

Provides structured logging and decorators for tracking repository operations.
"""

from .logger import (
    VCSLogger,
    get_vcs_logger,
    initialize_logging,
    get_logger_instance,
    log_repository_operation,
)

from .decorators import (
    track_repository_operation,
    performance_monitor,
)

__all__ = [
    # Logger
    "VCSLogger",
    "get_vcs_logger",
    "initialize_logging",
    "get_logger_instance",
    "log_repository_operation",
    # Decorators
    "track_repository_operation",
    "performance_monitor",
]
