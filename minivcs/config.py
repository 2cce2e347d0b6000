"""
Configuration management for minivcs.

This module provides centralized configuration for all components:
- Repository layout (storage directory, default branch)
- Logging settings
"""

import os
from typing import Literal, cast

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Load environment variables from .env file
load_dotenv()


class RepositoryConfig(BaseModel):
    """Configuration for repository layout and defaults."""

    storage_dir_name: str = Field(
        default=".vcs",
        min_length=1,
        description="Name of the private storage directory inside the working tree",
    )
    default_branch: str = Field(
        default="master", min_length=1, description="Branch created by init"
    )
    short_hash_length: int = Field(
        default=8, gt=0, le=64, description="Hash prefix length used in messages"
    )


class LogConfig(BaseModel):
    """Configuration for logging system."""

    level: Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING", description="Logging level"
    )
    format: str = Field(
        default="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan> - "
        "<level>{message}</level>",
        description="Log message format",
    )
    rotation: str = Field(default="10 MB", description="Log file rotation size")
    retention: str = Field(default="1 month", description="Log file retention period")
    log_dir: str = Field(default="logs", description="Directory for log files")
    enable_file_logging: bool = Field(
        default=False, description="Whether to enable file logging"
    )
    enable_console_logging: bool = Field(
        default=True, description="Whether to enable console logging"
    )


class Config(BaseModel):
    """Main configuration object for minivcs."""

    repository: RepositoryConfig = Field(default_factory=RepositoryConfig)
    logging: LogConfig = Field(default_factory=LogConfig)

    @classmethod
    def from_env(cls) -> "Config":
        """Create configuration from environment variables."""
        return cls(
            repository=RepositoryConfig(
                storage_dir_name=os.getenv("MINIVCS_STORAGE_DIR", ".vcs"),
                default_branch=os.getenv("MINIVCS_DEFAULT_BRANCH", "master"),
                short_hash_length=int(os.getenv("MINIVCS_SHORT_HASH_LENGTH", "8")),
            ),
            logging=LogConfig(
                level=cast(
                    Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                    os.getenv("MINIVCS_LOG_LEVEL", "WARNING"),
                ),
                log_dir=os.getenv("MINIVCS_LOG_DIR", "logs"),
                enable_file_logging=os.getenv("MINIVCS_LOG_TO_FILE", "false").lower()
                in ("1", "true", "yes"),
            ),
        )


# Global configuration instance
# This can be imported throughout the codebase
config = Config.from_env()
