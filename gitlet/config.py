"""
Configuration for gitlet.

Settings are pydantic models populated from the environment (a ``.env`` file
in the working directory is loaded first):

- GITLET_METADATA_DIR: repository directory inside the working tree
- GITLET_DEFAULT_BRANCH: branch created by ``init``
- GITLET_DIGEST: commit id digest, sha1 or sha256
- GITLET_LOG_LEVEL / GITLET_CONSOLE_LOG: logging
"""

import os
from pathlib import Path
from typing import Literal, Optional, cast

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()

DigestAlgorithm = Literal["sha1", "sha256"]
LogLevel = Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class RepositoryConfig(BaseModel):
    """Repository layout and commit creation."""

    metadata_dir: str = Field(
        default=".gitlet",
        description="Directory (relative to the working tree) holding repository state",
    )
    default_branch: str = Field(
        default="master", description="Branch created by init"
    )
    initial_message: str = Field(
        default="initial commit", description="Log message of the root commit"
    )
    digest_algorithm: DigestAlgorithm = Field(
        default="sha1", description="hashlib algorithm used for commit ids"
    )

    def metadata_path(self, work_dir: Path) -> Path:
        """Get the metadata directory for a working tree."""
        return Path(work_dir) / self.metadata_dir


class LogConfig(BaseModel):
    """Log sinks written by the command line."""

    level: LogLevel = Field(default="INFO", description="Level of the main log")
    format: Optional[str] = Field(
        default=None, description="loguru format string (None: built-in format)"
    )
    rotation: str = Field(default="10 MB", description="Rotate log files at this size")
    retention: str = Field(default="1 month", description="Drop rotated files after")
    log_dir: str = Field(
        default="logs",
        description="Directory for log files, relative to the metadata directory",
    )
    enable_file_logging: bool = Field(
        default=True, description="Write log files inside the repository"
    )
    enable_console_logging: bool = Field(
        default=False,
        description="Mirror logs to stderr (command output uses stdout)",
    )


class Config(BaseModel):
    """Top-level gitlet configuration."""

    repository: RepositoryConfig = Field(default_factory=RepositoryConfig)
    logging: LogConfig = Field(default_factory=LogConfig)

    @classmethod
    def from_env(cls) -> "Config":
        """Build a configuration from GITLET_* environment variables."""
        return cls(
            repository=RepositoryConfig(
                metadata_dir=os.getenv("GITLET_METADATA_DIR", ".gitlet"),
                default_branch=os.getenv("GITLET_DEFAULT_BRANCH", "master"),
                digest_algorithm=cast(DigestAlgorithm, os.getenv("GITLET_DIGEST", "sha1")),
            ),
            logging=LogConfig(
                level=cast(LogLevel, os.getenv("GITLET_LOG_LEVEL", "INFO")),
                enable_console_logging=_env_flag("GITLET_CONSOLE_LOG"),
            ),
        )


# Process-wide configuration used by the command line
config = Config.from_env()
