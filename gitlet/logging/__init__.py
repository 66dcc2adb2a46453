"""
Logging infrastructure for gitlet.

Provides loguru-based component logging and an operation-tracking decorator.
"""

from .logger import (
    GitletLogger,
    get_gitlet_logger,
    initialize_logging,
    get_logger_instance,
)

from .decorators import track_operation

__all__ = [
    # Logger
    "GitletLogger",
    "get_gitlet_logger",
    "initialize_logging",
    "get_logger_instance",
    # Decorators
    "track_operation",
]
