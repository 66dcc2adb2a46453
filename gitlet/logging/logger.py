"""
Loguru setup for gitlet.

Every record carries a ``component`` extra (repository, staging, graph,
merge, worktree, storage, cli). Three files are written under the log
directory:

- ``gitlet.log``: everything at the configured level
- ``merge.log``: per-path merge decisions, always at DEBUG
- ``errors.log``: failed commands
"""

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, List, Optional

from loguru import logger

DEFAULT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<magenta>{extra[component]: <10}</magenta> | "
    "<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


def _only_component(component: str) -> Callable[[dict], bool]:
    return lambda record: record["extra"].get("component") == component


@dataclass
class LogSink:
    """One log file and the records routed to it."""

    filename: str
    level: Optional[str] = None
    filter: Optional[Callable[[dict], bool]] = None


def default_sinks() -> List[LogSink]:
    return [
        LogSink("gitlet.log"),
        LogSink("merge.log", level="DEBUG", filter=_only_component("merge")),
        LogSink("errors.log", level="ERROR"),
    ]


class GitletLogger:
    """
    Installs gitlet's loguru sinks, replacing any existing ones.

    File logging is meant to live inside the repository metadata directory,
    so callers disable it when no repository exists yet.
    """

    def __init__(
        self,
        log_dir: Optional[Path] = None,
        rotation: str = "10 MB",
        retention: str = "1 month",
        level: str = "INFO",
        format_string: Optional[str] = None,
        enable_file_logging: bool = True,
        enable_console_logging: bool = False,
    ):
        self.log_dir = log_dir or Path(".gitlet") / "logs"
        self.rotation = rotation
        self.retention = retention
        self.level = level
        self.format_string = format_string or DEFAULT_FORMAT
        self.sinks: List[LogSink] = default_sinks() if enable_file_logging else []

        logger.remove()
        logger.configure(extra={"component": "system"})

        if enable_console_logging:
            # stdout is reserved for command output
            logger.add(sys.stderr, format=self.format_string, level=level, colorize=True)

        if self.sinks:
            self.log_dir.mkdir(parents=True, exist_ok=True)
        for sink in self.sinks:
            logger.add(
                self.log_dir / sink.filename,
                format=self.format_string,
                level=sink.level or self.level,
                filter=sink.filter,
                rotation=self.rotation,
                retention=self.retention,
            )

    def get_logger(self, component: str) -> Any:
        return get_gitlet_logger(component)


def get_gitlet_logger(component: str = "system") -> Any:
    """
    Get a logger bound to a component.

    Example:
        >>> log = get_gitlet_logger("merge")
        >>> log.info("Merged {branch}", branch="feature")
    """
    return logger.bind(component=component)


_gitlet_logger: Optional[GitletLogger] = None


def initialize_logging(
    log_dir: Optional[Path] = None, level: str = "INFO", **kwargs: Any
) -> GitletLogger:
    """
    Configure logging for this process.

    The command line calls this once per invocation.

    Args:
        log_dir: Directory for log files
        level: Level for the console and the main log file
        **kwargs: Passed through to GitletLogger

    Returns:
        The installed GitletLogger
    """
    global _gitlet_logger
    _gitlet_logger = GitletLogger(log_dir=log_dir, level=level, **kwargs)
    return _gitlet_logger


def get_logger_instance() -> Optional[GitletLogger]:
    return _gitlet_logger
