"""
Decorators for automatic logging of repository operations.

These decorators enable traceability without cluttering the command logic.
"""

import functools
import time
from typing import Callable, Any
from .logger import get_gitlet_logger


def track_operation(operation: str, component: str = "repository") -> Callable:
    """
    Decorator to track a repository operation.

    Logs the start, the elapsed time on success, and the error type on
    failure. Exceptions are always re-raised.

    Args:
        operation: Operation name (e.g., "commit", "merge", "checkout_branch")
        component: Component the log records are bound to

    Example:
        >>> @track_operation("commit")
        ... def commit(self, message: str) -> Commit:
        ...     ...
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            log = get_gitlet_logger(component)
            log.debug(f"Operation started: {operation}")

            start_time = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                elapsed_ms = (time.perf_counter() - start_time) * 1000
                log.debug(
                    "Operation failed: {operation} ({error_type})",
                    operation=operation,
                    error_type=type(e).__name__,
                    elapsed_ms=elapsed_ms,
                )
                raise

            elapsed_ms = (time.perf_counter() - start_time) * 1000
            log.debug(
                "Operation finished: {operation}",
                operation=operation,
                elapsed_ms=elapsed_ms,
            )
            return result

        return wrapper

    return decorator
