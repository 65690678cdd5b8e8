"""
Reliability helpers for the Blockship receiver.

Provides performance tracking and health checks. Calls into external
services are never retried here: every retry is a fresh user action.
"""

import inspect
import time
from functools import wraps
from typing import Any, Callable, Dict, Optional

import structlog

logger = structlog.get_logger(__name__)


class HealthChecker:
    """Health checking for external services."""

    def __init__(self):
        self.checks: Dict[str, Callable] = {}
        self.last_results: Dict[str, Dict[str, Any]] = {}

    def register_check(self, name: str, check_func: Callable):
        """Register a health check function (sync or async)."""
        self.checks[name] = check_func

    async def check_all(self) -> Dict[str, Dict[str, Any]]:
        """Run all registered health checks."""
        results = {}

        for name, check_func in self.checks.items():
            start_time = time.time()
            try:
                check_result = check_func()
                if inspect.isawaitable(check_result):
                    check_result = await check_result
                results[name] = {
                    "status": "healthy",
                    "response_time_ms": (time.time() - start_time) * 1000,
                    "details": check_result if isinstance(check_result, dict) else {},
                }
            except Exception as e:
                results[name] = {
                    "status": "unhealthy",
                    "response_time_ms": (time.time() - start_time) * 1000,
                    "error": str(e),
                    "error_type": type(e).__name__,
                }

        self.last_results = results
        return results

    def is_healthy(self, service_name: Optional[str] = None) -> bool:
        """Check if service(s) were healthy on the last run."""
        if not self.last_results:
            return False

        if service_name:
            return self.last_results.get(service_name, {}).get("status") == "healthy"

        return all(result.get("status") == "healthy" for result in self.last_results.values())


def track_performance(operation_name: str):
    """
    Decorator to track performance metrics for async operations.

    Args:
        operation_name: Name of the operation for logging
    """

    def decorator(func: Callable) -> Callable:
        if not inspect.iscoroutinefunction(func):
            raise TypeError(f"track_performance expects a coroutine function, got {func!r}")

        @wraps(func)
        async def wrapper(*args, **kwargs):
            start_time = time.time()
            operation_id = f"{operation_name}_{int(start_time * 1000)}"

            logger.debug(
                "Performance tracking started", operation=operation_name, operation_id=operation_id
            )

            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                logger.info(
                    "Performance tracking failed",
                    operation=operation_name,
                    operation_id=operation_id,
                    duration_seconds=time.time() - start_time,
                    status="failed",
                    error_type=type(e).__name__,
                )
                raise

            logger.info(
                "Performance tracking completed",
                operation=operation_name,
                operation_id=operation_id,
                duration_seconds=time.time() - start_time,
                status="success",
            )
            return result

        return wrapper

    return decorator
