"""
Correlation IDs for operation tracing

Every mint or provisioning request runs inside a CorrelationContext so that
all log lines it produces, across modules, share one id.
"""

import logging
import uuid
import contextvars
from typing import Optional

# Context variable for correlation ID (task-local under asyncio)
_correlation_id: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    'correlation_id', default=None
)


def generate_correlation_id() -> str:
    """Generate a unique correlation ID for operation tracing."""
    return uuid.uuid4().hex[:12]


def get_correlation_id() -> Optional[str]:
    """Get the current correlation ID from context."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: Optional[str]) -> contextvars.Token:
    """Set the correlation ID in context. Returns token for reset."""
    return _correlation_id.set(correlation_id)


class CorrelationContext:
    """
    Context manager for correlation ID scoping.

    Nested contexts reuse the outer id, so a mint that provisions an account
    logs under a single id.

    Usage:
        with CorrelationContext("mint") as cid:
            logger.info(f"[{cid}] Starting operation")
    """

    def __init__(self, prefix: Optional[str] = None):
        """
        Initialize correlation context.

        Args:
            prefix: Optional prefix for the correlation ID (e.g., "mint", "ensure")
        """
        self.correlation_id = generate_correlation_id()
        if prefix:
            self.correlation_id = f"{prefix}_{self.correlation_id}"
        self._token: Optional[contextvars.Token] = None

    def __enter__(self) -> str:
        outer = get_correlation_id()
        if outer:
            self.correlation_id = outer
            return outer
        self._token = set_correlation_id(self.correlation_id)
        return self.correlation_id

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._token is not None:
            _correlation_id.reset(self._token)
            self._token = None


def log_with_correlation(
    logger: logging.Logger,
    level: int,
    message: str,
    operation_name: str,
    **extra
):
    """
    Log message with correlation ID and structured context.

    Args:
        logger: Module logger to emit on
        level: Logging level (logging.INFO, logging.WARNING, etc.)
        message: Log message
        operation_name: Name of the operation being executed
        **extra: Additional context fields
    """
    cid = get_correlation_id()

    parts = []
    if cid:
        parts.append(f"[{cid}]")
    parts.append(f"[{operation_name}]")
    parts.append(message)

    extra_context = {
        "correlation_id": cid,
        "operation": operation_name,
        **extra
    }

    logger.log(level, " ".join(parts), extra=extra_context)
