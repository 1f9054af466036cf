"""
Domain exceptions and shared error-logging helpers.

Services raise the `WorkflowError` subclasses below; routers translate them
into HTTP responses using `status_code`.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, TypeVar

T = TypeVar("T")


class WorkflowError(Exception):
    """Base class for workflow engine errors."""

    status_code = 500


class RuleValidationError(WorkflowError):
    """Malformed rule/template definition or a rejected mutation."""

    status_code = 400


class ConflictError(RuleValidationError):
    status_code = 409


class NotFoundError(WorkflowError):
    status_code = 404


class EvaluationError(WorkflowError):
    """Raised while resolving a field or applying an operator."""


class PersistenceError(WorkflowError):
    """A mutating operation failed at the database layer and was rolled back."""


def _context_suffix(context: Optional[dict]) -> str:
    pairs = " ".join(f"{k}={v}" for k, v in (context or {}).items() if v is not None)
    return f" {pairs}" if pairs else ""


def log_exception(
    logger: logging.Logger,
    msg: str,
    *,
    extra: Optional[dict] = None,
    exc: Optional[BaseException] = None,
) -> None:
    """Log `msg` plus key=value context at ERROR with the traceback attached.

    Without `exc` this must be called from inside an ``except`` block.
    """
    text = f"{msg}{_context_suffix(extra)}"
    if exc is None:
        logger.exception(text)
    else:
        logger.error("%s: %s", text, exc, exc_info=exc)


def guarded_call(
    name: str,
    fn: Callable[[], T],
    *,
    fallback: Optional[T] = None,
    logger: Optional[logging.Logger] = None,
    context: Optional[dict] = None,
) -> Optional[T]:
    """Run a best-effort step; a failure is logged as a warning and `fallback` returned."""
    try:
        return fn()
    except Exception as exc:
        if logger is not None:
            logger.warning("%s failed%s: %s", name, _context_suffix(context), exc)
        return fallback
