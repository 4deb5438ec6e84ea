"""
Typed error values returned by public operations.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from pydantic import BaseModel

from ..exceptions import ValidationError, VcfClientError

logger = logging.getLogger(__name__)

SERVICE_UNAVAILABLE_MESSAGE = "service temporarily unavailable"

T = TypeVar("T")


class ErrorResponse(BaseModel):
    """
    Degraded result of a public operation.

    Read operations never let dispatcher or resolver failures escape; they
    return one of these instead so the caller can render a partial result.
    """

    error: str
    status: str = "error"
    field: Optional[str] = None

    @classmethod
    def unavailable(cls) -> "ErrorResponse":
        return cls(error=SERVICE_UNAVAILABLE_MESSAGE)

    @classmethod
    def from_validation(cls, error: ValidationError) -> "ErrorResponse":
        return cls(error=error.message, field=error.field)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


def is_error(result: Any) -> bool:
    """True when a public operation returned a degraded result."""
    return isinstance(result, ErrorResponse)


def degrade_errors(
    func: Callable[..., Awaitable[T]],
) -> Callable[..., Awaitable[Any]]:
    """
    Decorator for public operations.

    ValidationError becomes an ErrorResponse naming the offending field; any
    other VcfClientError is logged and becomes the uniform unavailable
    response.
    """

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)
        except ValidationError as e:
            logger.debug(f"{func.__name__}: invalid request: {e.message}")
            return ErrorResponse.from_validation(e)
        except VcfClientError as e:
            logger.error(f"{func.__name__} failed: {e.message}")
            return ErrorResponse.unavailable()

    return wrapper


def require(value: Any, field: str) -> None:
    """Raise ValidationError when a required request field is empty."""
    if value is None or (isinstance(value, (str, list, tuple, set, dict)) and not value):
        raise ValidationError(f"{field} parameter is required", field)
