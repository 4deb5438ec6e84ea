"""
Retry handling for authentication exchanges.

Authentication is the only operation this layer retries: a bounded number of
attempts with exponential backoff between them.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

import aiohttp

from ..config.models import RetryPolicy
from ..exceptions import AuthenticationFailed
from .base import AuthAttemptError

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_ERRORS = (AuthAttemptError, aiohttp.ClientError, asyncio.TimeoutError)


def describe_attempt_error(error: BaseException) -> str:
    """Short, credential-free description of a failed attempt."""
    if isinstance(error, asyncio.TimeoutError):
        return "authentication request timed out"
    message = str(error)
    if isinstance(error, AuthAttemptError):
        return message
    return f"{type(error).__name__}: {message}" if message else type(error).__name__


class RetryHandler:
    """Runs an authentication exchange under a retry policy."""

    def __init__(
        self,
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """
        Initialize retry handler.

        Args:
            policy: Retry policy configuration
            sleep: Coroutine used to wait between attempts
        """
        self.policy = policy or RetryPolicy()
        self._sleep = sleep

    def calculate_delay(self, attempt: int) -> float:
        """
        Delay after the given failed attempt (1-based): base * exp_base**attempt.

        With the default policy this is 2s after the first failure and 4s
        after the second.
        """
        delay = self.policy.base_delay * (self.policy.exponential_base ** attempt)
        return min(delay, self.policy.max_delay)

    async def execute_with_retry(
        self,
        func: Callable[[], Awaitable[T]],
        instance_name: str,
        operation_name: str = "authentication",
    ) -> T:
        """
        Execute an exchange with retry logic.

        Args:
            func: Zero-argument coroutine function performing one attempt
            instance_name: Instance being authenticated, for errors and logs
            operation_name: Name of the operation for logging

        Returns:
            Result of the first successful attempt

        Raises:
            AuthenticationFailed: If all attempts fail
        """
        max_attempts = self.policy.max_attempts
        last_error: Optional[str] = None

        for attempt in range(1, max_attempts + 1):
            logger.debug(
                f"{operation_name} attempt {attempt} of {max_attempts} "
                f"for instance {instance_name}"
            )
            try:
                result = await func()
            except RETRYABLE_ERRORS as e:
                last_error = describe_attempt_error(e)
                logger.warning(
                    f"{operation_name} attempt {attempt} failed for instance "
                    f"{instance_name}: {last_error}"
                )
                if attempt < max_attempts:
                    await self._sleep(self.calculate_delay(attempt))
                continue

            if attempt > 1:
                logger.info(
                    f"{operation_name} succeeded on attempt {attempt} "
                    f"for instance {instance_name}"
                )
            return result

        logger.error(
            f"All {operation_name} attempts failed for instance {instance_name}"
        )
        raise AuthenticationFailed(
            instance_name, last_error=last_error, attempts=max_attempts
        )
