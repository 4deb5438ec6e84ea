"""
Per-instance credential management.

The CredentialManager acquires tokens through each instance's authentication
strategy, caches them with an expiry on the owning instance, and refreshes
them when they expire or when asked to. Concurrent callers for the same
instance share one authentication exchange.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Awaitable, Callable, Dict, Optional

import aiohttp

from ..config.models import BackendFamily, RetryPolicy
from .base import AuthStrategy, CachedCredential
from .basic_session import BasicSessionAuth
from .password_login import PasswordLoginAuth
from .retry import RetryHandler
from .token_acquire import TokenAcquireAuth

if TYPE_CHECKING:
    from ..instances import Instance

logger = logging.getLogger(__name__)

# Automation backends switched to cloud API sessions in this major version
BASIC_SESSION_MIN_VERSION = 9


def select_strategy(family: BackendFamily, major_version: int) -> AuthStrategy:
    """
    Pick the authentication protocol for an instance.

    Args:
        family: Backend family of the instance
        major_version: Configured backend major version

    Returns:
        Strategy instance for the protocol
    """
    family = BackendFamily(family)
    if family == BackendFamily.OPERATIONS:
        return TokenAcquireAuth()
    if major_version >= BASIC_SESSION_MIN_VERSION:
        return BasicSessionAuth()
    return PasswordLoginAuth()


class CredentialManager:
    """
    Keeps a valid token on every instance that needs one.

    Example:
        ```python
        manager = CredentialManager(session_provider=dispatcher.get_session)
        credential = await manager.ensure_authenticated(instance)
        headers = instance.auth_strategy.authorization_header(credential.token)
        ```
    """

    def __init__(
        self,
        session_provider: Callable[[], Awaitable[aiohttp.ClientSession]],
        retry_policy: Optional[RetryPolicy] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        clock: Callable[[], float] = time.time,
        retry_handler: Optional[RetryHandler] = None,
    ) -> None:
        """
        Initialize the credential manager.

        Args:
            session_provider: Coroutine function returning the shared session
            retry_policy: Policy for authentication retries
            timeout: Timeout applied to each authentication exchange
            clock: Time source in epoch seconds
            retry_handler: Pre-built retry handler (overrides retry_policy)
        """
        self._session_provider = session_provider
        self._timeout = timeout or aiohttp.ClientTimeout(total=30)
        self._clock = clock
        self._retry_handler = retry_handler or RetryHandler(retry_policy)
        self._locks: Dict[int, asyncio.Lock] = {}

    def _lock_for(self, instance: "Instance") -> asyncio.Lock:
        key = id(instance)
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def current(self, instance: "Instance") -> Optional[CachedCredential]:
        """Return the cached credential if it is still valid."""
        credential = instance.credential
        if credential is not None and credential.is_valid(self._clock()):
            return credential
        return None

    async def ensure_authenticated(
        self, instance: "Instance", force: bool = False
    ) -> CachedCredential:
        """
        Make sure the instance holds a valid token.

        Args:
            instance: Instance to authenticate
            force: Re-authenticate even if the cached token is still valid

        Returns:
            The valid credential snapshot

        Raises:
            AuthenticationFailed: If every attempt fails; the cache is left empty
        """
        stale = instance.credential
        if not force:
            credential = self.current(instance)
            if credential is not None:
                return credential

        async with self._lock_for(instance):
            # Another caller may have refreshed while we waited for the lock
            credential = self.current(instance)
            if credential is not None and (not force or credential is not stale):
                logger.debug(f"Using existing valid token for instance {instance.name}")
                return credential

            instance.clear_credential()
            strategy = instance.auth_strategy
            logger.debug(
                f"Authenticating with instance {instance.name} "
                f"(version {instance.major_version}, {strategy.protocol.value})"
            )

            async def attempt():
                session = await self._session_provider()
                return await strategy.acquire(session, instance, self._timeout)

            acquired = await self._retry_handler.execute_with_retry(
                attempt, instance.name
            )

            credential = CachedCredential(
                token=acquired.token,
                expires_at=strategy.expiry_for(acquired, self._clock()),
            )
            instance.install_credential(credential)
            logger.debug(f"Successfully authenticated with instance {instance.name}")
            return credential

    def invalidate(self, instance: "Instance") -> None:
        """Forget the cached token so the next call re-authenticates."""
        if instance.credential is not None:
            logger.debug(f"Invalidating cached token for instance {instance.name}")
        instance.clear_credential()
