"""
Base authentication classes and interfaces.

This module defines the credential cache value and the abstract strategy that
every backend authentication protocol implements.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional

import aiohttp

if TYPE_CHECKING:
    from ..instances import Instance


class AuthProtocol(str, Enum):
    """Supported authentication protocols."""

    PASSWORD_LOGIN = "password_login"
    BASIC_SESSION = "basic_session"
    ACQUIRE_TOKEN = "acquire_token"


@dataclass(frozen=True)
class CachedCredential:
    """
    Token plus expiry, always read and replaced as one value.

    Instances hold a single reference to one of these, so a reader never sees
    a token paired with another token's expiry.
    """

    token: str
    expires_at: float

    def is_valid(self, now: Optional[float] = None) -> bool:
        """Check whether the token may still be used."""
        if now is None:
            now = time.time()
        return now < self.expires_at


@dataclass(frozen=True)
class AcquiredToken:
    """Result of one successful authentication exchange."""

    token: str
    server_expires_at: Optional[float] = None


class AuthAttemptError(Exception):
    """
    One failed authentication attempt.

    Raised by strategies and consumed by the retry handler; the message
    carries the status or cause but never the submitted credentials.
    """

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class AuthStrategy(ABC):
    """
    Abstract base class for backend authentication protocols.

    A strategy knows how to obtain a token for an instance, how long such a
    token may be trusted, and how to present it on business requests.
    """

    protocol: AuthProtocol
    lifetime: float
    scheme: str = "Bearer"

    @abstractmethod
    async def acquire(
        self,
        session: aiohttp.ClientSession,
        instance: "Instance",
        timeout: aiohttp.ClientTimeout,
    ) -> AcquiredToken:
        """
        Perform one authentication exchange.

        Args:
            session: Shared HTTP session
            instance: Instance to authenticate against
            timeout: Bounded timeout for the exchange

        Returns:
            AcquiredToken with the token and any server-stated expiry

        Raises:
            AuthAttemptError: On non-2xx responses or a missing token
        """

    def expiry_for(self, acquired: AcquiredToken, now: float) -> float:
        """
        Compute the cache expiry for a freshly acquired token.

        The protocol window is an upper bound: a server-stated expiry can
        shorten it but never extend it.
        """
        expires_at = now + self.lifetime
        if acquired.server_expires_at is not None:
            expires_at = min(expires_at, acquired.server_expires_at)
        return expires_at

    def authorization_header(self, token: str) -> Dict[str, str]:
        """Build the Authorization header for business requests."""
        return {"Authorization": f"{self.scheme} {token}"}

    def default_headers(self) -> Dict[str, str]:
        """Headers every business request to this backend carries."""
        return {"Accept": "application/json"}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(lifetime={self.lifetime:.0f}s)"


async def read_json_body(response: aiohttp.ClientResponse) -> Any:
    """Parse an authentication response body, failing the attempt on bad JSON."""
    try:
        return await response.json(content_type=None)
    except ValueError:
        raise AuthAttemptError(
            "Invalid JSON in authentication response", status=response.status
        ) from None
