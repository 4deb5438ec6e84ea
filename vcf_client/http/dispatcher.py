"""
Authenticated request dispatch.

Every outbound business call goes through RequestDispatcher.call: it makes
sure the instance holds a valid token, attaches the strategy-specific
Authorization header, applies a bounded timeout and turns non-2xx responses
and transport failures into vcf_client errors.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Any, Mapping, Optional, Sequence, Tuple, Union

import aiohttp

from ..auth.manager import CredentialManager
from ..config.models import HttpConfig, RetryPolicy
from ..exceptions import ErrorHandler, RequestFailed, ServiceUnavailable
from .headers import merge_headers, redact_headers

if TYPE_CHECKING:
    from ..instances import Instance

logger = logging.getLogger(__name__)

QueryParams = Union[Mapping[str, Any], Sequence[Tuple[str, Any]]]


class RequestDispatcher:
    """
    Wraps outbound calls to backend instances.

    The dispatcher owns one aiohttp session, created on first use inside the
    running event loop, and a CredentialManager that shares it.

    Example:
        ```python
        async with RequestDispatcher(HttpConfig()) as dispatcher:
            data = await dispatcher.call(instance, "/suite-api/api/resources")
        ```
    """

    def __init__(
        self,
        http_config: Optional[HttpConfig] = None,
        retry_policy: Optional[RetryPolicy] = None,
        credential_manager: Optional[CredentialManager] = None,
    ) -> None:
        """
        Initialize the dispatcher.

        Args:
            http_config: Timeouts and SSL settings
            retry_policy: Authentication retry policy
            credential_manager: Pre-built credential manager (for injection)
        """
        self.http_config = http_config or HttpConfig()
        self.timeout = aiohttp.ClientTimeout(
            total=self.http_config.total_timeout,
            connect=self.http_config.connect_timeout,
        )
        self.credentials = credential_manager or CredentialManager(
            session_provider=self.get_session,
            retry_policy=retry_policy,
            timeout=self.timeout,
        )
        self._session: Optional[aiohttp.ClientSession] = None
        self._lock = asyncio.Lock()

    async def get_session(self) -> aiohttp.ClientSession:
        """Return the shared session, creating it on first use."""
        if self._session is not None and not self._session.closed:
            return self._session
        async with self._lock:
            if self._session is None or self._session.closed:
                connector = aiohttp.TCPConnector(ssl=self.http_config.verify_ssl)
                self._session = aiohttp.ClientSession(
                    connector=connector, timeout=self.timeout
                )
        return self._session

    async def close(self) -> None:
        """Close the shared session."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "RequestDispatcher":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def call(
        self,
        instance: "Instance",
        path: str,
        method: str = "GET",
        body: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        params: Optional[QueryParams] = None,
    ) -> Any:
        """
        Perform an authenticated request against an instance.

        Args:
            instance: Target instance
            path: Path appended to the instance base URL
            method: HTTP method
            body: JSON-serializable request body
            headers: Extra headers (override defaults)
            params: Query parameters; a sequence of pairs allows repeats

        Returns:
            Parsed JSON response (``{}`` for an empty body)

        Raises:
            AuthenticationFailed: If no token could be obtained
            RequestFailed: On a non-2xx response
            ServiceUnavailable: On transport failure, timeout or invalid JSON
        """
        credential = await self.credentials.ensure_authenticated(instance)

        strategy = instance.auth_strategy
        url = f"{instance.base_url}{path}"
        request_headers = merge_headers(
            strategy.default_headers(),
            headers,
            strategy.authorization_header(credential.token),
        )
        method = method.upper()

        logger.debug(
            f"Making request to {url}",
            extra={
                "method": method,
                "params": list(params.items()) if isinstance(params, Mapping) else params,
                "headers": redact_headers(request_headers),
            },
        )

        session = await self.get_session()
        try:
            async with session.request(
                method,
                url,
                params=params,
                json=body,
                headers=request_headers,
                timeout=self.timeout,
            ) as response:
                status = response.status
                status_text = response.reason or ""
                payload = await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            error = ErrorHandler.handle_aiohttp_error(e, instance.name, url)
            logger.error(
                f"Request to {url} on instance {instance.name} failed: {error.message}",
                extra={"method": method, "headers": redact_headers(request_headers)},
            )
            raise error from None

        if status < 200 or status >= 300:
            logger.error(
                f"Request failed: {status} {status_text}",
                extra={
                    "url": url,
                    "method": method,
                    "instance": instance.name,
                    "headers": redact_headers(request_headers),
                },
            )
            if status == 401:
                self.credentials.invalidate(instance)
            raise RequestFailed(status, status_text, instance.name, url=url)

        try:
            text = payload.decode("utf-8")
        except UnicodeDecodeError:
            raise ServiceUnavailable(
                instance.name, "invalid response encoding", url=url
            ) from None

        if not text.strip():
            return {}
        try:
            data = json.loads(text)
        except ValueError:
            raise ServiceUnavailable(
                instance.name, "invalid JSON in response", url=url
            ) from None

        logger.debug(
            "Request successful",
            extra={
                "url": url,
                "response_keys": list(data.keys()) if isinstance(data, dict) else None,
            },
        )
        return data
