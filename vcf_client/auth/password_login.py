"""
Password login authentication (automation backends before version 9).

Credentials are posted as JSON to the CSP gateway login endpoint and the token
comes back in the response body.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import aiohttp

from .base import (
    AcquiredToken,
    AuthAttemptError,
    AuthProtocol,
    AuthStrategy,
    read_json_body,
)

if TYPE_CHECKING:
    from ..instances import Instance


class PasswordLoginAuth(AuthStrategy):
    """
    CSP password login.

    Example:
        ```python
        strategy = PasswordLoginAuth()
        acquired = await strategy.acquire(session, instance, timeout)
        ```
    """

    protocol = AuthProtocol.PASSWORD_LOGIN
    lifetime = 24 * 60 * 60.0
    scheme = "Bearer"

    login_path = "/csp/gateway/am/api/login"
    token_field = "cspAuthToken"

    async def acquire(
        self,
        session: aiohttp.ClientSession,
        instance: "Instance",
        timeout: aiohttp.ClientTimeout,
    ) -> AcquiredToken:
        credentials = instance.credentials
        body = {
            "username": credentials.username,
            "password": credentials.password.get_secret_value(),
            "domain": credentials.domain,
        }

        async with session.post(
            f"{instance.base_url}{self.login_path}",
            json=body,
            headers={"Content-Type": "application/json"},
            timeout=timeout,
        ) as response:
            if response.status < 200 or response.status >= 300:
                raise AuthAttemptError(
                    f"Authentication failed with status {response.status}: "
                    f"{response.reason}",
                    status=response.status,
                )
            data = await read_json_body(response)

        token = data.get(self.token_field) if isinstance(data, dict) else None
        if not token:
            raise AuthAttemptError(
                f"No {self.token_field} in login response from {instance.name}"
            )
        return AcquiredToken(token=token)
