"""
Token-acquire authentication (operations backends).

Posts credentials to the suite API token endpoint. The token is trusted for a
window shorter than the validity the server states, so it gets refreshed
before the backend starts rejecting it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict

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


class TokenAcquireAuth(AuthStrategy):
    """Suite API token acquisition."""

    protocol = AuthProtocol.ACQUIRE_TOKEN
    lifetime = 25 * 60.0
    scheme = "vRealizeOpsToken"

    acquire_path = "/suite-api/api/auth/token/acquire"

    async def acquire(
        self,
        session: aiohttp.ClientSession,
        instance: "Instance",
        timeout: aiohttp.ClientTimeout,
    ) -> AcquiredToken:
        credentials = instance.credentials
        body: Dict[str, str] = {
            "username": credentials.username,
            "password": credentials.password.get_secret_value(),
        }
        if credentials.domain:
            body["authSource"] = credentials.domain

        async with session.post(
            f"{instance.base_url}{self.acquire_path}",
            json=body,
            headers={
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            timeout=timeout,
        ) as response:
            if response.status < 200 or response.status >= 300:
                raise AuthAttemptError(
                    f"Authentication failed with status {response.status}: "
                    f"{response.reason}",
                    status=response.status,
                )
            data = await read_json_body(response)

        if not isinstance(data, dict) or not data.get("token"):
            raise AuthAttemptError(
                f"No token in acquire response from instance {instance.name}"
            )

        # validity is epoch milliseconds
        server_expires_at = None
        validity = data.get("validity")
        if isinstance(validity, (int, float)) and validity > 0:
            server_expires_at = validity / 1000.0

        return AcquiredToken(token=data["token"], server_expires_at=server_expires_at)

    def default_headers(self) -> Dict[str, str]:
        return {"Accept": "application/json", "Content-Type": "application/json"}
