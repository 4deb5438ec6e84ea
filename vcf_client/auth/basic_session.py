"""
Basic-auth session authentication (automation backends, version 9 and later).

Opens a cloud API session with an HTTP Basic header built from
``username[@org]:password``. The token is returned in a response header rather
than the body.
"""

from __future__ import annotations

import base64
from typing import TYPE_CHECKING

import aiohttp

from .base import AcquiredToken, AuthAttemptError, AuthProtocol, AuthStrategy

if TYPE_CHECKING:
    from ..instances import Instance


class BasicSessionAuth(AuthStrategy):
    """Cloud API session opened with HTTP Basic credentials."""

    protocol = AuthProtocol.BASIC_SESSION
    lifetime = 60 * 60.0
    scheme = "Bearer"

    session_path = "/cloudapi/1.0.0/sessions"
    token_header = "x-vmware-vcloud-access-token"
    api_accept = "application/json;version=40.0"

    @staticmethod
    def login_name(instance: "Instance") -> str:
        """User name, qualified with the tenant organization when configured."""
        username = instance.credentials.username
        if instance.org_name:
            return f"{username}@{instance.org_name}"
        return username

    def basic_header(self, instance: "Instance") -> str:
        """Encode credentials for the Authorization header (RFC 7617)."""
        password = instance.credentials.password.get_secret_value()
        raw = f"{self.login_name(instance)}:{password}"
        return "Basic " + base64.b64encode(raw.encode("utf-8")).decode("ascii")

    async def acquire(
        self,
        session: aiohttp.ClientSession,
        instance: "Instance",
        timeout: aiohttp.ClientTimeout,
    ) -> AcquiredToken:
        headers = {
            "Content-Type": "application/json",
            "Accept": self.api_accept,
            "Authorization": self.basic_header(instance),
        }

        async with session.post(
            f"{instance.base_url}{self.session_path}",
            headers=headers,
            timeout=timeout,
        ) as response:
            if response.status < 200 or response.status >= 300:
                raise AuthAttemptError(
                    f"Authentication failed with status {response.status}: "
                    f"{response.reason}",
                    status=response.status,
                )
            token = response.headers.get(self.token_header)

        if not token:
            raise AuthAttemptError(
                f"No access token received from instance {instance.name}"
            )
        return AcquiredToken(token=token)
