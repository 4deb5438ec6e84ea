"""
Exception hierarchy for the vcf_client integration layer.

This module defines the error taxonomy shared by the instance registry, the
credential manager, the request dispatcher and the resource resolver, plus
utilities for converting aiohttp transport failures into that taxonomy.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

import aiohttp


class VcfClientError(Exception):
    """
    Base exception for all vcf_client operations.

    Attributes:
        message: Human-readable error message (never contains credentials)
        instance_name: Name of the backend instance involved, if any
        details: Additional error details as keyword arguments
    """

    def __init__(
        self, message: str, instance_name: Optional[str] = None, **kwargs: Any
    ) -> None:
        super().__init__(message)
        self.message = message
        self.instance_name = instance_name
        self.details = kwargs


class ConfigurationError(VcfClientError):
    """
    Raised when the instance configuration is missing or invalid.

    This error is fatal: it aborts construction of the registry or client.
    """

    pass


class InstanceNotFound(VcfClientError):
    """Raised when a request names an instance that is not configured."""

    def __init__(self, instance_name: str, family: Optional[str] = None) -> None:
        label = f"{family} instance" if family else "Instance"
        super().__init__(f"{label} '{instance_name}' not found", instance_name)
        self.family = family


class AuthenticationFailed(VcfClientError):
    """
    Raised when authentication against an instance fails after all retries.

    Attributes:
        attempts: Number of attempts made
        last_error: Description of the last failure (status or transport cause)
    """

    def __init__(
        self,
        instance_name: str,
        last_error: Optional[str] = None,
        attempts: int = 0,
    ) -> None:
        message = f"Failed to authenticate with instance {instance_name}"
        if attempts:
            message += f" after {attempts} attempts"
        if last_error:
            message += f": {last_error}"
        super().__init__(message, instance_name)
        self.attempts = attempts
        self.last_error = last_error


class RequestFailed(VcfClientError):
    """Raised when a backend answers with a non-2xx status."""

    def __init__(
        self,
        status: int,
        status_text: str = "",
        instance_name: Optional[str] = None,
        url: Optional[str] = None,
    ) -> None:
        message = f"Request failed with status {status}"
        if status_text:
            message += f": {status_text}"
        super().__init__(message, instance_name)
        self.status = status
        self.status_text = status_text
        self.url = url


class ServiceUnavailable(VcfClientError):
    """
    Raised for transport-level failures: DNS, connection reset, timeout.

    Attributes:
        cause: Short description of the underlying failure
    """

    def __init__(
        self,
        instance_name: Optional[str],
        cause: str,
        url: Optional[str] = None,
    ) -> None:
        super().__init__(
            f"Service unavailable on instance {instance_name}: {cause}", instance_name
        )
        self.cause = cause
        self.url = url


class NotFound(VcfClientError):
    """Raised when every applicable resolver strategy came back empty."""

    pass


class ValidationError(VcfClientError):
    """Raised when a caller omits or mangles a required parameter."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class ErrorHandler:
    """Converts aiohttp and asyncio exceptions into vcf_client errors."""

    @staticmethod
    def handle_aiohttp_error(
        error: Exception,
        instance_name: Optional[str] = None,
        url: Optional[str] = None,
    ) -> VcfClientError:
        """
        Convert a transport exception to a ServiceUnavailable error.

        Args:
            error: The original exception
            instance_name: Instance the request was addressed to
            url: The URL that caused the error

        Returns:
            ServiceUnavailable describing the failure
        """
        if isinstance(error, VcfClientError):
            return error

        if isinstance(error, asyncio.TimeoutError):
            cause = "request timed out"
        elif isinstance(error, aiohttp.ClientSSLError):
            cause = f"SSL error: {error}"
        elif isinstance(error, aiohttp.ClientConnectorError):
            cause = f"connector error: {error}"
        elif isinstance(error, aiohttp.ClientConnectionError):
            cause = f"connection error: {error}"
        elif isinstance(error, aiohttp.ClientPayloadError):
            cause = f"payload error: {error}"
        else:
            cause = f"unexpected network error: {error}"

        return ServiceUnavailable(instance_name, cause, url=url)
