"""
Tests for the exception hierarchy and transport error conversion.
"""

import asyncio

import aiohttp
import pytest

from vcf_client.exceptions import (
    AuthenticationFailed,
    ConfigurationError,
    ErrorHandler,
    InstanceNotFound,
    NotFound,
    RequestFailed,
    ServiceUnavailable,
    ValidationError,
    VcfClientError,
)


class TestExceptions:
    """Test exception messages and attributes."""

    @pytest.mark.parametrize(
        "error",
        [
            ConfigurationError("bad"),
            InstanceNotFound("x", "operations"),
            AuthenticationFailed("x"),
            RequestFailed(404),
            ServiceUnavailable("x", "reset"),
            NotFound("none"),
            ValidationError("bad", "field"),
        ],
    )
    def test_hierarchy(self, error):
        """Test that every error derives from VcfClientError."""
        assert isinstance(error, VcfClientError)
        assert error.message == str(error)

    def test_instance_not_found(self):
        """Test the family-qualified message."""
        error = InstanceNotFound("east", "automation")

        assert str(error) == "automation instance 'east' not found"
        assert error.instance_name == "east"

    def test_authentication_failed(self):
        """Test attempts and last error in the message."""
        error = AuthenticationFailed("east", last_error="status 401", attempts=3)

        assert str(error) == "Failed to authenticate with instance east after 3 attempts: status 401"

    def test_request_failed(self):
        """Test status and text."""
        error = RequestFailed(503, "Service Unavailable", "east", url="https://x/y")

        assert str(error) == "Request failed with status 503: Service Unavailable"
        assert error.url == "https://x/y"


class TestErrorHandler:
    """Test transport error conversion."""

    def test_timeout(self):
        """Test timeouts."""
        error = ErrorHandler.handle_aiohttp_error(asyncio.TimeoutError(), "east")

        assert isinstance(error, ServiceUnavailable)
        assert error.cause == "request timed out"

    def test_connection_error(self):
        """Test connection failures."""
        error = ErrorHandler.handle_aiohttp_error(
            aiohttp.ServerDisconnectedError(), "east", "https://x"
        )

        assert error.cause.startswith("connection error")
        assert error.url == "https://x"

    def test_passthrough(self):
        """Test that client errors are returned unchanged."""
        original = RequestFailed(500)

        assert ErrorHandler.handle_aiohttp_error(original) is original
