"""
Tests for the authenticated request dispatcher.
"""

import asyncio
import logging

import aiohttp
import pytest

from vcf_client.exceptions import AuthenticationFailed, RequestFailed, ServiceUnavailable
from vcf_client.http.headers import REDACTED

from conftest import (
    AUTO_V8,
    AUTO_V9,
    OPS_ACQUIRE,
    OPS_EAST,
    calls_to,
    url_pattern,
)

RESOURCES = "/suite-api/api/resources"
DEPLOYMENTS = "/deployment/api/deployments"


class TestAuthorizationHeaders:
    """Test strategy-specific Authorization headers."""

    @pytest.mark.asyncio
    async def test_operations_scheme(self, dispatcher, operations_registry, ops_token):
        """Test that operations requests carry a vRealizeOpsToken header."""
        instance = operations_registry.resolve("vcfo-east")
        ops_token.get(OPS_EAST + RESOURCES, payload={"resourceList": []})

        result = await dispatcher.call(instance, RESOURCES)

        assert result == {"resourceList": []}
        call = calls_to(ops_token, "GET", OPS_EAST, RESOURCES)[0]
        assert call.kwargs["headers"]["Authorization"] == "vRealizeOpsToken ops-token-ops-east"
        assert call.kwargs["headers"]["Accept"] == "application/json"

    @pytest.mark.asyncio
    async def test_automation_bearer(self, dispatcher, automation_registry, auto_tokens):
        """Test that both automation protocols use Bearer tokens."""
        v8 = automation_registry.resolve("vcfa-v8")
        v9 = automation_registry.resolve("vcfa-v9")
        auto_tokens.get(AUTO_V8 + DEPLOYMENTS, payload={"content": []})
        auto_tokens.get(AUTO_V9 + DEPLOYMENTS, payload={"content": []})

        await dispatcher.call(v8, DEPLOYMENTS)
        await dispatcher.call(v9, DEPLOYMENTS)

        v8_call = calls_to(auto_tokens, "GET", AUTO_V8, DEPLOYMENTS)[0]
        v9_call = calls_to(auto_tokens, "GET", AUTO_V9, DEPLOYMENTS)[0]
        assert v8_call.kwargs["headers"]["Authorization"] == "Bearer csp-token-v8"
        assert v9_call.kwargs["headers"]["Authorization"] == "Bearer vcloud-token-v9"

    @pytest.mark.asyncio
    async def test_token_reused_across_calls(self, dispatcher, operations_registry, ops_token):
        """Test that consecutive calls authenticate once."""
        instance = operations_registry.resolve("vcfo-east")
        ops_token.get(OPS_EAST + RESOURCES, payload={}, repeat=True)

        await dispatcher.call(instance, RESOURCES)
        await dispatcher.call(instance, RESOURCES)

        assert len(calls_to(ops_token, "POST", OPS_EAST, OPS_ACQUIRE)) == 1
        assert len(calls_to(ops_token, "GET", OPS_EAST, RESOURCES)) == 2

    @pytest.mark.asyncio
    async def test_params_and_body(self, dispatcher, operations_registry, ops_token):
        """Test that params and JSON body are forwarded."""
        instance = operations_registry.resolve("vcfo-east")
        path = RESOURCES + "/query"
        ops_token.post(url_pattern(OPS_EAST, path), payload={"resourceList": []})

        await dispatcher.call(
            instance,
            path,
            method="post",
            body={"name": ["vm-1"]},
            params=[("page", "0"), ("pageSize", "1000")],
        )

        call = calls_to(ops_token, "POST", OPS_EAST, path)[0]
        assert call.kwargs["json"] == {"name": ["vm-1"]}
        assert call.kwargs["params"] == [("page", "0"), ("pageSize", "1000")]


class TestDispatchFailures:
    """Test error conversion."""

    @pytest.mark.asyncio
    async def test_non_2xx_raises_request_failed(self, dispatcher, operations_registry, ops_token):
        """Test that a 404 becomes RequestFailed with status and text."""
        instance = operations_registry.resolve("vcfo-east")
        ops_token.get(OPS_EAST + RESOURCES + "/missing", status=404, reason="Not Found")

        with pytest.raises(RequestFailed) as exc_info:
            await dispatcher.call(instance, RESOURCES + "/missing")

        assert exc_info.value.status == 404
        assert exc_info.value.status_text == "Not Found"
        assert exc_info.value.instance_name == "vcfo-east"
        assert instance.credential is not None

    @pytest.mark.asyncio
    async def test_401_invalidates_credential(self, dispatcher, operations_registry, ops_token):
        """Test that a 401 drops the cached token so the next call re-authenticates."""
        instance = operations_registry.resolve("vcfo-east")
        ops_token.get(OPS_EAST + RESOURCES, status=401, reason="Unauthorized")
        ops_token.get(OPS_EAST + RESOURCES, payload={"ok": True})

        with pytest.raises(RequestFailed):
            await dispatcher.call(instance, RESOURCES)
        assert instance.credential is None

        assert await dispatcher.call(instance, RESOURCES) == {"ok": True}
        assert len(calls_to(ops_token, "POST", OPS_EAST, OPS_ACQUIRE)) == 2

    @pytest.mark.asyncio
    async def test_transport_error(self, dispatcher, operations_registry, ops_token):
        """Test that connection failures become ServiceUnavailable."""
        instance = operations_registry.resolve("vcfo-east")
        ops_token.get(OPS_EAST + RESOURCES, exception=aiohttp.ClientConnectionError("reset"))

        with pytest.raises(ServiceUnavailable) as exc_info:
            await dispatcher.call(instance, RESOURCES)

        assert "connection error" in exc_info.value.cause

    @pytest.mark.asyncio
    async def test_timeout(self, dispatcher, operations_registry, ops_token):
        """Test that timeouts become ServiceUnavailable."""
        instance = operations_registry.resolve("vcfo-east")
        ops_token.get(OPS_EAST + RESOURCES, exception=asyncio.TimeoutError())

        with pytest.raises(ServiceUnavailable) as exc_info:
            await dispatcher.call(instance, RESOURCES)

        assert exc_info.value.cause == "request timed out"

    @pytest.mark.asyncio
    async def test_invalid_json(self, dispatcher, operations_registry, ops_token):
        """Test that an unparsable 2xx body is reported as unavailable."""
        instance = operations_registry.resolve("vcfo-east")
        ops_token.get(OPS_EAST + RESOURCES, body="<html>oops</html>")

        with pytest.raises(ServiceUnavailable, match="invalid JSON"):
            await dispatcher.call(instance, RESOURCES)

    @pytest.mark.asyncio
    async def test_undecodable_body(self, dispatcher, operations_registry, ops_token):
        """Test that a 2xx body that is not UTF-8 is reported as unavailable."""
        instance = operations_registry.resolve("vcfo-east")
        ops_token.get(OPS_EAST + RESOURCES, body=b'{"name": "caf\xe9"}')

        with pytest.raises(ServiceUnavailable, match="invalid response encoding"):
            await dispatcher.call(instance, RESOURCES)

    @pytest.mark.asyncio
    async def test_undecodable_error_page(self, dispatcher, operations_registry, ops_token):
        """Test that a non-2xx body is never decoded."""
        instance = operations_registry.resolve("vcfo-east")
        ops_token.get(
            OPS_EAST + RESOURCES,
            status=500,
            reason="Internal Server Error",
            body=b"<html>Erreur interne \xe9</html>",
            content_type="text/html",
        )

        with pytest.raises(RequestFailed) as exc_info:
            await dispatcher.call(instance, RESOURCES)

        assert exc_info.value.status == 500
        assert exc_info.value.status_text == "Internal Server Error"

    @pytest.mark.asyncio
    async def test_empty_body(self, dispatcher, operations_registry, ops_token):
        """Test that an empty 2xx body yields an empty mapping."""
        instance = operations_registry.resolve("vcfo-east")
        ops_token.put(OPS_EAST + RESOURCES + "/vm-1", status=204, body="")

        assert await dispatcher.call(instance, RESOURCES + "/vm-1", method="PUT", body={}) == {}

    @pytest.mark.asyncio
    async def test_authentication_failure_propagates(self, dispatcher, operations_registry, mock_aiohttp):
        """Test that no business request is sent without a token."""
        instance = operations_registry.resolve("vcfo-east")
        mock_aiohttp.post(OPS_EAST + OPS_ACQUIRE, status=403, repeat=True)

        with pytest.raises(AuthenticationFailed):
            await dispatcher.call(instance, RESOURCES)

        assert calls_to(mock_aiohttp, "GET", OPS_EAST, RESOURCES) == []


class TestDispatchLogging:
    """Test that logs never carry credentials."""

    @pytest.mark.asyncio
    async def test_headers_redacted(self, dispatcher, operations_registry, ops_token, caplog):
        """Test that logged headers are redacted."""
        instance = operations_registry.resolve("vcfo-east")
        ops_token.get(OPS_EAST + RESOURCES, status=500, reason="Server Error")

        with caplog.at_level(logging.DEBUG, logger="vcf_client"):
            with pytest.raises(RequestFailed):
                await dispatcher.call(instance, RESOURCES)

        logged = [r for r in caplog.records if hasattr(r, "headers")]
        assert logged
        for record in logged:
            assert record.headers["Authorization"] == REDACTED
        assert "ops-token-ops-east" not in caplog.text
