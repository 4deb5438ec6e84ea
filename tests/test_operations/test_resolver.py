"""
Tests for the resource resolver chains.
"""

import aiohttp
import pytest

from vcf_client.operations.resolver import (
    RESOURCE_QUERY_PATH,
    RESOURCES_PATH,
    Matched,
    NoMatch,
    ResourceResolver,
    Unavailable,
    kind_query,
    property_query,
)

from conftest import OPS_EAST, calls_to, resource_payload, url_pattern


@pytest.fixture
def resolver(dispatcher):
    return ResourceResolver(dispatcher)


@pytest.fixture
def east(operations_registry):
    return operations_registry.resolve("vcfo-east")


class TestQueryBodies:
    """Test query body builders."""

    def test_property_query(self):
        """Test the OR-conjunction body."""
        assert property_query([("a", "1"), ("b", "2")]) == {
            "propertyConditions": {
                "conjunctionOperator": "OR",
                "conditions": [
                    {"key": "a", "operator": "EQ", "stringValue": "1"},
                    {"key": "b", "operator": "EQ", "stringValue": "2"},
                ],
            }
        }

    def test_kind_query(self):
        """Test the name and kind body."""
        assert kind_query("c1", "VMWARE", "ResourcePool") == {
            "name": ["c1"],
            "adapterKind": ["VMWARE"],
            "resourceKind": ["ResourcePool"],
        }


class TestTypedLookups:
    """Test type-specific lookups."""

    @pytest.mark.asyncio
    async def test_vm_lookup(self, resolver, east, ops_token):
        """Test the VM search and that the generic chain is not used."""
        ops_token.get(
            url_pattern(OPS_EAST, RESOURCES_PATH),
            payload={"resourceList": [resource_payload("vm-1", "web-01")]},
        )

        result = await resolver.find_by_name("web-01", "vm", east)

        assert isinstance(result, Matched)
        assert result.resource.identifier == "vm-1"
        call = calls_to(ops_token, "GET", OPS_EAST, RESOURCES_PATH)[0]
        assert call.kwargs["params"] == [
            ("name", "web-01"),
            ("adapterKind", "VMWARE"),
            ("resourceKind", "VirtualMachine"),
        ]
        assert calls_to(ops_token, "POST", OPS_EAST, RESOURCE_QUERY_PATH) == []

    @pytest.mark.asyncio
    async def test_vm_no_match_does_not_fall_through(self, resolver, east, ops_token):
        """Test that an empty typed lookup returns NoMatch without further calls."""
        ops_token.get(url_pattern(OPS_EAST, RESOURCES_PATH), payload={"resourceList": []})

        result = await resolver.find_by_name("ghost", "vm", east)

        assert isinstance(result, NoMatch)
        assert len(calls_to(ops_token, "GET", OPS_EAST, RESOURCES_PATH)) == 1
        assert calls_to(ops_token, "POST", OPS_EAST, RESOURCE_QUERY_PATH) == []

    @pytest.mark.asyncio
    async def test_project_lookup(self, resolver, east, ops_token):
        """Test the ProjectAssignment kind query."""
        ops_token.post(
            url_pattern(OPS_EAST, RESOURCE_QUERY_PATH),
            payload={"resourceList": [resource_payload("p-1", "dev", "ProjectAssignment")]},
        )

        result = await resolver.find_by_name("dev", "project", east)

        assert isinstance(result, Matched)
        call = calls_to(ops_token, "POST", OPS_EAST, RESOURCE_QUERY_PATH)[0]
        assert call.kwargs["json"] == kind_query("dev", "VCFAutomation", "ProjectAssignment")
        assert ("pageSize", "1000") in call.kwargs["params"]

    @pytest.mark.asyncio
    async def test_cluster_lookup(self, resolver, east, ops_token):
        """Test the ResourcePool kind query."""
        ops_token.post(
            url_pattern(OPS_EAST, RESOURCE_QUERY_PATH),
            payload={"resourceList": [resource_payload("c-1", "cl", "ResourcePool")]},
        )

        result = await resolver.find_by_name("cl", "cluster", east)

        assert result.resource.resource_kind == "ResourcePool"
        call = calls_to(ops_token, "POST", OPS_EAST, RESOURCE_QUERY_PATH)[0]
        assert call.kwargs["json"]["resourceKind"] == ["ResourcePool"]

    @pytest.mark.asyncio
    async def test_typed_failure_is_unavailable(self, resolver, east, ops_token):
        """Test that a failing single-step lookup reports Unavailable."""
        ops_token.get(url_pattern(OPS_EAST, RESOURCES_PATH), status=500)

        result = await resolver.find_by_name("web-01", "vm", east)

        assert isinstance(result, Unavailable)
        assert result.error.status == 500


class TestGenericChain:
    """Test the untyped fallback chain."""

    @pytest.mark.asyncio
    async def test_direct_search_hit(self, resolver, east, ops_token):
        """Test that a direct hit skips the property query."""
        ops_token.get(
            url_pattern(OPS_EAST, RESOURCES_PATH),
            payload={"resourceList": [resource_payload("r-1", "thing")]},
        )

        result = await resolver.find_by_name("thing", None, east)

        assert result.resource.identifier == "r-1"
        assert calls_to(ops_token, "POST", OPS_EAST, RESOURCE_QUERY_PATH) == []

    @pytest.mark.asyncio
    async def test_falls_back_to_property_query(self, resolver, east, ops_token):
        """Test that an empty direct search continues to the display-name query."""
        ops_token.get(url_pattern(OPS_EAST, RESOURCES_PATH), payload={"resourceList": []})
        ops_token.post(
            url_pattern(OPS_EAST, RESOURCE_QUERY_PATH),
            payload={"resourceList": [resource_payload("ns-1", "team-a", "Namespace")]},
        )

        result = await resolver.find_by_name("team-a", "supervisor-namespace", east)

        assert result.resource.identifier == "ns-1"
        call = calls_to(ops_token, "POST", OPS_EAST, RESOURCE_QUERY_PATH)[0]
        conditions = call.kwargs["json"]["propertyConditions"]["conditions"]
        assert [c["key"] for c in conditions] == [
            "summary|config|name",
            "summary|config|displayName",
        ]

    @pytest.mark.asyncio
    async def test_non_final_failure_continues(self, resolver, east, ops_token):
        """Test that a failed direct search does not stop the chain."""
        ops_token.get(
            url_pattern(OPS_EAST, RESOURCES_PATH),
            exception=aiohttp.ClientConnectionError("reset"),
        )
        ops_token.post(
            url_pattern(OPS_EAST, RESOURCE_QUERY_PATH),
            payload={"resourceList": [resource_payload("r-2", "thing")]},
        )

        result = await resolver.find_by_name("thing", "unknown-type", east)

        assert isinstance(result, Matched)
        assert result.resource.identifier == "r-2"

    @pytest.mark.asyncio
    async def test_final_failure_is_unavailable(self, resolver, east, ops_token):
        """Test that a failure on the last step is not reported as absence."""
        ops_token.get(url_pattern(OPS_EAST, RESOURCES_PATH), payload={"resourceList": []})
        ops_token.post(url_pattern(OPS_EAST, RESOURCE_QUERY_PATH), status=503)

        result = await resolver.find_by_name("thing", None, east)

        assert isinstance(result, Unavailable)

    @pytest.mark.asyncio
    async def test_all_empty_is_no_match(self, resolver, east, ops_token):
        """Test NoMatch when every step completes without hits."""
        ops_token.get(url_pattern(OPS_EAST, RESOURCES_PATH), payload={"resourceList": []})
        ops_token.post(url_pattern(OPS_EAST, RESOURCE_QUERY_PATH), payload={})

        result = await resolver.find_by_name("thing", None, east)

        assert isinstance(result, NoMatch)


class TestPropertyLookup:
    """Test property lookups."""

    @pytest.mark.asyncio
    async def test_single_condition(self, resolver, east, ops_token):
        """Test one OR condition and the first match returned."""
        ops_token.post(
            url_pattern(OPS_EAST, RESOURCE_QUERY_PATH),
            payload={
                "resourceList": [
                    resource_payload("r-1", "a"),
                    resource_payload("r-2", "b"),
                ]
            },
        )

        result = await resolver.find_by_property("summary|guest|ipAddress", "10.0.0.5", east)

        assert result.resource.identifier == "r-1"
        call = calls_to(ops_token, "POST", OPS_EAST, RESOURCE_QUERY_PATH)[0]
        assert call.kwargs["json"] == property_query([("summary|guest|ipAddress", "10.0.0.5")])

    @pytest.mark.asyncio
    async def test_failure_is_unavailable(self, resolver, east, ops_token):
        """Test that the property query has no fallback."""
        ops_token.post(url_pattern(OPS_EAST, RESOURCE_QUERY_PATH), status=500)

        result = await resolver.find_by_property("k", "v", east)

        assert isinstance(result, Unavailable)
