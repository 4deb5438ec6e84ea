"""
Resource name resolution for the operations backend.

A human-supplied name is resolved to a backend resource through an ordered,
type-specific chain of lookups. Each lookup step reports an explicit result,
so a transport failure on the last step can be told apart from a genuine
absence of matches.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import (
    TYPE_CHECKING,
    Any,
    Awaitable,
    Callable,
    Dict,
    List,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from ..exceptions import VcfClientError
from ..models.resource import Resource, parse_resource_list

if TYPE_CHECKING:
    from ..http.dispatcher import RequestDispatcher
    from ..instances import Instance

logger = logging.getLogger(__name__)

SUITE_API = "/suite-api"
RESOURCES_PATH = f"{SUITE_API}/api/resources"
RESOURCE_QUERY_PATH = f"{SUITE_API}/api/resources/query"
RESOURCE_QUERY_PARAMS: Tuple[Tuple[str, str], ...] = (
    ("page", "0"),
    ("pageSize", "1000"),
    ("_no_links", "true"),
)
NAME_PROPERTY_KEYS = ("summary|config|name", "summary|config|displayName")


@dataclass(frozen=True)
class Matched:
    """A lookup step found a resource."""

    resource: Resource


@dataclass(frozen=True)
class NoMatch:
    """Every applicable lookup step completed without a hit."""


@dataclass(frozen=True)
class Unavailable:
    """The final lookup step failed, so absence cannot be confirmed."""

    error: VcfClientError


ResolveResult = Union[Matched, NoMatch, Unavailable]


def property_query(key_values: Sequence[Tuple[str, str]]) -> Dict[str, Any]:
    """Build an OR-conjunction property query body."""
    return {
        "propertyConditions": {
            "conjunctionOperator": "OR",
            "conditions": [
                {"key": key, "operator": "EQ", "stringValue": value}
                for key, value in key_values
            ],
        }
    }


def kind_query(name: str, adapter_kind: str, resource_kind: str) -> Dict[str, Any]:
    """Build a name/adapter-kind/resource-kind query body."""
    return {
        "name": [name],
        "adapterKind": [adapter_kind],
        "resourceKind": [resource_kind],
    }


class ResourceResolver:
    """
    Resolve resources by name or property.

    Example:
        ```python
        resolver = ResourceResolver(dispatcher)
        result = await resolver.find_by_name("web-01", "vm", instance)
        if isinstance(result, Matched):
            print(result.resource.identifier)
        ```
    """

    def __init__(self, dispatcher: "RequestDispatcher") -> None:
        self.dispatcher = dispatcher
        self._typed_lookups: Dict[str, Callable[[str, "Instance"], Awaitable[ResolveResult]]] = {
            "project": self.find_project,
            "vm": self.find_vm,
            "cluster": self.find_cluster,
        }

    async def find_by_name(
        self,
        name: str,
        declared_type: Optional[str],
        instance: "Instance",
    ) -> ResolveResult:
        """
        Resolve a display name to a resource.

        Typed lookups (``project``, ``vm``, ``cluster``) run alone and never
        fall through to the generic chain. ``supervisor-namespace`` and any
        other or absent type use the generic chain.

        Args:
            name: Display name to look for
            declared_type: Optional resource type hint
            instance: Operations instance to query

        Returns:
            Matched, NoMatch or Unavailable
        """
        logger.debug(f"Searching for resource by name: {name}, type: {declared_type}")
        lookup = self._typed_lookups.get(declared_type or "")
        if lookup is not None:
            return await lookup(name, instance)
        return await self.find_generic(name, instance)

    async def find_by_property(
        self, key: str, value: str, instance: "Instance"
    ) -> ResolveResult:
        """Single OR-condition property query with no fallback."""
        return await self._run_step(
            f"property {key}",
            self._query_resources(instance, property_query([(key, value)])),
            final=True,
        )

    async def find_project(self, name: str, instance: "Instance") -> ResolveResult:
        return await self._run_step(
            "ProjectAssignment",
            self._query_resources(
                instance, kind_query(name, "VCFAutomation", "ProjectAssignment")
            ),
            final=True,
        )

    async def find_vm(self, name: str, instance: "Instance") -> ResolveResult:
        return await self._run_step(
            "VirtualMachine",
            self._search_resources(
                instance,
                [
                    ("name", name),
                    ("adapterKind", "VMWARE"),
                    ("resourceKind", "VirtualMachine"),
                ],
            ),
            final=True,
        )

    async def find_cluster(self, name: str, instance: "Instance") -> ResolveResult:
        return await self._run_step(
            "ResourcePool",
            self._query_resources(instance, kind_query(name, "VMWARE", "ResourcePool")),
            final=True,
        )

    async def find_generic(self, name: str, instance: "Instance") -> ResolveResult:
        """Direct name search, then a property query on the display-name keys."""
        result = await self._run_step(
            "direct name search",
            self._search_resources(instance, [("name", name)]),
            final=False,
        )
        if isinstance(result, Matched):
            return result

        result = await self._run_step(
            "display-name property query",
            self._query_resources(
                instance, property_query([(key, name) for key in NAME_PROPERTY_KEYS])
            ),
            final=True,
        )
        if isinstance(result, NoMatch):
            logger.debug(f"No resource found with name: {name}")
        return result

    async def _run_step(
        self,
        label: str,
        pending: Awaitable[List[Resource]],
        final: bool,
    ) -> ResolveResult:
        try:
            resources = await pending
        except VcfClientError as e:
            if final:
                logger.error(f"{label} lookup failed: {e.message}")
                return Unavailable(e)
            logger.warning(f"{label} lookup failed, trying next strategy: {e.message}")
            return NoMatch()

        if resources:
            logger.debug(f"Found resource via {label}: {resources[0].identifier}")
            return Matched(resources[0])
        return NoMatch()

    async def _search_resources(
        self, instance: "Instance", params: List[Tuple[str, str]]
    ) -> List[Resource]:
        response = await self.dispatcher.call(instance, RESOURCES_PATH, params=params)
        return parse_resource_list(response)

    async def _query_resources(
        self, instance: "Instance", body: Dict[str, Any]
    ) -> List[Resource]:
        response = await self.dispatcher.call(
            instance,
            RESOURCE_QUERY_PATH,
            method="POST",
            body=body,
            params=list(RESOURCE_QUERY_PARAMS),
        )
        return parse_resource_list(response)
