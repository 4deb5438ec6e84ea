"""
Public operations of the operations (monitoring) backend family.

Every operation takes plain data, resolves the target instance, and returns
plain data or an ErrorResponse. Dispatcher and resolver failures never escape.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from ..http.dispatcher import RequestDispatcher
from ..instances import InstanceRegistry
from ..models.metrics import MetricsResponse
from ..models.results import ErrorResponse, degrade_errors, require
from .planner import MetricQueryPlanner
from .resolver import (
    RESOURCE_QUERY_PARAMS,
    RESOURCE_QUERY_PATH,
    RESOURCES_PATH,
    SUITE_API,
    Matched,
    ResolveResult,
    ResourceResolver,
    Unavailable,
)
from .transform import normalize

logger = logging.getLogger(__name__)

STATS_PATH = f"{SUITE_API}/api/resources/stats"
STATS_QUERY_PATH = f"{SUITE_API}/api/resources/stats/query"
LATEST_STATS_PATH = f"{SUITE_API}/api/resources/stats/latest"


def _as_id_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value else []
    return [str(item) for item in value if item]


def _first_present(request: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if request.get(key) is not None:
            return request[key]
    return None


class OperationsService:
    """
    Metrics and resource lookups against operations instances.

    Example:
        ```python
        service = OperationsService(registry, dispatcher)
        result = await service.get_metrics("vm-42", ["cpu|usage_average"])
        if not is_error(result):
            for series in result["values"]:
                print(series["metricKey"], len(series["timestamps"]))
        ```
    """

    def __init__(
        self,
        registry: InstanceRegistry,
        dispatcher: RequestDispatcher,
        planner: Optional[MetricQueryPlanner] = None,
        resolver: Optional[ResourceResolver] = None,
    ) -> None:
        self.registry = registry
        self.dispatcher = dispatcher
        self.planner = planner or MetricQueryPlanner()
        self.resolver = resolver or ResourceResolver(dispatcher)

    @degrade_errors
    async def get_metrics(
        self,
        resource_id: str,
        stat_keys: Sequence[str],
        begin: Optional[int] = None,
        end: Optional[int] = None,
        roll_up_type: Optional[str] = None,
        instance_name: Optional[str] = None,
    ) -> Union[Dict[str, Any], ErrorResponse]:
        """
        Time series for one resource.

        Args:
            resource_id: Resource identifier
            stat_keys: Metric keys
            begin: Range start in epoch milliseconds
            end: Range end in epoch milliseconds
            roll_up_type: Rollup hint (``AVERAGE`` is accepted for ``AVG``)
            instance_name: Operations instance; default instance when empty

        Returns:
            ``{"values": [series, ...]}`` or an ErrorResponse
        """
        require(resource_id, "resourceId")
        require(stat_keys, "statKeys")
        instance = self.registry.resolve(instance_name)
        plan = self.planner.plan(
            [resource_id], list(stat_keys), begin, end, roll_up_type
        )
        logger.debug(
            f"Getting metrics for resource {resource_id} on {instance.name}",
            extra={
                "interval": f"{plan.interval_quantifier} {plan.interval_type.value}",
                "roll_up_type": plan.roll_up_type,
            },
        )
        raw = await self.dispatcher.call(instance, STATS_PATH, params=plan.to_params())
        return MetricsResponse(values=normalize(raw, resource_id)).to_dict()

    @degrade_errors
    async def query_metrics(
        self,
        request: Mapping[str, Any],
        instance_name: Optional[str] = None,
    ) -> Union[Dict[str, Any], ErrorResponse]:
        """
        Time series for several resources through the stats query endpoint.

        Args:
            request: ``{resourceIds|resourceId, statKeys|statKey, begin?,
                end?, rollUpType?}``
            instance_name: Operations instance; default instance when empty

        Returns:
            ``{"values": [series, ...]}`` or an ErrorResponse
        """
        resource_ids = _as_id_list(_first_present(request, "resourceIds", "resourceId"))
        stat_keys = _as_id_list(_first_present(request, "statKeys", "statKey"))
        require(resource_ids, "resourceIds")
        require(stat_keys, "statKeys")
        instance = self.registry.resolve(instance_name)
        plan = self.planner.plan(
            resource_ids,
            stat_keys,
            request.get("begin"),
            request.get("end"),
            request.get("rollUpType"),
        )
        raw = await self.dispatcher.call(
            instance, STATS_QUERY_PATH, method="POST", body=plan.to_query_body()
        )
        return MetricsResponse(values=normalize(raw, resource_ids[0])).to_dict()

    @degrade_errors
    async def get_latest_metrics(
        self,
        resource_ids: Sequence[str],
        stat_keys: Optional[Sequence[str]] = None,
        instance_name: Optional[str] = None,
    ) -> Union[Dict[str, Any], ErrorResponse]:
        """Most recent sample per metric; every key when ``stat_keys`` is empty."""
        resource_ids = _as_id_list(resource_ids)
        require(resource_ids, "resourceIds")
        instance = self.registry.resolve(instance_name)
        params = [("resourceId", resource_id) for resource_id in resource_ids]
        params.extend(("statKey", stat_key) for stat_key in _as_id_list(stat_keys))
        raw = await self.dispatcher.call(instance, LATEST_STATS_PATH, params=params)
        return MetricsResponse(values=normalize(raw, resource_ids[0])).to_dict()

    @degrade_errors
    async def get_resource_details(
        self, resource_id: str, instance_name: Optional[str] = None
    ) -> Union[Dict[str, Any], ErrorResponse]:
        require(resource_id, "resourceId")
        instance = self.registry.resolve(instance_name)
        return await self.dispatcher.call(instance, f"{RESOURCES_PATH}/{resource_id}")

    @degrade_errors
    async def get_available_metrics(
        self, resource_id: str, instance_name: Optional[str] = None
    ) -> Union[Dict[str, Any], ErrorResponse]:
        """Stat keys the backend collects for a resource (``{"stat-key": [...]}``)."""
        require(resource_id, "resourceId")
        instance = self.registry.resolve(instance_name)
        result = await self.dispatcher.call(
            instance, f"{RESOURCES_PATH}/{resource_id}/statkeys"
        )
        stat_keys = result.get("stat-key") if isinstance(result, dict) else None
        logger.debug(
            f"Available metrics for resource {resource_id}: "
            f"{len(stat_keys) if isinstance(stat_keys, list) else 0}"
        )
        return result

    @degrade_errors
    async def search_resources(
        self,
        name: Optional[str] = None,
        adapter_kind: Optional[str] = None,
        resource_kind: Optional[str] = None,
        instance_name: Optional[str] = None,
    ) -> Union[Dict[str, Any], ErrorResponse]:
        """Plain resource search; every filter is optional."""
        instance = self.registry.resolve(instance_name)
        params = []
        if name:
            params.append(("name", name))
        if adapter_kind:
            params.append(("adapterKind", adapter_kind))
        if resource_kind:
            params.append(("resourceKind", resource_kind))
        return await self.dispatcher.call(
            instance, RESOURCES_PATH, params=params or None
        )

    @degrade_errors
    async def query_resources(
        self, query: Mapping[str, Any], instance_name: Optional[str] = None
    ) -> Union[Dict[str, Any], ErrorResponse]:
        """Forward a vendor resource query body unchanged."""
        require(query, "query")
        instance = self.registry.resolve(instance_name)
        return await self.dispatcher.call(
            instance,
            RESOURCE_QUERY_PATH,
            method="POST",
            body=dict(query),
            params=list(RESOURCE_QUERY_PARAMS),
        )

    @degrade_errors
    async def find_resource_by_name(
        self,
        name: str,
        instance_name: Optional[str] = None,
        resource_type: Optional[str] = None,
    ) -> Union[Dict[str, Any], None, ErrorResponse]:
        """
        Resolve a display name to a resource.

        Returns:
            The vendor resource dictionary, None when nothing matched, or an
            ErrorResponse when the final lookup could not be completed
        """
        require(name, "resourceName")
        instance = self.registry.resolve(instance_name)
        result = await self.resolver.find_by_name(name, resource_type, instance)
        return self._resolution_result(result)

    @degrade_errors
    async def find_resource_by_property(
        self,
        property_key: str,
        property_value: str,
        instance_name: Optional[str] = None,
    ) -> Union[Dict[str, Any], None, ErrorResponse]:
        require(property_key, "propertyKey")
        require(property_value, "propertyValue")
        instance = self.registry.resolve(instance_name)
        result = await self.resolver.find_by_property(
            property_key, property_value, instance
        )
        return self._resolution_result(result)

    def list_instances(self) -> List[Dict[str, Any]]:
        """Configured operations instances in configuration order."""
        return self.registry.list()

    @staticmethod
    def _resolution_result(
        result: ResolveResult,
    ) -> Union[Dict[str, Any], None, ErrorResponse]:
        if isinstance(result, Matched):
            return result.resource.to_dict()
        if isinstance(result, Unavailable):
            return ErrorResponse.unavailable()
        return None
