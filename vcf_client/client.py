"""
High-level client combining registries, dispatcher and services.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from .automation.service import AutomationService
from .config.loader import ConfigLoader
from .config.models import BackendFamily, GlobalConfig
from .exceptions import ConfigurationError
from .http.dispatcher import RequestDispatcher
from .instances import InstanceRegistry
from .operations.planner import MetricQueryPlanner
from .operations.service import OperationsService

logger = logging.getLogger(__name__)


class VcfClient:
    """
    Entry point for talking to automation and operations instances.

    One dispatcher (and so one HTTP session and one credential manager) is
    shared by both families.

    Example:
        ```python
        async with VcfClient.from_file("vcf_client.yaml") as client:
            metrics = await client.operations.get_metrics(
                "vm-42", ["cpu|usage_average"], instance_name="vcfo-east"
            )
            deployments = await client.automation.get_deployments()
        ```
    """

    def __init__(
        self,
        config: GlobalConfig,
        dispatcher: Optional[RequestDispatcher] = None,
        planner: Optional[MetricQueryPlanner] = None,
    ) -> None:
        """
        Build registries and services from configuration.

        Args:
            config: Validated global configuration
            dispatcher: Pre-built dispatcher (for injection)
            planner: Pre-built metric query planner (for injection)

        Raises:
            ConfigurationError: If no instance of either family is configured
                or an instance entry is invalid
        """
        if not config.automation and not config.operations:
            raise ConfigurationError("No automation or operations instances configured")

        self.config = config
        self.dispatcher = dispatcher or RequestDispatcher(config.http, config.retry)

        self._automation: Optional[AutomationService] = None
        self._operations: Optional[OperationsService] = None

        if config.automation:
            registry = InstanceRegistry(
                BackendFamily.AUTOMATION,
                config.automation,
                config.unknown_instance_policy,
            )
            self._automation = AutomationService(registry, self.dispatcher)

        if config.operations:
            registry = InstanceRegistry(
                BackendFamily.OPERATIONS,
                config.operations,
                config.unknown_instance_policy,
            )
            self._operations = OperationsService(registry, self.dispatcher, planner)

    @classmethod
    def from_file(cls, config_file: Optional[Union[str, Path]] = None) -> "VcfClient":
        """Load configuration with ConfigLoader and build a client."""
        return cls(ConfigLoader().load_config(config_file))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "VcfClient":
        """Build a client from an already parsed configuration mapping."""
        return cls(ConfigLoader().load_from_dict(data))

    @property
    def automation(self) -> AutomationService:
        if self._automation is None:
            raise ConfigurationError("No automation instances configured")
        return self._automation

    @property
    def operations(self) -> OperationsService:
        if self._operations is None:
            raise ConfigurationError("No operations instances configured")
        return self._operations

    def list_instances(self) -> Dict[str, List[Dict[str, Any]]]:
        """Instance summaries of every configured family."""
        return {
            BackendFamily.AUTOMATION.value: (
                self._automation.list_instances() if self._automation else []
            ),
            BackendFamily.OPERATIONS.value: (
                self._operations.list_instances() if self._operations else []
            ),
        }

    async def close(self) -> None:
        """Close the shared HTTP session."""
        await self.dispatcher.close()

    async def __aenter__(self) -> "VcfClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
