"""
Public operations of the automation backend family.

Deployments, projects, supervisor resources and namespaces, and VM power
management. Every operation returns the backend's JSON document or an
ErrorResponse; failures never escape to the caller.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from ..config.models import OrganizationType
from ..exceptions import ValidationError
from ..http.dispatcher import RequestDispatcher
from ..instances import Instance, InstanceRegistry
from ..models.results import ErrorResponse, degrade_errors, require

logger = logging.getLogger(__name__)

DEPLOYMENTS_PATH = "/deployment/api/deployments"
SUPERVISOR_RESOURCES_PATH = "/deployment/api/supervisor-resources"
RESOURCES_PATH = "/deployment/api/resources"
SUPERVISOR_NAMESPACES_PATH = (
    "/cci/kubernetes/apis/infrastructure.cci.vmware.com/v1alpha2/supervisornamespaces"
)
PROJECT_PATHS = {
    OrganizationType.ALL_APPS: "/project-service/api/projects",
    OrganizationType.VM_APPS: "/iaas/api/projects",
}

NAMESPACE_LIST_LIMIT = 500
RESOURCE_ACTIONS_API_VERSION = "2020-08-25"
VM_ACTION_PREFIX = "CCI.Supervisor.Resource.VirtualMachine."
VM_POWER_ACTIONS = frozenset({"PowerOn", "PowerOff"})
STANDALONE_POWER_STATES = frozenset({"PoweredOn", "PoweredOff"})

Result = Union[Dict[str, Any], ErrorResponse]


def _validate_choice(value: Optional[str], allowed: frozenset, field: str) -> str:
    require(value, field)
    if value not in allowed:
        raise ValidationError(
            f"{field} must be one of {', '.join(sorted(allowed))}", field
        )
    return value


def standalone_vm_path(namespace_urn_id: str, namespace_name: str, vm_name: str) -> str:
    """Path of a standalone VM document behind the supervisor proxy."""
    return (
        f"/proxy/k8s/namespaces/{namespace_urn_id}/apis/vmoperator.vmware.com/"
        f"v1alpha3/namespaces/{namespace_name}/virtualmachines/{vm_name}"
    )


class AutomationService:
    """
    Read and action operations against automation instances.

    Example:
        ```python
        service = AutomationService(registry, dispatcher)
        deployments = await service.get_deployments(instance_name="vcfa-east")
        ```
    """

    def __init__(self, registry: InstanceRegistry, dispatcher: RequestDispatcher) -> None:
        self.registry = registry
        self.dispatcher = dispatcher

    async def _get(
        self, instance_name: Optional[str], path: str, params: Any = None
    ) -> Any:
        instance = self.registry.resolve(instance_name)
        return await self.dispatcher.call(instance, path, params=params)

    @staticmethod
    def projects_path(instance: Instance) -> str:
        """Project API base path, which depends on the organization type."""
        return PROJECT_PATHS[instance.organization_type]

    # Deployments

    @degrade_errors
    async def get_deployments(self, instance_name: Optional[str] = None) -> Result:
        return await self._get(instance_name, DEPLOYMENTS_PATH)

    @degrade_errors
    async def get_deployment_details(
        self, deployment_id: str, instance_name: Optional[str] = None
    ) -> Result:
        require(deployment_id, "deploymentId")
        return await self._get(instance_name, f"{DEPLOYMENTS_PATH}/{deployment_id}")

    @degrade_errors
    async def get_deployment_history(
        self, deployment_id: str, instance_name: Optional[str] = None
    ) -> Result:
        """Requests (day-2 actions and provisioning) issued against a deployment."""
        require(deployment_id, "deploymentId")
        return await self._get(
            instance_name, f"{DEPLOYMENTS_PATH}/{deployment_id}/requests"
        )

    @degrade_errors
    async def get_deployment_events(
        self, deployment_id: str, instance_name: Optional[str] = None
    ) -> Result:
        require(deployment_id, "deploymentId")
        return await self._get(
            instance_name, f"{DEPLOYMENTS_PATH}/{deployment_id}/userEvents"
        )

    @degrade_errors
    async def get_deployment_resources(
        self, deployment_id: str, instance_name: Optional[str] = None
    ) -> Result:
        require(deployment_id, "deploymentId")
        return await self._get(
            instance_name, f"{DEPLOYMENTS_PATH}/{deployment_id}/resources"
        )

    @degrade_errors
    async def get_resource_details(
        self,
        deployment_id: str,
        resource_id: str,
        instance_name: Optional[str] = None,
    ) -> Result:
        require(deployment_id, "deploymentId")
        require(resource_id, "resourceId")
        return await self._get(
            instance_name,
            f"{DEPLOYMENTS_PATH}/{deployment_id}/resources/{resource_id}",
        )

    # Projects

    @degrade_errors
    async def get_projects(self, instance_name: Optional[str] = None) -> Result:
        instance = self.registry.resolve(instance_name)
        return await self.dispatcher.call(instance, self.projects_path(instance))

    @degrade_errors
    async def get_project_details(
        self, project_id: str, instance_name: Optional[str] = None
    ) -> Result:
        require(project_id, "projectId")
        instance = self.registry.resolve(instance_name)
        return await self.dispatcher.call(
            instance, f"{self.projects_path(instance)}/{project_id}"
        )

    # Supervisor resources and namespaces (all-apps organizations)

    @degrade_errors
    async def get_supervisor_resources(
        self, instance_name: Optional[str] = None
    ) -> Result:
        return await self._get(instance_name, SUPERVISOR_RESOURCES_PATH)

    @degrade_errors
    async def get_supervisor_resource(
        self, resource_id: str, instance_name: Optional[str] = None
    ) -> Result:
        require(resource_id, "resourceId")
        return await self._get(
            instance_name, f"{SUPERVISOR_RESOURCES_PATH}/{resource_id}"
        )

    @degrade_errors
    async def get_supervisor_namespaces(
        self, instance_name: Optional[str] = None
    ) -> Result:
        return await self._get(
            instance_name,
            SUPERVISOR_NAMESPACES_PATH,
            params=[("limit", str(NAMESPACE_LIST_LIMIT))],
        )

    @degrade_errors
    async def get_supervisor_namespace(
        self, namespace_id: str, instance_name: Optional[str] = None
    ) -> Result:
        require(namespace_id, "namespaceId")
        return await self._get(
            instance_name, f"{SUPERVISOR_NAMESPACES_PATH}/{namespace_id}"
        )

    # VM power management

    @degrade_errors
    async def check_vm_power_action(
        self,
        resource_id: str,
        action: str,
        instance_name: Optional[str] = None,
    ) -> Result:
        """
        Ask whether a deployment-managed VM accepts a power action.

        Args:
            resource_id: Deployment resource id of the VM
            action: ``PowerOn`` or ``PowerOff``
            instance_name: Automation instance; default instance when empty

        Returns:
            The action descriptor or an ErrorResponse
        """
        require(resource_id, "resourceId")
        action = _validate_choice(action, VM_POWER_ACTIONS, "action")
        return await self._get(
            instance_name,
            f"{RESOURCES_PATH}/{resource_id}/actions/{VM_ACTION_PREFIX}{action}",
            params=[("apiVersion", RESOURCE_ACTIONS_API_VERSION)],
        )

    @degrade_errors
    async def execute_vm_power_action(
        self,
        resource_id: str,
        action: str,
        instance_name: Optional[str] = None,
    ) -> Result:
        """Submit a power action request for a deployment-managed VM."""
        require(resource_id, "resourceId")
        action = _validate_choice(action, VM_POWER_ACTIONS, "action")
        instance = self.registry.resolve(instance_name)
        logger.info(f"Requesting {action} for resource {resource_id} on {instance.name}")
        return await self.dispatcher.call(
            instance,
            f"{RESOURCES_PATH}/{resource_id}/requests",
            method="POST",
            body={"actionId": f"{VM_ACTION_PREFIX}{action}"},
            params=[("apiVersion", RESOURCE_ACTIONS_API_VERSION)],
        )

    @degrade_errors
    async def get_standalone_vm_status(
        self,
        namespace_urn_id: str,
        namespace_name: str,
        vm_name: str,
        instance_name: Optional[str] = None,
    ) -> Result:
        require(namespace_urn_id, "namespaceUrnId")
        require(namespace_name, "namespaceName")
        require(vm_name, "vmName")
        logger.info(f"Fetching standalone VM status for {vm_name}")
        return await self._get(
            instance_name, standalone_vm_path(namespace_urn_id, namespace_name, vm_name)
        )

    @degrade_errors
    async def execute_standalone_vm_power_action(
        self,
        namespace_urn_id: str,
        namespace_name: str,
        vm_name: str,
        power_state: str,
        vm_data: Optional[Mapping[str, Any]] = None,
        instance_name: Optional[str] = None,
    ) -> Result:
        """
        Change the power state of a standalone VM.

        The VM document is written back with ``spec.powerState`` replaced. When
        ``vm_data`` is not supplied the current document is fetched first.

        Args:
            namespace_urn_id: Supervisor namespace URN id
            namespace_name: Namespace name
            vm_name: VM name
            power_state: ``PoweredOn`` or ``PoweredOff``
            vm_data: Current VM document, if the caller already has it
            instance_name: Automation instance; default instance when empty

        Returns:
            The updated VM document or an ErrorResponse
        """
        require(namespace_urn_id, "namespaceUrnId")
        require(namespace_name, "namespaceName")
        require(vm_name, "vmName")
        power_state = _validate_choice(
            power_state, STANDALONE_POWER_STATES, "powerState"
        )
        instance = self.registry.resolve(instance_name)
        path = standalone_vm_path(namespace_urn_id, namespace_name, vm_name)

        if vm_data is None:
            vm_data = await self.dispatcher.call(instance, path)

        document = copy.deepcopy(dict(vm_data))
        spec = document.get("spec")
        document["spec"] = dict(spec) if isinstance(spec, Mapping) else {}
        document["spec"]["powerState"] = power_state

        logger.info(
            f"Setting power state {power_state} on standalone VM {vm_name} "
            f"in namespace {namespace_name}"
        )
        return await self.dispatcher.call(instance, path, method="PUT", body=document)

    def list_instances(self) -> List[Dict[str, Any]]:
        """Configured automation instances in configuration order."""
        return self.registry.list()
