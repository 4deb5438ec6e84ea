"""
Configured backend instances and their registry.

Each backend family (automation, operations) has its own ordered list of
instances; the first one is the family default. Instances are immutable apart
from the credential cache, which only the CredentialManager writes.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Union
from urllib.parse import urlparse

from pydantic import ValidationError as PydanticValidationError

from .auth.base import AuthStrategy, CachedCredential
from .auth.manager import select_strategy
from .config.loader import describe_validation_error
from .config.models import (
    AuthenticationSettings,
    BackendFamily,
    InstanceConfig,
    OrganizationType,
    UnknownInstancePolicy,
)
from .exceptions import ConfigurationError, InstanceNotFound

logger = logging.getLogger(__name__)

DEFAULT_MAJOR_VERSIONS = {
    BackendFamily.AUTOMATION: 8,
    BackendFamily.OPERATIONS: 9,
}


class Instance:
    """
    One configured backend deployment.

    Attributes:
        name: Unique instance name within its family
        base_url: Base URL without trailing slash
        major_version: Backend major version (selects the auth protocol)
        credentials: Username, password and domain
        auth_strategy: Authentication protocol chosen at construction
    """

    def __init__(self, config: InstanceConfig, family: BackendFamily) -> None:
        self.family = family
        self.base_url = config.base_url
        self.name = config.name or urlparse(config.base_url).hostname or config.base_url
        self.major_version = (
            config.major_version
            if config.major_version is not None
            else DEFAULT_MAJOR_VERSIONS[family]
        )
        self.credentials: AuthenticationSettings = config.authentication
        self.org_name = config.org_name
        self.organization_type = OrganizationType(config.organization_type)
        self.related_instance_names = tuple(config.related_instance_names)
        self.auth_strategy: AuthStrategy = select_strategy(family, self.major_version)
        self._credential: Optional[CachedCredential] = None

    @property
    def credential(self) -> Optional[CachedCredential]:
        """Current credential snapshot (token and expiry together)."""
        return self._credential

    def install_credential(self, credential: CachedCredential) -> None:
        """Replace the cached credential. Called by CredentialManager only."""
        self._credential = credential

    def clear_credential(self) -> None:
        """Drop the cached credential. Called by CredentialManager only."""
        self._credential = None

    def summary(self) -> Dict[str, Any]:
        """Plain-data description safe to hand to callers."""
        return {
            "name": self.name,
            "relatedInstanceNames": list(self.related_instance_names),
        }

    def __repr__(self) -> str:
        return (
            f"Instance(name={self.name!r}, family={self.family.value}, "
            f"base_url={self.base_url!r}, major_version={self.major_version})"
        )


class InstanceRegistry:
    """
    Ordered, immutable collection of instances for one backend family.

    Example:
        ```python
        registry = InstanceRegistry(BackendFamily.OPERATIONS, config.operations)
        instance = registry.resolve(request.get("instance"))
        ```
    """

    def __init__(
        self,
        family: Union[BackendFamily, str],
        configs: Sequence[Union[InstanceConfig, Mapping[str, Any]]],
        unknown_instance_policy: Union[
            UnknownInstancePolicy, str
        ] = UnknownInstancePolicy.RAISE,
    ) -> None:
        """
        Build the registry.

        Args:
            family: Backend family the instances belong to
            configs: Instance descriptors, models or raw mappings
            unknown_instance_policy: Behaviour for unknown instance names

        Raises:
            ConfigurationError: If no instance is configured, an entry is
                invalid, or two entries share a name
        """
        self.family = BackendFamily(family)
        self.unknown_instance_policy = UnknownInstancePolicy(unknown_instance_policy)

        if not configs:
            raise ConfigurationError(f"No {self.family.value} instances configured")

        instances: List[Instance] = []
        seen = set()
        for index, raw in enumerate(configs):
            config = self._coerce(raw, index)
            instance = Instance(config, self.family)
            if instance.name in seen:
                raise ConfigurationError(
                    f"Duplicate {self.family.value} instance name '{instance.name}'"
                )
            seen.add(instance.name)
            instances.append(instance)

        self._instances = tuple(instances)
        self._by_name = {instance.name: instance for instance in instances}
        logger.info(
            f"{self.family.value} registry initialized with "
            f"{len(self._instances)} instance(s)"
        )

    def _coerce(
        self, raw: Union[InstanceConfig, Mapping[str, Any]], index: int
    ) -> InstanceConfig:
        if isinstance(raw, InstanceConfig):
            return raw
        try:
            return InstanceConfig.model_validate(dict(raw))
        except (PydanticValidationError, TypeError, ValueError) as e:
            if isinstance(e, PydanticValidationError):
                reason = describe_validation_error(e)
            else:
                reason = "entry is not a mapping"
            raise ConfigurationError(
                f"Invalid {self.family.value} instance #{index}: {reason}"
            ) from None

    @property
    def default(self) -> Instance:
        """The first configured instance."""
        return self._instances[0]

    def resolve(self, name: Optional[str] = None) -> Instance:
        """
        Resolve a request-supplied instance name.

        Args:
            name: Instance name; empty or None selects the default instance

        Returns:
            The matching instance

        Raises:
            InstanceNotFound: If the name is unknown and the policy is ``raise``
        """
        if not name:
            return self.default

        instance = self._by_name.get(name)
        if instance is not None:
            return instance

        if self.unknown_instance_policy == UnknownInstancePolicy.DEFAULT:
            logger.warning(
                f"{self.family.value} instance '{name}' not found, "
                f"using default instance {self.default.name}"
            )
            return self.default

        raise InstanceNotFound(name, self.family.value)

    def get(self, name: str) -> Optional[Instance]:
        """Look up an instance by exact name without applying any policy."""
        return self._by_name.get(name)

    def list(self) -> List[Dict[str, Any]]:
        """Summaries of all instances in configuration order."""
        return [instance.summary() for instance in self._instances]

    def __iter__(self) -> Iterator[Instance]:
        return iter(self._instances)

    def __len__(self) -> int:
        return len(self._instances)
