"""
Resource references returned by the operations backend.

A resource is an opaque handle: an identifier plus the vendor ``resourceKey``
describing its name, adapter kind and resource kind. These models parse that
shape leniently and hand it back unchanged through ``to_dict``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

logger = logging.getLogger(__name__)


class IdentifierType(BaseModel):
    """Type descriptor of a resource identifier."""

    name: str = ""

    model_config = ConfigDict(extra="allow")


class ResourceIdentifier(BaseModel):
    """One typed identifier value (e.g. VMEntityObjectID)."""

    identifier_type: IdentifierType = Field(
        default_factory=IdentifierType, alias="identifierType"
    )
    value: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True, extra="allow")


class ResourceKey(BaseModel):
    """Descriptive key of a resource."""

    name: str = ""
    adapter_kind_key: str = Field(default="", alias="adapterKindKey")
    resource_kind_key: str = Field(default="", alias="resourceKindKey")
    resource_identifiers: List[ResourceIdentifier] = Field(
        default_factory=list, alias="resourceIdentifiers"
    )

    model_config = ConfigDict(populate_by_name=True, extra="allow")


class Resource(BaseModel):
    """Backend resource reference."""

    identifier: str
    resource_key: ResourceKey = Field(default_factory=ResourceKey, alias="resourceKey")

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @property
    def name(self) -> str:
        return self.resource_key.name

    @property
    def adapter_kind(self) -> str:
        return self.resource_key.adapter_kind_key

    @property
    def resource_kind(self) -> str:
        return self.resource_key.resource_kind_key

    @property
    def resource_identifiers(self) -> List[ResourceIdentifier]:
        return self.resource_key.resource_identifiers

    def to_dict(self) -> Dict[str, Any]:
        """Vendor-shaped dictionary, including any extra fields received."""
        return self.model_dump(by_alias=True, exclude_none=True)


def parse_resource_list(response: Any) -> List[Resource]:
    """
    Extract resources from a ``{"resourceList": [...]}`` response.

    Entries without an identifier are skipped; a missing or malformed list
    yields an empty result.
    """
    if not isinstance(response, dict):
        return []
    entries = response.get("resourceList")
    if not isinstance(entries, list):
        return []

    resources = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        try:
            resources.append(Resource.model_validate(entry))
        except PydanticValidationError:
            logger.debug("Skipping malformed resource entry in resourceList")
    return resources
