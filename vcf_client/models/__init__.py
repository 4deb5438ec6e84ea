"""
Data models shared by the vcf_client services.
"""

from .metrics import MetricSeries, MetricsResponse
from .resource import (
    IdentifierType,
    Resource,
    ResourceIdentifier,
    ResourceKey,
    parse_resource_list,
)
from .results import (
    SERVICE_UNAVAILABLE_MESSAGE,
    ErrorResponse,
    degrade_errors,
    is_error,
    require,
)

__all__ = [
    "MetricSeries",
    "MetricsResponse",
    "IdentifierType",
    "Resource",
    "ResourceIdentifier",
    "ResourceKey",
    "parse_resource_list",
    "SERVICE_UNAVAILABLE_MESSAGE",
    "ErrorResponse",
    "is_error",
    "degrade_errors",
    "require",
]
