"""
Multi-instance client for VCF Automation and VCF Operations.

This package talks to several independently configured automation and
operations instances through one async HTTP layer.

Features:
- Per-instance credential caching with version-dependent login protocols
- Single-flight token refresh and bounded authentication retries
- Metric query planning (range, rollup and interval sizing)
- Resource name resolution with explicit per-step results
- Uniform degraded responses instead of leaked transport errors
"""

__version__ = "0.1.0"

from .auth import AuthProtocol, CachedCredential, CredentialManager
from .automation import AutomationService
from .client import VcfClient
from .config import ConfigLoader, GlobalConfig, InstanceConfig
from .exceptions import (
    AuthenticationFailed,
    ConfigurationError,
    InstanceNotFound,
    NotFound,
    RequestFailed,
    ServiceUnavailable,
    ValidationError,
    VcfClientError,
)
from .http import RequestDispatcher
from .instances import Instance, InstanceRegistry
from .models import ErrorResponse, MetricSeries, Resource, is_error
from .operations import (
    Matched,
    MetricQueryPlanner,
    NoMatch,
    OperationsService,
    QueryPlan,
    ResourceResolver,
    Unavailable,
    normalize,
)

__all__ = [
    "__version__",
    "VcfClient",
    "ConfigLoader",
    "GlobalConfig",
    "InstanceConfig",
    "Instance",
    "InstanceRegistry",
    "AuthProtocol",
    "CachedCredential",
    "CredentialManager",
    "RequestDispatcher",
    "OperationsService",
    "AutomationService",
    "MetricQueryPlanner",
    "QueryPlan",
    "ResourceResolver",
    "Matched",
    "NoMatch",
    "Unavailable",
    "normalize",
    "ErrorResponse",
    "MetricSeries",
    "Resource",
    "is_error",
    "VcfClientError",
    "ConfigurationError",
    "InstanceNotFound",
    "AuthenticationFailed",
    "RequestFailed",
    "ServiceUnavailable",
    "NotFound",
    "ValidationError",
]
