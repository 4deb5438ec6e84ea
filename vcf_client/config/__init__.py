"""
Configuration management for vcf_client.

This module provides configuration models for backend instances, HTTP,
retry and logging settings, and a loader for YAML/JSON files with
environment variable overrides.
"""

from .loader import ConfigLoader, describe_validation_error
from .models import (
    AuthenticationSettings,
    BackendFamily,
    GlobalConfig,
    HttpConfig,
    InstanceConfig,
    LoggingConfig,
    LogLevel,
    OrganizationType,
    RetryPolicy,
    UnknownInstancePolicy,
)

__all__ = [
    "ConfigLoader",
    "describe_validation_error",
    "AuthenticationSettings",
    "BackendFamily",
    "GlobalConfig",
    "HttpConfig",
    "InstanceConfig",
    "LoggingConfig",
    "LogLevel",
    "OrganizationType",
    "RetryPolicy",
    "UnknownInstancePolicy",
]
