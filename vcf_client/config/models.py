"""
Configuration models for vcf_client.

This module defines all configuration data models with validation and defaults.
Instance descriptors use the camelCase keys of the deployment configuration
files (``baseUrl``, ``majorVersion``, ``orgName`` ...) and also accept the
snake_case field names when built from Python.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, SecretStr, field_validator


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class BackendFamily(str, Enum):
    """Backend families this layer talks to."""

    AUTOMATION = "automation"
    OPERATIONS = "operations"


class OrganizationType(str, Enum):
    """Automation organization flavours; they expose different project APIs."""

    VM_APPS = "vm-apps"
    ALL_APPS = "all-apps"


class UnknownInstancePolicy(str, Enum):
    """What to do when a request names an instance that is not configured."""

    RAISE = "raise"
    DEFAULT = "default"


class AuthenticationSettings(BaseModel):
    """Credential pair (plus optional domain) for one instance."""

    username: str = Field(min_length=1, description="Login user name")
    password: SecretStr = Field(description="Login password")
    domain: str = Field(default="", description="Identity domain / auth source")

    model_config = ConfigDict(extra="forbid")

    @field_validator("password")
    @classmethod
    def password_not_empty(cls, v: SecretStr) -> SecretStr:
        """Reject empty passwords without echoing the value."""
        if not v.get_secret_value():
            raise ValueError("password must not be empty")
        return v


class InstanceConfig(BaseModel):
    """Descriptor of one configured backend instance."""

    name: Optional[str] = Field(
        default=None, description="Unique instance name (defaults to the URL host)"
    )
    base_url: str = Field(alias="baseUrl", min_length=1, description="Base URL")
    major_version: Optional[int] = Field(
        default=None, alias="majorVersion", ge=1, description="Backend major version"
    )
    authentication: AuthenticationSettings
    org_name: Optional[str] = Field(
        default=None, alias="orgName", description="Tenant organization name"
    )
    organization_type: OrganizationType = Field(
        default=OrganizationType.VM_APPS, alias="organizationType"
    )
    related_instance_names: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices(
            "relatedInstanceNames", "relatedVCFAInstances", "related_instance_names"
        ),
        description="Names of instances of the other family tied to this one",
    )

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize the base URL so paths can be appended directly."""
        v = v.strip().rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError("baseUrl must start with http:// or https://")
        return v


class HttpConfig(BaseModel):
    """Outbound HTTP settings shared by all instances."""

    total_timeout: float = Field(
        default=30.0, gt=0, description="Total request timeout in seconds"
    )
    connect_timeout: float = Field(
        default=10.0, gt=0, description="Connection timeout in seconds"
    )
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")


class RetryPolicy(BaseModel):
    """Configuration for the authentication retry policy."""

    max_attempts: int = Field(default=3, ge=1, le=10, description="Maximum attempts")
    base_delay: float = Field(
        default=1.0, ge=0.0, description="Delay multiplier in seconds"
    )
    exponential_base: float = Field(
        default=2.0, ge=1.0, description="Exponential backoff base"
    )
    max_delay: float = Field(default=60.0, ge=0.0, description="Delay ceiling")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(default=LogLevel.INFO, description="Default logging level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log message format",
    )
    file_path: Optional[Path] = Field(default=None, description="Log file path")
    max_file_size: int = Field(
        default=10 * 1024 * 1024, description="Max log file size in bytes"
    )
    backup_count: int = Field(default=5, description="Number of backup log files")
    enable_console: bool = Field(default=True, description="Enable console logging")
    enable_structured: bool = Field(
        default=False, description="Enable structured JSON logging"
    )

    # Component-specific log levels
    component_levels: Dict[str, LogLevel] = Field(
        default_factory=dict, description="Per-component log levels"
    )


class GlobalConfig(BaseModel):
    """Global configuration container."""

    automation: List[InstanceConfig] = Field(default_factory=list)
    operations: List[InstanceConfig] = Field(default_factory=list)

    http: HttpConfig = Field(default_factory=HttpConfig)
    retry: RetryPolicy = Field(default_factory=RetryPolicy)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    unknown_instance_policy: UnknownInstancePolicy = Field(
        default=UnknownInstancePolicy.RAISE,
        alias="unknownInstancePolicy",
        description="Policy for requests naming an unconfigured instance",
    )

    model_config = ConfigDict(populate_by_name=True, extra="forbid")
