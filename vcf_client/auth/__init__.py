"""
Authentication module for vcf_client.

Provides the per-instance credential cache, the three backend authentication
protocols (password login, basic-auth session, token acquire), bounded retry
with exponential backoff, and the CredentialManager that ties them together.
"""

from .base import (
    AcquiredToken,
    AuthAttemptError,
    AuthProtocol,
    AuthStrategy,
    CachedCredential,
)
from .basic_session import BasicSessionAuth
from .manager import CredentialManager, select_strategy
from .password_login import PasswordLoginAuth
from .retry import RetryHandler
from .token_acquire import TokenAcquireAuth

__all__ = [
    "AcquiredToken",
    "AuthAttemptError",
    "AuthProtocol",
    "AuthStrategy",
    "CachedCredential",
    "BasicSessionAuth",
    "CredentialManager",
    "select_strategy",
    "PasswordLoginAuth",
    "RetryHandler",
    "TokenAcquireAuth",
]
