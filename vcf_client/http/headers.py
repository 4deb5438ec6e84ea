"""
Header utilities for outbound backend requests.
"""

from __future__ import annotations

from typing import Dict, Mapping, Optional

REDACTED = "[REDACTED]"

SENSITIVE_HEADERS = frozenset(
    {
        "authorization",
        "proxy-authorization",
        "cookie",
        "set-cookie",
        "x-vmware-vcloud-access-token",
    }
)


def redact_headers(headers: Optional[Mapping[str, str]]) -> Dict[str, str]:
    """Copy headers with credential-bearing values replaced."""
    if not headers:
        return {}
    return {
        name: (REDACTED if name.lower() in SENSITIVE_HEADERS else value)
        for name, value in headers.items()
    }


def merge_headers(*layers: Optional[Mapping[str, str]]) -> Dict[str, str]:
    """
    Merge header mappings, later layers winning, ignoring name case.

    The casing of the last writer is kept.
    """
    merged: Dict[str, str] = {}
    names: Dict[str, str] = {}
    for layer in layers:
        if not layer:
            continue
        for name, value in layer.items():
            previous = names.get(name.lower())
            if previous is not None and previous != name:
                del merged[previous]
            names[name.lower()] = name
            merged[name] = value
    return merged
