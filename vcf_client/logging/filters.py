"""
Logging filters for vcf_client.

SensitiveDataFilter masks credentials that could end up in a log line:
Authorization header values, token schemes used by the automation and
operations backends, vCloud access-token headers and password fields.
"""

import logging
import re
from typing import List, Pattern, Tuple

MASK = "***MASKED***"


class SensitiveDataFilter(logging.Filter):
    """Filter to mask sensitive data in log messages."""

    def __init__(self) -> None:
        """Initialize sensitive data filter."""
        super().__init__()

        self.rules: List[Tuple[Pattern[str], str]] = [
            # Authorization schemes: Bearer, Basic, vRealizeOpsToken
            (
                re.compile(
                    r"\b(bearer|basic|vrealizeopstoken)(\s+)([A-Za-z0-9._~+/=-]{8,})",
                    re.IGNORECASE,
                ),
                rf"\1\2{MASK}",
            ),
            # vCloud session token header
            (
                re.compile(
                    r'(x-vmware-vcloud-access-token["\']?\s*[:=]\s*["\']?)([^\s"\',}]+)',
                    re.IGNORECASE,
                ),
                rf"\1{MASK}",
            ),
            # Password and token fields in key/value or JSON form
            (
                re.compile(
                    r'\b(password|passwd|pwd|cspAuthToken|token)(["\']?\s*[:=]\s*["\']?)([^\s"\',}]+)',
                    re.IGNORECASE,
                ),
                rf"\1\2{MASK}",
            ),
            # URLs with credentials
            (re.compile(r"(https?://[^:/\s]+):([^@/\s]+)@", re.IGNORECASE), rf"\1:{MASK}@"),
        ]

    def mask(self, message: str) -> str:
        """Apply every masking rule to a string."""
        for pattern, replacement in self.rules:
            message = pattern.sub(replacement, message)
        return message

    def filter(self, record: logging.LogRecord) -> bool:
        """Mask the rendered message in place; never drops a record."""
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            message = str(record.msg)

        record.msg = self.mask(message)
        record.args = ()
        return True
