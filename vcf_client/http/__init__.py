"""
HTTP layer for vcf_client: authenticated dispatch and header utilities.
"""

from .dispatcher import RequestDispatcher
from .headers import REDACTED, merge_headers, redact_headers

__all__ = [
    "RequestDispatcher",
    "REDACTED",
    "merge_headers",
    "redact_headers",
]
