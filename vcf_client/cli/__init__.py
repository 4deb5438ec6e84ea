"""
Command-line interface for vcf_client.
"""

from .main import cli

__all__ = ["cli"]
