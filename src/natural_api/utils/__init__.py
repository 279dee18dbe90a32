"""Utility modules for NaturalApi."""

from .sanitizer import mask_sensitive_data, mask_headers, REDACTED

__all__ = [
    "mask_sensitive_data",
    "mask_headers",
    "REDACTED",
]
