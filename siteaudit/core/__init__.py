"""
Core utilities for siteaudit.
"""
from siteaudit.core.exceptions import (
    AuditError,
    RenderFailedError,
    BadRequestError,
    AuditFailedError,
)

__all__ = [
    "AuditError",
    "RenderFailedError",
    "BadRequestError",
    "AuditFailedError",
]
