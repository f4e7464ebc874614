"""
Pydantic schemas for the siteaudit API.
"""
from siteaudit.schemas.common import (
    BaseSchema,
    HealthResponse,
)
from siteaudit.schemas.audit import (
    AuditRequest,
    AuditReportResponse,
)

__all__ = [
    "BaseSchema",
    "HealthResponse",
    "AuditRequest",
    "AuditReportResponse",
]
