"""
Audit request/response schemas.
"""
from typing import Any

from pydantic import Field

from siteaudit.schemas.common import BaseSchema


class AuditRequest(BaseSchema):
    """Request to audit one page."""
    
    url: str = Field(
        ...,
        description="Page URL to audit. https:// is assumed when no scheme is given.",
        examples=["https://example.com"],
    )
    email: str | None = Field(
        None,
        description="Optional address the finished report is emailed to",
    )


class AuditReportResponse(BaseSchema):
    """The finished audit report."""
    
    url: str
    timestamp: str
    metrics: dict[str, Any]
    structure: dict[str, Any]
    report: dict[str, Any] | None = None
