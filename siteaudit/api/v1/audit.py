"""
Audit endpoint: URL in, full single-page SEO report out.
"""
import logging

from fastapi import APIRouter

from siteaudit.core.deps import AuditServiceDep
from siteaudit.core.exceptions import AuditFailedError, BadRequestError, RenderFailedError
from siteaudit.schemas.audit import AuditReportResponse, AuditRequest
from siteaudit.services.audit_service import normalize_url

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/audit", tags=["Audit"])


@router.post("", response_model=AuditReportResponse)
async def run_audit(request: AuditRequest, service: AuditServiceDep):
    """Audit one page and return the report."""
    url = normalize_url(request.url)
    if not url:
        raise BadRequestError("URL is required")

    try:
        report = await service.run_audit(url, email=request.email or None)
    except RenderFailedError as e:
        logger.error(f"Audit failed for {url}: {e}")
        raise AuditFailedError(str(e))

    return report.to_dict()
