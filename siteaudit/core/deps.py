"""
FastAPI dependencies.
"""
from typing import Annotated, AsyncGenerator

from fastapi import Depends

from siteaudit.config import settings
from siteaudit.services.audit_service import AuditService


async def get_audit_service() -> AsyncGenerator[AuditService, None]:
    """Dependency for getting an audit service; one per request."""
    service = AuditService(settings)
    try:
        yield service
    finally:
        await service.close()


AuditServiceDep = Annotated[AuditService, Depends(get_audit_service)]
