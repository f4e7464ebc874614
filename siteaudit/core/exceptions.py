"""
Exceptions for siteaudit.

Domain errors are raised by the audit pipeline; the HTTP exceptions are what
the API layer turns them into.
"""
from fastapi import HTTPException, status


class AuditError(Exception):
    """Base class for audit pipeline failures."""


class RenderFailedError(AuditError):
    """The renderer produced no HTML, so there is nothing to score."""

    def __init__(self, url: str, reason: str = ""):
        self.url = url
        self.reason = reason
        message = f"Could not render {url}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class BadRequestError(HTTPException):
    """Bad request exception."""

    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail
        )


class AuditFailedError(HTTPException):
    """The audit could not produce a report."""

    def __init__(self, detail: str = "Audit failed"):
        super().__init__(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=detail
        )
