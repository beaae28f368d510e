"""Shared API dependencies."""

from typing import Annotated

from fastapi import Depends, HTTPException, status

from homanager.exceptions import HomanagerError, NotFoundError, ValidationError
from homanager.features import Features, get_features
from homanager.services.email import EmailService


def get_email_service() -> EmailService:
    """Email collaborator for request handlers."""
    return EmailService()


def get_request_features() -> Features:
    """Capability flags resolved at startup."""
    return get_features()


EmailDep = Annotated[EmailService, Depends(get_email_service)]
FeaturesDep = Annotated[Features, Depends(get_request_features)]


def handle_homanager_error(error: HomanagerError) -> HTTPException:
    """Convert service errors to HTTP exceptions."""
    if isinstance(error, NotFoundError):
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error.message,
        )
    elif isinstance(error, ValidationError):
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=error.message,
        )
    else:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=error.message,
        )
