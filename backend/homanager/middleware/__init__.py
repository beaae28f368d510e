"""Middleware package."""

from homanager.middleware.logging import REQUEST_ID_HEADER, LoggingMiddleware

__all__ = ["LoggingMiddleware", "REQUEST_ID_HEADER"]
