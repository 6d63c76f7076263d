"""API middleware."""

from remindsync.api.middleware.error_handler import ErrorHandlerMiddleware
from remindsync.api.middleware.logging import LoggingMiddleware

__all__ = ["LoggingMiddleware", "ErrorHandlerMiddleware"]
