"""
HTTP client for the reminder server.

Maps transport and status failures onto the storage exception taxonomy:
no identity or 401/403 is NotAuthenticated, 404 is not-found, anything
else is a plain StorageError.
"""

from collections.abc import Callable
from typing import Any

import httpx

from remindsync.config import get_logger
from remindsync.core.exceptions import InvalidDataError, NotAuthenticatedError, StorageError

logger = get_logger(__name__)


class RemoteAPIClient:
    """Thin httpx wrapper scoped to the signed-in user."""

    def __init__(
        self,
        base_url: str,
        user_id_provider: Callable[[], str | None],
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.user_id_provider = user_id_provider
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
        )

    def user_path(self, operation: str) -> str:
        """
        Raises:
            NotAuthenticatedError: If nobody is signed in
        """
        user_id = self.user_id_provider()
        if not user_id:
            raise NotAuthenticatedError(operation)
        return f"/api/users/{user_id}"

    async def request(
        self,
        method: str,
        path: str,
        operation: str,
        json: Any = None,
        not_found: Callable[[], Exception] | None = None,
    ) -> httpx.Response:
        """Send a request and raise the matching storage error on failure."""
        try:
            response = await self._client.request(method, path, json=json)
        except httpx.HTTPError as e:
            logger.warning("remote_request_failed", operation=operation, error=str(e))
            raise StorageError(
                f"Remote {operation} failed: {e}",
                code="REMOTE_UNAVAILABLE",
                details={"operation": operation},
            ) from e

        if response.status_code in (401, 403):
            raise NotAuthenticatedError(operation)
        if response.status_code == 404 and not_found is not None:
            raise not_found()
        if response.status_code >= 400:
            raise StorageError(
                f"Remote {operation} failed: HTTP {response.status_code}",
                code="REMOTE_ERROR",
                details={
                    "operation": operation,
                    "status_code": response.status_code,
                    "body": response.text[:200],
                },
            )
        return response

    @staticmethod
    def read_json(response: httpx.Response, operation: str) -> Any:
        """
        Decoded response body.

        Raises:
            InvalidDataError: If the body is not JSON (a proxy or captive
                portal page answering with 200)
        """
        try:
            return response.json()
        except ValueError as e:
            logger.warning("remote_body_unreadable", operation=operation, error=str(e))
            raise InvalidDataError(f"{operation} returned a non-JSON body") from e

    async def close(self) -> None:
        await self._client.aclose()
