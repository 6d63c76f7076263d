"""
Silent push delivery through the FCM HTTP v1 API.

Messages are data-only with background priority hints for both
platforms, so no alert is shown at the transport level.
"""

import httpx
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from remindsync.config import get_logger
from remindsync.core.exceptions import PushDeliveryError
from remindsync.core.interfaces.notifications import IPushSender

logger = get_logger(__name__)

# FCM error codes that mean the token will never work again
INVALID_TOKEN_CODES = frozenset({"UNREGISTERED", "INVALID_REGISTRATION", "NOT_FOUND"})


class _TransientPushError(Exception):
    """5xx or transport failure worth another attempt."""


def _log_retry(retry_state: RetryCallState) -> None:
    logger.warning(
        "push_retry",
        attempt=retry_state.attempt_number,
        error=str(retry_state.outcome.exception()) if retry_state.outcome else None,
    )


def _error_code(response: httpx.Response) -> tuple[str | None, str]:
    """FCM error code and message from an error body."""
    try:
        error = response.json().get("error", {})
    except ValueError:
        return None, response.text[:200]
    code = error.get("status")
    for detail in error.get("details", []):
        if isinstance(detail, dict) and detail.get("errorCode"):
            code = detail["errorCode"]
    return code, error.get("message", "")


def build_message(token: str, data: dict[str, str]) -> dict:
    return {
        "message": {
            "token": token,
            "data": data,
            "apns": {
                "headers": {"apns-push-type": "background", "apns-priority": "5"},
                "payload": {"aps": {"content-available": 1}},
            },
            "android": {"priority": "high"},
        }
    }


class FCMPushSender(IPushSender):
    """Data-only pushes to FCM registration tokens."""

    def __init__(
        self,
        project_id: str,
        access_token: str,
        base_url: str = "https://fcm.googleapis.com",
        timeout: float = 10.0,
        max_attempts: int = 3,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = f"{base_url.rstrip('/')}/v1/projects/{project_id}/messages:send"
        self.max_attempts = max_attempts
        self._client = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            headers={"Authorization": f"Bearer {access_token}"},
        )

    async def send(self, token: str, data: dict[str, str]) -> None:
        sender = retry(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
            retry=retry_if_exception_type(_TransientPushError),
            before_sleep=_log_retry,
            reraise=True,
        )(self._post)
        try:
            await sender(token, data)
        except _TransientPushError as e:
            raise PushDeliveryError(token, str(e)) from e

    async def _post(self, token: str, data: dict[str, str]) -> None:
        try:
            response = await self._client.post(self.url, json=build_message(token, data))
        except httpx.TransportError as e:
            raise _TransientPushError(f"transport: {e}") from e

        if response.status_code == 200:
            return
        if response.status_code >= 500:
            raise _TransientPushError(f"HTTP {response.status_code}")

        code, message = _error_code(response)
        invalid = code in INVALID_TOKEN_CODES or (
            code == "INVALID_ARGUMENT" and "registration token" in message.lower()
        )
        raise PushDeliveryError(
            token, f"HTTP {response.status_code} {code or ''}".strip(), invalid_token=invalid
        )

    async def close(self) -> None:
        await self._client.aclose()


class LogOnlyPushSender(IPushSender):
    """Used when no push project is configured; records the push in the log."""

    async def send(self, token: str, data: dict[str, str]) -> None:
        logger.info("push_not_configured", token_suffix=token[-8:], action=data.get("action"))

    async def close(self) -> None:
        pass
