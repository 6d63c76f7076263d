"""Tests for the FCM push sender."""

import json

import httpx
import pytest

from remindsync.core.exceptions import PushDeliveryError
from remindsync.infrastructure.push import FCMPushSender, LogOnlyPushSender
from remindsync.infrastructure.push.fcm import build_message

DATA = {"action": "created", "reminderId": "r1"}


def _sender(handler, max_attempts: int = 2) -> FCMPushSender:
    return FCMPushSender(
        project_id="demo",
        access_token="secret",
        max_attempts=max_attempts,
        transport=httpx.MockTransport(handler),
    )


def _fcm_error(
    status_code: int, status: str, error_code: str | None = None, message: str = ""
) -> httpx.Response:
    details = [{"errorCode": error_code}] if error_code else []
    body = {
        "error": {
            "code": status_code,
            "status": status,
            "message": message,
            "details": details,
        }
    }
    return httpx.Response(status_code, json=body)


class TestBuildMessage:
    def test_data_only_background(self):
        message = build_message("tok", DATA)["message"]

        assert message["token"] == "tok"
        assert message["data"] == DATA
        assert "notification" not in message
        assert message["apns"]["headers"]["apns-push-type"] == "background"
        assert message["apns"]["payload"]["aps"]["content-available"] == 1
        assert message["android"]["priority"] == "high"


class TestFCMPushSender:
    """Tests for FCMPushSender."""

    async def test_success(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"name": "projects/demo/messages/1"})

        sender = _sender(handler)
        await sender.send("tok", DATA)
        await sender.close()

        assert str(requests[0].url) == "https://fcm.googleapis.com/v1/projects/demo/messages:send"
        assert requests[0].headers["Authorization"] == "Bearer secret"
        assert json.loads(requests[0].content)["message"]["data"] == DATA

    async def test_unregistered_token(self):
        sender = _sender(lambda request: _fcm_error(404, "NOT_FOUND", "UNREGISTERED"))

        with pytest.raises(PushDeliveryError) as exc_info:
            await sender.send("tok", DATA)

        assert exc_info.value.invalid_token is True
        await sender.close()

    async def test_invalid_registration_argument(self):
        sender = _sender(
            lambda request: _fcm_error(
                400,
                "INVALID_ARGUMENT",
                message="The registration token is not a valid FCM token",
            )
        )

        with pytest.raises(PushDeliveryError) as exc_info:
            await sender.send("tok", DATA)

        assert exc_info.value.invalid_token is True
        await sender.close()

    async def test_other_client_error_keeps_token(self):
        sender = _sender(lambda request: _fcm_error(403, "PERMISSION_DENIED"))

        with pytest.raises(PushDeliveryError) as exc_info:
            await sender.send("tok", DATA)

        assert exc_info.value.invalid_token is False
        await sender.close()

    async def test_server_error_retried_then_fails(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(503)

        sender = _sender(handler, max_attempts=2)

        with pytest.raises(PushDeliveryError) as exc_info:
            await sender.send("tok", DATA)

        assert len(calls) == 2
        assert exc_info.value.invalid_token is False
        await sender.close()

    async def test_recovers_after_transient_failure(self):
        responses = iter([httpx.Response(500), httpx.Response(200, json={})])
        sender = _sender(lambda request: next(responses))

        await sender.send("tok", DATA)
        await sender.close()

    async def test_transport_error_fails(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("down", request=request)

        sender = _sender(handler, max_attempts=1)

        with pytest.raises(PushDeliveryError):
            await sender.send("tok", DATA)
        await sender.close()


class TestLogOnlyPushSender:
    async def test_send_does_nothing(self):
        sender = LogOnlyPushSender()
        await sender.send("some-long-token", DATA)
        await sender.close()
