"""Tests for the service factories."""

from unittest.mock import AsyncMock

from remindsync.application.services import (
    build_ai_parsers,
    build_client_services,
    build_push_sender,
    build_server_services,
)
from remindsync.config.settings import ParserSettings, Settings, SyncSettings
from remindsync.infrastructure.llm import ClaudeReminderParser, OpenAIReminderParser
from remindsync.infrastructure.push import FCMPushSender, LogOnlyPushSender
from remindsync.infrastructure.remote import RemoteReminderStore
from remindsync.infrastructure.storage.shared import LocalReminderStore


class TestBuildAIParsers:
    def test_only_configured_providers(self, settings: Settings):
        settings.parser = ParserSettings(openai_api_key="sk")

        parsers = build_ai_parsers(settings)

        assert [type(p) for p in parsers] == [OpenAIReminderParser]

    def test_configured_order(self, settings: Settings):
        settings.parser = ParserSettings(
            providers=["openai", "claude"], claude_api_key="a", openai_api_key="b"
        )

        parsers = build_ai_parsers(settings)

        assert [type(p) for p in parsers] == [OpenAIReminderParser, ClaudeReminderParser]


class TestBuildPushSender:
    def test_without_credentials(self, settings: Settings):
        assert isinstance(build_push_sender(settings), LogOnlyPushSender)

    async def test_with_credentials(self, settings: Settings):
        settings.sync = SyncSettings(fcm_project_id="demo", fcm_access_token="token")

        sender = build_push_sender(settings)

        assert isinstance(sender, FCMPushSender)
        await sender.close()


class TestBuildServices:
    async def test_server(self, settings: Settings):
        services = await build_server_services(settings, push_sender=AsyncMock())

        assert settings.storage.server_db_path.exists()
        assert await services.reminders.list_active("u1") == []
        await services.close()

    async def test_client_local_by_default(self, settings: Settings):
        services = build_client_services(settings, user_id="u1", device_id="phone")

        assert isinstance(services.store, LocalReminderStore)
        assert services.store is services.snapshot
        assert services.device_sync is None
        await services.close()

    async def test_client_remote_when_signed_in(self, settings: Settings):
        settings.sync = SyncSettings(remote_base_url="http://sync.test")

        services = build_client_services(settings, user_id="u1", device_id="phone")

        assert isinstance(services.store, RemoteReminderStore)
        assert services.bridge.snapshot is services.snapshot
        assert services.device_sync is not None
        await services.close()

    async def test_client_signed_out_stays_local(self, settings: Settings):
        settings.sync = SyncSettings(remote_base_url="http://sync.test")

        services = build_client_services(settings, user_id=None)

        assert not services.store.is_remote
        await services.close()
