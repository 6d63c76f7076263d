"""
Service factory functions for dependency injection.

Wires infrastructure implementations to core services. The server and the
client each get one container; nothing here is cached at module level.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import timedelta

import httpx

from remindsync.application.use_cases.device_registry import DeviceRegistryUseCase
from remindsync.application.use_cases.reminder_documents import ReminderDocumentsUseCase
from remindsync.application.use_cases.reminder_session import ReminderSession
from remindsync.config import Settings, get_logger
from remindsync.core.interfaces.notifications import AlertRequest, IPushSender
from remindsync.core.interfaces.parser import IAIReminderParser
from remindsync.core.interfaces.storage import IDeviceRegistry, IReminderStore
from remindsync.core.services import (
    DeviceSyncService,
    ExtensionBridge,
    IntentReplayer,
    NotificationScheduler,
    ReminderParsingService,
    SyncFanout,
)
from remindsync.infrastructure.llm import ClaudeReminderParser, OpenAIReminderParser
from remindsync.infrastructure.notifications import APSchedulerNotificationCenter
from remindsync.infrastructure.push import FCMPushSender, LogOnlyPushSender
from remindsync.infrastructure.remote import (
    RemoteAPIClient,
    RemoteDeviceRegistry,
    RemoteReminderStore,
)
from remindsync.infrastructure.storage.shared import (
    LocalReminderStore,
    SharedIntentQueue,
    SharedStorage,
)
from remindsync.infrastructure.storage.sqlite import (
    ServerDatabase,
    SQLiteDeviceStore,
    SQLiteReminderDocumentStore,
)

logger = get_logger(__name__)


# --- Server ---


@dataclass
class ServerServices:
    """Everything the API needs for one process."""

    database: ServerDatabase
    documents: SQLiteReminderDocumentStore
    devices: SQLiteDeviceStore
    push_sender: IPushSender
    fanout: SyncFanout
    reminders: ReminderDocumentsUseCase
    device_registry: DeviceRegistryUseCase

    async def close(self) -> None:
        await self.push_sender.close()
        await self.database.close()


def build_push_sender(
    settings: Settings, transport: httpx.AsyncBaseTransport | None = None
) -> IPushSender:
    """FCM sender when credentials are configured, otherwise a logging stand-in."""
    sync = settings.sync
    if sync.fcm_project_id and sync.fcm_access_token:
        return FCMPushSender(
            project_id=sync.fcm_project_id,
            access_token=sync.fcm_access_token,
            base_url=sync.fcm_base_url,
            timeout=sync.push_timeout_seconds,
            transport=transport,
        )
    logger.warning("push_disabled", reason="fcm credentials not configured")
    return LogOnlyPushSender()


async def build_server_services(
    settings: Settings,
    push_sender: IPushSender | None = None,
) -> ServerServices:
    """Open the migrated database and assemble the server container."""
    database = await ServerDatabase(
        settings.storage.server_db_path,
        readers=settings.storage.reader_connections,
        busy_timeout=settings.storage.busy_timeout,
    ).open()

    documents = SQLiteReminderDocumentStore(database)
    devices = SQLiteDeviceStore(database)
    sender = push_sender or build_push_sender(settings)
    fanout = SyncFanout(
        devices,
        sender,
        stale_after=timedelta(days=settings.sync.stale_device_days),
    )
    return ServerServices(
        database=database,
        documents=documents,
        devices=devices,
        push_sender=sender,
        fanout=fanout,
        reminders=ReminderDocumentsUseCase(documents),
        device_registry=DeviceRegistryUseCase(devices),
    )


# --- Client ---


def build_ai_parsers(
    settings: Settings, transport: httpx.AsyncBaseTransport | None = None
) -> list[IAIReminderParser]:
    """Configured providers in order; providers without a key are left out."""
    parser_settings = settings.parser
    available = {
        "claude": (ClaudeReminderParser, parser_settings.claude_api_key),
        "openai": (OpenAIReminderParser, parser_settings.openai_api_key),
    }
    parsers: list[IAIReminderParser] = []
    for name in parser_settings.providers:
        parser_class, api_key = available[name]
        if api_key:
            parsers.append(parser_class(parser_settings, api_key, transport=transport))
    return parsers


@dataclass
class ClientServices:
    """The primary process's collaborators."""

    storage: SharedStorage
    snapshot: LocalReminderStore
    store: IReminderStore
    intents: SharedIntentQueue
    center: APSchedulerNotificationCenter
    scheduler: NotificationScheduler
    replayer: IntentReplayer
    bridge: ExtensionBridge
    parser: ReminderParsingService
    session: ReminderSession
    device_sync: DeviceSyncService | None = None
    remote_client: RemoteAPIClient | None = None
    ai_parsers: list[IAIReminderParser] = field(default_factory=list)

    async def close(self) -> None:
        await self.session.stop()
        self.center.shutdown()
        for parser in self.ai_parsers:
            await parser.close()
        if isinstance(self.store, RemoteReminderStore):
            await self.store.close()
        await self.snapshot.close()
        if self.remote_client is not None:
            await self.remote_client.close()


def build_client_services(
    settings: Settings,
    user_id: str | None = None,
    device_id: str | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    center: APSchedulerNotificationCenter | None = None,
) -> ClientServices:
    """
    Assemble the client container.

    The remote backend is used when a server URL is configured and a user
    is signed in; otherwise reminders live in the shared local snapshot.
    The extension bridge always works against the local snapshot.
    """
    storage = SharedStorage(
        settings.storage.shared_db_path,
        busy_timeout=settings.storage.busy_timeout,
    )
    snapshot = LocalReminderStore(storage, key=settings.storage.reminders_key)
    intents = SharedIntentQueue(storage, key=settings.storage.intents_key)

    remote_client: RemoteAPIClient | None = None
    store: IReminderStore = snapshot
    registry: IDeviceRegistry | None = None
    if settings.sync.remote_base_url and user_id:
        remote_client = RemoteAPIClient(
            settings.sync.remote_base_url,
            _fixed_user(user_id),
            timeout=settings.sync.request_timeout,
            transport=transport,
        )
        store = RemoteReminderStore(
            remote_client, poll_interval=settings.sync.poll_interval_seconds
        )
        registry = RemoteDeviceRegistry(remote_client)

    center = center or APSchedulerNotificationCenter()
    scheduler = NotificationScheduler(center, store)

    async def on_deliver(request: AlertRequest) -> None:
        scheduler.mark_delivered(request.identifier)

    center.on_deliver = center.on_deliver or on_deliver

    notify = settings.notifications
    replayer = IntentReplayer(intents, store)
    bridge = ExtensionBridge(
        snapshot,
        intents,
        center,
        default_snooze_minutes=notify.default_snooze_minutes,
        min_snooze_minutes=notify.min_snooze_minutes,
        max_snooze_minutes=notify.max_snooze_minutes,
    )

    device_sync = None
    if registry is not None and device_id:
        device_sync = DeviceSyncService(
            registry,
            store,
            scheduler,
            device_id=device_id,
            app_version=settings.app_version,
        )

    ai_parsers = build_ai_parsers(settings)
    parser = ReminderParsingService(
        ai_parsers=ai_parsers,
        timeout_seconds=settings.parser.timeout_seconds,
        ai_enabled=settings.parser.ai_enabled,
    )
    session = ReminderSession(
        store,
        scheduler,
        replayer,
        parser=parser,
        device_sync=device_sync,
        default_snooze_minutes=notify.default_snooze_minutes,
        min_snooze_minutes=notify.min_snooze_minutes,
        max_snooze_minutes=notify.max_snooze_minutes,
    )

    logger.info(
        "client_services_built",
        backend="remote" if store.is_remote else "local",
        ai_providers=[p.name for p in ai_parsers],
    )
    return ClientServices(
        storage=storage,
        snapshot=snapshot,
        store=store,
        intents=intents,
        center=center,
        scheduler=scheduler,
        replayer=replayer,
        bridge=bridge,
        parser=parser,
        session=session,
        device_sync=device_sync,
        remote_client=remote_client,
        ai_parsers=ai_parsers,
    )


def _fixed_user(user_id: str) -> Callable[[], str | None]:
    return lambda: user_id
