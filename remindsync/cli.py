"""
RemindSync command line.

Usage:
    remindsync serve                    Start the sync server
    remindsync parse TEXT               Show how TEXT would be understood
    remindsync add TEXT                 Create a reminder from free text
    remindsync list                     Active reminders, soonest first
    remindsync complete ID              Complete (or advance) a reminder
    remindsync snooze ID [--minutes N]  Snooze a reminder
    remindsync delete ID                Delete a reminder
    remindsync extension-complete ID    Complete from a delivered alert
    remindsync extension-snooze ID      Snooze from a delivered alert
    remindsync drain                    Replay pending extension actions
    remindsync push JSON                Handle a silent push data payload
    remindsync run                      Keep alerts in sync until interrupted

Reminders live in the shared local store unless --user is given and
SYNC_REMOTE_BASE_URL points at a server.
"""

import argparse
import asyncio
import json
import socket
import sys
from collections.abc import Awaitable, Callable

from remindsync.application.services import (
    ClientServices,
    build_ai_parsers,
    build_client_services,
)
from remindsync.config import configure_logging, get_logger, get_settings
from remindsync.core.entities.reminder import Reminder, local_now, utc_now
from remindsync.core.exceptions import ConfigurationError, RemindSyncError, ValidationError
from remindsync.core.services import ReminderParsingService

logger = get_logger(__name__)

ClientCommand = Callable[[argparse.Namespace, ClientServices], Awaitable[None]]


def _describe(reminder: Reminder) -> str:
    """One-line summary of a reminder."""
    now = utc_now()
    flags = []
    if reminder.is_overdue(now):
        flags.append("overdue")
    if reminder.snoozed_until is not None:
        flags.append("snoozed")
    if reminder.recurrence is not None:
        rule = reminder.recurrence
        unit = rule.period_unit.value if rule.period_unit else rule.type.value
        flags.append(f"every {rule.interval} {unit}")
    suffix = f"  [{', '.join(flags)}]" if flags else ""
    when = reminder.effective_instant.astimezone().strftime("%Y-%m-%d %H:%M")
    return f"{reminder.id}  {when}  {reminder.title}{suffix}"


def _run_client(func: ClientCommand, args: argparse.Namespace, surface: str = "primary") -> None:
    """Run an async command against a client container, closing it afterwards."""
    configure_logging(surface=surface)
    settings = get_settings()

    async def runner() -> None:
        services = build_client_services(settings, user_id=args.user, device_id=args.device)
        try:
            if settings.storage.seed_samples and not services.store.is_remote:
                await services.snapshot.seed_samples_if_needed()
            await func(args, services)
        finally:
            await services.close()

    try:
        asyncio.run(runner())
    except RemindSyncError as e:
        print(f"error: {e.message}", file=sys.stderr)
        sys.exit(1)


# --- Commands ---


def cmd_serve(args: argparse.Namespace) -> None:
    from remindsync.api.main import run

    run(host=args.host, port=args.port)


def cmd_parse(args: argparse.Namespace) -> None:
    configure_logging()
    settings = get_settings()

    async def runner() -> None:
        parsers = build_ai_parsers(settings)
        service = ReminderParsingService(
            ai_parsers=parsers,
            timeout_seconds=settings.parser.timeout_seconds,
            ai_enabled=settings.parser.ai_enabled and not args.local,
        )
        try:
            now = local_now()
            draft = await service.resolve(args.text, now)
        finally:
            for parser in parsers:
                await parser.close()
        print(draft.model_dump_json(indent=2))
        print(f"trigger: {draft.compose_trigger(now).isoformat()}")

    asyncio.run(runner())


async def _add(args: argparse.Namespace, services: ClientServices) -> None:
    reminder = await services.session.add_from_text(args.text, notes=args.notes)
    if reminder is not None:
        print(_describe(reminder))


async def _list(args: argparse.Namespace, services: ClientServices) -> None:
    active = await services.store.list_active()
    if not active:
        print("No active reminders.")
    for reminder in active:
        print(_describe(reminder))


async def _complete(args: argparse.Namespace, services: ClientServices) -> None:
    reminder = await services.session.complete(args.id)
    print(_describe(reminder) if reminder.is_active else f"{reminder.id}  completed")


async def _snooze(args: argparse.Namespace, services: ClientServices) -> None:
    until = await services.session.snooze(args.id, args.minutes)
    if until is None:
        print(f"{args.id}  not active")
        return
    print(f"{args.id}  snoozed until {until.astimezone().strftime('%Y-%m-%d %H:%M')}")


async def _delete(args: argparse.Namespace, services: ClientServices) -> None:
    deleted = await services.session.delete(args.id)
    print(f"{args.id}  {'deleted' if deleted else 'not found'}")


async def _extension_complete(args: argparse.Namespace, services: ClientServices) -> None:
    await services.bridge.handle_complete(args.id)
    print(f"{args.id}  completion queued")


async def _extension_snooze(args: argparse.Namespace, services: ClientServices) -> None:
    until = await services.bridge.handle_snooze(args.id, args.minutes)
    print(f"{args.id}  snooze until {until.astimezone().strftime('%Y-%m-%d %H:%M')} queued")


async def _drain(args: argparse.Namespace, services: ClientServices) -> None:
    report = await services.replayer.drain_pending_intents()
    print(
        f"replayed={report.replayed} skipped={report.skipped} "
        f"remaining={report.remaining} cleared={report.cleared_without_replay}"
    )


async def _push(args: argparse.Namespace, services: ClientServices) -> None:
    if services.device_sync is None:
        raise ConfigurationError("Silent pushes need the remote backend (--user and a server URL)")
    try:
        data = json.loads(args.data)
    except json.JSONDecodeError as e:
        raise ValidationError("data", f"not JSON: {e}") from e
    if not isinstance(data, dict):
        raise ValidationError("data", "expected a JSON object", args.data)
    payload = await services.device_sync.handle_silent_push(data)
    action = payload.action.value if payload is not None else "unreadable"
    print(f"{action}  active={len(await services.store.list_active())}")


async def _run(args: argparse.Namespace, services: ClientServices) -> None:
    settings = get_settings()
    services.center.start()
    if services.device_sync is not None and args.fcm_token:
        await services.device_sync.register_device(args.fcm_token)

    await services.session.start()
    try:
        while True:
            await asyncio.sleep(args.interval or settings.sync.poll_interval_seconds)
            await services.session.on_foreground()
    except asyncio.CancelledError:
        logger.info("run_interrupted")


def cmd_add(args: argparse.Namespace) -> None:
    _run_client(_add, args)


def cmd_list(args: argparse.Namespace) -> None:
    _run_client(_list, args)


def cmd_complete(args: argparse.Namespace) -> None:
    _run_client(_complete, args)


def cmd_snooze(args: argparse.Namespace) -> None:
    _run_client(_snooze, args)


def cmd_delete(args: argparse.Namespace) -> None:
    _run_client(_delete, args)


def cmd_extension_complete(args: argparse.Namespace) -> None:
    _run_client(_extension_complete, args, surface="extension")


def cmd_extension_snooze(args: argparse.Namespace) -> None:
    _run_client(_extension_snooze, args, surface="extension")


def cmd_drain(args: argparse.Namespace) -> None:
    _run_client(_drain, args)


def cmd_push(args: argparse.Namespace) -> None:
    _run_client(_push, args)


def cmd_run(args: argparse.Namespace) -> None:
    try:
        _run_client(_run, args)
    except KeyboardInterrupt:
        print("stopped")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="remindsync",
        description="Reminder scheduling and sync",
    )
    parser.add_argument(
        "--user", default=None, help="Signed-in user id (selects the remote backend)"
    )
    parser.add_argument(
        "--device",
        default=socket.gethostname(),
        help="This device's id (default: host name)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # serve
    p_serve = sub.add_parser("serve", help="Start the sync server")
    p_serve.add_argument("--host", default=None, help="Bind host (default: API_HOST)")
    p_serve.add_argument("--port", type=int, default=None, help="Bind port (default: API_PORT)")
    p_serve.set_defaults(func=cmd_serve)

    # parse
    p_parse = sub.add_parser("parse", help="Parse free text without saving")
    p_parse.add_argument("text")
    p_parse.add_argument("--local", action="store_true", help="Skip the AI providers")
    p_parse.set_defaults(func=cmd_parse)

    # add
    p_add = sub.add_parser("add", help="Create a reminder from free text")
    p_add.add_argument("text")
    p_add.add_argument("--notes", default=None)
    p_add.set_defaults(func=cmd_add)

    # list
    p_list = sub.add_parser("list", help="List active reminders")
    p_list.set_defaults(func=cmd_list)

    # complete / snooze / delete
    p_complete = sub.add_parser("complete", help="Complete a reminder")
    p_complete.add_argument("id")
    p_complete.set_defaults(func=cmd_complete)

    p_snooze = sub.add_parser("snooze", help="Snooze a reminder")
    p_snooze.add_argument("id")
    p_snooze.add_argument("--minutes", type=int, default=None, help="1-60 (default: 15)")
    p_snooze.set_defaults(func=cmd_snooze)

    p_delete = sub.add_parser("delete", help="Delete a reminder")
    p_delete.add_argument("id")
    p_delete.set_defaults(func=cmd_delete)

    # extension actions
    p_ext_complete = sub.add_parser("extension-complete", help="Complete from a delivered alert")
    p_ext_complete.add_argument("id")
    p_ext_complete.set_defaults(func=cmd_extension_complete)

    p_ext_snooze = sub.add_parser("extension-snooze", help="Snooze from a delivered alert")
    p_ext_snooze.add_argument("id")
    p_ext_snooze.add_argument("--minutes", type=int, default=None, help="1-60 (default: 15)")
    p_ext_snooze.set_defaults(func=cmd_extension_snooze)

    # drain
    p_drain = sub.add_parser("drain", help="Replay pending extension actions")
    p_drain.set_defaults(func=cmd_drain)

    # push
    p_push = sub.add_parser("push", help="Handle a silent push data payload")
    p_push.add_argument("data", help='JSON object with "action" and "reminderId"')
    p_push.set_defaults(func=cmd_push)

    # run
    p_run = sub.add_parser("run", help="Keep alerts in sync until interrupted")
    p_run.add_argument("--fcm-token", default=None, help="Register this push token on start")
    p_run.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Seconds between foreground refreshes (default: SYNC_POLL_INTERVAL_SECONDS)",
    )
    p_run.set_defaults(func=cmd_run)

    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
