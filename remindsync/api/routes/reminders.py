"""
Reminder document endpoints.

Every write hands its before/after snapshots to the sync fan-out, which
runs after the response is sent.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, Response, status

from remindsync.api.dependencies import get_fanout, get_reminders
from remindsync.application.dto.requests import (
    CompleteReminderRequest,
    CreateReminderRequest,
    PatchReminderRequest,
    ReplaceReminderRequest,
    SnoozeReminderRequest,
)
from remindsync.application.dto.responses import ErrorResponse, ReminderResponse
from remindsync.application.use_cases import ReminderDocumentsUseCase, WriteResult
from remindsync.config import get_logger
from remindsync.core.entities.reminder import Reminder
from remindsync.core.exceptions import RemindSyncError
from remindsync.core.services import SyncFanout

logger = get_logger(__name__)

router = APIRouter(prefix="/api/users/{user_id}/reminders", tags=["reminders"])


async def _fan_out(fanout: SyncFanout, result: WriteResult) -> None:
    try:
        await fanout.on_reminder_written(result.user_id, result.before, result.after)
    except RemindSyncError as e:
        logger.warning(
            "fanout_failed",
            user_id=result.user_id,
            reminder_id=result.reminder.id,
            error=str(e),
        )


def _schedule_fanout(
    background_tasks: BackgroundTasks, fanout: SyncFanout, result: WriteResult
) -> None:
    if result.before is result.after:
        # Nothing was written
        return
    background_tasks.add_task(_fan_out, fanout, result)


def _to_response(reminder: Reminder) -> ReminderResponse:
    return ReminderResponse.from_entity(reminder)


@router.post(
    "",
    response_model=ReminderResponse,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"model": ErrorResponse}},
)
async def create_reminder(
    user_id: str,
    request: CreateReminderRequest,
    background_tasks: BackgroundTasks,
    reminders: ReminderDocumentsUseCase = Depends(get_reminders),
    fanout: SyncFanout = Depends(get_fanout),
) -> ReminderResponse:
    """Create a reminder document (or overwrite one with the same id)."""
    result = await reminders.create(user_id, request)
    _schedule_fanout(background_tasks, fanout, result)
    return _to_response(result.after)


@router.get("", response_model=list[ReminderResponse])
async def list_active_reminders(
    user_id: str,
    reminders: ReminderDocumentsUseCase = Depends(get_reminders),
) -> list[ReminderResponse]:
    """Active reminders ordered by effective instant."""
    return [_to_response(r) for r in await reminders.list_active(user_id)]


@router.get(
    "/{reminder_id}",
    response_model=ReminderResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_reminder(
    user_id: str,
    reminder_id: str,
    reminders: ReminderDocumentsUseCase = Depends(get_reminders),
) -> ReminderResponse:
    return _to_response(await reminders.get(user_id, reminder_id))


@router.put(
    "/{reminder_id}",
    response_model=ReminderResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def replace_reminder(
    user_id: str,
    reminder_id: str,
    request: ReplaceReminderRequest,
    background_tasks: BackgroundTasks,
    reminders: ReminderDocumentsUseCase = Depends(get_reminders),
    fanout: SyncFanout = Depends(get_fanout),
) -> ReminderResponse:
    """Whole-document replacement; last write wins."""
    result = await reminders.replace(user_id, reminder_id, request)
    _schedule_fanout(background_tasks, fanout, result)
    return _to_response(result.after)


@router.patch(
    "/{reminder_id}",
    response_model=ReminderResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def patch_reminder(
    user_id: str,
    reminder_id: str,
    request: PatchReminderRequest,
    background_tasks: BackgroundTasks,
    reminders: ReminderDocumentsUseCase = Depends(get_reminders),
    fanout: SyncFanout = Depends(get_fanout),
) -> ReminderResponse:
    """Update only the fields present in the body."""
    result = await reminders.patch(user_id, reminder_id, request)
    _schedule_fanout(background_tasks, fanout, result)
    return _to_response(result.after)


@router.delete(
    "/{reminder_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
async def delete_reminder(
    user_id: str,
    reminder_id: str,
    background_tasks: BackgroundTasks,
    reminders: ReminderDocumentsUseCase = Depends(get_reminders),
    fanout: SyncFanout = Depends(get_fanout),
) -> Response:
    result = await reminders.delete(user_id, reminder_id)
    _schedule_fanout(background_tasks, fanout, result)
    return Response(status_code=status.HTTP_204_NO_CONTENT, background=background_tasks)


@router.post(
    "/{reminder_id}/complete",
    response_model=ReminderResponse,
    responses={404: {"model": ErrorResponse}},
)
async def complete_reminder(
    user_id: str,
    reminder_id: str,
    background_tasks: BackgroundTasks,
    request: CompleteReminderRequest | None = None,
    reminders: ReminderDocumentsUseCase = Depends(get_reminders),
    fanout: SyncFanout = Depends(get_fanout),
) -> ReminderResponse:
    """Complete a one-shot reminder, or advance a recurring one."""
    now = request.now if request is not None else None
    result = await reminders.complete(user_id, reminder_id, now)
    _schedule_fanout(background_tasks, fanout, result)
    return _to_response(result.after)


@router.post(
    "/{reminder_id}/snooze",
    response_model=ReminderResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def snooze_reminder(
    user_id: str,
    reminder_id: str,
    request: SnoozeReminderRequest,
    background_tasks: BackgroundTasks,
    reminders: ReminderDocumentsUseCase = Depends(get_reminders),
    fanout: SyncFanout = Depends(get_fanout),
) -> ReminderResponse:
    result = await reminders.snooze(
        user_id, reminder_id, until=request.until, minutes=request.minutes
    )
    _schedule_fanout(background_tasks, fanout, result)
    return _to_response(result.after)
