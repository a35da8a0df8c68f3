import asyncio
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from jose import JWTError
from pydantic import ValidationError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from app.api.deps import (
    get_current_user,
    get_db,
    get_schedule_store,
    get_slot_manager,
    principal_from_token,
    require_roles,
)
from app.core.config import get_settings
from app.core.exceptions import AppError, SlotConflictError
from app.models.activity_log import ActivityAction
from app.models.timetable import schedule_key
from app.schemas.activity import SlotActivityDetails
from app.schemas.timetable import Schedule, Slot, SlotCandidate, SlotConflict, TimetableOptions
from app.schemas.user import CurrentUser, UserRole
from app.services.audit import log_activity
from app.services.schedule_store import SqlScheduleStore
from app.services.slot_manager import SlotManager
from app.services.subjects import find_subject, list_subjects_for_year

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/options", response_model=TimetableOptions)
def timetable_options(current_user: CurrentUser = Depends(get_current_user)) -> TimetableOptions:
    settings = get_settings()
    return TimetableOptions(days=settings.timetable_days, times=settings.timetable_periods)


@router.get("/{year}/{class_name}", response_model=Schedule)
def get_timetable(
    year: str,
    class_name: str,
    current_user: CurrentUser = Depends(get_current_user),
    manager: SlotManager = Depends(get_slot_manager),
) -> Schedule:
    return manager.view_schedule(year, class_name)


@router.post("/{year}/{class_name}/slots", response_model=Slot, status_code=status.HTTP_201_CREATED)
def add_slot(
    year: str,
    class_name: str,
    payload: SlotCandidate,
    current_user: CurrentUser = Depends(require_roles(UserRole.admin)),
    manager: SlotManager = Depends(get_slot_manager),
    db: Session = Depends(get_db),
) -> Slot:
    if payload.teacher is None and payload.subject.strip():
        subject = find_subject(list_subjects_for_year(db, year), payload.subject)
        payload = payload.model_copy(update={"teacher": subject.teacher if subject else ""})

    result = manager.add_slot(year, class_name, payload, actor_id=current_user.id)
    if isinstance(result, SlotConflict):
        raise SlotConflictError(
            result.teacher,
            result.day,
            result.time,
            details={"existing_class": result.existing_class, "existing_slot_id": result.existing_slot_id},
        )

    log_activity(
        db,
        user=current_user,
        action=ActivityAction.slot_add,
        entity_id=schedule_key(year.strip(), class_name.strip()),
        details=SlotActivityDetails(
            slot_id=result.slot.id,
            day=result.slot.day,
            time=result.slot.time,
            subject=result.slot.subject,
            teacher=result.slot.teacher,
        ),
    )
    db.commit()
    return result.slot


@router.delete("/{year}/{class_name}/slots/{slot_id}", response_model=Schedule)
def remove_slot(
    year: str,
    class_name: str,
    slot_id: str,
    current_user: CurrentUser = Depends(require_roles(UserRole.admin)),
    manager: SlotManager = Depends(get_slot_manager),
    db: Session = Depends(get_db),
) -> Schedule:
    schedule = manager.remove_slot(year, class_name, slot_id, actor_id=current_user.id)
    log_activity(
        db,
        user=current_user,
        action=ActivityAction.slot_remove,
        entity_id=schedule_key(schedule.year, schedule.class_name),
        details=SlotActivityDetails(slot_id=slot_id, revision=schedule.revision),
    )
    db.commit()
    return schedule


def _extract_ws_token(websocket: WebSocket) -> str | None:
    token = websocket.query_params.get("token")
    if token:
        return token

    auth_header = websocket.headers.get("authorization")
    if not auth_header:
        return None
    scheme, _, value = auth_header.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return value.strip() or None


def _snapshot_event(schedule: Schedule) -> dict:
    return {"event": "timetable", "timetable": schedule.model_dump(mode="json", by_alias=True)}


async def _forward(queue: "asyncio.Queue[dict]", websocket: WebSocket) -> None:
    while True:
        payload = await queue.get()
        await websocket.send_json(payload)


@router.websocket("/{year}/{class_name}/ws")
async def timetable_websocket(
    websocket: WebSocket,
    year: str,
    class_name: str,
    store: SqlScheduleStore = Depends(get_schedule_store),
) -> None:
    token = _extract_ws_token(websocket)
    if not token:
        await websocket.close(code=1008)
        return
    try:
        principal_from_token(token)
    except (JWTError, ValidationError):
        await websocket.close(code=1008)
        return

    await websocket.accept()
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue[dict] = asyncio.Queue()

    # Store writes happen on threadpool workers; hop back onto this loop.
    def on_change(schedule: Schedule) -> None:
        loop.call_soon_threadsafe(queue.put_nowait, _snapshot_event(schedule))

    try:
        subscription = await run_in_threadpool(store.subscribe, year, class_name, on_change)
    except AppError as exc:
        await websocket.send_json({"event": "error", "message": exc.message, "details": exc.details})
        await websocket.close(code=1008 if exc.status_code < 500 else 1011)
        return

    forwarder = asyncio.create_task(_forward(queue, websocket))
    try:
        while True:
            message = await websocket.receive_text()
            if message.strip().lower() == "ping":
                await websocket.send_json({"event": "pong"})
    except WebSocketDisconnect:
        pass
    finally:
        subscription.cancel()
        forwarder.cancel()
        try:
            await forwarder
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.warning("Pushing timetable %s to a viewer failed", subscription.key, exc_info=True)
        logger.debug("Timetable viewer left %s", subscription.key)
