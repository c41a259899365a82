"""One-shot snapshots and live watches over a websocket."""
import asyncio
import logging
from typing import Callable

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from ..auth import AuthService, get_current_active_user
from ..database import get_db, get_session_factory
from ..errors import PermissionDeniedError
from ..models import User
from .hub import hub
from .snapshot import UnknownPathError, error_snapshot, parse_path, read_snapshot, snapshot

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Realtime"])

POLICY_VIOLATION = 1008
UNSUPPORTED_DATA = 1003
INTERNAL_ERROR = 1011


@router.get("/snapshot/{path:path}")
async def get_snapshot(
    path: str,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
):
    """Current value of a document or collection path."""
    try:
        return read_snapshot(db, current_user, path)
    except UnknownPathError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


def _load_snapshot(session_factory: Callable[[], Session], token: str, path: str) -> dict:
    db = session_factory()
    try:
        token_data = AuthService(db).verify_token(token)
        user = db.query(User).filter(User.id == token_data.user_id).first()
        if user is None or not user.is_active:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Could not validate credentials")
        return read_snapshot(db, user, path)
    finally:
        db.close()


async def _load_or_close(websocket: WebSocket, session_factory, token: str, path: str) -> dict | None:
    """Load a snapshot; on failure send the error snapshot, close and return None."""
    try:
        return await run_in_threadpool(_load_snapshot, session_factory, token, path)
    except PermissionDeniedError as e:
        await websocket.send_json(error_snapshot(e))
        code = POLICY_VIOLATION
    except HTTPException as e:
        await websocket.send_json(snapshot(None, {"detail": e.detail}))
        code = POLICY_VIOLATION
    except SQLAlchemyError as e:
        logger.error(f"Loading {path} failed: {e}")
        await websocket.send_json(snapshot(None, {"detail": "Could not load data"}))
        code = INTERNAL_ERROR
    await websocket.close(code=code)
    return None


def _report_pump_failure(task: asyncio.Task) -> None:
    if not task.cancelled() and task.exception() is not None:
        logger.error(f"Watch stopped sending updates: {task.exception()!r}")


@router.websocket("/ws/watch")
async def watch(
    websocket: WebSocket,
    path: str,
    token: str,
    session_factory: Callable[[], Session] = Depends(get_session_factory),
):
    """Send a snapshot of ``path`` now and again after every committed change under it."""
    await websocket.accept()
    try:
        parse_path(path)
    except UnknownPathError as e:
        await websocket.send_json(snapshot(None, {"detail": str(e)}))
        await websocket.close(code=UNSUPPORTED_DATA)
        return

    # Subscribe before the first read so no commit falls in between
    subscription = hub.subscribe(path)
    try:
        initial = await _load_or_close(websocket, session_factory, token, path)
        if initial is None:
            return
        await websocket.send_json(initial)

        async def pump():
            while True:
                await subscription.queue.get()
                # Coalesce bursts of commits into one snapshot
                while not subscription.queue.empty():
                    subscription.queue.get_nowait()
                current = await _load_or_close(websocket, session_factory, token, path)
                if current is None:
                    return
                await websocket.send_json(current)

        pump_task = asyncio.create_task(pump())
        pump_task.add_done_callback(_report_pump_failure)
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            logger.debug(f"Watcher on {path} disconnected")
        finally:
            pump_task.cancel()
    finally:
        hub.unsubscribe(subscription)
