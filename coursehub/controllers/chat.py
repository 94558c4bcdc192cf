import json
import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette import status

from coursehub.chat.manager import manager, send_event
from coursehub.database import SessionLocal
from coursehub.dependencies.getdb import get_db
from coursehub.errors import AuthenticationError, CourseHubError, ValidationError
from coursehub.oauth2 import decode_access_token, get_current_user_jwt, identity_for_user
from coursehub.schemas.chat import MessageCreate, MessageResponse
from coursehub.security.permissions import ensure_course_member
from coursehub.services import chat_service
from coursehub.services.course_service import get_course_or_404

logger = logging.getLogger(__name__)

router = APIRouter(tags=["chat"])


@router.get("/api/chat/{course_id}", response_model=List[MessageResponse])
async def get_course_messages(
    course_id: int,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user_jwt),
):
    return chat_service.get_history(db, current_user, course_id)


@router.post("/api/chat", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def send_message(
    payload: MessageCreate,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user_jwt),
):
    async with manager.lock(payload.course_id):
        message = chat_service.post_message(db, current_user["user_id"], payload.course_id, payload.text)
        await manager.broadcast(payload.course_id, "new-message", message)
    return message


# Integer column range shared by PostgreSQL and SQLite
MAX_COURSE_ID = 2**31 - 1


def _token_from_websocket(websocket: WebSocket) -> Optional[str]:
    auth_header = websocket.headers.get("authorization")
    if auth_header and auth_header.lower().startswith("bearer "):
        return auth_header.split(" ", 1)[1]
    return websocket.query_params.get("token")


def _course_id_of(data: dict) -> int:
    course_id = data.get("course_id")
    if isinstance(course_id, bool) or not isinstance(course_id, (int, str)):
        raise ValidationError("Course ID is required")
    try:
        course_id = int(course_id)
    except ValueError:
        raise ValidationError("Course ID is required")
    if not 0 < course_id <= MAX_COURSE_ID:
        raise ValidationError("Invalid course ID")
    return course_id


def _check_not_expired(identity: dict) -> None:
    expires_at = identity.get("exp")
    if expires_at is not None and expires_at <= datetime.now(timezone.utc).timestamp():
        raise AuthenticationError("Access token expired")


async def _send_error(websocket: WebSocket, event: Optional[str], message: str, status_code: int) -> None:
    await send_event(websocket, "error", {"message": message, "event": event, "status": status_code})


### Every store access below opens its own short-lived session ###
def _authenticate(token: str) -> dict:
    with SessionLocal() as db:
        return identity_for_user(db, decode_access_token(token))


async def _join_course(websocket: WebSocket, identity: dict, data: dict) -> None:
    course_id = _course_id_of(data)
    with SessionLocal() as db:
        course = get_course_or_404(db, course_id)
        ensure_course_member(
            db,
            course,
            identity["user_id"],
            "Access denied. You must be enrolled in this course to join the chat.",
        )
    manager.join(course_id, websocket)
    logger.info("User %s joined chat of course %s", identity["user_id"], course_id)
    await send_event(websocket, "joined-course", {"course_id": course_id})


async def _send_message(identity: dict, data: dict) -> None:
    course_id = _course_id_of(data)
    async with manager.lock(course_id):
        with SessionLocal() as db:
            message = chat_service.post_message(db, identity["user_id"], course_id, data.get("text"))
        await manager.broadcast(course_id, "new-message", message)


async def _leave_course(websocket: WebSocket, data: dict) -> None:
    course_id = _course_id_of(data)
    manager.leave(course_id, websocket)
    await send_event(websocket, "left-course", {"course_id": course_id})


@router.websocket("/ws/chat")
async def chat_socket(websocket: WebSocket):
    token = _token_from_websocket(websocket)
    if not token:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    try:
        identity = _authenticate(token)
    except AuthenticationError:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    logger.info("Chat socket opened for user %s", identity["user_id"])

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                frame = json.loads(raw)
            except json.JSONDecodeError:
                frame = None
            if not isinstance(frame, dict) or not isinstance(frame.get("event"), str):
                await _send_error(websocket, None, "Malformed event", status.HTTP_400_BAD_REQUEST)
                continue

            event = frame["event"]
            data = frame.get("data") if isinstance(frame.get("data"), dict) else {}

            try:
                _check_not_expired(identity)
            except AuthenticationError as exc:
                await _send_error(websocket, event, exc.detail, exc.status_code)
                await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
                return

            try:
                if event == "join-course":
                    await _join_course(websocket, identity, data)
                elif event == "send-message":
                    await _send_message(identity, data)
                elif event == "leave-course":
                    await _leave_course(websocket, data)
                else:
                    raise ValidationError(f"Unknown event: {event}")
            except CourseHubError as exc:
                await _send_error(websocket, event, exc.detail, exc.status_code)
            except SQLAlchemyError:
                logger.exception("Store failure while handling %s for user %s", event, identity["user_id"])
                await _send_error(
                    websocket, event, "Internal server error", status.HTTP_500_INTERNAL_SERVER_ERROR
                )
    except WebSocketDisconnect:
        logger.info("Chat socket closed for user %s", identity["user_id"])
    finally:
        manager.leave_all(websocket)
