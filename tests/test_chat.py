import time
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import QueuePool
from starlette.websockets import WebSocketDisconnect

from coursehub.chat.manager import manager
from coursehub.controllers import chat
from coursehub.database import Base
from coursehub.dependencies.getdb import get_db
from coursehub.main import app
from coursehub.models import Message, User
from coursehub.oauth2 import create_access_token
from coursehub.services import chat_service


@pytest.fixture(autouse=True)
def empty_rooms():
    manager.rooms.clear()
    manager.locks.clear()
    yield
    manager.rooms.clear()
    manager.locks.clear()


def token_for(user, **kwargs):
    return create_access_token(user.email, user.id, user.role, **kwargs)


def join(ws, course_id):
    ws.send_json({"event": "join-course", "data": {"course_id": course_id}})
    return ws.receive_json()


def test_socket_without_token_is_refused(client):
    with pytest.raises(WebSocketDisconnect) as exc:
        with client.websocket_connect("/ws/chat"):
            pass
    assert exc.value.code == 1008


def test_socket_with_bad_token_is_refused(client):
    with pytest.raises(WebSocketDisconnect) as exc:
        with client.websocket_connect("/ws/chat?token=not-a-jwt"):
            pass
    assert exc.value.code == 1008


def test_socket_accepts_bearer_header(client, student):
    headers = {"Authorization": f"Bearer {token_for(student)}"}
    with client.websocket_connect("/ws/chat", headers=headers) as ws:
        ws.send_json({"event": "leave-course", "data": {"course_id": 1}})
        assert ws.receive_json() == {"event": "left-course", "data": {"course_id": 1}}


def test_non_member_cannot_join(client, other_student, approved_course):
    with client.websocket_connect(f"/ws/chat?token={token_for(other_student)}") as ws:
        reply = join(ws, approved_course.id)
    assert reply["event"] == "error"
    assert reply["data"]["status"] == 403
    assert reply["data"]["event"] == "join-course"
    assert manager.members(approved_course.id) == set()


def test_message_is_broadcast_to_room_and_persisted(
    client, student, instructor, approved_course, enroll, auth_header
):
    enroll(student, approved_course)

    with client.websocket_connect(f"/ws/chat?token={token_for(instructor)}") as teacher_ws:
        assert join(teacher_ws, approved_course.id) == {
            "event": "joined-course",
            "data": {"course_id": approved_course.id},
        }
        with client.websocket_connect(f"/ws/chat?token={token_for(student)}") as student_ws:
            assert join(student_ws, approved_course.id)["event"] == "joined-course"

            student_ws.send_json(
                {"event": "send-message", "data": {"course_id": approved_course.id, "text": "  hi all  "}}
            )
            mine = student_ws.receive_json()
            theirs = teacher_ws.receive_json()

    assert mine == theirs
    assert mine["event"] == "new-message"
    assert mine["data"]["text"] == "hi all"
    assert mine["data"]["sender"]["username"] == "alice"

    history = client.get(f"/api/chat/{approved_course.id}", headers=auth_header(instructor)).json()
    assert [m["text"] for m in history] == ["hi all"]
    # disconnect removes the sockets from the room
    assert manager.members(approved_course.id) == set()


def test_blank_message_is_an_error_event(client, student, approved_course, enroll):
    enroll(student, approved_course)
    with client.websocket_connect(f"/ws/chat?token={token_for(student)}") as ws:
        join(ws, approved_course.id)
        ws.send_json({"event": "send-message", "data": {"course_id": approved_course.id, "text": "   "}})
        reply = ws.receive_json()
    assert reply["event"] == "error"
    assert reply["data"]["status"] == 400


def test_malformed_frame_keeps_socket_open(client, student):
    with client.websocket_connect(f"/ws/chat?token={token_for(student)}") as ws:
        ws.send_text("{not json")
        assert ws.receive_json()["event"] == "error"
        ws.send_json({"event": "dance"})
        reply = ws.receive_json()
        assert reply["event"] == "error"
        assert reply["data"]["event"] == "dance"


def test_leave_course(client, student, approved_course, enroll):
    enroll(student, approved_course)
    with client.websocket_connect(f"/ws/chat?token={token_for(student)}") as ws:
        join(ws, approved_course.id)
        assert len(manager.members(approved_course.id)) == 1
        ws.send_json({"event": "leave-course", "data": {"course_id": approved_course.id}})
        assert ws.receive_json()["event"] == "left-course"
        assert manager.members(approved_course.id) == set()


def test_expired_token_is_rechecked_per_event(client, student, approved_course, enroll):
    enroll(student, approved_course)
    token = token_for(student, expires_delta=timedelta(seconds=2))
    with client.websocket_connect(f"/ws/chat?token={token}") as ws:
        time.sleep(3)
        ws.send_json({"event": "join-course", "data": {"course_id": approved_course.id}})
        reply = ws.receive_json()
        assert reply["event"] == "error"
        assert reply["data"]["status"] == 401
        with pytest.raises(WebSocketDisconnect) as exc:
            ws.receive_json()
    assert exc.value.code == 1008


def test_rest_message_reaches_live_room(client, student, instructor, approved_course, enroll, auth_header):
    enroll(student, approved_course)
    with client.websocket_connect(f"/ws/chat?token={token_for(instructor)}") as ws:
        join(ws, approved_course.id)
        r = client.post(
            "/api/chat",
            headers=auth_header(student),
            json={"course_id": approved_course.id, "text": "posted over REST"},
        )
        assert r.status_code == 201, r.text
        event = ws.receive_json()
    assert event["event"] == "new-message"
    assert event["data"]["id"] == r.json()["id"]


def test_rest_message_requires_membership(client, other_student, approved_course, auth_header):
    r = client.post(
        "/api/chat",
        headers=auth_header(other_student),
        json={"course_id": approved_course.id, "text": "let me in"},
    )
    assert r.status_code == 403


def test_history_returns_latest_hundred_oldest_first(
    client, db, student, approved_course, enroll, auth_header
):
    enroll(student, approved_course)
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    db.add_all(
        Message(
            course_id=approved_course.id,
            sender_id=student.id,
            text=f"message {i}",
            timestamp=start + timedelta(minutes=i),
        )
        for i in range(105)
    )
    db.commit()

    r = client.get(f"/api/chat/{approved_course.id}", headers=auth_header(student))
    assert r.status_code == 200
    texts = [m["text"] for m in r.json()]
    assert len(texts) == 100
    assert texts[0] == "message 5"
    assert texts[-1] == "message 104"


def test_history_requires_membership(client, other_student, approved_course, auth_header):
    r = client.get(f"/api/chat/{approved_course.id}", headers=auth_header(other_student))
    assert r.status_code == 403


def test_out_of_range_course_id_is_an_error_event(client, student):
    with client.websocket_connect(f"/ws/chat?token={token_for(student)}") as ws:
        ws.send_json({"event": "join-course", "data": {"course_id": 10**30}})
        reply = ws.receive_json()
    assert reply["event"] == "error"
    assert reply["data"]["status"] == 400


def test_store_failure_is_reported_and_socket_survives(client, student, approved_course, enroll, monkeypatch):
    enroll(student, approved_course)

    def broken(*args, **kwargs):
        raise OperationalError("INSERT INTO messages", {}, Exception("database is locked"))

    monkeypatch.setattr(chat_service, "post_message", broken)
    with client.websocket_connect(f"/ws/chat?token={token_for(student)}") as ws:
        join(ws, approved_course.id)
        ws.send_json({"event": "send-message", "data": {"course_id": approved_course.id, "text": "hi"}})
        reply = ws.receive_json()
        assert reply["event"] == "error"
        assert reply["data"] == {"message": "Internal server error", "event": "send-message", "status": 500}

        ws.send_json({"event": "leave-course", "data": {"course_id": approved_course.id}})
        assert ws.receive_json()["event"] == "left-course"


def test_idle_socket_does_not_hold_a_pooled_connection(client, tmp_path, monkeypatch):
    bounded = create_engine(
        f"sqlite:///{tmp_path / 'pool.db'}",
        connect_args={"check_same_thread": False},
        poolclass=QueuePool,
        pool_size=1,
        max_overflow=0,
        pool_timeout=1,
    )
    Base.metadata.create_all(bind=bounded)
    BoundedSession = sessionmaker(autocommit=False, autoflush=False, bind=bounded)

    with BoundedSession() as db:
        user = User(username="dana", email="dana@example.com", hashed_password="x", role="student", is_active=True)
        db.add(user)
        db.commit()
        token = token_for(user)

    def bounded_db():
        db = BoundedSession()
        try:
            yield db
        finally:
            db.close()

    monkeypatch.setattr(chat, "SessionLocal", BoundedSession)
    app.dependency_overrides[get_db] = bounded_db
    try:
        with client.websocket_connect(f"/ws/chat?token={token}") as ws:
            ws.send_json({"event": "leave-course", "data": {"course_id": 1}})
            assert ws.receive_json()["event"] == "left-course"

            # the single pooled connection is free for REST while the socket idles
            assert client.get("/api/courses").status_code == 200

            ws.send_json({"event": "join-course", "data": {"course_id": 1}})
            assert ws.receive_json()["data"]["status"] == 404
            assert client.get("/api/courses").status_code == 200
    finally:
        bounded.dispose()
