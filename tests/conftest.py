import os

# Settings are read at import time, so the environment goes first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["MAIL_SUPPRESS_SEND"] = "true"
os.environ["SECRET_KEY"] = "test-secret-key"

import pytest
from fastapi.testclient import TestClient

from coursehub.celery_app import send_enrollment_email_task, send_welcome_email_task
from coursehub.database import Base, SessionLocal, engine
from coursehub.dependencies.getdb import get_db
from coursehub.main import app
from coursehub.models import Course, User
from coursehub.oauth2 import bcrypt_context, create_access_token
from coursehub.roles import ApprovalStatus, UserRole
from coursehub.services import storage, token_blacklist

PASSWORD = "Password123"


def override_get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def setup_test_db():
    """Fresh schema for every test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def no_redis(monkeypatch):
    monkeypatch.setattr(token_blacklist, "get_redis_client", lambda: None)


@pytest.fixture(autouse=True)
def queued_emails(monkeypatch):
    """Record queued email tasks instead of talking to a broker."""
    queued = []

    def record(name):
        def delay(*args, **kwargs):
            queued.append((name, args))

        return delay

    monkeypatch.setattr(send_welcome_email_task, "delay", record("welcome"))
    monkeypatch.setattr(send_enrollment_email_task, "delay", record("enrollment"))
    return queued


class FakeS3:
    def __init__(self):
        self.uploads = []

    def put_object(self, Bucket, Key, Body, ContentType=None):
        self.uploads.append({"bucket": Bucket, "key": Key, "body": Body, "content_type": ContentType})


@pytest.fixture()
def s3(monkeypatch):
    fake = FakeS3()
    monkeypatch.setattr(storage, "get_s3_client", lambda: fake)
    return fake


@pytest.fixture()
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client():
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db):
    def make(username, role=UserRole.STUDENT, email=None, **fields):
        user = User(
            username=username,
            email=email or f"{username}@example.com",
            hashed_password=bcrypt_context.hash(PASSWORD),
            role=role.value,
            is_active=True,
            **fields,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return make


@pytest.fixture()
def auth_header():
    def header(user):
        token = create_access_token(user.email, user.id, user.role)
        return {"Authorization": f"Bearer {token}"}

    return header


@pytest.fixture()
def instructor(make_user):
    return make_user("teacher", UserRole.INSTRUCTOR)


@pytest.fixture()
def student(make_user):
    return make_user("alice")


@pytest.fixture()
def other_student(make_user):
    return make_user("bob")


@pytest.fixture()
def admin(make_user):
    return make_user("root", UserRole.ADMIN, email="root@example.com")


@pytest.fixture()
def course_payload():
    return {
        "title": "Intro to Pottery",
        "location": "Pune",
        "description": "Throw your first bowl",
        "detailed_description": "Eight weekend sessions at the wheel",
        "duration": "8 weeks",
        "level": "Beginner",
        "image_url": "https://cdn.example.com/pottery.png",
        "price": 1499.0,
        "category": "Arts",
        "syllabus": ["Centering", "Pulling walls"],
        "requirements": ["Apron"],
    }


@pytest.fixture()
def make_course(db, course_payload):
    def make(instructor, status=ApprovalStatus.APPROVED, **overrides):
        fields = dict(course_payload, **overrides)
        course = Course(
            **fields,
            instructor_id=instructor.id,
            approval_status=status.value,
            published=status == ApprovalStatus.APPROVED,
            rating=0.0,
        )
        db.add(course)
        db.commit()
        db.refresh(course)
        return course

    return make


@pytest.fixture()
def approved_course(make_course, instructor):
    return make_course(instructor)


@pytest.fixture()
def enroll(client, auth_header):
    def do_enroll(user, course, transaction_id="txn-1"):
        return client.post(
            f"/api/courses/{course.id}/enroll",
            headers=auth_header(user),
            json={"payment_details": {"transaction_id": transaction_id, "payment_method": "upi"}},
        )

    return do_enroll
