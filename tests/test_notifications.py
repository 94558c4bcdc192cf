import pytest

from coursehub.roles import NotificationType
from coursehub.services.notification_service import create_notification


@pytest.fixture()
def inbox(db, student):
    return [
        create_notification(db, student.id, f"Title {i}", f"Body {i}", NotificationType.SYSTEM, {"n": i})
        for i in range(3)
    ]


def test_list_notifications_with_unread_count(client, student, inbox, auth_header):
    r = client.get(f"/api/notifications/{student.id}", headers=auth_header(student))
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["unread_count"] == 3
    assert [n["title"] for n in body["notifications"]] == ["Title 2", "Title 1", "Title 0"]
    assert body["notifications"][0]["data"] == {"n": 2}


def test_notifications_are_owner_only(client, student, other_student, inbox, auth_header):
    headers = auth_header(other_student)
    assert client.get(f"/api/notifications/{student.id}", headers=headers).status_code == 403
    assert client.patch(f"/api/notifications/{inbox[0].id}/read", headers=headers).status_code == 403
    assert client.delete(f"/api/notifications/{inbox[0].id}", headers=headers).status_code == 403
    assert client.patch(f"/api/notifications/user/{student.id}/read-all", headers=headers).status_code == 403
    assert client.delete(f"/api/notifications/user/{student.id}/clear", headers=headers).status_code == 403


def test_mark_one_and_all_read(client, student, inbox, auth_header):
    headers = auth_header(student)

    r = client.patch(f"/api/notifications/{inbox[0].id}/read", headers=headers)
    assert r.status_code == 200
    assert r.json()["notification"]["read"] is True
    assert client.get(f"/api/notifications/{student.id}", headers=headers).json()["unread_count"] == 2

    r = client.patch(f"/api/notifications/user/{student.id}/read-all", headers=headers)
    assert r.status_code == 200
    assert r.json()["updated"] == 2
    assert client.get(f"/api/notifications/{student.id}", headers=headers).json()["unread_count"] == 0


def test_delete_and_clear(client, student, inbox, auth_header):
    headers = auth_header(student)

    assert client.delete(f"/api/notifications/{inbox[0].id}", headers=headers).status_code == 200
    assert len(client.get(f"/api/notifications/{student.id}", headers=headers).json()["notifications"]) == 2

    r = client.delete(f"/api/notifications/user/{student.id}/clear", headers=headers)
    assert r.json()["deleted"] == 2
    assert client.get(f"/api/notifications/{student.id}", headers=headers).json() == {
        "notifications": [],
        "unread_count": 0,
    }


def test_unknown_notification_is_404(client, student, auth_header):
    r = client.patch("/api/notifications/999/read", headers=auth_header(student))
    assert r.status_code == 404
    assert r.json()["detail"] == "Notification not found"


def test_list_is_capped_at_fifty(client, db, student, auth_header):
    for i in range(55):
        create_notification(db, student.id, f"T{i}", "body", NotificationType.SYSTEM)

    body = client.get(f"/api/notifications/{student.id}", headers=auth_header(student)).json()
    assert len(body["notifications"]) == 50
    assert body["unread_count"] == 55
