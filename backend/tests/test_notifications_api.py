"""Integration tests for the notification inbox and relay."""
import asyncio

import pytest
from httpx import AsyncClient

from conftest import auth_headers
from hrms.services.notifications import TIMESHEET_REMINDER, NotificationService
from hrms import websocket_manager
from hrms.config import Settings
from hrms.websocket_manager import NullPublisher, WebSocketManager, WebSocketPublisher, get_publisher, user_room


async def seed_notifications(session, user, count: int) -> None:
    service = NotificationService(session, NullPublisher())
    for _ in range(count):
        await service.send(user.id, TIMESHEET_REMINDER)


@pytest.mark.asyncio
async def test_list_is_paginated_newest_first(client: AsyncClient, session, employee, employee_headers) -> None:
    await seed_notifications(session, employee, 12)

    first = await client.get("/notifications/", headers=employee_headers)
    body = first.json()
    assert (len(body["notifications"]), body["page"], body["pages"], body["total"]) == (10, 1, 2, 12)
    ids = [item["id"] for item in body["notifications"]]
    assert ids == sorted(ids, reverse=True)

    second = await client.get("/notifications/", params={"page": 2}, headers=employee_headers)
    assert len(second.json()["notifications"]) == 2


@pytest.mark.asyncio
async def test_mark_read_and_unread_count(client: AsyncClient, session, employee, employee_headers) -> None:
    await seed_notifications(session, employee, 3)
    listing = await client.get("/notifications/", headers=employee_headers)
    first_id = listing.json()["notifications"][0]["id"]

    unread = await client.get("/notifications/unread", headers=employee_headers)
    assert unread.json() == {"unreadCount": 3}

    marked = await client.put(f"/notifications/{first_id}/read", headers=employee_headers)
    assert marked.status_code == 200
    assert marked.json()["read"] is True
    assert (await client.get("/notifications/unread", headers=employee_headers)).json() == {"unreadCount": 2}

    everything = await client.put("/notifications/mark-all-read", headers=employee_headers)
    assert everything.status_code == 200
    assert (await client.get("/notifications/unread", headers=employee_headers)).json() == {"unreadCount": 0}


@pytest.mark.asyncio
async def test_other_users_notifications_are_not_found(
    client: AsyncClient, session, employee, make_user, employee_headers
) -> None:
    await seed_notifications(session, employee, 1)
    other = await make_user("other@example.com")
    listing = await client.get("/notifications/", headers=employee_headers)
    notification_id = listing.json()["notifications"][0]["id"]

    assert (await client.put(f"/notifications/{notification_id}/read", headers=auth_headers(other))).status_code == 404
    assert (await client.delete(f"/notifications/{notification_id}", headers=auth_headers(other))).status_code == 404

    deleted = await client.delete(f"/notifications/{notification_id}", headers=employee_headers)
    assert deleted.status_code == 200
    assert (await client.get("/notifications/", headers=employee_headers)).json()["total"] == 0


@pytest.mark.asyncio
async def test_sending_publishes_to_the_recipient(session, employee, events) -> None:
    service = NotificationService(session, events)

    notification = await service.send(employee.id, TIMESHEET_REMINDER)

    [event] = events.on("notifications", "created")
    assert event["user_id"] == employee.id
    assert event["data"]["id"] == notification.id
    assert event["data"]["type"] == "timesheet_reminder"


class FakeSocket:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.sent: list = []

    async def accept(self) -> None:
        return None

    async def send_json(self, payload) -> None:
        if self.fail:
            raise RuntimeError("connection closed")
        self.sent.append(payload)


@pytest.mark.asyncio
async def test_websocket_publisher_delivers_to_user_room() -> None:
    manager = WebSocketManager()
    publisher = WebSocketPublisher(manager)
    socket = FakeSocket()
    await manager.connect(user_room(7), socket)

    publisher.publish(7, "leaves", "status_updated", {"leaveId": 1, "status": "approved"})
    publisher.publish(8, "leaves", "status_updated", {"leaveId": 2, "status": "rejected"})
    await asyncio.sleep(0)
    await asyncio.sleep(0)

    assert socket.sent == [
        {"channel": "leaves", "action": "status_updated", "data": {"leaveId": 1, "status": "approved"}}
    ]


@pytest.mark.asyncio
async def test_failed_delivery_drops_the_socket() -> None:
    manager = WebSocketManager()
    publisher = WebSocketPublisher(manager)
    broken = FakeSocket(fail=True)
    await manager.connect(user_room(3), broken)

    publisher.publish(3, "notifications", "created", {"id": 1})
    for _ in range(5):
        await asyncio.sleep(0)

    assert manager.connection_count(user_room(3)) == 0


def test_publish_without_running_loop_is_dropped() -> None:
    publisher = WebSocketPublisher(WebSocketManager())

    publisher.publish(1, "notifications", "created", {"id": 1})


def test_disabled_relay_selects_null_publisher(monkeypatch: pytest.MonkeyPatch) -> None:
    assert isinstance(get_publisher(), WebSocketPublisher)

    monkeypatch.setattr(websocket_manager, "get_settings", lambda: Settings(relay_enabled=False))

    assert isinstance(get_publisher(), NullPublisher)
