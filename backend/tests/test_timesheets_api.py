"""Integration tests for the timesheet API."""
from datetime import date
from typing import Any, Dict

import pytest
from httpx import AsyncClient

from conftest import auth_headers
from hrms.services.timesheets import TimesheetService


async def submit(
    client: AsyncClient,
    headers: Dict[str, str],
    work_date: str = "2024-03-04",
    start: str = "09:00",
    end: str = "17:30",
    break_hours: Any = 0.5,
) -> Dict[str, Any]:
    response = await client.post(
        "/timesheet/",
        json={"date": work_date, "startTime": start, "endTime": end, "breakDuration": break_hours},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_submit_computes_hours(client: AsyncClient, employee, employee_headers) -> None:
    entry = await submit(client, employee_headers)

    assert entry["date"] == "2024-03-04"
    assert entry["totalHours"] == pytest.approx(8.0)
    assert entry["status"] == "pending"
    assert entry["userId"] == employee.id


@pytest.mark.asyncio
async def test_resubmitting_a_date_rewrites_pending_entry(client: AsyncClient, employee_headers) -> None:
    first = await submit(client, employee_headers)
    second = await submit(client, employee_headers, end="13:00", break_hours=0)

    assert second["id"] == first["id"]
    assert second["totalHours"] == pytest.approx(4.0)


@pytest.mark.asyncio
async def test_decided_entries_are_immutable(
    client: AsyncClient, admin, admin_headers, employee_headers
) -> None:
    entry = await submit(client, employee_headers)
    await client.put(f"/timesheet/{entry['id']}/status", json={"status": "approved"}, headers=admin_headers)

    resubmit = await client.post(
        "/timesheet/",
        json={"date": "2024-03-04", "startTime": "10:00", "endTime": "12:00"},
        headers=employee_headers,
    )
    assert resubmit.status_code == 400
    assert resubmit.json()["message"] == "Cannot update approved or rejected timesheet entries"

    update = await client.put(
        f"/timesheet/{entry['id']}",
        json={"startTime": "10:00", "endTime": "12:00", "breakDuration": 0},
        headers=employee_headers,
    )
    assert update.status_code == 400


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "start, end, break_hours, message",
    [
        ("9am", "17:00", 0, "Invalid time format"),
        ("17:00", "09:00", 0, "End time must be after start time"),
        ("09:00", "17:00", -1, "Invalid break duration"),
        ("09:00", "10:00", 1, "Total working hours must be greater than 0"),
    ],
)
async def test_submit_rejects_invalid_hours(
    client: AsyncClient, employee_headers, start, end, break_hours, message
) -> None:
    response = await client.post(
        "/timesheet/",
        json={"date": "2024-03-04", "startTime": start, "endTime": end, "breakDuration": break_hours},
        headers=employee_headers,
    )

    assert response.status_code == 400
    assert response.json() == {"message": message}


@pytest.mark.asyncio
async def test_update_entry_recomputes_hours(client: AsyncClient, make_user, employee_headers) -> None:
    entry = await submit(client, employee_headers)

    response = await client.put(
        f"/timesheet/{entry['id']}",
        json={"startTime": "08:00", "endTime": "18:00", "breakDuration": 1},
        headers=employee_headers,
    )
    assert response.status_code == 200
    assert response.json()["totalHours"] == pytest.approx(9.0)

    other = await make_user("other@example.com")
    foreign = await client.put(
        f"/timesheet/{entry['id']}",
        json={"startTime": "08:00", "endTime": "18:00", "breakDuration": 1},
        headers=auth_headers(other),
    )
    assert foreign.status_code == 404


@pytest.mark.asyncio
async def test_week_view_has_seven_slots(client: AsyncClient, employee_headers) -> None:
    await submit(client, employee_headers, work_date="2024-03-04")
    await submit(client, employee_headers, work_date="2024-03-11")

    response = await client.get("/timesheet/", params={"date": "2024-03-06"}, headers=employee_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["startDate"] == "2024-03-03"
    assert body["endDate"] == "2024-03-09"
    assert [slot["date"] for slot in body["entries"]] == [f"2024-03-{day:02d}" for day in range(3, 10)]
    assert body["entries"][1]["totalHours"] == pytest.approx(8.0)
    assert body["entries"][1]["id"] is not None
    assert body["entries"][0] == {
        "id": None,
        "date": "2024-03-03",
        "startTime": "",
        "endTime": "",
        "breakDuration": 0.0,
        "totalHours": 0.0,
        "status": "pending",
    }


@pytest.mark.asyncio
async def test_summary_requires_both_bounds(client: AsyncClient, employee_headers) -> None:
    response = await client.get(
        "/timesheet/summary", params={"startDate": "2024-03-01"}, headers=employee_headers
    )

    assert response.status_code == 400
    assert response.json() == {"message": "Start date and end date are required"}


@pytest.mark.asyncio
async def test_summary_totals(client: AsyncClient, admin, admin_headers, employee_headers) -> None:
    await submit(client, employee_headers, "2024-03-04", "09:00", "15:00", 0)
    overtime = await submit(client, employee_headers, "2024-03-05", "08:00", "17:00", 0)
    await submit(client, employee_headers, "2024-03-06", "09:00", "12:00", 0)
    await client.put(
        f"/timesheet/{overtime['id']}/status", json={"status": "approved"}, headers=admin_headers
    )

    response = await client.get(
        "/timesheet/summary",
        params={"startDate": "2024-03-01", "endDate": "2024-03-31"},
        headers=employee_headers,
    )

    assert response.json() == {
        "totalHours": 18.0,
        "regularHours": 17.0,
        "overtimeHours": 1.0,
        "daysWorked": 3,
        "approvedCount": 1,
        "pendingCount": 2,
        "rejectedCount": 0,
    }


@pytest.mark.asyncio
async def test_bulk_upsert_inserts_and_updates(client: AsyncClient, admin, admin_headers, employee_headers) -> None:
    pending = await submit(client, employee_headers, "2024-03-04")
    approved = await submit(client, employee_headers, "2024-03-05")
    await client.put(
        f"/timesheet/{approved['id']}/status", json={"status": "approved"}, headers=admin_headers
    )

    response = await client.put(
        "/timesheet/bulk",
        json={
            "entry": [
                {"id": pending["id"], "startTime": "09:00", "endTime": "12:00", "breakDuration": 0},
                {"id": approved["id"], "startTime": "09:00", "endTime": "12:00", "breakDuration": 0},
                {"date": "2024-03-06", "startTime": "09:00", "endTime": "17:00", "breakDuration": 1},
            ]
        },
        headers=employee_headers,
    )

    assert response.status_code == 200, response.text
    assert response.json() == {"modified": 1, "inserted": 1, "total": 2}

    week = await client.get("/timesheet/", params={"date": "2024-03-04"}, headers=employee_headers)
    hours = [slot["totalHours"] for slot in week.json()["entries"]]
    assert hours[1:4] == [pytest.approx(3.0), pytest.approx(8.0), pytest.approx(7.0)]


@pytest.mark.asyncio
async def test_bulk_upsert_is_all_or_nothing(client: AsyncClient, employee_headers) -> None:
    response = await client.put(
        "/timesheet/bulk",
        json={
            "entry": [
                {"date": "2024-03-04", "startTime": "09:00", "endTime": "17:00", "breakDuration": 0},
                {"date": "2024-03-05", "startTime": "17:00", "endTime": "09:00", "breakDuration": 0},
            ]
        },
        headers=employee_headers,
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Entry 2: End time must be after start time"

    week = await client.get("/timesheet/", params={"date": "2024-03-04"}, headers=employee_headers)
    assert all(slot["id"] is None for slot in week.json()["entries"])


@pytest.mark.asyncio
async def test_bulk_duplicate_date_is_rejected(client: AsyncClient, employee_headers) -> None:
    await submit(client, employee_headers, "2024-03-04")

    response = await client.put(
        "/timesheet/bulk",
        json={
            "entry": [
                {"date": "2024-03-05", "startTime": "09:00", "endTime": "17:00", "breakDuration": 0},
                {"date": "2024-03-04", "startTime": "09:00", "endTime": "17:00", "breakDuration": 0},
            ]
        },
        headers=employee_headers,
    )

    assert response.status_code == 400
    assert response.json() == {"message": "Duplicate entries found for the same date"}

    week = await client.get("/timesheet/", params={"date": "2024-03-04"}, headers=employee_headers)
    recorded = [slot["date"] for slot in week.json()["entries"] if slot["id"] is not None]
    assert recorded == ["2024-03-04"]


@pytest.mark.asyncio
async def test_racing_submit_for_recorded_date_is_a_duplicate(
    client: AsyncClient, employee_headers, monkeypatch: pytest.MonkeyPatch
) -> None:
    await submit(client, employee_headers, "2024-03-04")

    async def lookup_misses(self, user_id: int, work_date: date) -> None:
        return None

    # Both requests miss the lookup when they race; the second one then inserts
    monkeypatch.setattr(TimesheetService, "_entry_for_date", lookup_misses)

    response = await client.post(
        "/timesheet/",
        json={"date": "2024-03-04", "startTime": "10:00", "endTime": "12:00", "breakDuration": 0},
        headers=employee_headers,
    )

    assert response.status_code == 400
    assert response.json() == {"message": "Duplicate entries found for the same date"}

    monkeypatch.undo()
    week = await client.get("/timesheet/", params={"date": "2024-03-04"}, headers=employee_headers)
    recorded = [slot for slot in week.json()["entries"] if slot["id"] is not None]
    assert len(recorded) == 1
    assert recorded[0]["startTime"] == "09:00"


@pytest.mark.asyncio
async def test_status_update_stores_comment_and_notifies(
    client: AsyncClient, admin, employee, admin_headers, employee_headers, events
) -> None:
    entry = await submit(client, employee_headers)

    response = await client.put(
        f"/timesheet/{entry['id']}/status",
        json={"status": "rejected", "comment": "Missing project code"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["status"] == "rejected"
    assert response.json()["statusComment"] == "Missing project code"

    [event] = events.on("timesheets", "status_updated")
    assert event["user_id"] == employee.id
    assert event["data"] == {"timesheetId": entry["id"], "status": "rejected", "comment": "Missing project code"}

    inbox = await client.get("/notifications/", headers=employee_headers)
    assert inbox.json()["notifications"][0]["message"] == (
        "Your timesheet entry has been rejected: Missing project code"
    )

    forbidden = await client.put(
        f"/timesheet/{entry['id']}/status", json={"status": "approved"}, headers=employee_headers
    )
    assert forbidden.status_code == 403


@pytest.mark.asyncio
async def test_delete_only_own_pending_entries(
    client: AsyncClient, admin, admin_headers, employee_headers
) -> None:
    pending = await submit(client, employee_headers, "2024-03-04")
    approved = await submit(client, employee_headers, "2024-03-05")
    await client.put(
        f"/timesheet/{approved['id']}/status", json={"status": "approved"}, headers=admin_headers
    )

    assert (await client.delete(f"/timesheet/{approved['id']}", headers=employee_headers)).status_code == 404
    assert (await client.delete(f"/timesheet/{pending['id']}", headers=admin_headers)).status_code == 404
    assert (await client.delete(f"/timesheet/{pending['id']}", headers=employee_headers)).status_code == 200


@pytest.mark.asyncio
async def test_admin_listing_filters_and_paginates(
    client: AsyncClient, admin, employee, make_user, admin_headers, employee_headers
) -> None:
    other = await make_user("other@example.com")
    for day in range(1, 6):
        await submit(client, employee_headers, f"2024-04-{day:02d}")
    await submit(client, auth_headers(other), "2024-04-01")

    response = await client.get(
        "/timesheet/all", params={"userId": employee.id, "limit": 2, "page": 2}, headers=admin_headers
    )

    assert response.status_code == 200
    body = response.json()
    assert body["pagination"] == {
        "currentPage": 2,
        "totalPages": 3,
        "totalEntries": 5,
        "entriesPerPage": 2,
    }
    # Newest dates first
    assert [item["date"] for item in body["timesheets"]] == ["2024-04-03", "2024-04-02"]

    windowed = await client.get(
        "/timesheet/all",
        params={"startDate": "2024-04-01", "endDate": "2024-04-01"},
        headers=admin_headers,
    )
    assert windowed.json()["pagination"]["totalEntries"] == 2

    approved = await client.get("/timesheet/all", params={"status": "approved"}, headers=admin_headers)
    assert approved.json()["timesheets"] == []
