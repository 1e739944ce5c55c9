"""Tests for appointment booking, conflict detection and updates."""

import uuid

import pytest
from httpx import AsyncClient


async def _setup(client: AsyncClient, register, slug: str) -> dict:
    """Register a company, create two employees and return ids + headers."""
    data = await register(slug)
    headers = data["headers"]

    resp = await client.get("/v1/services", headers=headers)
    service_ids = [s["id"] for s in resp.json()["data"]]

    employee_ids = []
    for name in ("Ana", "Bruno"):
        resp = await client.post("/v1/employees", json={"name": name}, headers=headers)
        assert resp.status_code == 201
        employee_ids.append(resp.json()["id"])

    return {"headers": headers, "services": service_ids, "employees": employee_ids, "data": data}


def _booking(ctx: dict, start: str, end: str, *, employee: int | None = 0, **overrides) -> dict:
    body = {
        "client_name": "Maria Silva",
        "client_phone": "+1 555 0199",
        "service_id": ctx["services"][0],
        "starts_at": start,
        "ends_at": end,
    }
    if employee is not None:
        body["employee_id"] = ctx["employees"][employee]
    body.update(overrides)
    return body


@pytest.mark.asyncio
async def test_create_appointment(client: AsyncClient, register):
    ctx = await _setup(client, register, "book")
    resp = await client.post(
        "/v1/appointments",
        json=_booking(ctx, "2030-05-10T10:00:00", "2030-05-10T11:00:00"),
        headers=ctx["headers"],
    )
    assert resp.status_code == 201, resp.text
    appt = resp.json()
    assert appt["status"] == "scheduled"
    assert appt["client"]["name"] == "Maria Silva"
    assert appt["client"]["phone"] == "+1 555 0199"
    assert appt["service"]["id"] == ctx["services"][0]
    assert appt["employee"]["name"] == "Ana"
    assert appt["starts_at"] == "2030-05-10T10:00:00"


@pytest.mark.asyncio
async def test_timezone_aware_input_is_stored_as_utc(client: AsyncClient, register):
    ctx = await _setup(client, register, "tz")
    resp = await client.post(
        "/v1/appointments",
        json=_booking(ctx, "2030-05-10T12:00:00+02:00", "2030-05-10T13:00:00+02:00"),
        headers=ctx["headers"],
    )
    assert resp.status_code == 201
    assert resp.json()["starts_at"] == "2030-05-10T10:00:00"
    assert resp.json()["ends_at"] == "2030-05-10T11:00:00"


@pytest.mark.asyncio
@pytest.mark.parametrize("end", ["2030-05-10T10:00:00", "2030-05-10T09:00:00"])
async def test_end_not_after_start_is_rejected(client: AsyncClient, register, end):
    ctx = await _setup(client, register, "order")
    resp = await client.post(
        "/v1/appointments",
        json=_booking(ctx, "2030-05-10T10:00:00", end),
        headers=ctx["headers"],
    )
    assert resp.status_code == 400
    assert "ends_at" in resp.json()["detail"]

    resp = await client.get("/v1/appointments", headers=ctx["headers"])
    assert resp.json()["pagination"]["total"] == 0


@pytest.mark.asyncio
async def test_overlap_same_employee_rejected_other_employee_allowed(
    client: AsyncClient, register,
):
    ctx = await _setup(client, register, "overlap")
    headers = ctx["headers"]
    resp = await client.post(
        "/v1/appointments",
        json=_booking(ctx, "2030-05-10T10:00:00", "2030-05-10T11:00:00"),
        headers=headers,
    )
    assert resp.status_code == 201

    resp = await client.post(
        "/v1/appointments",
        json=_booking(ctx, "2030-05-10T10:30:00", "2030-05-10T11:30:00", client_phone="222"),
        headers=headers,
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Employee Ana already has an appointment overlapping this time"

    resp = await client.post(
        "/v1/appointments",
        json=_booking(
            ctx, "2030-05-10T10:30:00", "2030-05-10T11:30:00", employee=1, client_phone="222",
        ),
        headers=headers,
    )
    assert resp.status_code == 201


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("start", "end"),
    [
        ("2030-05-10T09:30:00", "2030-05-10T10:30:00"),  # ends inside
        ("2030-05-10T10:15:00", "2030-05-10T10:45:00"),  # inside
        ("2030-05-10T09:00:00", "2030-05-10T12:00:00"),  # contains
        ("2030-05-10T10:00:00", "2030-05-10T11:00:00"),  # identical
    ],
)
async def test_every_overlap_shape_conflicts(client: AsyncClient, register, start, end):
    ctx = await _setup(client, register, "shapes")
    await client.post(
        "/v1/appointments",
        json=_booking(ctx, "2030-05-10T10:00:00", "2030-05-10T11:00:00"),
        headers=ctx["headers"],
    )
    resp = await client.post(
        "/v1/appointments", json=_booking(ctx, start, end), headers=ctx["headers"],
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_adjacent_slots_do_not_conflict(client: AsyncClient, register):
    ctx = await _setup(client, register, "adjacent")
    for start, end in [
        ("2030-05-10T10:00:00", "2030-05-10T11:00:00"),
        ("2030-05-10T11:00:00", "2030-05-10T12:00:00"),
        ("2030-05-10T09:00:00", "2030-05-10T10:00:00"),
    ]:
        resp = await client.post(
            "/v1/appointments", json=_booking(ctx, start, end), headers=ctx["headers"],
        )
        assert resp.status_code == 201, resp.text


@pytest.mark.asyncio
async def test_booking_without_employee_checks_whole_company(client: AsyncClient, register):
    ctx = await _setup(client, register, "companywide")
    await client.post(
        "/v1/appointments",
        json=_booking(ctx, "2030-05-10T10:00:00", "2030-05-10T11:00:00", employee=1),
        headers=ctx["headers"],
    )
    resp = await client.post(
        "/v1/appointments",
        json=_booking(ctx, "2030-05-10T10:30:00", "2030-05-10T11:30:00", employee=None),
        headers=ctx["headers"],
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Another appointment already overlaps this time"


@pytest.mark.asyncio
async def test_unassigned_booking_blocks_every_employee(client: AsyncClient, register):
    ctx = await _setup(client, register, "unassigned-first")
    headers = ctx["headers"]
    resp = await client.post(
        "/v1/appointments",
        json=_booking(ctx, "2030-05-10T10:00:00", "2030-05-10T11:00:00", employee=None),
        headers=headers,
    )
    assert resp.status_code == 201

    resp = await client.post(
        "/v1/appointments",
        json=_booking(ctx, "2030-05-10T10:00:00", "2030-05-10T11:00:00", employee=0),
        headers=headers,
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Another appointment already overlaps this time"

    resp = await client.get(
        "/v1/appointments/check-availability",
        params={
            "date_start": "2030-05-10T10:30:00",
            "date_end": "2030-05-10T11:30:00",
            "employee_id": ctx["employees"][1],
        },
        headers=headers,
    )
    assert resp.json()["available"] is False

    # Moving an assigned booking onto the unassigned slot is rejected too
    resp = await client.post(
        "/v1/appointments",
        json=_booking(ctx, "2030-05-10T12:00:00", "2030-05-10T13:00:00", employee=1),
        headers=headers,
    )
    resp = await client.patch(
        f"/v1/appointments/{resp.json()['id']}",
        json={"starts_at": "2030-05-10T10:30:00", "ends_at": "2030-05-10T11:30:00"},
        headers=headers,
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_same_phone_updates_client_name(client: AsyncClient, register):
    ctx = await _setup(client, register, "rename")
    headers = ctx["headers"]
    await client.post(
        "/v1/appointments",
        json=_booking(ctx, "2030-05-10T10:00:00", "2030-05-10T11:00:00"),
        headers=headers,
    )
    resp = await client.post(
        "/v1/appointments",
        json=_booking(
            ctx, "2030-05-11T10:00:00", "2030-05-11T11:00:00", client_name="Maria S. Costa",
        ),
        headers=headers,
    )
    assert resp.status_code == 201
    assert resp.json()["client"]["name"] == "Maria S. Costa"

    resp = await client.get("/v1/clients", headers=headers)
    clients = resp.json()["data"]
    assert len(clients) == 1
    assert clients[0]["name"] == "Maria S. Costa"


@pytest.mark.asyncio
async def test_check_availability(client: AsyncClient, register):
    ctx = await _setup(client, register, "avail")
    headers = ctx["headers"]
    await client.post(
        "/v1/appointments",
        json=_booking(ctx, "2030-05-10T10:00:00", "2030-05-10T11:00:00"),
        headers=headers,
    )

    resp = await client.get(
        "/v1/appointments/check-availability",
        params={
            "date_start": "2030-05-10T10:30:00",
            "date_end": "2030-05-10T11:30:00",
            "employee_id": ctx["employees"][0],
        },
        headers=headers,
    )
    assert resp.status_code == 200
    assert resp.json() == {
        "available": False,
        "message": "Time slot conflicts with another appointment",
    }

    resp = await client.get(
        "/v1/appointments/check-availability",
        params={"date_start": "2030-05-10T11:00:00", "date_end": "2030-05-10T12:00:00"},
        headers=headers,
    )
    assert resp.json() == {"available": True, "message": "Time slot available"}

    resp = await client.get(
        "/v1/appointments/check-availability",
        params={
            "date_start": "2030-05-10T10:30:00",
            "date_end": "2030-05-10T11:30:00",
            "employee_id": ctx["employees"][1],
        },
        headers=headers,
    )
    assert resp.json()["available"] is True


@pytest.mark.asyncio
async def test_confirmation_sent_to_client_with_email(
    client: AsyncClient, register, notifier,
):
    ctx = await _setup(client, register, "confirm")
    headers = ctx["headers"]
    await client.post("/v1/clients", json={
        "name": "Maria Silva", "phone": "+1 555 0199", "email": "maria@example.com",
    }, headers=headers)

    resp = await client.post(
        "/v1/appointments",
        json=_booking(ctx, "2030-05-10T10:00:00", "2030-05-10T11:00:00"),
        headers=headers,
    )
    assert resp.status_code == 201
    assert notifier.kinds()[-1] == "confirmed"
    notice = notifier.sent[-1][1]["notice"]
    assert notice.client_email == "maria@example.com"
    assert notice.employee_name == "Ana"
    assert notice.company_name == "Confirm Garage"


@pytest.mark.asyncio
async def test_confirmation_failure_does_not_fail_booking(
    client: AsyncClient, register, notifier,
):
    ctx = await _setup(client, register, "mailfail")
    await client.post("/v1/clients", json={
        "name": "Maria Silva", "phone": "+1 555 0199", "email": "maria@example.com",
    }, headers=ctx["headers"])
    notifier.fail = True

    resp = await client.post(
        "/v1/appointments",
        json=_booking(ctx, "2030-05-10T10:00:00", "2030-05-10T11:00:00"),
        headers=ctx["headers"],
    )
    assert resp.status_code == 201
    resp = await client.get("/v1/appointments", headers=ctx["headers"])
    assert resp.json()["pagination"]["total"] == 1


@pytest.mark.asyncio
async def test_update_reschedules_and_rechecks_overlap(client: AsyncClient, register):
    ctx = await _setup(client, register, "update")
    headers = ctx["headers"]
    resp = await client.post(
        "/v1/appointments",
        json=_booking(ctx, "2030-05-10T10:00:00", "2030-05-10T11:00:00"),
        headers=headers,
    )
    first = resp.json()["id"]
    resp = await client.post(
        "/v1/appointments",
        json=_booking(ctx, "2030-05-10T12:00:00", "2030-05-10T13:00:00", client_phone="333"),
        headers=headers,
    )
    second = resp.json()["id"]

    # Shifting within its own slot does not collide with itself
    resp = await client.patch(
        f"/v1/appointments/{first}", json={"ends_at": "2030-05-10T11:30:00"}, headers=headers,
    )
    assert resp.status_code == 200
    assert resp.json()["starts_at"] == "2030-05-10T10:00:00"
    assert resp.json()["ends_at"] == "2030-05-10T11:30:00"

    # Moving into the second appointment's slot is rejected
    resp = await client.patch(
        f"/v1/appointments/{second}", json={"starts_at": "2030-05-10T11:00:00"}, headers=headers,
    )
    assert resp.status_code == 400

    # Reassigning to another employee clears the collision
    resp = await client.patch(
        f"/v1/appointments/{second}",
        json={"starts_at": "2030-05-10T11:00:00", "employee_id": ctx["employees"][1]},
        headers=headers,
    )
    assert resp.status_code == 200
    assert resp.json()["employee"]["name"] == "Bruno"


@pytest.mark.asyncio
async def test_update_rejects_inverted_interval(client: AsyncClient, register):
    ctx = await _setup(client, register, "invert")
    resp = await client.post(
        "/v1/appointments",
        json=_booking(ctx, "2030-05-10T10:00:00", "2030-05-10T11:00:00"),
        headers=ctx["headers"],
    )
    resp = await client.patch(
        f"/v1/appointments/{resp.json()['id']}",
        json={"starts_at": "2030-05-10T12:00:00"},
        headers=ctx["headers"],
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_terminal_status_is_immutable(client: AsyncClient, register):
    ctx = await _setup(client, register, "terminal")
    headers = ctx["headers"]
    resp = await client.post(
        "/v1/appointments",
        json=_booking(ctx, "2030-05-10T10:00:00", "2030-05-10T11:00:00"),
        headers=headers,
    )
    appt_id = resp.json()["id"]

    resp = await client.patch(
        f"/v1/appointments/{appt_id}", json={"status": "cancelled"}, headers=headers,
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "cancelled"

    resp = await client.patch(
        f"/v1/appointments/{appt_id}", json={"status": "scheduled"}, headers=headers,
    )
    assert resp.status_code == 400

    # A cancelled appointment no longer blocks its slot
    resp = await client.post(
        "/v1/appointments",
        json=_booking(ctx, "2030-05-10T10:00:00", "2030-05-10T11:00:00", client_phone="444"),
        headers=headers,
    )
    assert resp.status_code == 201


@pytest.mark.asyncio
async def test_explicit_null_start_is_validation_error(client: AsyncClient, register):
    ctx = await _setup(client, register, "nulls")
    resp = await client.post(
        "/v1/appointments",
        json=_booking(ctx, "2030-05-10T10:00:00", "2030-05-10T11:00:00"),
        headers=ctx["headers"],
    )
    resp = await client.patch(
        f"/v1/appointments/{resp.json()['id']}", json={"starts_at": None}, headers=ctx["headers"],
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_delete_appointment(client: AsyncClient, register):
    ctx = await _setup(client, register, "delete")
    resp = await client.post(
        "/v1/appointments",
        json=_booking(ctx, "2030-05-10T10:00:00", "2030-05-10T11:00:00"),
        headers=ctx["headers"],
    )
    appt_id = resp.json()["id"]
    resp = await client.delete(f"/v1/appointments/{appt_id}", headers=ctx["headers"])
    assert resp.status_code == 204
    resp = await client.get(f"/v1/appointments/{appt_id}", headers=ctx["headers"])
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_cross_tenant_access_is_not_found(client: AsyncClient, register):
    owner = await _setup(client, register, "tenant-a")
    intruder = await _setup(client, register, "tenant-b")

    resp = await client.post(
        "/v1/appointments",
        json=_booking(owner, "2030-05-10T10:00:00", "2030-05-10T11:00:00"),
        headers=owner["headers"],
    )
    appt_id = resp.json()["id"]

    resp = await client.get(f"/v1/appointments/{appt_id}", headers=intruder["headers"])
    assert resp.status_code == 404
    resp = await client.patch(
        f"/v1/appointments/{appt_id}", json={"status": "cancelled"}, headers=intruder["headers"],
    )
    assert resp.status_code == 404
    resp = await client.delete(f"/v1/appointments/{appt_id}", headers=intruder["headers"])
    assert resp.status_code == 404

    # Booking with another company's service or employee
    body = _booking(intruder, "2030-05-10T10:00:00", "2030-05-10T11:00:00")
    body["service_id"] = owner["services"][0]
    resp = await client.post("/v1/appointments", json=body, headers=intruder["headers"])
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Service not found or does not belong to your company"

    body = _booking(intruder, "2030-05-10T10:00:00", "2030-05-10T11:00:00")
    body["employee_id"] = owner["employees"][0]
    resp = await client.post("/v1/appointments", json=body, headers=intruder["headers"])
    assert resp.status_code == 404

    # Rescheduling onto another company's service or employee
    resp = await client.post(
        "/v1/appointments",
        json=_booking(intruder, "2030-05-11T10:00:00", "2030-05-11T11:00:00"),
        headers=intruder["headers"],
    )
    own_id = resp.json()["id"]
    resp = await client.patch(
        f"/v1/appointments/{own_id}",
        json={"service_id": owner["services"][0]},
        headers=intruder["headers"],
    )
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Service not found or does not belong to your company"
    resp = await client.patch(
        f"/v1/appointments/{own_id}",
        json={"employee_id": owner["employees"][0]},
        headers=intruder["headers"],
    )
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Employee not found or does not belong to your company"
    resp = await client.get(f"/v1/appointments/{own_id}", headers=intruder["headers"])
    assert resp.json()["service"]["id"] == intruder["services"][0]
    assert resp.json()["employee"]["id"] == intruder["employees"][0]

    # Tenants never see each other's rows, or each other's conflicts
    resp = await client.get("/v1/appointments", headers=intruder["headers"])
    assert resp.json()["pagination"]["total"] == 1
    resp = await client.post(
        "/v1/appointments",
        json=_booking(intruder, "2030-05-10T10:00:00", "2030-05-10T11:00:00"),
        headers=intruder["headers"],
    )
    assert resp.status_code == 201


@pytest.mark.asyncio
async def test_unknown_appointment_is_not_found(client: AsyncClient, register):
    ctx = await _setup(client, register, "missing")
    resp = await client.get(f"/v1/appointments/{uuid.uuid4()}", headers=ctx["headers"])
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_employees_by_service_lists_preferred_first(client: AsyncClient, register):
    ctx = await _setup(client, register, "prefs")
    headers = ctx["headers"]
    service_id = ctx["services"][1]
    # Bruno prefers the service; Ana sorts first by name otherwise
    resp = await client.put(
        f"/v1/employees/{ctx['employees'][1]}/service-preferences",
        json={"service_ids": [service_id]},
        headers=headers,
    )
    assert resp.status_code == 200

    resp = await client.get(f"/v1/appointments/employees/by-service/{service_id}", headers=headers)
    assert [e["name"] for e in resp.json()] == ["Bruno", "Ana"]

    resp = await client.get(
        f"/v1/appointments/employees/by-service/{ctx['services'][0]}", headers=headers,
    )
    assert [e["name"] for e in resp.json()] == ["Ana", "Bruno"]


@pytest.mark.asyncio
async def test_services_by_favorites(client: AsyncClient, register):
    ctx = await _setup(client, register, "favs")
    resp = await client.get("/v1/appointments/services/by-favorites", headers=ctx["headers"])
    assert resp.status_code == 200
    names = [s["name"] for s in resp.json()]
    assert names == ["Oil change", "Brake service", "Tyre rotation"]
