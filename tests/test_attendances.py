"""Tests for the attendance lifecycle, service composition and share text."""

import pytest
from httpx import AsyncClient

from app.services.sharing import DEFAULT_SHARE_TEMPLATE, render_share_text


async def _setup(client: AsyncClient, register, slug: str) -> dict:
    """Company with two employees and one booked appointment."""
    data = await register(slug)
    headers = data["headers"]
    resp = await client.get("/v1/services", headers=headers)
    services = {s["name"]: s["id"] for s in resp.json()["data"]}

    employees = {}
    for name in ("Ana", "Bruno"):
        resp = await client.post("/v1/employees", json={"name": name}, headers=headers)
        employees[name] = resp.json()["id"]

    resp = await client.post("/v1/appointments", json={
        "client_name": "Carlos",
        "client_phone": "+1 555 0123",
        "service_id": services["Oil change"],
        "employee_id": employees["Ana"],
        "starts_at": "2030-05-10T10:00:00",
        "ends_at": "2030-05-10T11:00:00",
    }, headers=headers)
    assert resp.status_code == 201
    return {
        "headers": headers,
        "services": services,
        "employees": employees,
        "appointment": resp.json(),
        "data": data,
    }


async def _open(client: AsyncClient, ctx: dict, service_names=("Oil change",), pairs=None):
    body = {
        "appointment_id": ctx["appointment"]["id"],
        "service_ids": [ctx["services"][n] for n in service_names],
    }
    if pairs is not None:
        body["service_employees"] = [
            {"service_id": ctx["services"][s], "employee_id": ctx["employees"][e]}
            for s, e in pairs
        ]
    return await client.post("/v1/attendances", json=body, headers=ctx["headers"])


def _by_service(attendance: dict) -> dict:
    return {
        s["service"]["name"]: (s["employee"]["name"] if s["employee"] else None)
        for s in attendance["services"]
    }


@pytest.mark.asyncio
async def test_create_attendance_pairs_employees_per_service(client: AsyncClient, register):
    ctx = await _setup(client, register, "att-create")
    resp = await _open(
        client, ctx, ("Oil change", "Brake service"), pairs=[("Brake service", "Bruno")],
    )
    assert resp.status_code == 201, resp.text
    attendance = resp.json()
    assert attendance["completed_at"] is None
    assert attendance["attended_at"] == "2030-05-10T10:00:00"
    assert attendance["client"]["name"] == "Carlos"
    assert attendance["appointment"]["id"] == ctx["appointment"]["id"]
    # A service without a pairing has no employee
    assert _by_service(attendance) == {"Oil change": None, "Brake service": "Bruno"}


@pytest.mark.asyncio
async def test_duplicate_service_ids_are_collapsed(client: AsyncClient, register):
    ctx = await _setup(client, register, "att-dedupe")
    resp = await _open(client, ctx, ("Oil change", "Oil change"))
    assert resp.status_code == 201
    assert len(resp.json()["services"]) == 1


@pytest.mark.asyncio
async def test_second_attendance_for_appointment_rejected(client: AsyncClient, register):
    ctx = await _setup(client, register, "att-dup")
    assert (await _open(client, ctx)).status_code == 201
    resp = await _open(client, ctx)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "An attendance already exists for this appointment"


@pytest.mark.asyncio
async def test_attendance_requires_owned_services_and_employees(
    client: AsyncClient, register,
):
    ctx = await _setup(client, register, "att-own")
    other = await _setup(client, register, "att-other")

    resp = await client.post("/v1/attendances", json={
        "appointment_id": ctx["appointment"]["id"],
        "service_ids": [other["services"]["Oil change"]],
    }, headers=ctx["headers"])
    assert resp.status_code == 400

    resp = await client.post("/v1/attendances", json={
        "appointment_id": ctx["appointment"]["id"],
        "service_ids": [ctx["services"]["Oil change"]],
        "service_employees": [{
            "service_id": ctx["services"]["Oil change"],
            "employee_id": other["employees"]["Ana"],
        }],
    }, headers=ctx["headers"])
    assert resp.status_code == 400

    # Another company's appointment is invisible
    resp = await client.post("/v1/attendances", json={
        "appointment_id": other["appointment"]["id"],
        "service_ids": [ctx["services"]["Oil change"]],
    }, headers=ctx["headers"])
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_pairing_must_reference_attendance_services(client: AsyncClient, register):
    ctx = await _setup(client, register, "att-pairs")
    resp = await _open(client, ctx, ("Oil change",), pairs=[("Brake service", "Ana")])
    assert resp.status_code == 400

    resp = await _open(
        client, ctx, ("Oil change",), pairs=[("Oil change", "Ana"), ("Oil change", "Bruno")],
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_empty_service_list_is_validation_error(client: AsyncClient, register):
    ctx = await _setup(client, register, "att-empty")
    resp = await client.post("/v1/attendances", json={
        "appointment_id": ctx["appointment"]["id"],
        "service_ids": [],
    }, headers=ctx["headers"])
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_cancelled_appointment_cannot_be_attended(client: AsyncClient, register):
    ctx = await _setup(client, register, "att-cancel")
    await client.patch(
        f"/v1/appointments/{ctx['appointment']['id']}",
        json={"status": "cancelled"},
        headers=ctx["headers"],
    )
    resp = await _open(client, ctx)
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_complete_flips_appointment_status(client: AsyncClient, register):
    ctx = await _setup(client, register, "att-complete")
    headers = ctx["headers"]
    attendance_id = (await _open(client, ctx)).json()["id"]

    resp = await client.post(f"/v1/attendances/{attendance_id}/complete", headers=headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["completed_at"] is not None
    assert body["appointment"]["status"] == "completed"

    resp = await client.get(f"/v1/appointments/{ctx['appointment']['id']}", headers=headers)
    assert resp.json()["status"] == "completed"

    resp = await client.post(f"/v1/attendances/{attendance_id}/complete", headers=headers)
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_completed_attendance_is_frozen(client: AsyncClient, register):
    ctx = await _setup(client, register, "att-frozen")
    headers = ctx["headers"]
    attendance_id = (await _open(client, ctx, ("Oil change", "Brake service"))).json()["id"]
    await client.post(f"/v1/attendances/{attendance_id}/complete", headers=headers)

    resp = await client.patch(
        f"/v1/attendances/{attendance_id}",
        json={"service_ids": [ctx["services"]["Tyre rotation"]]},
        headers=headers,
    )
    assert resp.status_code == 400
    resp = await client.post(
        f"/v1/attendances/{attendance_id}/services",
        json={"service_id": ctx["services"]["Tyre rotation"]},
        headers=headers,
    )
    assert resp.status_code == 400
    resp = await client.delete(
        f"/v1/attendances/{attendance_id}/services/{ctx['services']['Brake service']}",
        headers=headers,
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_remove_last_service_rejected(client: AsyncClient, register):
    ctx = await _setup(client, register, "att-last")
    headers = ctx["headers"]
    attendance_id = (await _open(client, ctx)).json()["id"]

    resp = await client.delete(
        f"/v1/attendances/{attendance_id}/services/{ctx['services']['Oil change']}",
        headers=headers,
    )
    assert resp.status_code == 400

    resp = await client.get(f"/v1/attendances/{attendance_id}/services", headers=headers)
    assert [s["service"]["name"] for s in resp.json()] == ["Oil change"]


@pytest.mark.asyncio
async def test_add_and_remove_services(client: AsyncClient, register):
    ctx = await _setup(client, register, "att-edit")
    headers = ctx["headers"]
    attendance_id = (await _open(client, ctx)).json()["id"]

    resp = await client.post(
        f"/v1/attendances/{attendance_id}/services",
        json={"service_id": ctx["services"]["Brake service"], "employee_id": ctx["employees"]["Bruno"]},
        headers=headers,
    )
    assert resp.status_code == 201
    assert _by_service(resp.json()) == {"Oil change": None, "Brake service": "Bruno"}

    resp = await client.post(
        f"/v1/attendances/{attendance_id}/services",
        json={"service_id": ctx["services"]["Brake service"]},
        headers=headers,
    )
    assert resp.status_code == 400

    resp = await client.delete(
        f"/v1/attendances/{attendance_id}/services/{ctx['services']['Brake service']}",
        headers=headers,
    )
    assert resp.status_code == 200
    assert _by_service(resp.json()) == {"Oil change": None}

    # Re-adding without an employee shows no stale pairing
    resp = await client.post(
        f"/v1/attendances/{attendance_id}/services",
        json={"service_id": ctx["services"]["Brake service"]},
        headers=headers,
    )
    assert _by_service(resp.json()) == {"Oil change": None, "Brake service": None}

    resp = await client.delete(
        f"/v1/attendances/{attendance_id}/services/{ctx['services']['Tyre rotation']}",
        headers=headers,
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_update_replaces_services_and_pairings(client: AsyncClient, register):
    ctx = await _setup(client, register, "att-update")
    headers = ctx["headers"]
    resp = await _open(
        client, ctx, ("Oil change", "Brake service"),
        pairs=[("Oil change", "Ana"), ("Brake service", "Bruno")],
    )
    attendance_id = resp.json()["id"]

    # Dropping a service drops its pairing; kept pairings survive
    resp = await client.patch(
        f"/v1/attendances/{attendance_id}",
        json={"service_ids": [ctx["services"]["Oil change"], ctx["services"]["Tyre rotation"]]},
        headers=headers,
    )
    assert resp.status_code == 200
    assert _by_service(resp.json()) == {"Oil change": "Ana", "Tyre rotation": None}

    # Replacing pairings alone leaves the service set untouched
    resp = await client.patch(
        f"/v1/attendances/{attendance_id}",
        json={"service_employees": [
            {"service_id": ctx["services"]["Tyre rotation"], "employee_id": ctx["employees"]["Bruno"]},
        ]},
        headers=headers,
    )
    assert resp.status_code == 200
    assert _by_service(resp.json()) == {"Oil change": None, "Tyre rotation": "Bruno"}


@pytest.mark.asyncio
async def test_list_and_get_attendances(client: AsyncClient, register):
    ctx = await _setup(client, register, "att-list")
    attendance_id = (await _open(client, ctx)).json()["id"]

    resp = await client.get("/v1/attendances", headers=ctx["headers"])
    assert resp.status_code == 200
    body = resp.json()
    assert body["pagination"]["total"] == 1
    assert body["data"][0]["id"] == attendance_id

    other = await register("att-list-other")
    resp = await client.get(f"/v1/attendances/{attendance_id}", headers=other["headers"])
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_appointment_with_attendance_cannot_be_deleted(client: AsyncClient, register):
    ctx = await _setup(client, register, "att-delete")
    await _open(client, ctx)
    resp = await client.delete(
        f"/v1/appointments/{ctx['appointment']['id']}", headers=ctx["headers"],
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Appointment already has an attendance"


# ── Share text ───────────────────────────────────────────────

@pytest.mark.asyncio
async def test_share_requires_completed_attendance(client: AsyncClient, register):
    ctx = await _setup(client, register, "share-open")
    attendance_id = (await _open(client, ctx)).json()["id"]
    resp = await client.post(f"/v1/attendances/{attendance_id}/share", headers=ctx["headers"])
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_share_from_other_company_is_forbidden(client: AsyncClient, register):
    ctx = await _setup(client, register, "share-owner")
    attendance_id = (await _open(client, ctx)).json()["id"]
    await client.post(f"/v1/attendances/{attendance_id}/complete", headers=ctx["headers"])

    other = await register("share-other")
    resp = await client.post(f"/v1/attendances/{attendance_id}/share", headers=other["headers"])
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_share_renders_default_template(client: AsyncClient, register):
    ctx = await _setup(client, register, "share-default")
    headers = ctx["headers"]
    attendance_id = (await _open(client, ctx, ("Oil change", "Brake service"))).json()["id"]
    await client.post(f"/v1/attendances/{attendance_id}/complete", headers=headers)

    resp = await client.post(f"/v1/attendances/{attendance_id}/share", headers=headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["attendance_id"] == attendance_id
    text = body["share_text"]
    assert "Service provided by Share-Default Garage" in text
    assert "10/05/2030" in text
    services_line = next(line for line in text.splitlines() if "Services:" in line)
    assert sorted(services_line.split(": ", 1)[1].split(", ")) == ["Brake service", "Oil change"]
    assert "Carlos" in text
    assert "+1 555 0123" in text


@pytest.mark.asyncio
async def test_share_uses_custom_template(client: AsyncClient, register):
    ctx = await _setup(client, register, "share-custom")
    headers = ctx["headers"]

    resp = await client.get("/v1/companies/share-template", headers=headers)
    assert resp.status_code == 200
    assert "{companyName}" in resp.json()["available_variables"]
    assert resp.json()["custom_share_template"] == resp.json()["default_template"]

    resp = await client.put("/v1/companies/share-template", json={
        "custom_share_template": "{clientName} @ {companyName} on {attendanceDate}: {services} {unknown}",
    }, headers=headers)
    assert resp.status_code == 200

    attendance_id = (await _open(client, ctx)).json()["id"]
    await client.post(f"/v1/attendances/{attendance_id}/complete", headers=headers)
    resp = await client.post(f"/v1/attendances/{attendance_id}/share", headers=headers)
    assert resp.json()["share_text"] == (
        "Carlos @ Share-Custom Garage on 10/05/2030: Oil change {unknown}"
    )


def test_render_share_text_replaces_known_tokens_everywhere():
    text = render_share_text("{clientName} / {clientName} / {other}", {"clientName": "Rita"})
    assert text == "Rita / Rita / {other}"


def test_default_share_template_mentions_every_variable():
    text = render_share_text(DEFAULT_SHARE_TEMPLATE, {
        "companyName": "Acme",
        "attendanceDate": "01/02/2030",
        "services": "Wash, Wax",
        "clientName": "Rita",
        "clientPhone": "555",
    })
    assert "{" not in text
    assert "Services: Wash, Wax" in text
