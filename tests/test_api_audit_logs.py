import pytest

BASE = "/clinics/clinic-a/audit-logs"


@pytest.mark.anyio
async def test_record_and_query_by_resource(client):
    payload = {
        "user_id": "staff-1",
        "user_name": "Dr. Silva",
        "action": "view",
        "resource_type": "medical_record",
        "resource_id": "mr-7",
        "ip_address": "192.168.0.10",
        "details": {"email": "paciente@example.com"},
    }

    created = await client.post(BASE, json=payload, headers={"User-Agent": "ehr-desktop/3.0"})
    assert created.status_code == 201
    body = created.json()
    assert body["user_agent"] == "ehr-desktop/3.0"
    assert body["details"] == {"email": "***@example.com"}

    listed = await client.get(f"{BASE}/resources/medical_record/mr-7")
    assert [entry["id"] for entry in listed.json()] == [body["id"]]


@pytest.mark.anyio
async def test_unknown_action_is_rejected(client):
    payload = {"user_id": "staff-1", "action": "teleport", "resource_type": "patient", "resource_id": "p-1"}

    response = await client.post(BASE, json=payload)

    assert response.status_code == 422


@pytest.mark.anyio
async def test_limit_query_parameter(client):
    payload = {"user_id": "staff-1", "action": "login", "resource_type": "user", "resource_id": "staff-1"}
    for _ in range(3):
        await client.post(BASE, json=payload)

    limited = await client.get(f"{BASE}/users/staff-1", params={"limit": 2})
    assert len(limited.json()) == 2

    invalid = await client.get(f"{BASE}/users/staff-1", params={"limit": 0})
    assert invalid.status_code == 422


@pytest.mark.anyio
async def test_other_clinic_sees_nothing(client):
    payload = {"user_id": "staff-1", "action": "logout", "resource_type": "user", "resource_id": "staff-1"}
    await client.post(BASE, json=payload)

    response = await client.get("/clinics/clinic-b/audit-logs/actions/logout")

    assert response.json() == []
