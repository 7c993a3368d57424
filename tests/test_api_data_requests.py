from datetime import datetime, timedelta

import pytest

from ledger.models.data_export import DataExportRequest
from ledger.utils.time import ensure_utc, utcnow

BASE = "/clinics/clinic-a/data-requests"


def _payload(**overrides):
    payload = {
        "user_id": "U2",
        "type": "portability",
        "data_categories": ["health"],
        "format": "json",
    }
    payload.update(overrides)
    return payload


@pytest.mark.anyio
async def test_request_lifecycle(client):
    created = await client.post(BASE, json=_payload())
    assert created.status_code == 201
    body = created.json()
    assert body["status"] == "pending"
    assert body["effective_status"] == "pending"
    assert body["download_url"] is None

    processing = await client.patch(f"{BASE}/{body['id']}/status", json={"status": "processing"})
    assert processing.json()["status"] == "processing"

    before = utcnow()
    completed = await client.patch(
        f"{BASE}/{body['id']}/status",
        json={"status": "completed", "download_url": "https://x/y"},
    )
    assert completed.status_code == 200
    done = completed.json()
    assert done["download_url"] == "https://x/y"
    completed_at = ensure_utc(datetime.fromisoformat(done["completed_at"]))
    expires_at = ensure_utc(datetime.fromisoformat(done["download_expires_at"]))
    assert before <= completed_at <= utcnow()
    assert expires_at - completed_at == timedelta(hours=24)
    assert done["effective_status"] == "completed"

    fetched = await client.get(f"{BASE}/{body['id']}")
    assert fetched.json()["status"] == "completed"


@pytest.mark.anyio
async def test_regression_from_terminal_status_is_409(client):
    created = (await client.post(BASE, json=_payload())).json()
    await client.patch(f"{BASE}/{created['id']}/status", json={"status": "failed", "error_message": "boom"})

    response = await client.patch(f"{BASE}/{created['id']}/status", json={"status": "pending"})

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "INVALID_STATUS_TRANSITION"


@pytest.mark.anyio
async def test_missing_request_is_404(client):
    response = await client.get(f"{BASE}/4242")

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "EXPORT_REQUEST_NOT_FOUND"


@pytest.mark.anyio
async def test_queue_and_user_listing(client):
    first = (await client.post(BASE, json=_payload(user_id="U1"))).json()
    second = (await client.post(BASE, json=_payload(user_id="U2", type="access"))).json()
    await client.patch(f"{BASE}/{second['id']}/status", json={"status": "processing"})

    pending = await client.get(BASE)
    assert [item["id"] for item in pending.json()] == [first["id"]]

    processing = await client.get(BASE, params={"status": "processing"})
    assert [item["id"] for item in processing.json()] == [second["id"]]

    mine = await client.get(f"{BASE}/users/U2")
    assert [item["type"] for item in mine.json()] == ["access"]


@pytest.mark.anyio
async def test_expire_endpoint_closes_elapsed_downloads(client, db_session):
    created = (await client.post(BASE, json=_payload())).json()
    await client.patch(
        f"{BASE}/{created['id']}/status",
        json={"status": "completed", "download_url": "https://x/y"},
    )
    request = db_session.get(DataExportRequest, created["id"])
    request.download_expires_at = utcnow() - timedelta(minutes=5)
    db_session.commit()

    before = await client.get(f"{BASE}/{created['id']}")
    assert before.json()["status"] == "completed"
    assert before.json()["effective_status"] == "expired"

    response = await client.post(f"{BASE}/expire")
    assert response.status_code == 202
    assert response.json() == {"expired": 1}

    after = await client.get(f"{BASE}/{created['id']}")
    assert after.json()["status"] == "expired"
    assert after.json()["download_url"] is None


@pytest.mark.anyio
async def test_create_audit_entry_is_queryable_by_action(client):
    await client.post(BASE, json=_payload())

    response = await client.get("/clinics/clinic-a/audit-logs/actions/data_request")

    assert response.status_code == 200
    entries = response.json()
    assert len(entries) == 1
    assert entries[0]["resource_type"] == "user"
    assert entries[0]["resource_id"] == "U2"
