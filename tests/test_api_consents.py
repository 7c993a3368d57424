import pytest

BASE = "/clinics/clinic-a/consents"


def _payload(**overrides):
    payload = {
        "user_id": "U1",
        "user_name": "Maria",
        "purpose": "marketing",
        "data_categories": ["contact"],
        "status": "granted",
    }
    payload.update(overrides)
    return payload


@pytest.mark.anyio
async def test_grant_and_check_validity(client):
    response = await client.post(BASE, json=_payload(), headers={"User-Agent": "clinic-portal/1.2"})
    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "granted"
    assert body["version"] == "1.0.0"
    assert body["user_agent"] == "clinic-portal/1.2"

    check = await client.get(f"{BASE}/users/U1/purposes/marketing")
    assert check.status_code == 200
    assert check.json() == {"user_id": "U1", "purpose": "marketing", "valid": True}


@pytest.mark.anyio
async def test_withdraw_then_history_and_audit(client):
    await client.post(BASE, json=_payload())
    await client.post(BASE, json=_payload(status="withdrawn"))

    history = await client.get(f"{BASE}/users/U1")
    assert [item["status"] for item in history.json()] == ["withdrawn", "granted"]

    check = await client.get(f"{BASE}/users/U1/purposes/marketing")
    assert check.json()["valid"] is False

    audit = await client.get("/clinics/clinic-a/audit-logs/users/U1")
    assert [entry["action"] for entry in audit.json()] == ["consent_withdraw", "consent_grant"]
    assert all(entry["user_name"] == "Maria" for entry in audit.json())


@pytest.mark.anyio
async def test_invalid_purpose_is_rejected(client):
    response = await client.post(BASE, json=_payload(purpose="telepathy"))

    assert response.status_code == 422


@pytest.mark.anyio
async def test_idempotency_key_header_replays(client):
    headers = {"Idempotency-Key": "consent-abc"}
    first = await client.post(BASE, json=_payload(), headers=headers)
    second = await client.post(BASE, json=_payload(), headers=headers)

    assert first.status_code == 201
    assert second.json()["id"] == first.json()["id"]

    history = await client.get(f"{BASE}/users/U1")
    assert len(history.json()) == 1


@pytest.mark.anyio
async def test_patch_status_corrects_in_place(client):
    created = (await client.post(BASE, json=_payload())).json()

    response = await client.patch(f"{BASE}/{created['id']}/status", json={"status": "withdrawn"})

    assert response.status_code == 200
    assert response.json()["id"] == created["id"]
    assert response.json()["withdrawn_at"] is not None

    audit = await client.get("/clinics/clinic-a/audit-logs/users/U1")
    assert len(audit.json()) == 1


@pytest.mark.anyio
async def test_patch_unknown_consent_is_404(client):
    response = await client.patch(f"{BASE}/999/status", json={"status": "granted"})

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "CONSENT_NOT_FOUND"


@pytest.mark.anyio
async def test_required_consents_report(client):
    report = await client.get(f"{BASE}/users/U9/required")
    assert report.json() == {
        "user_id": "U9",
        "complete": False,
        "missing": ["healthcare_provision", "legal_obligation"],
    }

    for purpose in ("healthcare_provision", "legal_obligation"):
        await client.post(BASE, json=_payload(user_id="U9", purpose=purpose, data_categories=["health"]))

    report = await client.get(f"{BASE}/users/U9/required")
    assert report.json()["complete"] is True
    assert report.json()["missing"] == []


@pytest.mark.anyio
async def test_missing_categories_default_from_purpose(client):
    payload = _payload(purpose="legitimate_interest")
    del payload["data_categories"]

    response = await client.post(BASE, json=payload)

    assert response.status_code == 201
    assert response.json()["data_categories"] == ["identification", "behavioral"]


@pytest.mark.anyio
async def test_withdraw_with_reused_key_is_conflict(client):
    headers = {"Idempotency-Key": "consent-k1"}
    await client.post(BASE, json=_payload(), headers=headers)

    response = await client.post(BASE, json=_payload(status="withdrawn"), headers=headers)

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "IDEMPOTENCY_KEY_REUSED"
    check = await client.get(f"{BASE}/users/U1/purposes/marketing")
    assert check.json()["valid"] is True
