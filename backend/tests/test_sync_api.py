import uuid
from datetime import timedelta

from aquapack.core.security import create_access_token
from aquapack.models.hydro import Site

from tests.conftest import T0, iso, site_data

PUSH = "/api/v1/sync/push"
PULL = "/api/v1/sync/pull"
RESOLVE = "/api/v1/sync/resolve-conflict"
STATUS = "/api/v1/sync/status"


def push_body(*entities, device_id="D1") -> dict:
    return {"deviceId": device_id, "entities": list(entities)}


def site_mutation(local_id: str, data: dict | None) -> dict:
    return {"localId": local_id, "entityType": "site", "data": data}


async def test_push_returns_envelope(client, seed, auth_headers):
    response = await client.post(
        PUSH,
        json=push_body(site_mutation("s-1", site_data(seed.project.id))),
        headers={**auth_headers, "X-Request-ID": "retry-42"},
    )

    assert response.status_code == 200
    assert response.headers["X-Request-ID"] == "retry-42"
    body = response.json()
    assert body["success"] is True
    created = body["data"]["created"]
    assert created[0]["localId"] == "s-1"
    assert created[0]["entityType"] == "site"
    assert created[0]["serverId"] == created[0]["entity"]["id"]
    assert body["data"]["updated"] == []
    assert body["data"]["conflicts"] == []


async def test_push_requires_authentication(client, seed):
    response = await client.post(PUSH, json=push_body())
    assert response.status_code == 401
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "UNAUTHORIZED"
    assert body["error"]["message"] == "Authentication required."
    assert body["error"]["requestId"] == response.headers["X-Request-ID"]


async def test_push_rejects_invalid_token(client, seed):
    response = await client.post(
        PUSH, json=push_body(), headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert response.status_code == 401


async def test_expired_token_is_rejected(client, seed):
    token = create_access_token(seed.user.id, expires_delta=timedelta(seconds=-1))
    response = await client.post(
        PUSH, json=push_body(), headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == 401
    assert "expired" in response.json()["error"]["message"]


async def test_deactivated_user_is_rejected(client, db, seed, auth_headers):
    seed.user.is_active = False
    await db.commit()
    response = await client.post(PUSH, json=push_body(), headers=auth_headers)
    assert response.status_code == 401


async def test_unknown_entity_type_rejects_request(client, seed, auth_headers):
    response = await client.post(
        PUSH,
        json=push_body({"localId": "x-1", "entityType": "aquifer", "data": {}}),
        headers=auth_headers,
    )
    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert any("entityType" in detail["field"] for detail in error["details"])


async def test_push_requires_device_id(client, seed, auth_headers):
    response = await client.post(PUSH, json={"entities": []}, headers=auth_headers)
    assert response.status_code == 422


async def test_oversized_batch_is_rejected(client, seed, auth_headers):
    entities = [site_mutation(f"s-{i}", {}) for i in range(101)]
    response = await client.post(PUSH, json=push_body(*entities), headers=auth_headers)
    assert response.status_code == 422


async def test_malformed_entity_is_reported_not_raised(client, seed, auth_headers):
    response = await client.post(
        PUSH,
        json=push_body(site_mutation("s-1", {"name": "No project"})),
        headers=auth_headers,
    )
    assert response.status_code == 200
    conflict = response.json()["data"]["conflicts"][0]
    assert conflict["reason"] == "PROCESSING_ERROR"
    assert conflict["localId"] == "s-1"
    assert "location" in conflict["error"]


async def test_non_object_data_is_reported_per_entity(client, seed, auth_headers):
    response = await client.post(
        PUSH,
        json=push_body(
            site_mutation("s-1", site_data(seed.project.id)),
            site_mutation("s-2", None),
            site_mutation("s-3", site_data(seed.project.id, code="KB-03")),
        ),
        headers=auth_headers,
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert [c["localId"] for c in data["created"]] == ["s-1", "s-3"]
    assert [c["localId"] for c in data["conflicts"]] == ["s-2"]
    assert data["conflicts"][0]["reason"] == "PROCESSING_ERROR"


async def test_pull_groups_by_kind(client, seed, auth_headers, clock):
    await client.post(
        PUSH, json=push_body(site_mutation("s-1", site_data(seed.project.id))), headers=auth_headers,
    )
    clock.advance(minutes=1)

    response = await client.post(PULL, json={"deviceId": "D1"}, headers=auth_headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["timestamp"] == "2024-01-01T10:00:58Z"
    assert set(data) == {"timestamp", "sites", "boreholes", "waterLevels", "pumpTests", "waterQuality"}
    assert [s["localId"] for s in data["sites"]] == ["s-1"]


async def test_offline_edit_conflict_and_resolution(client, db, seed, auth_headers, clock):
    # Device creates the site at 10:00.
    created = await client.post(
        PUSH,
        json=push_body(site_mutation("s-1", site_data(seed.project.id, updated_at=T0))),
        headers=auth_headers,
    )
    server_id = created.json()["data"]["created"][0]["serverId"]

    # The office edits it at 11:00.
    site = await db.get(Site, uuid.UUID(server_id))
    site.name = "Kiboko Spring (office)"
    site.updated_at = T0 + timedelta(hours=1)
    await db.commit()

    # The device, still offline, edits its 10:30 copy and pushes.
    clock.advance(hours=2)
    local_edit = {"name": "Kiboko Spring (tablet)", "updatedAt": iso(T0 + timedelta(minutes=30))}
    pushed = await client.post(
        PUSH, json=push_body(site_mutation("s-1", local_edit)), headers=auth_headers,
    )
    conflict = pushed.json()["data"]["conflicts"][0]
    assert conflict["reason"] == "STALE_WRITE"
    assert conflict["serverId"] == server_id
    assert conflict["serverVersion"]["name"] == "Kiboko Spring (office)"
    assert conflict["clientVersion"] == local_edit

    body = {"entityType": "site", "entityId": server_id, "resolution": "SERVER_WINS"}
    first = await client.post(RESOLVE, json=body, headers=auth_headers)
    second = await client.post(RESOLVE, json=body, headers=auth_headers)
    assert first.status_code == second.status_code == 200
    assert first.json()["data"]["applied"] is False
    assert first.json()["data"]["entity"] == second.json()["data"]["entity"]
    assert first.json()["data"]["entity"]["name"] == "Kiboko Spring (office)"

    local_wins = await client.post(
        RESOLVE,
        json={**body, "resolution": "LOCAL_WINS", "localData": local_edit},
        headers=auth_headers,
    )
    data = local_wins.json()["data"]
    assert data["applied"] is True
    assert data["entity"]["name"] == "Kiboko Spring (tablet)"
    assert data["entity"]["updatedAt"] == "2024-01-01T12:00:00Z"


async def test_invalid_resolution_code(client, seed, auth_headers):
    response = await client.post(
        RESOLVE,
        json={"entityType": "site", "entityId": str(uuid.uuid4()), "resolution": "NEWEST_WINS"},
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_RESOLUTION"


async def test_merged_without_payload(client, seed, auth_headers):
    response = await client.post(
        RESOLVE,
        json={"entityType": "site", "entityId": str(uuid.uuid4()), "resolution": "MERGED"},
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_local_wins_cannot_clear_required_field(client, seed, auth_headers, stored_site):
    response = await client.post(
        RESOLVE,
        json={
            "entityType": "site",
            "entityId": str(stored_site.id),
            "resolution": "LOCAL_WINS",
            "localData": {"name": None},
        },
        headers=auth_headers,
    )
    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert "name cannot be null" in error["message"]


async def test_resolve_unknown_entity(client, seed, auth_headers):
    response = await client.post(
        RESOLVE,
        json={"entityType": "borehole", "entityId": str(uuid.uuid4()), "resolution": "SERVER_WINS"},
        headers=auth_headers,
    )
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "ENTITY_NOT_FOUND"


async def test_status_summarizes_recent_syncs(client, seed, auth_headers, clock):
    empty = await client.get(STATUS, headers=auth_headers)
    assert empty.json()["data"] == {
        "lastSync": None,
        "lastPush": None,
        "lastPull": None,
        "recentSynced": 0,
        "recentFailures": 0,
    }

    await client.post(
        PUSH,
        json=push_body(
            site_mutation("s-1", site_data(seed.project.id)),
            site_mutation("s-2", {"name": "No project"}),
        ),
        headers=auth_headers,
    )
    clock.advance(minutes=1)
    await client.post(PULL, json={}, headers=auth_headers)

    data = (await client.get(STATUS, headers=auth_headers)).json()["data"]
    assert data["lastPush"] == "2024-01-01T10:00:00Z"
    assert data["lastPull"] == "2024-01-01T10:01:00Z"
    assert data["lastSync"] == data["lastPull"]
    assert data["recentSynced"] == 2
    assert data["recentFailures"] == 1


async def test_health_check(client):
    response = await client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["database"]["status"] == "ok"
