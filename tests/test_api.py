"""Tests API / API tests."""

import pytest


async def _project(client, name="Acme Rollout", start="2024-06-01", end="2024-06-30") -> dict:
    resp = await client.post("/api/projects/", json={"client_name": name, "start_date": start, "end_date": end})
    assert resp.status_code == 201
    return resp.json()


async def _user(client, username="alice") -> dict:
    resp = await client.post("/api/users/", json={
        "username": username,
        "email": f"{username}@example.com",
        "full_name": username.title(),
        "password": "long-enough-password",
    })
    assert resp.status_code == 201
    return resp.json()


async def _assign(client, project_id: int, user_id: int) -> dict:
    resp = await client.post("/api/assignments/", json={"project_id": project_id, "user_id": user_id})
    assert resp.status_code == 201
    return resp.json()["assignment"]


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/api/")
    assert resp.status_code == 200
    assert resp.json()["status"] == "running"


@pytest.mark.asyncio
async def test_login(client, admin):
    resp = await client.post("/api/auth/login", json={"username": "admin", "password": "secret-password"})
    assert resp.status_code == 200
    assert resp.json()["token_type"] == "bearer"

    resp = await client.post("/api/auth/login", json={"username": "admin", "password": "wrong"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_refresh(client, admin):
    tokens = (await client.post("/api/auth/login", json={"username": "admin", "password": "secret-password"})).json()
    resp = await client.post("/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert resp.status_code == 200

    resp = await client.post("/api/auth/refresh", json={"refresh_token": tokens["access_token"]})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_me(client):
    resp = await client.get("/api/auth/me")
    assert resp.status_code == 200
    assert resp.json()["permissions"] == ["*:*"]


@pytest.mark.asyncio
async def test_project_dates_validated(client):
    resp = await client.post("/api/projects/", json={
        "client_name": "Backwards", "start_date": "2024-06-30", "end_date": "2024-06-01",
    })
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_project_days(client):
    project = await _project(client, start="2024-06-03", end="2024-06-09")
    resp = await client.get(f"/api/projects/{project['id']}/days")
    assert resp.json()["count"] == 7
    resp = await client.get(f"/api/projects/{project['id']}/days", params={"workdays_only": True})
    assert resp.json()["duration_days"] == 7
    assert resp.json()["days"] == ["2024-06-03", "2024-06-04", "2024-06-05", "2024-06-06", "2024-06-07"]


@pytest.mark.asyncio
async def test_assignable_users(client, admin):
    await _user(client, "alice")
    resp = await client.get("/api/users/assignable")
    assert [u["username"] for u in resp.json()] == ["alice"]


@pytest.mark.asyncio
async def test_create_assignment_and_duplicate(client, notifier):
    project = await _project(client)
    user = await _user(client)
    assignment = await _assign(client, project["id"], user["id"])
    assert assignment["booking_status"] == "draft"
    assert assignment["user"]["display_name"] == "Alice"
    assert notifier.kinds() == ["assignment_created"]

    resp = await client.post("/api/assignments/", json={"project_id": project["id"], "user_id": user["id"]})
    assert resp.status_code == 409
    assert resp.json()["assignment_id"] == assignment["id"]


@pytest.mark.asyncio
async def test_unknown_assignment_is_404(client):
    resp = await client.get("/api/assignments/999")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Assignment not found"


@pytest.mark.asyncio
async def test_days_conflict_and_override(client):
    user = await _user(client)
    first = await _assign(client, (await _project(client))["id"], user["id"])
    second = await _assign(client, (await _project(client, "Globex", "2024-06-03", "2024-06-14"))["id"], user["id"])

    resp = await client.post(f"/api/assignments/{first['id']}/days", json={"days": [
        {"date": "2024-06-10", "start_time": "09:00", "end_time": "17:00"},
        {"date": "2024-06-11", "start_time": "09:00", "end_time": "17:00"},
    ]})
    assert resp.json()["written"] == 2
    assert resp.json()["conflicts"] == []

    resp = await client.post(f"/api/assignments/{second['id']}/days", json={"days": [
        {"date": "2024-06-10", "start_time": "08:00", "end_time": "12:00"},
        {"date": "2024-07-01"},
    ]})
    body = resp.json()
    assert body["written"] == 1
    assert body["rejected"] == 1
    assert body["results"][1]["error"] == "out_of_range"
    assert len(body["conflicts"]) == 1
    conflict_id = body["conflicts"][0]["id"]

    resp = await client.get("/api/conflicts/", params={"user_id": user["id"]})
    assert [c["id"] for c in resp.json()] == [conflict_id]

    resp = await client.post(f"/api/conflicts/{conflict_id}/override", json={"reason": "   "})
    assert resp.status_code == 422
    resp = await client.post(f"/api/conflicts/{conflict_id}/override", json={"reason": "Morning only on Globex"})
    assert resp.status_code == 200
    assert resp.json()["is_resolved"] is True
    assert (await client.get("/api/conflicts/")).json() == []

    resp = await client.get(f"/api/users/{user['id']}/schedule", params={"start": "2024-06-10", "end": "2024-06-10"})
    assert sorted(e["project_name"] for e in resp.json()) == ["Acme Rollout", "Globex"]


@pytest.mark.asyncio
async def test_exclusions_and_move(client):
    user = await _user(client)
    assignment = await _assign(client, (await _project(client))["id"], user["id"])
    base = f"/api/assignments/{assignment['id']}"

    resp = await client.post(f"{base}/exclusions", json={"dates": ["2024-06-12"], "reason": "Site closed"})
    assert resp.json()[0]["success"] is True
    resp = await client.post(f"{base}/exclusions", json={"dates": ["2024-06-12"]})
    assert resp.json()[0]["already_excluded"] is True

    resp = await client.post(f"{base}/days", json={"days": [{"date": "2024-06-10"}, {"date": "2024-06-12"}]})
    results = resp.json()["results"]
    assert results[1]["error"] == "excluded"
    day_id = results[0]["day_id"]

    resp = await client.post(f"/api/assignments/days/{day_id}/move", json={"new_date": "2024-07-15"})
    assert resp.status_code == 422
    resp = await client.post(f"/api/assignments/days/{day_id}/move", json={"new_date": "2024-06-17"})
    assert resp.json()["day"]["work_date"] == "2024-06-17"

    resp = await client.put(f"/api/assignments/days/{day_id}", json={"start_time": "10:00", "end_time": "09:00"})
    assert resp.status_code == 422

    detail = (await client.get(base)).json()
    assert [d["work_date"] for d in detail["days"]] == ["2024-06-17"]
    assert [e["excluded_date"] for e in detail["excluded_dates"]] == ["2024-06-12"]


@pytest.mark.asyncio
async def test_status_cycle_and_history(client):
    user = await _user(client)
    assignment = await _assign(client, (await _project(client))["id"], user["id"])
    base = f"/api/assignments/{assignment['id']}"

    statuses = [(await client.post(f"{base}/cycle")).json()["booking_status"] for _ in range(3)]
    assert statuses == ["pending_confirm", "confirmed", "draft"]

    history = (await client.get(f"{base}/history")).json()
    assert len(history) == 4

    resp = await client.post(f"{base}/complete")
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_confirmation_round_trip(client, notifier):
    project = await _project(client)
    ids = []
    for name in ("alice", "bob"):
        user = await _user(client, name)
        assignment = await _assign(client, project["id"], user["id"])
        resp = await client.post(f"/api/assignments/{assignment['id']}/release")
        assert resp.json()["booking_status"] == "tentative"
        ids.append(assignment["id"])

    resp = await client.post("/api/confirmations/", json={
        "project_id": project["id"], "assignment_ids": ids, "email": "pm@client.example.com", "name": "Pat",
    })
    assert resp.status_code == 201
    token = resp.json()["token"]
    assert "confirmation_request" in notifier.kinds()

    pending = (await client.get("/api/confirmations/pending")).json()
    assert [p["token"] for p in pending] == [token]

    view = (await client.get(f"/api/confirmations/public/{token}")).json()
    assert view["project_name"] == "Acme Rollout"
    assert {a["booking_status"] for a in view["assignments"]} == {"pending_confirm"}

    resp = await client.post(f"/api/confirmations/public/{token}", json={"accept": True})
    assert resp.status_code == 200
    assert resp.json()["status"] == "confirmed"
    assert {a["booking_status"] for a in resp.json()["assignments"]} == {"confirmed"}


@pytest.mark.asyncio
async def test_confirmation_with_draft_assignment_rejected(client):
    project = await _project(client)
    user = await _user(client)
    assignment = await _assign(client, project["id"], user["id"])

    resp = await client.post("/api/confirmations/", json={
        "project_id": project["id"], "assignment_ids": [assignment["id"]], "email": "pm@client.example.com",
    })
    assert resp.status_code == 422
    assert (await client.get("/api/confirmations/pending")).json() == []


@pytest.mark.asyncio
async def test_cascade_endpoint(client):
    project = await _project(client)
    ids = []
    for name in ("alice", "bob", "carol"):
        user = await _user(client, name)
        ids.append((await _assign(client, project["id"], user["id"]))["id"])

    candidates = (await client.get(f"/api/projects/{project['id']}/cascade")).json()
    assert [c["selected"] for c in candidates] == [True, True, True]

    resp = await client.post(f"/api/projects/{project['id']}/cascade", json={
        "schedule_status": "Confirmed", "target_status": "confirmed", "selected_ids": [ids[0], ids[2]],
    })
    assert resp.json()["updated"] == 2

    statuses = (await client.get(f"/api/projects/{project['id']}/assignments")).json()
    assert [a["booking_status"] for a in statuses] == ["confirmed", "draft", "confirmed"]
    assert (await client.get(f"/api/projects/{project['id']}")).json()["schedule_status"] == "Confirmed"


@pytest.mark.asyncio
async def test_cancel_assignment(client):
    user = await _user(client)
    assignment = await _assign(client, (await _project(client))["id"], user["id"])
    await client.post(f"/api/assignments/{assignment['id']}/days", json={"days": [{"date": "2024-06-10"}]})

    resp = await client.delete(f"/api/assignments/{assignment['id']}")
    assert resp.status_code == 204
    assert (await client.get(f"/api/assignments/{assignment['id']}")).status_code == 404
