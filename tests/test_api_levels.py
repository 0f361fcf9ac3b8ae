from __future__ import annotations

from levelup.orchestrator.errors import PersistenceFailure


def _generate(client, journey_id="journey-api", **overrides):
    body = {"journey_id": journey_id, "skill": "Cooking", "level": "Beginner", **overrides}
    return client.post("/levels/generate", json=body)


def test_level_lifecycle_over_http(client):
    current = client.get("/levels/current/journey-api")
    assert current.status_code == 200
    assert current.json() == {
        "success": True,
        "status": "no_level_yet",
        "current_level": None,
        "needs_new_level": True,
    }

    generated = _generate(client)
    assert generated.status_code == 200
    level = generated.json()["level"]
    assert level["level_number"] == 1
    assert level["journey_id"] == "journey-api"
    assert level["completed"] is False
    assert level["difficulty_rating"] is None
    assert level["completed_at"] is None
    assert level["task"]

    retried = _generate(client)
    assert retried.json()["level"]["id"] == level["id"]

    pending = client.get("/levels/current/journey-api").json()
    assert pending["status"] == "pending_level"
    assert pending["needs_new_level"] is False
    assert pending["current_level"]["id"] == level["id"]

    completed = client.post(f"/levels/complete/{level['id']}", json={"difficulty_rating": 2})
    assert completed.status_code == 200
    assert completed.json()["level"]["completed"] is True
    assert completed.json()["level"]["difficulty_rating"] == 2

    after = client.get("/levels/current/journey-api").json()
    assert after["status"] == "needs_new_level"
    assert after["needs_new_level"] is True

    second = _generate(client).json()["level"]
    assert second["level_number"] == 2

    history = client.get("/levels/history/journey-api").json()
    assert [lvl["level_number"] for lvl in history["levels"]] == [1, 2]
    assert history["total_levels"] == 2
    assert history["completed_levels"] == 1


def test_generate_requires_journey_fields(client, stub_provider):
    response = _generate(client, skill="")
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "validation_error"
    assert body["error"]["details"] == {"field": "skill"}
    assert stub_provider.prompts == []


def test_generation_failure_envelope(client, stub_provider):
    stub_provider.error = RuntimeError("upstream 500")
    response = _generate(client)
    assert response.status_code == 502
    assert response.json()["error"]["code"] == "generation_failed"
    assert client.get("/levels/history/journey-api").json()["total_levels"] == 0


def test_complete_rejects_out_of_range_rating(client):
    level = _generate(client).json()["level"]
    for rating in (0, 6):
        response = client.post(f"/levels/complete/{level['id']}", json={"difficulty_rating": rating})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "validation_error"
    assert client.get("/levels/current/journey-api").json()["status"] == "pending_level"


def test_complete_twice_returns_not_found(client):
    level = _generate(client).json()["level"]
    first = client.post(f"/levels/complete/{level['id']}", json={"difficulty_rating": 4})
    assert first.status_code == 200

    second = client.post(f"/levels/complete/{level['id']}", json={"difficulty_rating": 1})
    assert second.status_code == 404
    assert second.json()["error"]["code"] == "not_found"


def test_complete_requires_numeric_rating(client):
    response = client.post("/levels/complete/anything", json={"difficulty_rating": "hard"})
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "validation_error"


def test_responses_carry_request_id(client):
    response = client.get("/levels/history/journey-api", headers={"x-request-id": "req-123"})
    assert response.headers["x-request-id"] == "req-123"


def test_store_outage_returns_persistence_envelope(client, level_store, monkeypatch):
    def _unavailable(*args, **kwargs):
        raise PersistenceFailure("Failed to insert level: connection refused")

    monkeypatch.setattr(level_store, "insert_level", _unavailable)

    response = _generate(client)
    assert response.status_code == 503
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "persistence_failed"
