import pytest

pytestmark = pytest.mark.integration


def _create(client, headers, **payload):
    payload.setdefault("content", "Today was fine")
    return client.post("/api/journal", json=payload, headers=headers)


class TestJournalApi:
    def test_create(self, client, auth_headers):
        resp = _create(client, auth_headers, content=" ".join(["word"] * 400), mood_rating=7, tags=["habit"])
        assert resp.status_code == 201
        entry = resp.get_json()["entry"]
        assert entry["word_count"] == 400
        assert entry["reading_time_minutes"] == 2
        assert entry["entry_date"] is not None

    def test_validation(self, client, auth_headers):
        assert _create(client, auth_headers, content="").status_code == 400
        assert _create(client, auth_headers, mood_rating=11).status_code == 400
        assert _create(client, auth_headers, entry_type="diary").status_code == 400

    def test_quick(self, client, auth_headers):
        resp = client.post("/api/journal/quick", json={"content": "Quick note", "energy_level": 3}, headers=auth_headers)
        assert resp.status_code == 201
        assert resp.get_json()["entry"]["energy_level"] == 3

    def test_list_filters(self, client, auth_headers):
        _create(client, auth_headers, content="Run", entry_date="2026-03-01", tags=["health", "habit"])
        _create(client, auth_headers, content="Read", entry_date="2026-03-02", tags=["health"])
        body = client.get("/api/journal?tags=health,habit", headers=auth_headers).get_json()
        assert [e["content"] for e in body["items"]] == ["Run"]
        body = client.get("/api/journal?date_from=2026-03-02&tags=", headers=auth_headers).get_json()
        assert [e["content"] for e in body["items"]] == ["Read"]

    def test_search(self, client, auth_headers):
        _create(client, auth_headers, content="Budget planning")
        items = client.get("/api/journal/search?q=budget", headers=auth_headers).get_json()["items"]
        assert len(items) == 1

    def test_update_and_delete(self, client, auth_headers):
        entry_id = _create(client, auth_headers).get_json()["entry"]["id"]
        resp = client.patch(f"/api/journal/{entry_id}", json={"content": "one two three"}, headers=auth_headers)
        assert resp.get_json()["entry"]["word_count"] == 3
        assert client.delete(f"/api/journal/{entry_id}", headers=auth_headers).status_code == 200
        assert client.get(f"/api/journal/{entry_id}", headers=auth_headers).status_code == 404

    def test_related(self, client, auth_headers):
        task_id = client.post("/api/tasks", json={"title": "t"}, headers=auth_headers).get_json()["task"]["id"]
        entry_id = _create(client, auth_headers, related_task_ids=[task_id, 999]).get_json()["entry"]["id"]
        body = client.get(f"/api/journal/{entry_id}/related", headers=auth_headers).get_json()
        assert [t["id"] for t in body["tasks"]] == [task_id]
        assert body["projects"] == []

    def test_stats(self, client, auth_headers):
        _create(client, auth_headers, mood_rating=6)
        stats = client.get("/api/journal/stats", headers=auth_headers).get_json()["stats"]
        assert stats["total_entries"] == 1
        assert stats["current_streak"] == 1

    def test_foreign_entry(self, client, auth_headers, other_headers):
        entry_id = _create(client, other_headers).get_json()["entry"]["id"]
        assert client.get(f"/api/journal/{entry_id}", headers=auth_headers).status_code == 404
