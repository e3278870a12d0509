import pytest

pytestmark = pytest.mark.integration


def _create(client, headers, name="Launch", **extra):
    resp = client.post("/api/projects", json={"name": name, **extra}, headers=headers)
    return resp.get_json()["project"]


class TestProjectApi:
    def test_create_and_list_with_counts(self, client, auth_headers):
        project = _create(client, auth_headers, color="#00FF00")
        assert project["color"] == "#00ff00"
        client.post("/api/tasks", json={"title": "a", "project_id": project["id"], "status": "completed"}, headers=auth_headers)
        client.post("/api/tasks", json={"title": "b", "project_id": project["id"]}, headers=auth_headers)
        body = client.get("/api/projects", headers=auth_headers).get_json()
        assert body["total"] == 1
        assert body["items"][0]["task_count"] == 2
        assert body["items"][0]["completed_tasks"] == 1

    def test_duplicate_name(self, client, auth_headers):
        _create(client, auth_headers)
        resp = client.post("/api/projects", json={"name": "Launch"}, headers=auth_headers)
        assert resp.status_code == 409
        assert resp.get_json()["error"] == "duplicate"

    def test_rename_to_same_name(self, client, auth_headers):
        project = _create(client, auth_headers)
        resp = client.patch(f"/api/projects/{project['id']}", json={"name": "Launch"}, headers=auth_headers)
        assert resp.status_code == 200

    def test_get_with_stats(self, client, auth_headers):
        project = _create(client, auth_headers)
        client.post("/api/tasks", json={"title": "a", "project_id": project["id"]}, headers=auth_headers)
        body = client.get(f"/api/projects/{project['id']}", headers=auth_headers).get_json()
        assert body["project"]["name"] == "Launch"
        assert body["stats"]["todo_tasks"] == 1
        assert body["stats"]["completion_rate"] == 0.0

    def test_archive_cycle(self, client, auth_headers):
        project = _create(client, auth_headers)
        client.post(f"/api/projects/{project['id']}/archive", headers=auth_headers)
        assert client.get("/api/projects", headers=auth_headers).get_json()["total"] == 0
        assert client.get("/api/projects?include_archived=true", headers=auth_headers).get_json()["total"] == 1
        resp = client.post(f"/api/projects/{project['id']}/unarchive", headers=auth_headers)
        assert resp.get_json()["project"]["is_archived"] is False

    def test_delete_outcomes(self, client, auth_headers):
        empty = _create(client, auth_headers, name="Empty")
        busy = _create(client, auth_headers, name="Busy")
        client.post("/api/tasks", json={"title": "a", "project_id": busy["id"]}, headers=auth_headers)
        resp = client.delete(f"/api/projects/{empty['id']}", headers=auth_headers)
        assert resp.get_json() == {"ok": True, "deleted": True, "archived": False}
        resp = client.delete(f"/api/projects/{busy['id']}", headers=auth_headers)
        assert resp.get_json() == {"ok": True, "deleted": False, "archived": True}

    def test_reorder_and_duplicate(self, client, auth_headers):
        a = _create(client, auth_headers, name="A")
        b = _create(client, auth_headers, name="B")
        resp = client.post("/api/projects/reorder", json={"project_ids": [b["id"], a["id"]]}, headers=auth_headers)
        assert [p["name"] for p in resp.get_json()["items"]] == ["B", "A"]
        resp = client.post(f"/api/projects/{a['id']}/duplicate", json={}, headers=auth_headers)
        assert resp.status_code == 201
        assert resp.get_json()["project"]["name"] == "A (Copy)"

    def test_collection_endpoints(self, client, auth_headers):
        _create(client, auth_headers, color="#123456")
        assert client.get("/api/projects/colors", headers=auth_headers).get_json()["colors"] == ["#123456"]
        assert len(client.get("/api/projects/recent", headers=auth_headers).get_json()["items"]) == 1
        assert client.get("/api/projects/stats", headers=auth_headers).get_json()["stats"]["total_projects"] == 1

    def test_foreign_project(self, client, auth_headers, other_headers):
        theirs = _create(client, other_headers)
        assert client.get(f"/api/projects/{theirs['id']}", headers=auth_headers).status_code == 404
        assert client.delete(f"/api/projects/{theirs['id']}", headers=auth_headers).status_code == 404
        resp = client.post("/api/projects/reorder", json={"project_ids": [theirs["id"]]}, headers=auth_headers)
        assert resp.status_code == 404
