import csv
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from openpyxl import Workbook

sys.path.append(str(Path(__file__).resolve().parents[1]))

from leadsplit.application import reset_state


@pytest.fixture(autouse=True)
def reset_store():
    reset_state()
    yield
    reset_state()


@pytest.fixture()
def client(tmp_path, monkeypatch):
    monkeypatch.setenv("LEADSPLIT_UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.delenv("LEADSPLIT_DEFAULT_AGENT_COUNT", raising=False)
    from leadsplit.app import create_app

    app = create_app()
    with TestClient(app) as test_client:
        yield test_client


def _write_contacts(tmp_path: Path, count: int, filename: str = "contacts.csv") -> Path:
    path = tmp_path / filename
    with path.open("w", encoding="utf-8", newline="") as fp:
        writer = csv.writer(fp)
        writer.writerow(["FirstName", "Phone", "Notes"])
        for index in range(count):
            writer.writerow([f"Contact {index}", f"555{index:07d}", f"note {index}" if index % 2 else ""])
    return path


def _register_agents(client: TestClient, count: int) -> list[str]:
    ids = []
    for index in range(count):
        response = client.post(
            "/api/agents",
            json={
                "name": f"Agent {index:02d}",
                "email": f"Agent{index}@Example.com",
                "mobile": {"country_code": "+44", "number": f"7700900{index:03d}"},
            },
        )
        assert response.status_code == 200
        ids.append(response.json()["id"])
    return ids


def _upload(client: TestClient, path: Path, endpoint: str = "upload", **params):
    with path.open("rb") as fp:
        return client.post(
            f"/api/distributions/{endpoint}",
            files={"file": (path.name, fp, "text/csv")},
            params=params,
            headers={"X-User-Id": "user-1"},
        )


def test_upload_distributes_and_reports_summary(client, tmp_path):
    agent_ids = _register_agents(client, 5)
    path = _write_contacts(tmp_path, 13)

    response = _upload(client, path)
    assert response.status_code == 200
    body = response.json()
    assert body["total_items"] == 13
    summary = body["summary"]
    assert summary["total_agents"] == 5
    assert summary["items_per_agent"] == 2
    assert summary["remainder_items"] == 3
    assert summary["tasks_created"] == 13
    assert [entry["item_count"] for entry in summary["agent_distribution"]] == [3, 3, 3, 2, 2]
    assert [entry["agent_id"] for entry in summary["agent_distribution"]] == agent_ids

    distribution_id = body["distribution_id"]
    report = client.get(f"/api/distributions/{distribution_id}/summary").json()
    assert report["distribution"]["status"] == "completed"
    assert sum(row["task_count"] for row in report["agent_summary"]) == report["distribution"]["total_items"]

    listing = client.get("/api/distributions", headers={"X-User-Id": "user-1"}).json()["items"]
    assert [item["id"] for item in listing] == [distribution_id]
    assert client.get("/api/distributions", headers={"X-User-Id": "someone-else"}).json()["items"] == []

    details = client.get(f"/api/distributions/{distribution_id}").json()
    assert [group["agent"]["id"] for group in details["agents"]] == agent_ids
    assert details["agents"][0]["tasks"][0]["first_name"] == "Contact 0"


def test_upload_without_active_agents_marks_distribution_failed(client, tmp_path):
    path = _write_contacts(tmp_path, 4)

    response = _upload(client, path)
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "NO_ACTIVE_AGENTS"

    (distribution,) = client.get("/api/distributions").json()["items"]
    assert distribution["status"] == "failed"
    assert "No active agents" in distribution["processing_error"]


def test_agent_count_is_validated_and_narrowed(client, tmp_path):
    _register_agents(client, 3)
    path = _write_contacts(tmp_path, 10)

    too_many = _upload(client, path, agent_count=11)
    assert too_many.status_code == 400
    assert too_many.json()["error"]["details"]["errors"] == ["Target agent count cannot exceed 10"]

    response = _upload(client, path, agent_count=5)
    assert response.status_code == 200
    assert response.json()["summary"]["total_agents"] == 3
    assert [entry["item_count"] for entry in response.json()["summary"]["agent_distribution"]] == [4, 3, 3]


def test_preview_and_validate_do_not_create_distributions(client, tmp_path):
    _register_agents(client, 2)
    path = _write_contacts(tmp_path, 7)

    preview = _upload(client, path, endpoint="preview")
    assert preview.status_code == 200
    assert preview.json()["preview"]["total_agents"] == 2
    assert [agent["item_count"] for agent in preview.json()["preview"]["agents"]] == [4, 3]

    validation = _upload(client, path, endpoint="validate")
    assert validation.status_code == 200
    data = validation.json()
    assert data["total_rows"] == 7
    assert len(data["preview"]) == 5
    assert data["columns"] == ["FirstName", "Phone", "Notes"]

    assert client.get("/api/distributions").json()["items"] == []


def test_bad_sheet_is_rejected_before_distribution(client, tmp_path):
    _register_agents(client, 1)
    path = tmp_path / "contacts.csv"
    path.write_text("Name,Phone\nAnn,5551234567\n", encoding="utf-8")

    response = _upload(client, path)
    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "MISSING_COLUMNS"
    assert error["details"]["missing_columns"] == ["FirstName", "Notes"]
    assert client.get("/api/distributions").json()["items"] == []


def test_excel_upload(client, tmp_path):
    _register_agents(client, 2)
    workbook = Workbook()
    sheet = workbook.active
    sheet.append(["FirstName", "Phone", "Notes"])
    for index in range(3):
        sheet.append([f"Row {index}", f"+86 138 0013 80{index:02d}", ""])
    path = tmp_path / "contacts.xlsx"
    workbook.save(path)

    with path.open("rb") as fp:
        response = client.post(
            "/api/distributions/upload",
            files={"file": ("contacts.xlsx", fp, "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet")},
        )
    assert response.status_code == 200
    assert response.json()["summary"]["tasks_created"] == 3


def test_agent_directory_and_task_queue(client, tmp_path):
    agent_ids = _register_agents(client, 2)

    duplicate = client.post(
        "/api/agents",
        json={"name": "Copy", "email": "agent0@example.com", "mobile": {"country_code": "+1", "number": "5550000000"}},
    )
    assert duplicate.status_code == 409

    invalid = client.post("/api/agents", json={"name": "X", "email": "nope", "mobile": {}})
    assert invalid.status_code == 400

    response = client.patch(f"/api/agents/{agent_ids[1]}", json={"is_active": False})
    assert response.status_code == 200
    assert response.json()["is_active"] is False
    active = client.get("/api/agents", params={"active": "true"}).json()["items"]
    assert [agent["id"] for agent in active] == [agent_ids[0]]

    path = _write_contacts(tmp_path, 3)
    assert _upload(client, path).status_code == 200

    queue = client.get(f"/api/agents/{agent_ids[0]}/tasks").json()
    assert queue["summary"] == {"total_tasks": 3, "completed_tasks": 0, "pending_tasks": 3}
    task_id = queue["tasks"][0]["id"]

    done = client.patch(f"/api/tasks/{task_id}", json={"status": "completed"})
    assert done.status_code == 200
    assert done.json()["completed_at"] is not None

    completed = client.get(f"/api/agents/{agent_ids[0]}/tasks", params={"status": "completed"}).json()
    assert [task["id"] for task in completed["tasks"]] == [task_id]

    assert client.get("/api/agents/agent-99999").status_code == 404
    assert client.get("/api/distributions/dist-99999/summary").status_code == 404


def test_uploaded_files_are_removed_after_parsing(client, tmp_path):
    _register_agents(client, 2)
    path = _write_contacts(tmp_path, 4)
    upload_dir = tmp_path / "uploads"

    assert _upload(client, path, endpoint="preview").status_code == 200
    assert _upload(client, path, endpoint="validate").status_code == 200
    assert _upload(client, path).status_code == 200

    bad = tmp_path / "bad.csv"
    bad.write_text("Name,Phone\nAnn,5551234567\n", encoding="utf-8")
    assert _upload(client, bad, endpoint="preview").status_code == 400

    assert list(upload_dir.iterdir()) == []


def test_agent_update_delete_and_paging(client):
    agent_ids = _register_agents(client, 3)

    page = client.get("/api/agents", params={"limit": 2, "page": 2}).json()
    assert [agent["id"] for agent in page["items"]] == [agent_ids[2]]
    assert page["pagination"]["total_pages"] == 2
    assert page["pagination"]["has_prev_page"] is True

    assert client.get("/api/agents", params={"sort_order": "sideways"}).status_code == 400

    renamed = client.put(f"/api/agents/{agent_ids[0]}", json={"name": "Team Lead", "mobile": {"country_code": "+1"}})
    assert renamed.status_code == 200
    assert renamed.json()["name"] == "Team Lead"
    assert renamed.json()["mobile"] == {"country_code": "+1", "number": "7700900000"}

    taken = client.put(f"/api/agents/{agent_ids[1]}", json={"email": "agent2@example.com"})
    assert taken.status_code == 409

    deleted = client.delete(f"/api/agents/{agent_ids[1]}")
    assert deleted.status_code == 200
    assert deleted.json()["agent"]["is_active"] is False
    assert client.get(f"/api/agents/{agent_ids[1]}").status_code == 200
    active = client.get("/api/agents", params={"active": "true"}).json()["items"]
    assert [agent["id"] for agent in active] == [agent_ids[0], agent_ids[2]]

    assert client.delete("/api/agents/agent-99999").status_code == 404
