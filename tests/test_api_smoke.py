"""API smoke tests."""

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from fastapi.testclient import TestClient
from playbook_share.api.main import app, load_playbooks
from playbook_share.core.registry import registry

from conftest import make_playbook


@pytest.fixture
def client():
    """Test client over a collection holding the sample playbook."""
    registry.clear_all()
    registry.playbooks.create("pb-1", make_playbook())
    yield TestClient(app)
    registry.clear_all()


def test_health_check(client):
    """Test health endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["ok"] is True


def test_list_and_get_playbooks(client):
    response = client.get("/playbooks")
    assert response.status_code == 200
    assert [pb["id"] for pb in response.json()] == ["pb-1"]

    response = client.get("/playbooks/pb-1")
    assert response.status_code == 200
    doc = response.json()
    assert doc["gridConfig"]["columnNames"] == ["Open", "Red", "Goal", "2pt", "Trick"]
    assert doc["plays"][0]["gridPosition"] == {"row": 1, "column": 2}


def test_get_missing_playbook(client):
    response = client.get("/playbooks/nope")
    assert response.status_code == 404


def test_create_playbook(client):
    response = client.post("/playbooks", json={"name": "Fall"})
    assert response.status_code == 201
    doc = response.json()
    assert doc["name"] == "Fall"
    assert doc["plays"] == []
    assert registry.playbooks.count() == 2

    response = client.post("/playbooks", json={})
    assert response.status_code == 400


def test_create_duplicate_playbook(client):
    response = client.post("/playbooks", json={"playbook": make_playbook().to_document()})
    assert response.status_code == 400


def test_delete_playbook(client):
    assert client.delete("/playbooks/pb-1").status_code == 204
    assert client.delete("/playbooks/pb-1").status_code == 404
    assert registry.playbooks.count() == 0


def test_grid_assignment(client):
    response = client.put("/playbooks/pb-1/grid/1/2", json={"play_id": "play-quick"})
    assert response.status_code == 409

    response = client.put("/playbooks/pb-1/grid/1/2", json={"play_id": "play-quick", "evict": True})
    assert response.status_code == 200
    plays = {p["id"]: p for p in response.json()["plays"]}
    assert plays["play-quick"]["gridPosition"] == {"row": 1, "column": 2}
    assert plays["play-flood"]["gridPosition"] is None

    response = client.put("/playbooks/pb-1/grid/9/9", json={"play_id": "play-flood"})
    assert response.status_code == 422

    response = client.put("/playbooks/pb-1/grid/0/0", json={"play_id": "missing"})
    assert response.status_code == 404


def test_clear_grid_cell(client):
    assert client.delete("/playbooks/pb-1/grid/1/2").json() == {"cleared": "play-flood"}
    assert client.delete("/playbooks/pb-1/grid/1/2").json() == {"cleared": None}


def test_share_and_import(client):
    response = client.post("/playbooks/pb-1/share")
    assert response.status_code == 200
    share = response.json()
    assert share["playbook_id"] == "pb-1"
    assert share["length"] == len(share["encoded"])
    assert "?share=" in share["share_url"]

    response = client.post("/import", json={"payload": share["share_url"], "preview": True})
    assert response.status_code == 201
    assert response.json()["name"] == "Spring League"
    assert registry.playbooks.count() == 1

    response = client.post("/import", json={"payload": share["encoded"]})
    assert response.status_code == 201
    imported = response.json()
    assert imported["id"] != "pb-1"
    assert registry.playbooks.count() == 2


def test_import_rejects_garbage(client):
    for body in ({"payload": "garbage!"}, {"payload": "garbage!", "preview": True}):
        response = client.post("/import", json=body)
        assert response.status_code == 400
        assert response.json()["detail"] == "link invalid or corrupted"
    assert registry.playbooks.count() == 1


def test_redirector_download(client):
    response = client.get("/playbooks/pb-1/redirector")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert 'filename="Spring_League.html"' in response.headers["content-disposition"]
    assert "const PLAYBOOK_DATA" in response.text

    response = client.post("/import", json={"payload": response.text})
    assert response.status_code == 201


def test_load_playbooks(tmp_path):
    registry.clear_all()
    (tmp_path / "spring.json").write_text(make_playbook().model_dump_json(by_alias=True))
    (tmp_path / "broken.json").write_text("{not json")

    assert load_playbooks(tmp_path) == 1
    assert registry.playbooks.get("pb-1").name == "Spring League"
    assert load_playbooks(tmp_path / "missing") == 0
    registry.clear_all()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
