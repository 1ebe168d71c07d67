import random

import pytest
from fastapi.testclient import TestClient

from dagcanvas.backend import GraphEditor
from dagcanvas.backend import main


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(main, "graph_editor", GraphEditor(rng=random.Random(0)))
    return TestClient(main.app)


def _add_node(client, label):
    response = client.post("/api/nodes", json={"label": label})
    assert response.status_code == 200
    return response.json()["node"]["id"]


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok", "revision": 0}


def test_build_valid_graph(client):
    a = _add_node(client, "A")
    b = _add_node(client, "B")

    response = client.post("/api/edges", json={"source": a, "target": b})
    body = response.json()
    assert body["success"] is True
    assert body["edge"]["id"] == f"{a}:right->{b}:left"
    assert body["verdict"] == {"valid": True, "reason": None, "message": "Valid DAG"}

    state = client.get("/api/graph").json()
    assert len(state["nodes"]) == 2
    assert len(state["edges"]) == 1


def test_create_node_returns_verdict(client):
    body = client.post("/api/nodes", json={"label": "A"}).json()
    assert body["node"]["label"] == "A"
    assert body["verdict"]["reason"] == "too_few_nodes"


def test_empty_label_is_bad_request(client):
    assert client.post("/api/nodes", json={"label": ""}).status_code == 400


def test_edge_request_requires_source_and_target(client):
    a = _add_node(client, "A")
    b = _add_node(client, "B")
    assert client.post("/api/edges", json={"from": a, "to": b}).status_code == 422
    assert client.get("/api/graph").json()["edges"] == []


def test_self_connection_is_rejected(client):
    a = _add_node(client, "A")
    body = client.post("/api/edges", json={"source": a, "target": a}).json()
    assert body["success"] is False
    assert body["rejected"] is True
    assert client.get("/api/graph").json()["edges"] == []


def test_unknown_node_is_bad_request(client):
    a = _add_node(client, "A")
    response = client.post("/api/edges", json={"source": a, "target": "ghost"})
    assert response.status_code == 400
    assert "ghost" in response.json()["detail"]


def test_get_node(client):
    a = _add_node(client, "A")
    assert client.get(f"/api/nodes/{a}").json()["node"]["label"] == "A"
    assert client.get("/api/nodes/ghost").status_code == 404


def test_cycle_is_reported(client):
    a = _add_node(client, "A")
    b = _add_node(client, "B")
    client.post("/api/edges", json={"source": a, "target": b})
    client.post("/api/edges", json={"source": b, "target": a})

    verdict = client.get("/api/graph/validate").json()["verdict"]
    assert verdict["valid"] is False
    assert verdict["reason"] == "cycle_detected"
    assert verdict["message"] == "Cycle detected in DAG."


def test_select_and_delete(client):
    a = _add_node(client, "A")
    b = _add_node(client, "B")
    c = _add_node(client, "C")
    client.post("/api/edges", json={"source": a, "target": b})
    client.post("/api/edges", json={"source": b, "target": c})

    body = client.post("/api/selection", json={"node_ids": [c]}).json()
    assert body["node_ids"] == [c]
    assert client.get("/api/selection").json()["node_ids"] == [c]

    body = client.delete("/api/selection").json()
    assert body["deleted_nodes"] == [c]
    assert body["deleted_edges"] == [f"{b}:right->{c}:left"]
    assert body["verdict"]["valid"] is True


def test_select_unknown_is_bad_request(client):
    assert client.post("/api/selection", json={"node_ids": ["ghost"]}).status_code == 400


def test_auto_layout(client):
    a = _add_node(client, "A")
    b = _add_node(client, "B")
    client.post("/api/edges", json={"source": a, "target": b})

    body = client.post("/api/layout/auto", json={"direction": "TB"}).json()
    assert body["success"] is True
    assert body["direction"] == "TB"
    assert body["positions"] == {a: {"x": 0, "y": 0}, b: {"x": 0, "y": 86}}
    assert body["bounds"] == [0, 0, 172, 122]

    nodes = client.get("/api/graph").json()["nodes"]
    assert [(n["x"], n["y"]) for n in nodes] == [(0, 0), (0, 86)]


def test_auto_layout_defaults_to_left_to_right(client):
    _add_node(client, "A")
    body = client.post("/api/layout/auto", json={}).json()
    assert body["direction"] == "LR"


def test_auto_layout_unknown_direction(client):
    _add_node(client, "A")
    response = client.post("/api/layout/auto", json={"direction": "XY"})
    assert response.status_code == 400
    assert "Unknown layout direction" in response.json()["detail"]


def test_new_graph(client):
    _add_node(client, "A")
    body = client.post("/api/graph/new").json()
    assert body["verdict"]["reason"] == "too_few_nodes"
    assert client.get("/api/graph").json()["nodes"] == []


def test_directions_enum(client):
    assert client.get("/api/enums/directions").json() == {"directions": ["LR", "TB"]}
