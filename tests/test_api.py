import json

import pytest
from fastapi.testclient import TestClient

from backend.main import app


@pytest.fixture
def client():
    client = TestClient(app)
    client.post("/api/graph/new")
    return client


def add_node(client, node_id, x, y, width=100, height=50):
    response = client.post("/api/nodes", json={
        "id": node_id, "x": x, "y": y, "width": width, "height": height,
    })
    assert response.status_code == 200
    return response.json()["node"]


def connect(client, source, target, **extra):
    response = client.post("/api/edges", json={"source": source, "target": target, **extra})
    assert response.status_code == 200
    return response.json()["edge"]


def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_algorithms_are_listed(client):
    assert client.get("/api/enums/algorithms").json()["algorithms"] == [
        "default", "linear", "catmull-rom", "bezier-catmull-rom",
    ]


def test_new_graph_is_empty(client):
    state = client.get("/api/graph").json()

    assert state["graph"] == {"nodes": [], "edges": []}
    assert state["can_undo"] is False
    assert state["file_path"] is None


def test_create_node_and_undo(client):
    add_node(client, "a", 10, 20)

    assert client.get("/api/graph").json()["can_undo"] is True
    response = client.post("/api/undo").json()
    assert response["success"] is True
    assert response["graph"]["nodes"] == []
    assert client.post("/api/undo").json()["success"] is False
    assert client.post("/api/redo").json()["success"] is True


def test_duplicate_node_is_rejected(client):
    add_node(client, "a", 0, 0)

    response = client.post("/api/nodes", json={"id": "a"})

    assert response.status_code == 400


def test_connect_and_render(client):
    add_node(client, "a", 0, 0)
    add_node(client, "b", 300, 200)
    edge = connect(client, "a", "b", sourceHandle="right", targetHandle="left",
                   algorithm="catmull-rom")

    assert edge["sourceHandle"] == "right"
    render = client.post(f"/api/edges/{edge['id']}/render", json={}).json()

    assert render["path"] == "M 100 25 L 115 25 L 115 225 L 285 225 L 300 225"
    assert render["color"] == "#FF0072"
    assert len(render["control_points"]) == 3


def test_render_with_host_anchors(client):
    add_node(client, "a", 0, 0)
    add_node(client, "b", 300, 200)
    edge = connect(client, "a", "b", algorithm="bezier-catmull-rom")

    render = client.post(f"/api/edges/{edge['id']}/render", json={
        "source_anchor": {"x": 0, "y": 0},
        "target_anchor": {"x": 100, "y": 200},
    }).json()

    assert render["path"] == "M 0 0 C 25 20, 75 180, 100 200"


def test_unknown_algorithm_is_accepted_as_default(client):
    add_node(client, "a", 0, 0)
    add_node(client, "b", 300, 0)

    edge = connect(client, "a", "b", algorithm="spline")

    assert edge["algorithm"] == "default"


def test_unknown_ids_return_404(client):
    add_node(client, "a", 0, 0)

    assert client.post("/api/edges", json={"source": "a", "target": "ghost"}).status_code == 404
    assert client.post("/api/edges/nope/render", json={}).status_code == 404
    assert client.delete("/api/edges/nope").status_code == 404
    assert client.delete("/api/nodes/ghost").status_code == 404


def test_change_algorithm_of_one_and_all_edges(client):
    add_node(client, "a", 0, 0)
    add_node(client, "b", 300, 0)
    edge = connect(client, "a", "b")

    response = client.patch(f"/api/edges/{edge['id']}", json={"algorithm": "linear"})
    assert response.json()["edge"]["algorithm"] == "linear"

    client.post("/api/edges/algorithm", json={"algorithm": "bezier-catmull-rom"})
    edges = client.get("/api/graph").json()["graph"]["edges"]
    assert [e["algorithm"] for e in edges] == ["bezier-catmull-rom"]


def test_drag_snaps_and_drag_end_records_history(client):
    add_node(client, "a", 0, 0)
    add_node(client, "b", 400, 400)

    frame = client.post("/api/drag", json={"changes": [
        {"id": "b", "position": {"x": 3, "y": 400}, "dragging": True},
    ]}).json()

    assert frame["positions"]["b"] == {"x": 0, "y": 400}
    assert frame["guides"]["vertical"] == 0

    assert client.post("/api/drag/end", json={}).json()["success"] is True
    client.post("/api/undo")
    nodes = client.get("/api/graph").json()["graph"]["nodes"]
    assert nodes[1]["position"] == {"x": 400, "y": 400}


def test_control_point_lifecycle(client):
    add_node(client, "a", 0, 0)
    add_node(client, "b", 300, 200)
    edge = connect(client, "a", "b", algorithm="linear")
    url = f"/api/edges/{edge['id']}/points"

    point = client.post(url, json={"index": 0, "x": 200, "y": 25}).json()["point"]
    client.patch(f"{url}/{point['id']}", json={"x": 210, "y": 30, "final": False})
    client.patch(f"{url}/{point['id']}", json={"x": 220, "y": 40})

    render = client.post(f"/api/edges/{edge['id']}/render", json={}).json()
    assert render["path"] == "M 100 25 L 220 40 L 300 225"

    assert client.delete(f"{url}/{point['id']}").json()["success"] is True
    assert client.delete(f"{url}/{point['id']}").status_code == 404
    assert client.post(url, json={"index": 5, "x": 0, "y": 0}).status_code == 400


def test_adopt_rendered_handles(client):
    add_node(client, "a", 0, 0)
    add_node(client, "b", 300, 200)
    edge = connect(client, "a", "b", algorithm="catmull-rom")
    handles = client.post(f"/api/edges/{edge['id']}/render", json={}).json()["control_points"]

    adopted = client.post(f"/api/edges/{edge['id']}/points/adopt",
                          json={"control_points": handles}).json()["edge"]

    assert [p["id"] for p in adopted["points"]] == [h["id"] for h in handles]
    assert all(p["active"] for p in adopted["points"])


def test_copy_and_paste(client):
    add_node(client, "a", 0, 0)
    add_node(client, "b", 300, 200)
    connect(client, "a", "b")
    client.post("/api/selection", json={"node_ids": ["a", "b"]})

    assert client.post("/api/copy").json() == {"success": True, "nodes": 2, "edges": 1}
    pasted = client.post("/api/paste", json={"x": 500, "y": 500}).json()

    assert pasted["success"] is True
    assert len(pasted["graph"]["nodes"]) == 4
    assert pasted["graph"]["nodes"][2]["position"] == {"x": 500, "y": 500}
    assert len(pasted["graph"]["edges"]) == 2


def test_paste_with_empty_clipboard(client):
    response = client.post("/api/paste", json={"x": 0, "y": 0}).json()

    assert response["success"] is False


def test_cut_removes_selection(client):
    add_node(client, "a", 0, 0)
    add_node(client, "b", 300, 200)
    client.post("/api/selection", json={"node_ids": ["a"]})

    response = client.post("/api/cut").json()

    assert response["nodes"] == 1
    assert [n["id"] for n in response["graph"]["nodes"]] == ["b"]


def test_save_and_open(client, tmp_path):
    add_node(client, "a", 0, 0)
    path = tmp_path / "plan.arcio"

    saved = client.post("/api/graph/save", json={"file_path": str(path)}).json()
    assert saved["success"] is True
    assert client.get("/api/graph").json()["is_dirty"] is False

    client.post("/api/graph/new")
    opened = client.post("/api/graph/open", json={"file_path": str(path)}).json()

    assert [n["id"] for n in opened["graph"]["nodes"]] == ["a"]
    assert opened["file_path"] == str(path)


def test_save_without_path_fails(client):
    assert client.post("/api/graph/save", json={}).status_code == 400


def test_open_missing_file(client, tmp_path):
    response = client.post("/api/graph/open", json={"file_path": str(tmp_path / "nope.arcio")})

    assert response.status_code == 404


def test_websocket_ping(client):
    with client.websocket_connect("/ws") as websocket:
        websocket.send_text("ping")
        assert json.loads(websocket.receive_text()) == {"type": "pong"}
