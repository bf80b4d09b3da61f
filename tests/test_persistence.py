import json

import pytest

from arcio import ControlPoint, CurveAlgorithm, Edge, Graph
from arcio.persistence import (
    GraphFormatError,
    graph_from_dict,
    graph_from_json,
    graph_from_xml,
    graph_to_json,
    graph_to_xml,
    load_graph,
    save_graph,
)

from conftest import make_node


def sample_graph():
    return Graph(
        nodes=[make_node("a", 0, 0), make_node("b", 300, 120.5, width=80, height=40)],
        edges=[Edge(
            id="e1", source="a", target="b",
            source_handle="right", target_handle="left",
            algorithm=CurveAlgorithm.CATMULL_ROM,
            points=[ControlPoint(id="p1", x=150, y=25)],
        )],
    )


def test_json_uses_canvas_field_names():
    data = json.loads(graph_to_json(sample_graph()))

    edge = data["edges"][0]
    assert edge["sourceHandle"] == "right"
    assert edge["targetHandle"] == "left"
    assert edge["algorithm"] == "catmull-rom"


def test_json_document_restores_the_graph():
    graph = sample_graph()

    assert graph_from_json(graph_to_json(graph)) == graph


def test_canvas_edge_shape_is_accepted():
    graph = graph_from_dict({
        "nodes": [{"id": "a", "position": {"x": 0, "y": 0}}],
        "edges": [{
            "id": "e", "source": "a", "target": "a",
            "data": {"algorithm": "linear", "points": [{"id": "p", "x": 1, "y": 2, "active": True}]},
        }],
    })

    edge = graph.edges[0]
    assert edge.algorithm == CurveAlgorithm.LINEAR
    assert edge.points == [ControlPoint(id="p", x=1, y=2)]


@pytest.mark.parametrize("source", ["not json", "[1, 2]", '{"nodes": [{"position": 3}]}'])
def test_bad_json_documents_raise(source):
    with pytest.raises(GraphFormatError):
        graph_from_json(source)


def test_xml_keeps_ids_sizes_positions_and_algorithms():
    graph = graph_from_xml(graph_to_xml(sample_graph()))

    b = graph.get_node("b")
    assert (b.position.x, b.position.y, b.width, b.height) == (300, 120.5, 80, 40)
    edge = graph.get_edge("e1")
    assert (edge.source, edge.target, edge.algorithm) == ("a", "b", CurveAlgorithm.CATMULL_ROM)


def test_xml_reader_tolerates_bad_entries():
    source = """
    <flow>
      <nodes>
        <node id="a" x="oops" y="NaN" width="" />
        <node x="1" y="2" />
      </nodes>
      <edges>
        <edge id="e1" source="a" target="a" algorithm="spline" />
        <edge id="e2" source="a" />
      </edges>
    </flow>
    """

    graph = graph_from_xml(source)

    assert [n.id for n in graph.nodes] == ["a"]
    node = graph.nodes[0]
    assert (node.position.x, node.position.y) == (0, 0)
    assert (node.width, node.height) == (100, 40)
    assert [e.id for e in graph.edges] == ["e1"]
    assert graph.edges[0].algorithm == CurveAlgorithm.DEFAULT


def test_malformed_xml_raises():
    with pytest.raises(GraphFormatError):
        graph_from_xml("<flow><nodes>")


def test_save_and_load_file(tmp_path):
    path = save_graph(sample_graph(), tmp_path / "nested" / "plan.arcio")

    assert path.exists()
    assert load_graph(path) == sample_graph()


def test_load_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_graph(tmp_path / "missing.arcio")
