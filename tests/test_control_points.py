import pytest

from arcio import (
    ControlPoint,
    ControlPointNotFoundError,
    ControlPointStore,
    Edge,
    EdgeNotFoundError,
    Graph,
    InvalidOperationError,
    Point,
)

from conftest import make_node


@pytest.fixture
def graph():
    return Graph(
        nodes=[make_node("a", 0, 0), make_node("b", 300, 0)],
        edges=[Edge(id="e1", source="a", target="b", algorithm="linear")],
    )


def test_insert_assigns_ids_and_keeps_order(graph, id_factory):
    store = ControlPointStore(id_factory=id_factory)

    graph, first = store.insert_point(graph, "e1", 0, Point(x=150, y=0))
    graph, second = store.insert_point(graph, "e1", 0, Point(x=120, y=10))
    graph, third = store.insert_point(graph, "e1", 2, Point(x=200, y=-10))

    points = graph.get_edge("e1").points
    assert [p.id for p in points] == [second.id, first.id, third.id]
    assert len({first.id, second.id, third.id}) == 3
    assert all(p.active for p in points)


def test_insert_keeps_an_explicit_id(graph):
    store = ControlPointStore()

    graph, point = store.insert_point(graph, "e1", 0, ControlPoint(id="mine", x=1, y=2))

    assert point.id == "mine"
    with pytest.raises(InvalidOperationError):
        store.insert_point(graph, "e1", 0, ControlPoint(id="mine", x=5, y=5))


def test_insert_rejects_out_of_range_index(graph):
    store = ControlPointStore()

    with pytest.raises(InvalidOperationError):
        store.insert_point(graph, "e1", 1, Point(x=0, y=0))
    with pytest.raises(InvalidOperationError):
        store.insert_point(graph, "e1", -1, Point(x=0, y=0))


def test_move_keeps_identity_and_order(graph, id_factory):
    store = ControlPointStore(id_factory=id_factory)
    graph, a = store.insert_point(graph, "e1", 0, Point(x=100, y=0))
    graph, b = store.insert_point(graph, "e1", 1, Point(x=200, y=0))

    moved = store.move_point(graph, "e1", a.id, Point(x=110, y=40))

    points = moved.get_edge("e1").points
    assert [p.id for p in points] == [a.id, b.id]
    assert (points[0].x, points[0].y) == (110, 40)
    # the input graph is untouched
    assert graph.get_edge("e1").points[0].x == 100


def test_removed_ids_are_never_reissued(graph):
    ids = iter(["dup", "dup", "fresh"])
    store = ControlPointStore(id_factory=lambda: next(ids))

    graph, first = store.insert_point(graph, "e1", 0, Point(x=1, y=1))
    graph = store.remove_point(graph, "e1", first.id)
    graph, second = store.insert_point(graph, "e1", 0, Point(x=2, y=2))

    assert first.id == "dup"
    assert second.id == "fresh"
    assert [p.id for p in graph.get_edge("e1").points] == ["fresh"]


def test_unknown_edge_or_point_is_a_programmer_error(graph):
    store = ControlPointStore()

    with pytest.raises(EdgeNotFoundError):
        store.insert_point(graph, "nope", 0, Point(x=0, y=0))
    with pytest.raises(ControlPointNotFoundError):
        store.move_point(graph, "e1", "missing", Point(x=0, y=0))
    with pytest.raises(ControlPointNotFoundError):
        store.remove_point(graph, "e1", "missing")


def test_stable_ids_survive_rerenders(id_factory):
    store = ControlPointStore(id_factory=id_factory)
    handles = [ControlPoint(x=15, y=0, active=False), ControlPoint(x=15, y=50, active=False)]

    first = store.stable_ids("e1", handles)
    moved = [h.model_copy(update={"y": h.y + 10}) for h in handles]
    second = store.stable_ids("e1", moved)

    assert [p.id for p in first] == [p.id for p in second]
    assert all(p.id for p in first)


def test_stable_ids_reset_when_count_changes(id_factory):
    store = ControlPointStore(id_factory=id_factory)
    two = [ControlPoint(x=0, y=0, active=False), ControlPoint(x=1, y=1, active=False)]
    three = two + [ControlPoint(x=2, y=2, active=False)]

    first = store.stable_ids("e1", two)
    second = store.stable_ids("e1", three)

    assert not {p.id for p in first} & {p.id for p in second}


def test_adopt_turns_handles_into_active_points(graph, id_factory):
    store = ControlPointStore(id_factory=id_factory)
    handles = store.stable_ids("e1", [
        ControlPoint(x=15, y=0, active=False),
        ControlPoint(x=15, y=50, active=False),
    ])

    graph = store.adopt(graph, "e1", handles)

    points = graph.get_edge("e1").points
    assert [p.id for p in points] == [h.id for h in handles]
    assert all(p.active for p in points)


def test_ensure_ids_fills_in_missing_ids(id_factory):
    store = ControlPointStore(id_factory=id_factory)
    graph = Graph(edges=[Edge(id="e1", source="a", target="b", points=[
        ControlPoint(id="kept", x=0, y=0),
        ControlPoint(x=1, y=1),
    ])])

    graph = store.ensure_ids(graph, "e1")

    assert [p.id for p in graph.get_edge("e1").points] == ["kept", "id-1"]
