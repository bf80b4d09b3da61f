import itertools

import pytest

from arcio import Node, Point, Size


def make_node(node_id, x, y, width=100, height=50, selected=False):
    return Node(
        id=node_id,
        position=Point(x=x, y=y),
        measured=Size(width=width, height=height),
        selected=selected,
    )


@pytest.fixture
def id_factory():
    """Deterministic IDs: id-1, id-2, ..."""
    counter = itertools.count(1)
    return lambda: f"id-{next(counter)}"
