"""
Graph persistence - JSON and XML encodings plus file helpers.

The JSON document is the `{nodes, edges}` shape the canvas saves and
autosaves (`.arcio` files). The XML encoding is the compact flow format
the browser editor offers next to it: nodes carry id, size and position,
edges carry id, source, target and their curve algorithm.

The engine itself never touches the filesystem; these helpers are used
by the backend.
"""

import json
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Optional

from .models import CurveAlgorithm, Edge, Graph, Node, Point, Size

FILE_EXTENSION = ".arcio"

# Node size used by the XML format when a node has no usable size
DEFAULT_NODE_WIDTH = 100
DEFAULT_NODE_HEIGHT = 40


class GraphFormatError(ValueError):
    """A document could not be decoded into a graph."""


# --- JSON ---

def graph_from_dict(data: dict) -> Graph:
    """Create a Graph from a `{nodes, edges}` dict."""
    if not isinstance(data, dict):
        raise GraphFormatError("Graph document must be a JSON object")
    try:
        nodes = [Node(**n) for n in data.get('nodes', [])]
        edges = [Edge(**e) for e in data.get('edges', [])]
    except (TypeError, ValueError) as e:
        raise GraphFormatError(f"Invalid graph document: {e}") from e
    return Graph(nodes=nodes, edges=edges)


def graph_to_json(graph: Graph, indent: Optional[int] = 2) -> str:
    return json.dumps(graph.to_json_dict(), indent=indent)


def graph_from_json(source: str) -> Graph:
    try:
        data = json.loads(source)
    except json.JSONDecodeError as e:
        raise GraphFormatError(f"Invalid JSON: {e}") from e
    return graph_from_dict(data)


# --- XML ---

def _number(value: Optional[str], default: float) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    return default if result != result else result  # NaN


def graph_to_xml(graph: Graph) -> str:
    """Encode a graph as a <flow> XML document."""
    root = ET.Element("flow")
    nodes_el = ET.SubElement(root, "nodes")
    for node in graph.nodes:
        ET.SubElement(nodes_el, "node", {
            "id": node.id,
            "width": repr(node.width),
            "height": repr(node.height),
            "x": repr(node.position.x),
            "y": repr(node.position.y),
        })
    edges_el = ET.SubElement(root, "edges")
    for edge in graph.edges:
        ET.SubElement(edges_el, "edge", {
            "id": edge.id,
            "source": edge.source,
            "target": edge.target,
            "algorithm": edge.algorithm.value,
        })
    ET.indent(root)
    return ET.tostring(root, encoding="unicode")


def graph_from_xml(source: str) -> Graph:
    """
    Decode a <flow> XML document.

    Nodes without an id and edges missing id/source/target are skipped;
    unparsable coordinates become 0 and unparsable sizes the default size.
    """
    try:
        root = ET.fromstring(source)
    except ET.ParseError as e:
        raise GraphFormatError(f"Invalid XML: {e}") from e

    nodes = []
    for el in root.findall("./nodes/node"):
        node_id = el.get("id")
        if not node_id:
            continue
        nodes.append(Node(
            id=node_id,
            position=Point(x=_number(el.get("x"), 0), y=_number(el.get("y"), 0)),
            measured=Size(
                width=_number(el.get("width"), 0) or DEFAULT_NODE_WIDTH,
                height=_number(el.get("height"), 0) or DEFAULT_NODE_HEIGHT,
            ),
        ))

    edges = []
    for el in root.findall("./edges/edge"):
        edge_id, source, target = el.get("id"), el.get("source"), el.get("target")
        if not edge_id or not source or not target:
            continue
        edges.append(Edge(
            id=edge_id,
            source=source,
            target=target,
            algorithm=CurveAlgorithm.coerce(el.get("algorithm")),
        ))

    return Graph(nodes=nodes, edges=edges)


# --- Files ---

def save_graph(graph: Graph, path: str | Path) -> Path:
    """Write a graph as JSON, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        f.write(graph_to_json(graph))
    return path


def load_graph(path: str | Path) -> Graph:
    """Read a JSON graph file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Graph file not found: {path}")
    with open(path, 'r') as f:
        return graph_from_json(f.read())
