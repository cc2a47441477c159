"""Output adapters for normalized trees.

Converts a normalized tree into the shapes downstream consumers ask for: a
JSON document, a pandas DataFrame with one row per node, or an indented text
rendering for humans.
"""

import json
from typing import Any, Dict, List

import pandas as pd

from xml_tree_normalizer.tree.model import Branch, Node

# Column order of the DataFrame produced by to_dataframe
NODE_COLUMNS = ["path", "type", "kind", "depth", "description", "child_count"]

_INDENT = "  "


def to_json(node: Node, indent: int = 2) -> str:
    """Serialize a tree to JSON."""
    return json.dumps(node.to_dict(), indent=indent, ensure_ascii=False)


def _node_records(node: Node) -> List[Dict[str, Any]]:
    records = []
    for path, depth, current in node.walk():
        records.append({
            "path": path,
            "type": current.type,
            "kind": current.kind,
            "depth": depth,
            "description": current.description,
            "child_count": len(current.children) if isinstance(current, Branch) else 0,
            "properties": dict(current.properties),
        })
    return records


def to_dataframe(node: Node) -> pd.DataFrame:
    """Flatten a tree into a DataFrame, one row per node in document order.

    Properties become ``properties.<key>`` columns; nodes lacking a property
    hold NaN in that column.
    """
    records = _node_records(node)
    frame = pd.json_normalize(records, max_level=1)

    property_columns = sorted(c for c in frame.columns if c.startswith("properties."))
    return frame[NODE_COLUMNS + property_columns]


def render_text(node: Node) -> str:
    """Render a tree as indented text, one node per line.

    Properties follow the node type in ``key="value"`` form; a description is
    shown on its own line prefixed with ``#``.
    """
    lines = []
    for _, depth, current in node.walk():
        pad = _INDENT * depth
        props = " ".join(f'{key}="{value}"' for key, value in current.properties.items())
        marker = "+" if isinstance(current, Branch) else "-"
        lines.append(f"{pad}{marker} {current.type}" + (f" {props}" if props else ""))
        if current.description is not None:
            text = " ".join(current.description.split())
            lines.append(f"{pad}{_INDENT}# {text}")
    return "\n".join(lines)
