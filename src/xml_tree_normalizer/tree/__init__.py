"""Normalized tree model for XML tree normalization.

Key Components:
    Branch: Node with properties, description and ordered children
    Leaf: Node with properties and description only
    NodeType, Property: Reserved type tags and property keys
"""

from .model import (
    DESCRIPTION_TAG,
    Branch,
    Leaf,
    Node,
    NodeKind,
    NodeType,
    Property,
    append_child,
    new_branch,
    new_leaf,
    put_non_empty_property,
    put_property,
    set_description,
)

__all__ = [
    "DESCRIPTION_TAG",
    "Branch",
    "Leaf",
    "Node",
    "NodeKind",
    "NodeType",
    "Property",
    "append_child",
    "new_branch",
    "new_leaf",
    "put_non_empty_property",
    "put_property",
    "set_description",
]
