"""Normalized tree model.

The output of the normalizer is a tree of two node variants sharing a common
base: ``Branch`` nodes own an ordered list of children, ``Leaf`` nodes do
not. Both carry a type tag (the source element name), a flat map of string
properties and an optional free-text description.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

# Reserved name of the child element routed into a node's description
DESCRIPTION_TAG = "description"


class NodeType:
    """Reserved node type tags."""

    ROOT = "ROOT"


class Property:
    """Reserved property keys.

    Names starting with ``xml`` are reserved by the XML specification, so
    these keys cannot collide with attribute or element names of a
    conforming document.
    """

    XML_CONTENT = "xml_content"


class NodeKind:
    """Variant names used in serialized output."""

    BRANCH = "branch"
    LEAF = "leaf"


@dataclass
class Node:
    """Common base of ``Branch`` and ``Leaf``."""

    type: str
    properties: Dict[str, str] = field(default_factory=dict)
    description: Optional[str] = None

    _owned: bool = field(default=False, init=False, repr=False, compare=False)

    kind = ""

    def __post_init__(self) -> None:
        """Validate node values."""
        if type(self) is Node:
            raise TypeError("Node is abstract; create a Branch or a Leaf")
        if not isinstance(self.type, str) or not self.type:
            raise ValueError("Node type cannot be empty")

    def put_property(self, key: str, value: str) -> None:
        """Store ``value`` under ``key`` verbatim, empty strings included."""
        self.properties[key] = value

    def put_non_empty_property(self, key: str, value: Optional[str]) -> bool:
        """Store the trimmed ``value`` unless it is empty.

        An empty or all-whitespace value leaves the map untouched, including
        any value previously stored under ``key``.

        Returns:
            True if a value was stored
        """
        if value is None:
            return False
        trimmed = value.strip()
        if not trimmed:
            return False
        self.properties[key] = trimmed
        return True

    def set_description(self, text: Optional[str]) -> None:
        """Store ``text`` as the node description, replacing any previous one."""
        self.description = text

    def get_property(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Get property value with optional default."""
        return self.properties.get(key, default)

    def has_property(self, key: str) -> bool:
        """Check if node has a specific property."""
        return key in self.properties

    def is_type(self, node_type: str) -> bool:
        """Check the node type tag."""
        return self.type == node_type

    @property
    def is_owned(self) -> bool:
        """Check whether the node has been attached to a branch."""
        return self._owned

    @property
    def has_children(self) -> bool:
        return False

    @property
    def node_count(self) -> int:
        """Number of nodes in this subtree, including this one."""
        return 1

    def iter_nodes(self) -> Iterator["Node"]:
        """Iterate over this subtree in pre-order."""
        yield self

    def walk(self, path: str = "") -> Iterator[Tuple[str, int, "Node"]]:
        """Iterate over ``(path, depth, node)`` for this subtree in pre-order."""
        stack: List[Tuple[str, int, Node]] = [(f"{path}/{self.type}", 0, self)]
        while stack:
            node_path, depth, node = stack.pop()
            yield node_path, depth, node
            if isinstance(node, Branch):
                positions = _sibling_positions(node.children)
                for child, position in reversed(list(zip(node.children, positions))):
                    suffix = f"[{position}]" if position else ""
                    stack.append((f"{node_path}/{child.type}{suffix}", depth + 1, child))

    def to_dict(self) -> Dict[str, Any]:
        """Convert node to dictionary representation."""
        result: Dict[str, Any] = {
            "type": self.type,
            "kind": self.kind,
            "properties": dict(self.properties),
        }
        if self.description is not None:
            result["description"] = self.description
        return result


@dataclass
class Leaf(Node):
    """Node without children, created for childless elements with attributes."""

    kind = NodeKind.LEAF

    @property
    def content(self) -> Optional[str]:
        """Trimmed text content of the source element, if any."""
        return self.properties.get(Property.XML_CONTENT)


@dataclass
class Branch(Node):
    """Node with an ordered list of exclusively owned children."""

    children: List[Node] = field(default_factory=list)

    kind = NodeKind.BRANCH

    def __post_init__(self) -> None:
        super().__post_init__()
        for child in self.children:
            if not isinstance(child, Node):
                raise TypeError("Child must be a Node instance")
            child._owned = True

    def append_child(self, child: Node) -> Node:
        """Append ``child``, transferring its ownership to this branch.

        Raises:
            TypeError: If ``child`` is not a node
            ValueError: If ``child`` already belongs to a branch or is this
                branch itself
        """
        if not isinstance(child, Node):
            raise TypeError("Child must be a Node instance")
        if child is self:
            raise ValueError("A branch cannot be its own child")
        if child._owned:
            raise ValueError(f"Node '{child.type}' is already attached to a branch")

        child._owned = True
        self.children.append(child)
        return child

    @property
    def has_children(self) -> bool:
        return bool(self.children)

    @property
    def node_count(self) -> int:
        return sum(1 for _ in self.iter_nodes())

    def iter_nodes(self) -> Iterator[Node]:
        stack: List[Node] = [self]
        while stack:
            node = stack.pop()
            yield node
            if isinstance(node, Branch):
                stack.extend(reversed(node.children))

    def find_child(self, node_type: str) -> Optional[Node]:
        """Find first direct child with matching type."""
        for child in self.children:
            if child.type == node_type:
                return child
        return None

    def find_children(self, node_type: str) -> List[Node]:
        """Find all direct children with matching type."""
        return [child for child in self.children if child.type == node_type]

    def find_all(self, node_type: str) -> List[Node]:
        """Find all descendants with matching type, in document order."""
        return [
            node for node in self.iter_nodes()
            if node is not self and node.type == node_type
        ]

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["children"] = [child.to_dict() for child in self.children]
        return result


def _sibling_positions(children: List[Node]) -> List[int]:
    """XPath-style 1-based positions, 0 for types that occur only once."""
    totals: Dict[str, int] = {}
    for child in children:
        totals[child.type] = totals.get(child.type, 0) + 1

    seen: Dict[str, int] = {}
    positions = []
    for child in children:
        if totals[child.type] == 1:
            positions.append(0)
        else:
            seen[child.type] = seen.get(child.type, 0) + 1
            positions.append(seen[child.type])
    return positions


def new_branch(node_type: str) -> Branch:
    """Create an empty branch node."""
    return Branch(node_type)


def new_leaf(node_type: str) -> Leaf:
    """Create an empty leaf node."""
    return Leaf(node_type)


def append_child(parent: Branch, child: Node) -> Node:
    """Append ``child`` to ``parent``; see ``Branch.append_child``."""
    return parent.append_child(child)


def put_property(node: Node, key: str, value: str) -> None:
    """Store ``value`` under ``key`` verbatim; see ``Node.put_property``."""
    node.put_property(key, value)


def put_non_empty_property(node: Node, key: str, value: Optional[str]) -> bool:
    """Store the trimmed value if non-empty; see ``Node.put_non_empty_property``."""
    return node.put_non_empty_property(key, value)


def set_description(node: Node, text: Optional[str]) -> None:
    """Set the node description; see ``Node.set_description``."""
    node.set_description(text)
