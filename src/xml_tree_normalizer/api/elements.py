"""Element accessors for the XML libraries the normalizer can read from.

The normalizer never touches a parsed document directly. It asks an
``ElementAccessor`` for four primitives (tag name, child elements, text
content and attributes) so the same algorithm runs over lxml, ElementTree,
minidom and BeautifulSoup trees. Accessors are looked up in a registry by
the type of the object handed to the normalizer.
"""

import threading
import xml.etree.ElementTree as ET
from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence, Tuple, Type
from xml.dom import Node as DomNode

from bs4 import BeautifulSoup, Tag
from bs4.element import CData, NavigableString, PreformattedString
from lxml import etree

from xml_tree_normalizer.shared.errors import InvalidElementError

Attribute = Tuple[str, str]

XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"


class ElementAccessor(ABC):
    """Abstract base class for per-library element access.

    Implementations are stateless and can be shared between threads.
    """

    name: str = ""

    @abstractmethod
    def supports(self, obj: Any) -> bool:
        """Check if ``obj`` is an element or document of this library."""

    @abstractmethod
    def is_document(self, obj: Any) -> bool:
        """Check if ``obj`` is a document wrapper rather than an element."""

    @abstractmethod
    def document_element(self, document: Any) -> Any:
        """Return the root element of ``document``."""

    @abstractmethod
    def tag_name(self, element: Any) -> str:
        """Return the element tag name, verbatim."""

    @abstractmethod
    def child_elements(self, element: Any) -> List[Any]:
        """Return direct element children in document order."""

    @abstractmethod
    def text_content(self, element: Any) -> str:
        """Return the concatenated character data of the element subtree."""

    @abstractmethod
    def attributes(self, element: Any) -> List[Attribute]:
        """Return ``(name, value)`` pairs in document order."""

    def root_element(self, obj: Any) -> Any:
        """Resolve a document or element to the element to normalize."""
        if self.is_document(obj):
            root = self.document_element(obj)
            if root is None:
                raise InvalidElementError(
                    f"{self.name} document has no document element"
                )
            return root
        return obj


class _ETreeStyleAccessor(ElementAccessor):
    """Shared logic for the ElementTree API, which lxml also implements.

    Comments and processing instructions appear as children whose ``tag`` is
    not a string; they are skipped but their tails are still character data
    of the parent.
    """

    def tag_name(self, element: Any) -> str:
        tag = element.tag
        if not isinstance(tag, str):
            raise InvalidElementError(
                f"Expected an element, got {type(element).__name__} "
                "(comment or processing instruction)"
            )
        return tag

    def child_elements(self, element: Any) -> List[Any]:
        return [child for child in element if isinstance(child.tag, str)]

    def text_content(self, element: Any) -> str:
        parts: List[str] = []
        self._collect_text(element, parts)
        return "".join(parts)

    def _collect_text(self, element: Any, parts: List[str]) -> None:
        if element.text:
            parts.append(element.text)
        for child in element:
            if isinstance(child.tag, str):
                self._collect_text(child, parts)
            if child.tail:
                parts.append(child.tail)

    def attributes(self, element: Any) -> List[Attribute]:
        return list(element.attrib.items())


class LxmlAccessor(_ETreeStyleAccessor):
    """Accessor for ``lxml.etree`` elements and element trees.

    lxml stores names as ``{uri}local``. Names are reported as written in
    the source instead: ``prefix:local`` from the in-scope prefixes, plus
    the ``xmlns``/``xmlns:prefix`` declarations each element introduces, so
    the result matches a non-namespace-aware DOM.
    """

    name = "lxml"

    def supports(self, obj: Any) -> bool:
        return isinstance(obj, (etree._Element, etree._ElementTree))

    def is_document(self, obj: Any) -> bool:
        return isinstance(obj, etree._ElementTree)

    def document_element(self, document: Any) -> Any:
        return document.getroot()

    def tag_name(self, element: Any) -> str:
        tag = super().tag_name(element)
        if not tag.startswith("{"):
            return tag
        local = etree.QName(tag).localname
        return f"{element.prefix}:{local}" if element.prefix else local

    def attributes(self, element: Any) -> List[Attribute]:
        result = self._namespace_declarations(element)
        for name, value in element.attrib.items():
            result.append((self._attribute_name(element, name), value))
        return result

    @staticmethod
    def _namespace_declarations(element: Any) -> List[Attribute]:
        parent = element.getparent()
        inherited = parent.nsmap if parent is not None else {}
        declarations = []
        for prefix, uri in element.nsmap.items():
            if inherited.get(prefix) == uri:
                continue
            name = f"xmlns:{prefix}" if prefix else "xmlns"
            declarations.append((name, uri))
        return declarations

    @staticmethod
    def _attribute_name(element: Any, name: str) -> str:
        if not name.startswith("{"):
            return name
        qname = etree.QName(name)
        if qname.namespace == XML_NAMESPACE:
            return f"xml:{qname.localname}"
        # Unprefixed attributes are never namespaced, so a prefix exists
        for prefix, uri in element.nsmap.items():
            if prefix and uri == qname.namespace:
                return f"{prefix}:{qname.localname}"
        return qname.localname


class ElementTreeAccessor(_ETreeStyleAccessor):
    """Accessor for ``xml.etree.ElementTree`` elements and trees.

    The standard-library parser discards namespace prefixes and
    declarations, so namespaced names reach the normalizer in
    ``{uri}local`` form. Use the lxml, minidom or bs4 backends for
    namespaced documents.
    """

    name = "elementtree"

    def supports(self, obj: Any) -> bool:
        return isinstance(obj, (ET.Element, ET.ElementTree))

    def is_document(self, obj: Any) -> bool:
        return isinstance(obj, ET.ElementTree)

    def document_element(self, document: Any) -> Any:
        return document.getroot()


class MinidomAccessor(ElementAccessor):
    """Accessor for W3C DOM trees built by ``xml.dom.minidom``."""

    name = "minidom"

    _TEXT_NODE_TYPES = (DomNode.TEXT_NODE, DomNode.CDATA_SECTION_NODE)

    def supports(self, obj: Any) -> bool:
        return isinstance(obj, DomNode) and obj.nodeType in (
            DomNode.ELEMENT_NODE, DomNode.DOCUMENT_NODE
        )

    def is_document(self, obj: Any) -> bool:
        return obj.nodeType == DomNode.DOCUMENT_NODE

    def document_element(self, document: Any) -> Any:
        return document.documentElement

    def tag_name(self, element: Any) -> str:
        if element.nodeType != DomNode.ELEMENT_NODE:
            raise InvalidElementError(
                f"Expected an element node, got DOM node type {element.nodeType}"
            )
        return element.tagName

    def child_elements(self, element: Any) -> List[Any]:
        return [
            child for child in element.childNodes
            if child.nodeType == DomNode.ELEMENT_NODE
        ]

    def text_content(self, element: Any) -> str:
        parts: List[str] = []
        stack = list(reversed(element.childNodes))
        while stack:
            node = stack.pop()
            if node.nodeType in self._TEXT_NODE_TYPES:
                parts.append(node.data)
            elif node.nodeType == DomNode.ELEMENT_NODE:
                stack.extend(reversed(node.childNodes))
        return "".join(parts)

    def attributes(self, element: Any) -> List[Attribute]:
        attrs = element.attributes
        if attrs is None:
            return []
        return [(attrs.item(i).name, attrs.item(i).value) for i in range(attrs.length)]


class BeautifulSoupAccessor(ElementAccessor):
    """Accessor for ``bs4`` trees, normally built with the ``xml`` feature.

    Multi-valued attributes (only produced by the HTML tree builders) are
    joined back with a single space.
    """

    name = "bs4"

    def supports(self, obj: Any) -> bool:
        return isinstance(obj, Tag)

    def is_document(self, obj: Any) -> bool:
        return isinstance(obj, BeautifulSoup)

    def document_element(self, document: Any) -> Any:
        return next(iter(self.child_elements(document)), None)

    def tag_name(self, element: Any) -> str:
        if not isinstance(element, Tag):
            raise InvalidElementError(
                f"Expected a bs4 Tag, got {type(element).__name__}"
            )
        if element.prefix:
            return f"{element.prefix}:{element.name}"
        return element.name

    def child_elements(self, element: Any) -> List[Any]:
        return [child for child in element.children if isinstance(child, Tag)]

    def text_content(self, element: Any) -> str:
        parts: List[str] = []
        for descendant in element.descendants:
            if not isinstance(descendant, NavigableString):
                continue
            # Comments, doctypes and PIs are PreformattedStrings; CDATA is text
            if isinstance(descendant, PreformattedString) and not isinstance(
                descendant, CData
            ):
                continue
            parts.append(str(descendant))
        return "".join(parts)

    def attributes(self, element: Any) -> List[Attribute]:
        result = []
        for name, value in element.attrs.items():
            if isinstance(value, (list, tuple)):
                value = " ".join(value)
            result.append((name, value))
        return result


class AccessorRegistry:
    """Registry mapping element objects to the accessor that understands them."""

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._accessors: List[ElementAccessor] = []
        self._lock = threading.RLock()

    def register(self, accessor_class: Type[ElementAccessor]) -> None:
        """Register an accessor class; later registrations are tried first."""
        with self._lock:
            self._accessors.insert(0, accessor_class())

    def find(self, obj: Any) -> Optional[ElementAccessor]:
        """Find the accessor supporting ``obj``, if any."""
        with self._lock:
            accessors: Sequence[ElementAccessor] = tuple(self._accessors)
        for accessor in accessors:
            if accessor.supports(obj):
                return accessor
        return None

    def names(self) -> List[str]:
        """List registered accessor names, in lookup order."""
        with self._lock:
            return [accessor.name for accessor in self._accessors]


_accessor_registry = AccessorRegistry()
for _accessor_class in (
    BeautifulSoupAccessor, MinidomAccessor, ElementTreeAccessor, LxmlAccessor
):
    _accessor_registry.register(_accessor_class)


def register_accessor(accessor_class: Type[ElementAccessor]) -> None:
    """Register an element accessor globally."""
    _accessor_registry.register(accessor_class)


def get_accessor(obj: Any) -> ElementAccessor:
    """Get the accessor for an element or document object.

    Raises:
        InvalidElementError: If no registered accessor supports ``obj``
    """
    accessor = _accessor_registry.find(obj)
    if accessor is None:
        raise InvalidElementError(
            f"Unsupported element type: {type(obj).__module__}.{type(obj).__name__}"
        )
    return accessor


def list_accessors() -> List[str]:
    """List the names of all registered accessors."""
    return _accessor_registry.names()
