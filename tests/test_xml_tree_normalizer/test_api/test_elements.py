"""Tests for the per-library element accessors.

Every supported XML library must expose the same four primitives and, fed
the same document, lead the normalizer to the same tree.
"""

import xml.etree.ElementTree as ET
from xml.dom import minidom

import pytest
from bs4 import BeautifulSoup
from lxml import etree

from xml_tree_normalizer.api.elements import (
    BeautifulSoupAccessor,
    ElementAccessor,
    ElementTreeAccessor,
    LxmlAccessor,
    MinidomAccessor,
    get_accessor,
    list_accessors,
    register_accessor,
)
from xml_tree_normalizer.api.normalizer import TagSetPolicy, XMLNormalizer
from xml_tree_normalizer.shared import InvalidElementError

SAMPLE = """<?xml version="1.0" encoding="UTF-8"?>
<package schemaVersion="1.3" vendor="ACME">
  <name>Widgets</name>
  <description>
    Widget support pack
  </description>
  <!-- release history -->
  <releases>
    <release version="1.0.1" date="2024-01-02">Fixes</release>
    <release version="1.0.0">Initial</release>
  </releases>
  <devices>
    <family Dfamily="W1" Dvendor="ACME:1">
      <processor Dcore="Cortex-M4"/>
      <summary>Fast <b>and</b> small</summary>
      <device Dname="W1-A"><memory id="IROM1" start="0x0" size="0x1000"/></device>
    </family>
  </devices>
  <empty></empty>
  <cdata><![CDATA[a < b]]></cdata>
</package>
"""


def _lxml_root():
    return etree.fromstring(SAMPLE.encode("utf-8"))


def _et_root():
    return ET.fromstring(SAMPLE.encode("utf-8"))


def _minidom_document():
    return minidom.parseString(SAMPLE.encode("utf-8"))


def _soup():
    return BeautifulSoup(SAMPLE.encode("utf-8"), features="xml")


BUILDERS = {
    "lxml": _lxml_root,
    "elementtree": _et_root,
    "minidom": _minidom_document,
    "bs4": _soup,
}


class TestAccessorLookup:
    """Test registry lookup by object type."""

    @pytest.mark.parametrize("name, builder", sorted(BUILDERS.items()))
    def test_accessor_for_each_library(self, name, builder) -> None:
        """Test each library's objects map to the matching accessor."""
        assert get_accessor(builder()).name == name

    def test_lxml_tree_is_document(self) -> None:
        """Test lxml element trees resolve to their root element."""
        tree = etree.ElementTree(_lxml_root())
        accessor = get_accessor(tree)

        assert accessor.is_document(tree)
        assert accessor.root_element(tree).tag == "package"

    def test_minidom_document_resolves_root(self) -> None:
        """Test DOM documents resolve to the document element."""
        document = _minidom_document()
        accessor = get_accessor(document)

        assert accessor.root_element(document).tagName == "package"

    def test_soup_resolves_first_tag(self) -> None:
        """Test BeautifulSoup objects resolve to the first top-level tag."""
        soup = _soup()
        accessor = get_accessor(soup)

        assert accessor.root_element(soup).name == "package"

    def test_empty_soup_has_no_root(self) -> None:
        """Test an empty soup document is rejected."""
        soup = BeautifulSoup("", features="xml")

        with pytest.raises(InvalidElementError, match="no document element"):
            get_accessor(soup).root_element(soup)

    @pytest.mark.parametrize("value", [None, 42, "<a/>", b"<a/>", {"tag": "a"}])
    def test_unsupported_objects(self, value) -> None:
        """Test unsupported objects raise InvalidElementError."""
        with pytest.raises(InvalidElementError, match="Unsupported element type"):
            get_accessor(value)

    def test_builtin_accessors_listed(self) -> None:
        """Test the built-in accessors are registered."""
        assert {"lxml", "elementtree", "minidom", "bs4"} <= set(list_accessors())

    def test_register_custom_accessor(self) -> None:
        """Test a custom accessor takes precedence for the objects it supports."""

        class FakeElement(dict):
            """Element stand-in backed by a dict."""

        class DictAccessor(ElementAccessor):
            name = "dict"

            def supports(self, obj):
                return isinstance(obj, FakeElement)

            def is_document(self, obj):
                return False

            def document_element(self, document):
                return document

            def tag_name(self, element):
                return element["tag"]

            def child_elements(self, element):
                return element.get("children", [])

            def text_content(self, element):
                return element.get("text", "")

            def attributes(self, element):
                return list(element.get("attrs", {}).items())

        register_accessor(DictAccessor)
        element = FakeElement(tag="a", children=[FakeElement(tag="b", text=" hi ")])

        assert get_accessor(element).name == "dict"
        tree = XMLNormalizer().parse(element)
        assert tree.children[0].properties == {"b": "hi"}


class TestPrimitives:
    """Test the four element primitives on each library."""

    @pytest.fixture(params=sorted(BUILDERS))
    def root(self, request):
        document = BUILDERS[request.param]()
        accessor = get_accessor(document)
        return accessor, accessor.root_element(document)

    def test_tag_name(self, root) -> None:
        """Test tag names are returned verbatim."""
        accessor, element = root

        assert accessor.tag_name(element) == "package"

    def test_child_elements_skip_comments_and_text(self, root) -> None:
        """Test only element children are returned, in document order."""
        accessor, element = root

        names = [accessor.tag_name(child) for child in accessor.child_elements(element)]

        assert names == ["name", "description", "releases", "devices", "empty", "cdata"]

    def test_attributes_in_document_order(self, root) -> None:
        """Test attributes come back as ordered pairs."""
        accessor, element = root

        assert accessor.attributes(element) == [
            ("schemaVersion", "1.3"),
            ("vendor", "ACME"),
        ]

    def test_text_content_concatenates_descendants(self, root) -> None:
        """Test text content includes nested element text."""
        accessor, element = root
        devices = accessor.child_elements(element)[3]
        family = accessor.child_elements(devices)[0]
        summary = accessor.child_elements(family)[1]

        assert accessor.text_content(summary) == "Fast and small"

    def test_text_content_includes_cdata(self, root) -> None:
        """Test CDATA sections count as character data."""
        accessor, element = root
        cdata = accessor.child_elements(element)[5]

        assert accessor.text_content(cdata) == "a < b"

    def test_empty_element_text(self, root) -> None:
        """Test an empty element has empty text content."""
        accessor, element = root
        empty = accessor.child_elements(element)[4]

        assert accessor.text_content(empty) == ""
        assert accessor.attributes(empty) == []


class TestBackendEquivalence:
    """Test every library produces the same normalized tree."""

    def test_same_tree_from_every_library(self) -> None:
        """Test normalization is independent of the source library."""
        normalizer = XMLNormalizer(TagSetPolicy(by_parent={"family": ["summary"]}))

        trees = {name: normalizer.parse(builder()) for name, builder in BUILDERS.items()}

        reference = trees["lxml"]
        for name, tree in trees.items():
            assert tree == reference, name

    def test_namespaced_document(self) -> None:
        """Test prefixed names and declarations match across libraries."""
        xml = (
            '<package xmlns:xs="http://www.w3.org/2001/XMLSchema-instance" '
            'schemaVersion="1.3" xs:noNamespaceSchemaLocation="PACK.xsd">'
            '<name>P</name><xs:item xs:id="1"/></package>'
        ).encode("utf-8")
        normalizer = XMLNormalizer()

        trees = {
            "lxml": normalizer.parse(etree.fromstring(xml)),
            "minidom": normalizer.parse(minidom.parseString(xml)),
            "bs4": normalizer.parse(BeautifulSoup(xml, features="xml")),
        }

        package = trees["lxml"].children[0]
        assert package.properties == {
            "name": "P",
            "xmlns:xs": "http://www.w3.org/2001/XMLSchema-instance",
            "schemaVersion": "1.3",
            "xs:noNamespaceSchemaLocation": "PACK.xsd",
        }
        assert package.children[0].type == "xs:item"
        assert package.children[0].properties == {"xs:id": "1"}
        for name, tree in trees.items():
            assert tree == trees["minidom"], name

    def test_default_namespace(self) -> None:
        """Test default namespace declarations match the DOM."""
        xml = b'<r xmlns="urn:d" xml:lang="en"><c k="v"/></r>'
        normalizer = XMLNormalizer()

        from_lxml = normalizer.parse(etree.fromstring(xml))
        from_minidom = normalizer.parse(minidom.parseString(xml))

        assert from_lxml == from_minidom
        assert from_lxml.children[0].properties == {"xmlns": "urn:d", "xml:lang": "en"}

    def test_reference_tree_shape(self) -> None:
        """Test the sample normalizes to the expected structure."""
        normalizer = XMLNormalizer(TagSetPolicy(by_parent={"family": ["summary"]}))

        tree = normalizer.parse(_lxml_root())

        package = tree.children[0]
        assert package.properties == {
            "name": "Widgets",
            "cdata": "a < b",
            "schemaVersion": "1.3",
            "vendor": "ACME",
        }
        assert package.description.strip() == "Widget support pack"
        assert [child.type for child in package.children] == ["releases", "devices"]

        releases = package.children[0]
        assert [r.get_property("version") for r in releases.children] == ["1.0.1", "1.0.0"]
        assert releases.children[0].get_property("xml_content") == "Fixes"

        family = package.find_all("family")[0]
        assert family.properties == {
            "summary": "Fast and small",
            "Dfamily": "W1",
            "Dvendor": "ACME:1",
        }
        assert [child.type for child in family.children] == ["processor", "device"]
        memory = family.find_all("memory")[0]
        assert memory.properties == {"id": "IROM1", "start": "0x0", "size": "0x1000"}


class TestLibrarySpecifics:
    """Test behaviour specific to individual libraries."""

    def test_lxml_namespaced_tag_kept_verbatim(self) -> None:
        """Test namespace-qualified names keep their source prefix."""
        root = etree.fromstring('<r xmlns:x="urn:x"><x:item x:id="1"/></r>')
        accessor = LxmlAccessor()

        child = accessor.child_elements(root)[0]
        assert accessor.tag_name(child) == "x:item"
        assert accessor.attributes(child) == [("x:id", "1")]
        assert accessor.attributes(root) == [("xmlns:x", "urn:x")]

    def test_lxml_default_namespace_and_xml_prefix(self) -> None:
        """Test default namespaces and xml:* attributes are written as in the source."""
        root = etree.fromstring('<r xmlns="urn:d" xml:lang="en"><c/></r>')
        accessor = LxmlAccessor()

        assert accessor.tag_name(root) == "r"
        assert dict(accessor.attributes(root)) == {"xmlns": "urn:d", "xml:lang": "en"}
        child = accessor.child_elements(root)[0]
        assert accessor.tag_name(child) == "c"
        assert accessor.attributes(child) == []

    def test_lxml_redeclared_prefix(self) -> None:
        """Test a prefix rebound on a child is reported on that child."""
        root = etree.fromstring('<r xmlns:x="urn:1"><c xmlns:x="urn:2" x:a="v"/></r>')
        accessor = LxmlAccessor()

        child = accessor.child_elements(root)[0]
        assert accessor.attributes(child) == [("xmlns:x", "urn:2"), ("x:a", "v")]

    def test_bs4_prefixed_tag(self) -> None:
        """Test BeautifulSoup keeps the namespace prefix in the tag name."""
        soup = BeautifulSoup('<r xmlns:x="urn:x"><x:item a="1"/></r>', features="xml")
        accessor = BeautifulSoupAccessor()

        child = accessor.child_elements(accessor.root_element(soup))[0]
        assert accessor.tag_name(child) == "x:item"

    def test_bs4_multi_valued_attribute_joined(self) -> None:
        """Test list-valued attributes from HTML builders are joined."""
        soup = BeautifulSoup('<div class="a b">x</div>', features="html.parser")
        accessor = BeautifulSoupAccessor()

        div = soup.find("div")
        assert accessor.attributes(div) == [("class", "a b")]

    def test_bs4_comment_excluded_from_text(self) -> None:
        """Test comments do not contribute text content."""
        soup = BeautifulSoup("<a>x<!-- hidden -->y</a>", features="xml")
        accessor = BeautifulSoupAccessor()

        assert accessor.text_content(accessor.root_element(soup)) == "xy"

    def test_minidom_non_element_rejected(self) -> None:
        """Test DOM text nodes are rejected as elements."""
        document = minidom.parseString("<a>text</a>")
        text_node = document.documentElement.firstChild
        accessor = MinidomAccessor()

        assert not accessor.supports(text_node)
        with pytest.raises(InvalidElementError):
            accessor.tag_name(text_node)

    def test_elementtree_comment_rejected(self) -> None:
        """Test ElementTree comment nodes are rejected as elements."""
        comment = ET.Comment("note")
        accessor = ElementTreeAccessor()

        with pytest.raises(InvalidElementError):
            accessor.tag_name(comment)

    def test_elementtree_text_includes_tails(self) -> None:
        """Test text after child elements is part of the content."""
        root = ET.fromstring("<a>one<b>two</b>three</a>")

        assert ElementTreeAccessor().text_content(root) == "onetwothree"
