"""Test module for xml_tree_normalizer package initialization."""


def test_package_import() -> None:
    """Test that the package can be imported successfully."""
    # Arrange & Act
    import xml_tree_normalizer

    # Assert
    assert xml_tree_normalizer is not None


def test_package_has_version() -> None:
    """Test that the package has a version attribute."""
    # Arrange & Act
    import xml_tree_normalizer

    # Assert
    assert isinstance(xml_tree_normalizer.__version__, str)
    assert xml_tree_normalizer.__version__ == "0.1.0"


def test_package_has_author() -> None:
    """Test that the package has an author attribute."""
    # Arrange & Act
    import xml_tree_normalizer

    # Assert
    assert xml_tree_normalizer.__author__ == "XML Tree Normalizer Team"


def test_package_all_exports() -> None:
    """Test that every name in __all__ resolves."""
    # Arrange & Act
    import xml_tree_normalizer

    # Assert
    for name in xml_tree_normalizer.__all__:
        assert hasattr(xml_tree_normalizer, name), name
    assert "parse" in xml_tree_normalizer.__all__
    assert "XMLNormalizer" in xml_tree_normalizer.__all__


def test_top_level_parse() -> None:
    """Test the top-level parse function on an ElementTree element."""
    # Arrange
    import xml.etree.ElementTree as ET

    import xml_tree_normalizer

    element = ET.fromstring('<root><item id="1"><name>Widget</name></item></root>')

    # Act
    tree = xml_tree_normalizer.parse(element)

    # Assert
    assert tree.type == xml_tree_normalizer.NodeType.ROOT
    assert tree.find_all("item")[0].properties == {"name": "Widget", "id": "1"}
