"""Document loading and one-call normalization helpers.

The normalizer works on already-parsed trees. This module provides the parse
step for the common cases: XML text or files parsed with lxml (default),
``xml.dom.minidom`` or BeautifulSoup, then handed to ``XMLNormalizer``.
Malformed documents are rejected here with ``DocumentParseError``; no
recovery is attempted.
"""

import time
from pathlib import Path
from typing import Any, Optional, Union
from xml.dom import minidom
from xml.parsers.expat import ExpatError

from bs4 import BeautifulSoup
from lxml import etree

from xml_tree_normalizer.api.normalizer import PolicyLike, XMLNormalizer
from xml_tree_normalizer.shared import (
    DepthLimitExceededError,
    DocumentParseError,
    NormalizationResult,
    NormalizerConfig,
    get_logger,
)

SourceType = Union[str, bytes, Path]

BACKENDS = ("lxml", "minidom", "bs4")
DEFAULT_BACKEND = "lxml"

# libxml2 nesting limit without XML_PARSE_HUGE, and the error it reports
LIBXML2_MAX_DEPTH = 256
EXCESSIVE_DEPTH_MESSAGE = "Excessive depth in document"

# Constants for API operations
PREVIEW_LENGTH = 100  # Max length for content preview in logs
MS_PER_SECOND = 1000  # Milliseconds per second conversion


def _lxml_parser(
    encoding: Optional[str] = None, huge_tree: bool = False
) -> etree.XMLParser:
    """Create an lxml parser that never fetches or expands external content."""
    return etree.XMLParser(
        encoding=encoding,
        resolve_entities=False,
        no_network=True,
        load_dtd=False,
        remove_comments=True,
        remove_pis=True,
        huge_tree=huge_tree,
    )


def _parse_lxml(data: Union[str, bytes], max_depth: Optional[int]) -> Any:
    # Without huge_tree libxml2 stops at LIBXML2_MAX_DEPTH levels
    huge_tree = max_depth is not None and max_depth >= LIBXML2_MAX_DEPTH
    if isinstance(data, str):
        # lxml rejects str input carrying an encoding declaration
        return etree.fromstring(data.encode("utf-8"), _lxml_parser("utf-8", huge_tree))
    return etree.fromstring(data, _lxml_parser(huge_tree=huge_tree))


def _preview(source: SourceType) -> str:
    if isinstance(source, Path):
        return str(source)
    text = source if isinstance(source, str) else source.decode("utf-8", "replace")
    if len(text) > PREVIEW_LENGTH:
        return text[:PREVIEW_LENGTH] + "..."
    return text


def load_document(
    source: SourceType,
    backend: str = DEFAULT_BACKEND,
    max_depth: Optional[int] = None,
) -> Any:
    """Parse XML text or a file into a document of the chosen backend.

    BeautifulSoup repairs broken markup on its own, so the bs4 backend
    first checks well-formedness with lxml.

    Args:
        source: XML content as string or bytes, or a Path to an XML file
        backend: One of ``"lxml"``, ``"minidom"`` or ``"bs4"``
        max_depth: Nesting depth the caller will accept; lifts libxml2's
            built-in limit of 256 levels when larger

    Returns:
        ``lxml.etree._Element``, ``minidom.Document`` or ``BeautifulSoup``
        object

    Raises:
        ValueError: If ``backend`` is unknown
        DocumentParseError: If the file cannot be read or the XML is malformed
        DepthLimitExceededError: If libxml2 rejects the nesting depth
    """
    if backend not in BACKENDS:
        raise ValueError(f"backend must be one of {BACKENDS}, got {backend!r}")

    label = str(source) if isinstance(source, Path) else "<string>"
    if isinstance(source, Path):
        try:
            data: Union[str, bytes] = source.read_bytes()
        except OSError as e:
            raise DocumentParseError(f"Cannot read {source}: {e}", source=label) from e
    elif isinstance(source, (str, bytes)):
        data = source
    else:
        raise TypeError(
            f"source must be str, bytes or Path, got {type(source).__name__}"
        )

    try:
        if backend == "minidom":
            return minidom.parseString(data)
        document = _parse_lxml(data, max_depth)
        if backend == "lxml":
            return document
        return BeautifulSoup(data, features="xml")
    except etree.XMLSyntaxError as e:
        if EXCESSIVE_DEPTH_MESSAGE in str(e):
            raise DepthLimitExceededError(max_depth or LIBXML2_MAX_DEPTH, label) from e
        raise DocumentParseError(
            f"Malformed XML in {label}: {e}", source=label, line=e.lineno
        ) from e
    except ExpatError as e:
        raise DocumentParseError(
            f"Malformed XML in {label}: {e}", source=label, line=e.lineno
        ) from e


def parse_string(
    xml: Union[str, bytes],
    policy: PolicyLike = None,
    config: Optional[NormalizerConfig] = None,
    backend: str = DEFAULT_BACKEND,
    correlation_id: Optional[str] = None,
) -> NormalizationResult:
    """Parse and normalize XML text.

    Examples:
        >>> result = parse_string('<root><item id="1"><name>Widget</name></item></root>')
        >>> result.tree.find_all("item")[0].get_property("name")
        'Widget'
    """
    logger = get_logger(__name__, correlation_id, "parse_string")
    logger.debug(
        "Starting string normalization",
        extra={"content_length": len(xml), "preview": _preview(xml), "backend": backend},
    )
    normalizer = XMLNormalizer(policy, config, correlation_id)
    document = load_document(xml, backend, normalizer.config.max_depth)
    return normalizer.normalize(document)


def parse_file(
    path: Union[str, Path],
    policy: PolicyLike = None,
    config: Optional[NormalizerConfig] = None,
    backend: str = DEFAULT_BACKEND,
    correlation_id: Optional[str] = None,
) -> NormalizationResult:
    """Parse and normalize an XML file."""
    start_time = time.time()
    file_path = Path(path)
    logger = get_logger(__name__, correlation_id, "parse_file")
    normalizer = XMLNormalizer(policy, config, correlation_id)

    try:
        document = load_document(file_path, backend, normalizer.config.max_depth)
    except DocumentParseError:
        logger.warning(
            "Document could not be loaded",
            extra={"file": str(file_path), "backend": backend},
        )
        raise

    result = normalizer.normalize(document, source=str(file_path))
    logger.debug(
        "File normalized",
        extra={
            "file": str(file_path),
            "total_time_ms": (time.time() - start_time) * MS_PER_SECOND,
        },
    )
    return result
