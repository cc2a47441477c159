"""XML Tree Normalizer.

Converts arbitrarily shaped XML element trees into a compact, uniform tree of
typed nodes: each node has a type tag, a flat map of string properties, an
optional description and, for branches, an ordered list of children.

Progressive API Disclosure:
- Level 1: Simple functions - parse(), parse_string(), parse_file()
- Level 2: Configured normalizer - XMLNormalizer with a ClassificationPolicy
  and a NormalizerConfig
- Level 3: Custom element accessors - register_accessor()
"""

__version__ = "0.1.0"
__author__ = "XML Tree Normalizer Team"

from .api import (
    ClassificationPolicy,
    TagSetPolicy,
    XMLNormalizer,
    normalize,
    parse,
    parse_file,
    parse_string,
    register_accessor,
    render_text,
    to_dataframe,
    to_json,
)
from .shared import (
    NormalizationError,
    NormalizationResult,
    NormalizerConfig,
)
from .tree import Branch, Leaf, Node, NodeType, Property

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple functions
    "parse",
    "normalize",
    "parse_string",
    "parse_file",

    # Level 2: Configured normalizer
    "XMLNormalizer",
    "ClassificationPolicy",
    "TagSetPolicy",
    "NormalizerConfig",

    # Level 3: Extension points
    "register_accessor",

    # Tree model and results
    "Branch",
    "Leaf",
    "Node",
    "NodeType",
    "Property",
    "NormalizationResult",
    "NormalizationError",

    # Output adapters
    "render_text",
    "to_dataframe",
    "to_json",
]
