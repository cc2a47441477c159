"""Public API for XML tree normalization.

Provides the normalizer and its classification policies, the element
accessors for supported XML libraries, document loading helpers and output
adapters.
"""

from .adapters import render_text, to_dataframe, to_json
from .elements import (
    ElementAccessor,
    get_accessor,
    list_accessors,
    register_accessor,
)
from .normalizer import (
    CallablePolicy,
    ClassificationPolicy,
    TagSetPolicy,
    XMLNormalizer,
    normalize,
    parse,
    resolve_policy,
)
from .parser import BACKENDS, load_document, parse_file, parse_string

__all__ = [
    "render_text",
    "to_dataframe",
    "to_json",
    "ElementAccessor",
    "get_accessor",
    "list_accessors",
    "register_accessor",
    "CallablePolicy",
    "ClassificationPolicy",
    "TagSetPolicy",
    "XMLNormalizer",
    "normalize",
    "parse",
    "resolve_policy",
    "BACKENDS",
    "load_document",
    "parse_file",
    "parse_string",
]
