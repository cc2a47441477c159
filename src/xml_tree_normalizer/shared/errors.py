"""Exception hierarchy for XML tree normalization."""

from typing import Optional


class NormalizationError(Exception):
    """Base exception for all normalization failures."""


class InvalidElementError(NormalizationError, TypeError):
    """Raised when an object handed to the normalizer is not a usable element.

    Covers objects from unsupported libraries, comments or processing
    instructions passed where an element was expected, and elements whose
    tag name is missing or empty.
    """

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.path = path


class DepthLimitExceededError(NormalizationError):
    """Raised when the source tree is nested deeper than the configured cap."""

    def __init__(self, max_depth: int, path: Optional[str] = None) -> None:
        location = f" at {path}" if path else ""
        super().__init__(
            f"Element nesting exceeds the maximum depth of {max_depth}{location}"
        )
        self.max_depth = max_depth
        self.path = path


class DocumentParseError(NormalizationError):
    """Raised when the XML source cannot be parsed into a document."""

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        line: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.source = source
        self.line = line
