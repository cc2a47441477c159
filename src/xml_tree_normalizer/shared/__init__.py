"""Shared utilities for XML tree normalization.

This module provides the configuration object, result types, exceptions and
logging helpers used across the tree model, the normalizer and the CLI.
"""

from .config import (
    ConfigError,
    ConfigValidationError,
    NormalizerConfig,
)
from .errors import (
    DepthLimitExceededError,
    DocumentParseError,
    InvalidElementError,
    NormalizationError,
)
from .logging import (
    CorrelationLogger,
    get_logger,
)
from .result import (
    DiagnosticEntry,
    DiagnosticSeverity,
    NormalizationMetrics,
    NormalizationResult,
)

__all__ = [
    "ConfigError",
    "ConfigValidationError",
    "NormalizerConfig",
    "DepthLimitExceededError",
    "DocumentParseError",
    "InvalidElementError",
    "NormalizationError",
    "CorrelationLogger",
    "get_logger",
    "DiagnosticEntry",
    "DiagnosticSeverity",
    "NormalizationMetrics",
    "NormalizationResult",
]
