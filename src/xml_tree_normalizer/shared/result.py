"""Result objects and diagnostic types for XML tree normalization.

This module defines the result object returned by a normalization run: the
normalized tree together with the diagnostics recorded along the way and
counters describing how the source elements were classified.
"""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, List, Optional

from xml_tree_normalizer.tree.model import Branch


class DiagnosticSeverity(Enum):
    """Severity levels for diagnostic entries."""

    DEBUG = auto()      # Debug-level information
    INFO = auto()       # Informational messages
    WARNING = auto()    # Non-strict input that was accepted anyway
    ERROR = auto()      # Error conditions
    CRITICAL = auto()   # Errors that aborted the run


@dataclass
class DiagnosticEntry:
    """Single diagnostic entry with the source location it refers to."""

    severity: DiagnosticSeverity
    message: str
    component: str
    path: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    timestamp: float = field(default_factory=time.time)
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate diagnostic entry."""
        if not self.message:
            raise ValueError("Diagnostic message cannot be empty")
        if not self.component:
            raise ValueError("Diagnostic component cannot be empty")

    def to_dict(self) -> Dict[str, Any]:
        """Convert diagnostic to dictionary representation."""
        result: Dict[str, Any] = {
            "severity": self.severity.name,
            "message": self.message,
            "component": self.component,
        }
        if self.path is not None:
            result["path"] = self.path
        if self.details:
            result["details"] = dict(self.details)
        return result


@dataclass
class NormalizationMetrics:
    """Counters collected while normalizing one document."""

    processing_time_ms: float = 0.0
    elements_visited: int = 0
    branches_created: int = 0
    leaves_created: int = 0
    properties_written: int = 0
    properties_suppressed: int = 0
    properties_from_policy: int = 0
    attributes_copied: int = 0
    descriptions_set: int = 0
    max_depth_reached: int = 0

    @property
    def nodes_created(self) -> int:
        """Total number of nodes created, excluding the synthetic root."""
        return self.branches_created + self.leaves_created

    @property
    def elements_per_second(self) -> float:
        """Calculate elements visited per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.elements_visited * 1000.0) / self.processing_time_ms

    @property
    def suppression_rate(self) -> float:
        """Share of non-empty property writes dropped for an empty value."""
        attempts = self.properties_written + self.properties_suppressed
        if attempts == 0:
            return 0.0
        return self.properties_suppressed / attempts

    def to_dict(self) -> Dict[str, Any]:
        """Convert metrics to dictionary representation."""
        return {
            "processing_time_ms": self.processing_time_ms,
            "elements_visited": self.elements_visited,
            "branches_created": self.branches_created,
            "leaves_created": self.leaves_created,
            "nodes_created": self.nodes_created,
            "properties_written": self.properties_written,
            "properties_suppressed": self.properties_suppressed,
            "properties_from_policy": self.properties_from_policy,
            "attributes_copied": self.attributes_copied,
            "descriptions_set": self.descriptions_set,
            "max_depth_reached": self.max_depth_reached,
        }


@dataclass
class NormalizationResult:
    """Normalized tree plus the diagnostics and metrics of the run."""

    tree: Branch
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    metrics: NormalizationMetrics = field(default_factory=NormalizationMetrics)
    correlation_id: Optional[str] = None
    source: Optional[str] = None

    @property
    def node_count(self) -> int:
        """Number of nodes in the tree, including the root."""
        return self.tree.node_count

    @property
    def warnings(self) -> List[DiagnosticEntry]:
        """Diagnostics of WARNING severity or above."""
        return [
            diag for diag in self.diagnostics
            if diag.severity.value >= DiagnosticSeverity.WARNING.value
        ]

    @property
    def has_warnings(self) -> bool:
        """Check whether any warning-level diagnostic was recorded."""
        return bool(self.warnings)

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to dictionary representation."""
        result: Dict[str, Any] = {
            "tree": self.tree.to_dict(),
            "node_count": self.node_count,
            "diagnostics": [diag.to_dict() for diag in self.diagnostics],
            "metrics": self.metrics.to_dict(),
        }
        if self.source is not None:
            result["source"] = self.source
        if self.correlation_id is not None:
            result["correlation_id"] = self.correlation_id
        return result
