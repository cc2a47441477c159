"""Configuration for XML tree normalization.

This module provides an immutable configuration object controlling the
reserved names used by the normalizer, its recursion depth cap and whether
diagnostics and metrics are collected.
"""

import json
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from xml_tree_normalizer.tree.model import DESCRIPTION_TAG, NodeType, Property

# Python's default recursion limit is 1000; each nesting level costs one frame
DEFAULT_MAX_DEPTH = 256
STRICT_MAX_DEPTH = 64
PERMISSIVE_MAX_DEPTH = 800


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


@dataclass(frozen=True)
class NormalizerConfig:
    """Configuration for the normalizer.

    Thread-safe due to frozen dataclass implementation, so one instance can
    be shared by any number of normalizers.
    """

    root_type: str = NodeType.ROOT
    content_key: str = Property.XML_CONTENT
    description_tag: str = DESCRIPTION_TAG
    max_depth: int = DEFAULT_MAX_DEPTH

    enable_diagnostics: bool = True
    enable_metrics: bool = True
    correlation_id: Optional[str] = None

    # Metadata
    name: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate the configuration."""
        for field_name in ("root_type", "content_key", "description_tag"):
            value = getattr(self, field_name)
            if not isinstance(value, str) or not value.strip():
                raise ConfigValidationError(
                    f"{field_name} must be a non-empty string",
                    field_name=field_name,
                )
        if not isinstance(self.max_depth, int) or self.max_depth <= 0:
            raise ConfigValidationError(
                "max_depth must be > 0",
                field_name="max_depth",
                suggestions=[f"Use the default of {DEFAULT_MAX_DEPTH}"],
            )

    def override(self, **kwargs: Any) -> "NormalizerConfig":
        """Create a new configuration with specific overrides.

        Example:
            >>> config = NormalizerConfig()
            >>> config.override(max_depth=32).max_depth
            32
        """
        unknown = set(kwargs) - {f.name for f in fields(self)}
        if unknown:
            raise ConfigValidationError(
                f"Unknown configuration fields: {sorted(unknown)}"
            )
        return replace(self, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NormalizerConfig":
        """Create configuration from dictionary.

        Raises:
            ConfigValidationError: If the dictionary holds unknown keys or
                invalid values
        """
        if not isinstance(data, dict):
            raise ConfigValidationError("Configuration data must be a JSON object")
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigValidationError(
                f"Unknown configuration fields: {sorted(unknown)}",
                suggestions=[f"Valid fields: {sorted(known)}"],
            )
        return cls(**data)

    @classmethod
    def from_json(cls, json_str: str) -> "NormalizerConfig":
        """Create configuration from JSON string."""
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigValidationError(f"Invalid configuration JSON: {e}") from e
        return cls.from_dict(data)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "NormalizerConfig":
        """Load configuration from a JSON file."""
        config_path = Path(path)
        try:
            text = config_path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Cannot read configuration file {config_path}: {e}") from e
        return cls.from_json(text)

    # Preset factory methods
    @classmethod
    def default(cls) -> "NormalizerConfig":
        """Create the default configuration."""
        return cls(name="default")

    @classmethod
    def strict(cls) -> "NormalizerConfig":
        """Create a preset for untrusted input with a tight depth cap."""
        return cls(
            max_depth=STRICT_MAX_DEPTH,
            name="strict",
            description="Shallow depth cap for untrusted documents",
        )

    @classmethod
    def permissive(cls) -> "NormalizerConfig":
        """Create a preset for large trusted documents."""
        return cls(
            max_depth=PERMISSIVE_MAX_DEPTH,
            enable_diagnostics=False,
            name="permissive",
            description="Deep nesting allowed, diagnostics disabled",
        )
