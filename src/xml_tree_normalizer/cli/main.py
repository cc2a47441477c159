"""Main CLI entry point for the xml-tree-normalizer command-line tool.

Normalizes XML files into the compact node tree and prints it as JSON,
indented text or CSV, and checks whether files normalize cleanly.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Set

import pandas as pd

from xml_tree_normalizer import __version__
from xml_tree_normalizer.api import (
    BACKENDS,
    TagSetPolicy,
    XMLNormalizer,
    load_document,
    render_text,
    to_dataframe,
)
from xml_tree_normalizer.shared import (
    ConfigError,
    NormalizationError,
    NormalizerConfig,
)
from xml_tree_normalizer.shared.logging import get_logger

XML_SUFFIXES = {".xml", ".pdsc", ".xsd", ".svg"}
OUTPUT_FORMATS = ("json", "text", "csv")


class CLIConfig:
    """Configuration management for CLI operations."""

    def __init__(self):
        self.normalizer_config = NormalizerConfig()
        self.property_tags: Set[str] = set()
        self.parent_property_tags: Dict[str, Set[str]] = {}
        self.backend = "lxml"
        self.output_format = "json"

    @classmethod
    def from_file(cls, config_path: Path) -> "CLIConfig":
        """Load CLI configuration from a JSON file.

        Recognized keys: ``normalizer`` (NormalizerConfig fields),
        ``property_tags``, ``parent_property_tags``, ``backend`` and
        ``output_format``.

        Raises:
            ConfigError: If the file cannot be read or holds invalid values
        """
        config = cls()
        try:
            with config_path.open(encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Could not load config file {config_path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {config_path} must hold a JSON object")

        if "normalizer" in data:
            config.normalizer_config = NormalizerConfig.from_dict(data["normalizer"])
        config.property_tags = set(data.get("property_tags", []))
        config.parent_property_tags = {
            parent: set(tags)
            for parent, tags in data.get("parent_property_tags", {}).items()
        }
        config.backend = data.get("backend", config.backend)
        config.output_format = data.get("output_format", config.output_format)

        if config.backend not in BACKENDS:
            raise ConfigError(f"backend must be one of {BACKENDS}")
        if config.output_format not in OUTPUT_FORMATS:
            raise ConfigError(f"output_format must be one of {OUTPUT_FORMATS}")
        return config

    def build_policy(self) -> TagSetPolicy:
        """Build the classification policy from the configured tag sets."""
        return TagSetPolicy(self.property_tags, self.parent_property_tags)


class FileNormalizer:
    """Core normalization logic for CLI operations."""

    def __init__(self, config: CLIConfig):
        self.config = config
        self.normalizer = XMLNormalizer(
            config.build_policy(), config.normalizer_config
        )
        self.logger = get_logger(__name__, None, "cli_processor")

    def process_single_file(self, file_path: Path) -> Dict[str, Any]:
        """Normalize a single XML file and return a result record."""
        try:
            document = load_document(
                file_path, self.config.backend, self.config.normalizer_config.max_depth
            )
            result = self.normalizer.normalize(document, source=str(file_path))
        except NormalizationError as e:
            self.logger.warning(
                "Failed to normalize file",
                extra={"file": str(file_path), "error": str(e)},
            )
            return {
                "file": str(file_path),
                "success": False,
                "error": str(e),
                "error_type": type(e).__name__,
            }

        record = result.to_dict()
        record.pop("source", None)
        record["file"] = str(file_path)
        record["success"] = True
        record["result"] = result
        return record

    def find_xml_files(self, path: Path, recursive: bool = True) -> Iterator[Path]:
        """Find XML files in path."""
        if path.is_file():
            yield path
        elif path.is_dir():
            candidates = path.rglob("*") if recursive else path.glob("*")
            for xml_file in sorted(candidates):
                if xml_file.is_file() and xml_file.suffix.lower() in XML_SUFFIXES:
                    yield xml_file
        else:
            self.logger.warning("Path does not exist", extra={"path": str(path)})
            yield path

    def batch_process(self, paths: List[Path], recursive: bool = True) -> List[Dict[str, Any]]:
        """Normalize every XML file found under ``paths``, in order."""
        results = []
        for path in paths:
            for file_path in self.find_xml_files(path, recursive):
                results.append(self.process_single_file(file_path))
        return results


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="xml-tree-normalizer",
        description="Normalize XML documents into a compact tree of typed nodes"
    )

    parser.add_argument("--version", action="version", version=__version__)

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Options shared by every command
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="XML files or directories"
    )
    common.add_argument(
        "--recursive", "-r",
        action="store_true",
        help="Recursively process directories"
    )
    common.add_argument(
        "--config", "-c",
        type=Path,
        help="Configuration file path"
    )
    common.add_argument(
        "--property", "-p",
        dest="property_tags",
        action="append",
        default=[],
        metavar="TAG",
        help="Treat child elements named TAG as properties (repeatable)"
    )
    common.add_argument(
        "--parent-property",
        dest="parent_property_tags",
        action="append",
        default=[],
        metavar="PARENT:TAG",
        help="Treat TAG as a property only under PARENT nodes (repeatable)"
    )
    common.add_argument(
        "--max-depth",
        type=int,
        help="Maximum element nesting depth"
    )
    common.add_argument(
        "--backend", "-b",
        choices=BACKENDS,
        help="XML library used to parse the input (default: lxml)"
    )

    # Normalize command
    normalize_parser = subparsers.add_parser(
        "normalize", parents=[common], help="Normalize XML files"
    )
    normalize_parser.add_argument(
        "--format", "-f",
        choices=OUTPUT_FORMATS,
        help="Output format (default: json)"
    )
    normalize_parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Output file (default: stdout)"
    )

    # Check command
    subparsers.add_parser(
        "check", parents=[common], help="Check that XML files normalize cleanly"
    )

    # Global options
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Quiet output"
    )

    return parser


def build_config(args: argparse.Namespace) -> CLIConfig:
    """Load the configuration file, if any, and apply command-line overrides."""
    config = CLIConfig.from_file(args.config) if args.config else CLIConfig()

    config.property_tags.update(args.property_tags)
    for entry in args.parent_property_tags:
        parent, sep, tag = entry.partition(":")
        if not sep or not parent or not tag:
            raise ConfigError(f"Expected PARENT:TAG, got {entry!r}")
        config.parent_property_tags.setdefault(parent, set()).add(tag)

    if args.max_depth is not None:
        config.normalizer_config = config.normalizer_config.override(
            max_depth=args.max_depth
        )
    if args.backend:
        config.backend = args.backend
    if getattr(args, "format", None):
        config.output_format = args.format
    return config


def _json_record(record: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in record.items() if key != "result"}


def format_results(results: List[Dict[str, Any]], format_type: str) -> str:
    """Format normalization results for output."""
    if format_type == "json":
        return json.dumps([_json_record(r) for r in results], indent=2, ensure_ascii=False)

    if format_type == "csv":
        frames = []
        for record in results:
            if not record.get("success"):
                continue
            frame = to_dataframe(record["result"].tree)
            frame.insert(0, "file", record["file"])
            frames.append(frame)
        if not frames:
            return ""
        return pd.concat(frames, ignore_index=True).to_csv(index=False)

    if not results:
        return "No results to display."

    lines = []
    for record in results:
        lines.append(f"== {record['file']}")
        if record.get("success"):
            lines.append(render_text(record["result"].tree))
        else:
            lines.append(f"Error: {record['error']}")
        lines.append("")
    return "\n".join(lines)


def cmd_normalize(args: argparse.Namespace, config: CLIConfig) -> int:
    """Handle normalize command."""
    processor = FileNormalizer(config)
    results = processor.batch_process(args.paths, args.recursive)

    formatted_output = format_results(results, config.output_format)

    if args.output:
        try:
            args.output.write_text(formatted_output, encoding="utf-8")
            print(f"Results written to {args.output}", file=sys.stderr)
        except OSError as e:
            print(f"Error writing output: {e}", file=sys.stderr)
            return 1
    else:
        print(formatted_output)

    if not results:
        return 1
    return 0 if all(r.get("success") for r in results) else 1


def cmd_check(args: argparse.Namespace, config: CLIConfig) -> int:
    """Handle check command."""
    processor = FileNormalizer(config)
    results = processor.batch_process(args.paths, args.recursive)

    clean_count = 0
    for record in results:
        if not record.get("success"):
            print(f"✗ {record['file']}")
            print(f"   Error: {record['error']}")
            continue

        result = record["result"]
        warnings = result.warnings
        status = "!" if warnings else "✓"
        if not warnings:
            clean_count += 1
        print(f"{status} {record['file']} ({result.node_count} nodes)")
        for diag in warnings[:3]:
            print(f"   {diag.severity.name}: {diag.message} at {diag.path}")
        if len(warnings) > 3:
            print(f"   ... and {len(warnings) - 3} more warnings")

    print(f"Checked {len(results)} files, {clean_count} clean")
    return 0 if results and all(r.get("success") for r in results) else 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    # Set up logging verbosity
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)
    elif args.quiet:
        logging.basicConfig(level=logging.ERROR)

    try:
        config = build_config(args)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    try:
        if args.command == "normalize":
            return cmd_normalize(args, config)
        if args.command == "check":
            return cmd_check(args, config)
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT


if __name__ == "__main__":
    sys.exit(main())
