# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Command-line interface for the accessibility_conformance package.

This module provides a command-line interface for conformance analysis,
applicability detection, remediation classification and report versions.
"""

import os
import sys
import argparse
import logging
import json
from typing import Any, Dict, List, Optional

from accessibility_conformance import __version__
from accessibility_conformance.analysis.issue_adapter import job_payload
from accessibility_conformance.api import (
    analyze_conformance,
    classify_issues,
    detect_applicability,
    load_content,
)
from accessibility_conformance.applicability.detector import ApplicabilityDetector
from accessibility_conformance.persistence.database import init_database
from accessibility_conformance.utils.config import (
    DEFAULT_CONFIG,
    config_manager,
    load_config_file,
    save_config,
)
from accessibility_conformance.utils.logging_helper import (
    setup_logger,
    ConfigurationError,
    ConformanceEngineError,
)
from accessibility_conformance.versioning.version_manager import VersionManager

# Set up module-level logger
logger = setup_logger(__name__)

CONFIG_SECTIONS = tuple(DEFAULT_CONFIG.keys())


def configure_logging(debug: bool = False, quiet: bool = False) -> None:
    """Configure logging based on debug and quiet flags."""
    if quiet:
        level = logging.ERROR
    elif debug:
        level = logging.DEBUG
    else:
        level = logging.INFO

    logging.basicConfig(level=level)
    logging.getLogger().setLevel(level)
    # Module loggers are created at import time with their own level
    for name in list(logging.Logger.manager.loggerDict):
        if name.startswith("accessibility_conformance"):
            logger_obj = logging.getLogger(name)
            logger_obj.setLevel(level)
            for handler in logger_obj.handlers:
                handler.setLevel(level)


def _add_standardized_arguments(parser: argparse.ArgumentParser) -> None:
    """Add arguments that are common across all commands."""
    parser.add_argument(
        "--output",
        "-o",
        help="Output file path. If not provided, JSON is written to stdout",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Only output results, suppress other output",
    )
    parser.add_argument("--config", "-c", help="Path to configuration file")
    parser.add_argument(
        "--save-config",
        metavar="CONFIG_PATH",
        help="Save the effective configuration to the specified file path",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the command-line argument parser."""
    parser = argparse.ArgumentParser(
        description="Analyze accessibility audit results against WCAG success criteria.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--version", action="store_true", help="Show version information")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # Analyze command
    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Derive per-criterion conformance from audit issues",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    _add_standardized_arguments(analyze_parser)
    analyze_parser.add_argument(
        "--input", "-i", required=True,
        help="JSON file with an issue list or a job output object",
    )
    analyze_parser.add_argument("--edition", "-e", help="Edition code, e.g. VPAT2.5-WCAG")
    analyze_parser.add_argument(
        "--content", help="Unpacked content directory or EPUB for applicability detection"
    )

    # Detect command
    detect_parser = subparsers.add_parser(
        "detect",
        help="Suggest criteria that may not apply to a document",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    _add_standardized_arguments(detect_parser)
    detect_parser.add_argument(
        "--input", "-i", required=True, help="Unpacked content directory or EPUB file"
    )
    detect_parser.add_argument(
        "--max-fragments", type=int, help="Maximum number of content files to scan"
    )

    # Classify command
    classify_parser = subparsers.add_parser(
        "classify",
        help="Classify audit issues as autofix, quickfix or manual",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    _add_standardized_arguments(classify_parser)
    classify_parser.add_argument(
        "--input", "-i", required=True,
        help="JSON file with an issue list or a job output object",
    )
    classify_parser.add_argument(
        "--content", help="Unpacked content directory or EPUB used for issue context"
    )

    # Versions command
    versions_parser = subparsers.add_parser(
        "versions",
        help="List or compare stored report versions",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    _add_standardized_arguments(versions_parser)
    versions_parser.add_argument("--report-id", "-r", required=True, help="Report id")
    versions_parser.add_argument("--database", help="Database URL (default: from configuration)")
    versions_parser.add_argument(
        "--compare",
        nargs=2,
        type=int,
        metavar=("VERSION_A", "VERSION_B"),
        help="Compare two versions instead of listing them",
    )

    return parser


def apply_config_file(config_path: str) -> None:
    """
    Apply a YAML or JSON configuration file to the global configuration.

    Raises:
        ConfigurationError: If the file cannot be loaded
    """
    logger.info("Loading configuration from %s", config_path)
    config_data = load_config_file(config_path)
    for section in CONFIG_SECTIONS:
        if isinstance(config_data.get(section), dict):
            config_manager.set_user_config(config_data[section], section)
            logger.debug("Applied configuration for section: %s", section)

    unknown = [key for key in config_data if key not in CONFIG_SECTIONS]
    if unknown:
        logger.warning("Ignoring unknown configuration section(s): %s", ", ".join(unknown))


def save_configuration_from_args(args: Dict[str, Any]) -> None:
    """Save the effective configuration if --save-config was given."""
    config_path = args.get("save_config")
    if not config_path:
        return
    file_format = "json" if config_path.lower().endswith(".json") else "yaml"
    effective = {section: config_manager.get_config(section=section) for section in CONFIG_SECTIONS}
    save_config(effective, config_path, file_format)
    logger.info("Configuration saved to %s", config_path)


def _read_json(path: str) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _issues_from_file(path: str):
    """Issues, remediation changes and edition from an issue list or job output file."""
    data = _read_json(path)
    if isinstance(data, list):
        return data, [], None
    if isinstance(data, dict):
        return job_payload(data)
    raise ConformanceEngineError(f"Unsupported input in {path}: expected a list or an object")


def write_output(result: Any, output_path: Optional[str]) -> None:
    """Write a JSON result to a file, or to stdout when no path is given."""
    text = json.dumps(result, indent=2, default=str)
    if not output_path:
        print(text)
        return
    output_dir = os.path.dirname(output_path)
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(text)
    logger.info("Results written to %s", output_path)


def run_analyze_command(args: Dict[str, Any]) -> int:
    """Run the conformance analysis command."""
    issues, changes, edition = _issues_from_file(args["input"])

    suggestions = []
    if args.get("content"):
        suggestions = ApplicabilityDetector().detect(load_content(args["content"]))

    analysis = analyze_conformance(
        issues,
        edition_code=args.get("edition") or edition,
        remediation_changes=changes,
        na_suggestions=suggestions,
    )
    write_output(analysis.model_dump(mode="json"), args.get("output"))

    if not args.get("quiet") and args.get("output"):
        summary = analysis.summary
        print(f"\nConformance analysis ({analysis.edition}):")
        print(f"  Supports: {summary.supports}")
        print(f"  Partially supports: {summary.partially_supports}")
        print(f"  Does not support: {summary.does_not_support}")
        print(f"  Overall confidence: {analysis.overall_confidence}%")
    return 0


def run_detect_command(args: Dict[str, Any]) -> int:
    """Run the applicability detection command."""
    options = {}
    if args.get("max_fragments"):
        options["max_fragments"] = args["max_fragments"]
    suggestions = detect_applicability(args["input"], options)
    write_output([s.model_dump(mode="json") for s in suggestions], args.get("output"))
    return 0


def run_classify_command(args: Dict[str, Any]) -> int:
    """Run the remediation classification command."""
    issues, _, _ = _issues_from_file(args["input"])
    classified = classify_issues(issues, args.get("content"))
    write_output([c.model_dump(mode="json") for c in classified], args.get("output"))

    if not args.get("quiet") and args.get("output"):
        counts: Dict[str, int] = {}
        for item in classified:
            counts[item.fix_type] = counts.get(item.fix_type, 0) + 1
        print("\nClassification:")
        for fix_type in sorted(counts):
            print(f"  {fix_type}: {counts[fix_type]}")
    return 0


def run_versions_command(args: Dict[str, Any]) -> int:
    """Run the report versions command."""
    database = init_database(args.get("database"))
    try:
        manager = VersionManager(database.session_factory)
        if args.get("compare"):
            version_a, version_b = args["compare"]
            comparison = manager.compare_versions(args["report_id"], version_a, version_b)
            write_output(comparison.model_dump(mode="json"), args.get("output"))
        else:
            versions = manager.get_versions(args["report_id"])
            write_output(
                [
                    {
                        "version": v.version,
                        "created_by": v.created_by,
                        "reason": v.reason,
                        "created_at": v.created_at.isoformat(),
                        "changes": len(v.change_log),
                    }
                    for v in versions
                ],
                args.get("output"),
            )
    finally:
        database.dispose()
    return 0


COMMANDS = {
    "analyze": run_analyze_command,
    "detect": run_detect_command,
    "classify": run_classify_command,
    "versions": run_versions_command,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"Accessibility Conformance v{__version__}")
        return 0

    if args.command is None:
        parser.print_help()
        return 1

    configure_logging(debug=args.debug, quiet=args.quiet)
    args_dict = vars(args)

    try:
        if args_dict.get("config"):
            apply_config_file(args_dict["config"])
        save_configuration_from_args(args_dict)
        return COMMANDS[args.command](args_dict)
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        if not args_dict.get("quiet"):
            print(f"Error: {e}")
        return 1
    except ConformanceEngineError as e:
        logger.error("%s: %s", type(e).__name__, e)
        if not args_dict.get("quiet"):
            print(f"Error: {e}")
        return 1
    except (OSError, ValueError) as e:
        logger.error("Error running %s: %s", args.command, e)
        if not args_dict.get("quiet"):
            print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
