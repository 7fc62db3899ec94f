"""Main CLI entry point for the robust-extract command-line tool.

Extracts the main content of a single document given as a file path, an
http(s) URL or ``-`` for standard input.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from robust_content_extractor import __version__
from robust_content_extractor.api import (
    ContentExtractor,
    ExtractionResult,
    FetchError,
    extract_file,
    extract_url,
)
from robust_content_extractor.shared import (
    ConfigError,
    DiagnosticSeverity,
    ExtractorConfig,
    configure_logging,
    get_logger,
)
from robust_content_extractor.shared.config import PRESET_NAMES

logger = get_logger(__name__, None, "cli")


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="robust-extract",
        description="Extract the main readable content from an HTML page"
    )

    parser.add_argument("--version", action="version", version=__version__)

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Extract command
    extract_parser = subparsers.add_parser(
        "extract", help="Print the main content of a page"
    )
    _add_source_arguments(extract_parser)
    extract_parser.add_argument(
        "--format", "-f",
        choices=["text", "html", "json"],
        default="text",
        help="Output format (default: text)"
    )
    extract_parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Output file (default: stdout)"
    )

    # Candidates command
    candidates_parser = subparsers.add_parser(
        "candidates", help="List the highest-scoring content containers"
    )
    _add_source_arguments(candidates_parser)
    candidates_parser.add_argument(
        "--top", "-n",
        type=int,
        default=5,
        help="Number of candidates to list (default: 5)"
    )
    candidates_parser.add_argument(
        "--format", "-f",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)"
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


def _add_source_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "source",
        help="HTML file path, http(s) URL, or - for standard input"
    )
    parser.add_argument(
        "--preset",
        choices=list(PRESET_NAMES),
        default="default",
        help="Extraction configuration preset"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        help="JSON configuration file (overrides --preset)"
    )
    parser.add_argument(
        "--encoding", "-e",
        help="Encoding override for file and stdin input"
    )


def load_config(args: argparse.Namespace) -> ExtractorConfig:
    """Build the extraction configuration from command-line arguments.

    Raises:
        ConfigError: The configuration file or preset is invalid
    """
    if args.config:
        try:
            return ExtractorConfig.from_json(args.config.read_text(encoding="utf-8"))
        except OSError as e:
            raise ConfigError(f"Could not read config file {args.config}: {e}") from e
    return ExtractorConfig.preset(args.preset)


def setup_logging(args: argparse.Namespace, config: ExtractorConfig) -> None:
    """Configure logging from the verbosity flags or the configuration."""
    if args.verbose:
        configure_logging("DEBUG")
    elif args.quiet:
        configure_logging("ERROR")
    else:
        configure_logging(config.global_.logging_level)


def _is_url(source: str) -> bool:
    return urlparse(source).scheme in {"http", "https"}


def run_extraction(
    args: argparse.Namespace, config: ExtractorConfig
) -> ExtractionResult:
    """Extract content from the source named on the command line.

    Raises:
        FetchError: A URL source could not be retrieved
    """
    if args.source == "-":
        data = sys.stdin.buffer.read()
        return ContentExtractor(config).extract(
            data, declared_encoding=args.encoding, source="<stdin>"
        )
    if _is_url(args.source):
        return extract_url(args.source, config=config)
    return extract_file(args.source, encoding=args.encoding, config=config)


def _candidate_rows(result: ExtractionResult, limit: int) -> List[Dict[str, Any]]:
    return [
        {
            "rank": rank,
            "tag": node.tag_type,
            "class_and_id": node.class_and_id,
            "score": round(node.score, 3),
            "depth": node.depth,
            "text_length": len(node.text_content()),
        }
        for rank, node in enumerate(result.candidates(limit), start=1)
    ]


def format_result(result: ExtractionResult, format_type: str) -> str:
    """Format an extraction result for output."""
    if format_type == "text":
        return result.text
    if format_type == "html":
        return result.html

    payload = result.summary()
    payload["text"] = result.text
    payload["html"] = result.html
    return json.dumps(payload, indent=2, ensure_ascii=False)


def format_candidates(rows: List[Dict[str, Any]], format_type: str) -> str:
    """Format a candidate ranking for output."""
    if format_type == "json":
        return json.dumps(rows, indent=2, ensure_ascii=False)

    if not rows:
        return "No candidates found."

    lines = [f"{'rank':>4}  {'score':>9}  {'tag':<10} {'chars':>6}  class/id"]
    lines.append("-" * 60)
    for row in rows:
        lines.append(
            f"{row['rank']:>4}  {row['score']:>9.3f}  {row['tag']:<10} "
            f"{row['text_length']:>6}  {row['class_and_id']}"
        )
    return "\n".join(lines)


def _report_failure(result: ExtractionResult) -> None:
    errors = [
        diag for diag in result.diagnostics
        if diag.severity in (DiagnosticSeverity.ERROR, DiagnosticSeverity.CRITICAL)
    ]
    for error in errors[:3]:
        print(f"Error: {error.message}", file=sys.stderr)
    if not errors and not result.has_content:
        print(f"No main content found in {result.source}", file=sys.stderr)


def cmd_extract(args: argparse.Namespace) -> int:
    """Handle extract command."""
    try:
        config = load_config(args)
        setup_logging(args, config)
        result = run_extraction(args, config)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1
    except FetchError as e:
        print(f"Fetch failed: {e}", file=sys.stderr)
        return 1

    if not result.success or not result.has_content:
        _report_failure(result)
        if args.format != "json":
            return 1

    formatted_output = format_result(result, args.format)

    if args.output:
        try:
            args.output.write_text(formatted_output + "\n", encoding="utf-8")
        except OSError as e:
            print(f"Error writing output: {e}", file=sys.stderr)
            return 1
        print(f"Content written to {args.output}", file=sys.stderr)
    else:
        print(formatted_output)

    return 0 if result.success and result.has_content else 1


def cmd_candidates(args: argparse.Namespace) -> int:
    """Handle candidates command."""
    try:
        config = load_config(args)
        setup_logging(args, config)
        result = run_extraction(args, config)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1
    except FetchError as e:
        print(f"Fetch failed: {e}", file=sys.stderr)
        return 1

    if not result.success:
        _report_failure(result)
        return 1

    rows = _candidate_rows(result, args.top)
    print(format_candidates(rows, args.format))
    return 0 if rows else 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    # Route to appropriate command handler
    try:
        if args.command == "extract":
            return cmd_extract(args)
        if args.command == "candidates":
            return cmd_candidates(args)
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT


if __name__ == "__main__":
    sys.exit(main())
