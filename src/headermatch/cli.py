"""Command-line interface for HeaderMatch."""

import argparse
import csv
import json
import logging
import sys
from pathlib import Path
from typing import Optional

import uvicorn

from .config import settings
from .domain import ColumnMapping, MatchingReport, MatchRequest, ModelConfiguration
from .errors import HeaderMatchError
from .matching import (
    ColumnMatchingService,
    build_provider_configuration,
    describe_failure,
    parse_existing_mappings,
)

logger = logging.getLogger(__name__)


def main(argv: Optional[list[str]] = None):
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="HeaderMatch - AI-assisted column header matching"
    )
    parser.add_argument(
        "--log-level", default=settings.log_level, help="Logging level (default: from LOG_LEVEL)"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Match command
    match_parser = subparsers.add_parser(
        "match", help="Match source headers against target headers"
    )
    match_parser.add_argument("source", help="File with the source headers")
    match_parser.add_argument("target", help="File with the target headers")
    match_parser.add_argument(
        "--mappings", "-m", help="Existing mappings as CSV (target,source[,context]) or JSON"
    )
    match_parser.add_argument(
        "--provider", "-p", default=settings.default_provider,
        help=f"Provider ID (default: {settings.default_provider})",
    )
    match_parser.add_argument("--provider-name", help="Display name for the provider")
    match_parser.add_argument(
        "--model", default=settings.default_model,
        help=f"Model ID (default: {settings.default_model})",
    )
    match_parser.add_argument("--temperature", type=float, default=settings.temperature)
    match_parser.add_argument("--max-tokens", type=int, default=settings.max_tokens)
    match_parser.add_argument("--top-p", type=float, default=settings.top_p)
    match_parser.add_argument("--top-k", type=int, default=settings.top_k)
    match_parser.add_argument(
        "--param", action="append", default=[], metavar="KEY=VALUE",
        help="Provider parameter, may be repeated (e.g. --param apiKey=sk-...)",
    )
    match_parser.add_argument("--access-key-id", help="AWS access key ID (aws-bedrock)")
    match_parser.add_argument("--secret-access-key", help="AWS secret access key (aws-bedrock)")
    match_parser.add_argument("--industry-context", help="Free-text domain hint for the model")
    match_parser.add_argument("--output", "-o", help="Write the full report as JSON to this file")

    # Providers command
    subparsers.add_parser("providers", help="List available providers")

    # Server command
    server_parser = subparsers.add_parser("serve", help="Start the web server")
    server_parser.add_argument(
        "--host", default=settings.host, help=f"Host to bind to (default: {settings.host})"
    )
    server_parser.add_argument(
        "--port", type=int, default=settings.port, help=f"Port to bind to (default: {settings.port})"
    )
    server_parser.add_argument(
        "--reload", action="store_true", help="Enable auto-reload for development"
    )

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "match":
        sys.exit(run_match(args))
    elif args.command == "providers":
        run_providers()
    elif args.command == "serve":
        run_server(args.host, args.port, args.reload)
    else:
        parser.print_help()
        sys.exit(1)


def load_headers(path: Path) -> list[str]:
    """Load headers from a file.

    A first line containing a comma is read as a CSV header row; otherwise
    the file holds one header per line.
    """
    text = path.read_text(encoding="utf-8-sig")
    lines = text.splitlines()
    if not lines:
        raise ValueError(f"File is empty: {path}")

    if "," in lines[0]:
        row = next(csv.reader([lines[0]]))
        return [column.strip() for column in row if column.strip()]
    return [line.strip() for line in lines if line.strip()]


def load_mappings(path: Path) -> list[ColumnMapping]:
    """Load existing mappings from a JSON array or a CSV file.

    The CSV has a header row followed by ``target,source[,context]`` rows.
    """
    if not path.exists():
        logger.warning(f"Existing mappings file not found: {path}")
        return []

    text = path.read_text(encoding="utf-8-sig")
    if path.suffix.lower() == ".json":
        return parse_existing_mappings(text)

    mappings = []
    rows = csv.reader(text.splitlines())
    next(rows, None)  # header row
    for row in rows:
        if len(row) < 2:
            continue
        mapping = ColumnMapping(
            target_column=row[0].strip(),
            source_column=row[1].strip(),
            context=row[2].strip() if len(row) >= 3 and row[2].strip() else None,
        )
        if mapping.is_valid():
            mappings.append(mapping)
    return mappings


def parse_params(pairs: list[str]) -> tuple[list[str], list[str]]:
    """Split ``KEY=VALUE`` strings into parallel key and value lists."""
    keys, values = [], []
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Invalid provider parameter (expected KEY=VALUE): {pair}")
        keys.append(key.strip())
        values.append(value)
    return keys, values


def print_report(report: MatchingReport):
    """Print results and a summary."""
    print(f"Column Matching Results ({report.provider_name})")
    print("=" * 40)
    print()

    if not report.results:
        print("No results returned")
        return

    for i, result in enumerate(report.results, start=1):
        print(f"Result {i}:")
        print(f"  Source Header: {result.source_header}")
        print(f"  Matched Target: {result.matched_target_header or '-'}")
        print(f"  Confidence: {result.confidence_percentage}%")
        print(f"  Used Existing Mapping: {result.used_existing_mapping}")
        print(f"  Reasoning: {result.reasoning}")
        print()

    stats = report.statistics
    print("Summary:")
    print(f"  Total Headers Processed: {stats.matched_headers_count}")
    print(f"  Existing Mappings Used: {stats.existing_mappings_used_count}")
    print(f"  Average Confidence: {stats.average_confidence:.2f}%")
    print(f"  Existing Mapping Utilization: {stats.existing_mapping_utilization_rate:.2f}%")


def run_match(args: argparse.Namespace) -> int:
    """Run a matching request from the command line."""
    try:
        source_headers = load_headers(Path(args.source))
        target_headers = load_headers(Path(args.target))
        mappings = load_mappings(Path(args.mappings)) if args.mappings else []
        keys, values = parse_params(args.param)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    service = ColumnMatchingService()
    try:
        request = MatchRequest(
            source_headers=source_headers,
            target_headers=target_headers,
            existing_mappings=mappings,
            industry_context=args.industry_context,
            model=ModelConfiguration(
                model_id=args.model,
                temperature=args.temperature,
                max_tokens=args.max_tokens,
                top_p=args.top_p,
                top_k=args.top_k,
            ),
            provider=build_provider_configuration(
                args.provider,
                args.provider_name,
                keys,
                values,
                args.access_key_id,
                args.secret_access_key,
            ),
        )
        report = service.match(request)
    except HeaderMatchError as e:
        logger.error(f"Column matching failed: {e}", exc_info=True)
        print(f"Error: {describe_failure(e)}", file=sys.stderr)
        return 1
    finally:
        service.close()

    print_report(report)

    if args.output:
        Path(args.output).write_text(
            json.dumps(report.model_dump(mode="json", by_alias=True), indent=2),
            encoding="utf-8",
        )
        print(f"\nReport written to {args.output}")
    return 0


def run_providers():
    """List the registered providers."""
    service = ColumnMatchingService()
    for provider_id in service.list_available_providers():
        print(provider_id)


def run_server(host: str, port: int, reload: bool):
    """Run the web server."""
    uvicorn.run(
        "headermatch.api:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
    )


if __name__ == "__main__":
    main()
