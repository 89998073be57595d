# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""CLI harness for feature parsing, result parsing and documentation generation."""

import argparse
import json
import logging
import sys
from dataclasses import asdict, replace
from pathlib import Path
from typing import Any, TextIO

from rich.console import Console
from rich.logging import RichHandler
from rich.style import Style
from rich.table import Table

from ldg.config import ConfigError, GenerationConfig, find_config, load_config
from ldg.execution import ExecutionRecord, ResultFailure
from ldg.model import Feature
from ldg.pipeline import GenerationError, LivingDocGenerator
from ldg.registry import ResultAdapterRegistry
from ldg.specification import SpecificationFailure
from ldg.specifications import GherkinAdapter
from ldg.summary import DocumentationSet, StatusCounts

logger = logging.getLogger(__name__)

STATUS_STYLES: dict[str, str] = {
    "passed": "green",
    "failed": "red",
    "skipped": "yellow",
    "pending": "yellow",
    "undefined": "magenta",
    "not_executed": "dim",
}


def configure_logging(level: int = logging.INFO) -> None:
    """Configure application logging with Rich handler.

    Args:
        level: Logging severity threshold.
    """
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser instance.
    """
    parser = argparse.ArgumentParser(prog="ldg")
    subparsers = parser.add_subparsers(dest="command", required=True)

    features_parser = subparsers.add_parser("parse-features")
    features_parser.add_argument(
        "--path", required=True, help="Directory holding .feature files."
    )
    _add_output_arguments(features_parser)

    results_parser = subparsers.add_parser("parse-results")
    results_parser.add_argument(
        "--path",
        required=True,
        nargs="+",
        help="Result report files and/or directories.",
    )
    _add_output_arguments(results_parser)

    generate_parser = subparsers.add_parser("generate")
    generate_parser.add_argument(
        "--features", required=False, help="Directory holding .feature files."
    )
    generate_parser.add_argument(
        "--results",
        nargs="*",
        default=[],
        help="Result report files and/or directories.",
    )
    generate_parser.add_argument(
        "--config",
        required=False,
        help="Path to a bdd-livingdoc.json file; looked up in the working directory when omitted.",
    )
    generate_parser.add_argument(
        "--verbose",
        action="store_true",
        help="Warn about every scenario without a result and log at debug level.",
    )
    _add_output_arguments(generate_parser)
    return parser


def _add_output_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--format",
        choices=("table", "json"),
        default="table",
        help="Output format.",
    )
    parser.add_argument(
        "--output",
        required=False,
        help="Optional output file path for raw JSON when --format json is used.",
    )


def run(argv: list[str], stdout: TextIO, stderr: TextIO) -> int:
    """Run CLI command.

    Args:
        argv: CLI arguments.
        stdout: Standard output stream.
        stderr: Standard error stream.

    Returns:
        Exit code.
    """
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit:
        logger.warning(f"Argument parsing failed (argv={argv})")
        return 2
    if args.command == "parse-features":
        return _run_parse_features(args=args, stdout=stdout, stderr=stderr)
    if args.command == "parse-results":
        return _run_parse_results(args=args, stdout=stdout, stderr=stderr)
    if args.command == "generate":
        return _run_generate(args=args, stdout=stdout, stderr=stderr)

    logger.warning(f"Unsupported command (command={args.command})")
    stderr.write(f"Unsupported command: {args.command}\n")
    return 2


def _run_parse_features(
    args: argparse.Namespace, stdout: TextIO, stderr: TextIO
) -> int:
    root_path = Path(args.path)
    if not root_path.is_dir():
        logger.warning(f"Path does not exist (path={root_path})")
        stderr.write(f"Path does not exist: {root_path}\n")
        return 2

    features, failures = GherkinAdapter().parse_directory(root_path)
    _write_failures(failures, stderr=stderr)
    payload = {
        "features": [asdict(feature) for feature in features],
        "errors": [asdict(failure) for failure in failures],
    }
    if args.format == "json":
        return _emit_json(payload, args=args, stdout=stdout, stderr=stderr)
    _write_feature_table(features, stdout=stdout)
    return 0


def _run_parse_results(
    args: argparse.Namespace, stdout: TextIO, stderr: TextIO
) -> int:
    paths = [Path(path) for path in args.path]
    try:
        batch = ResultAdapterRegistry().parse_paths(paths)
    except FileNotFoundError as exc:
        logger.warning(f"Result path does not exist (error={exc})")
        stderr.write(f"{exc}\n")
        return 2

    _write_failures(batch.failures, stderr=stderr)
    for file_path in batch.unrecognized:
        stderr.write(f"unrecognized_result: {file_path}\n")
    if args.format == "json":
        return _emit_json(asdict(batch), args=args, stdout=stdout, stderr=stderr)
    _write_record_table(batch.records, stdout=stdout)
    return 0


def _run_generate(args: argparse.Namespace, stdout: TextIO, stderr: TextIO) -> int:
    try:
        config = _load_generation_config(args.config)
    except ConfigError as exc:
        logger.warning(f"Invalid configuration (config_path={args.config} error={exc})")
        stderr.write(f"Invalid configuration: {exc}\n")
        return 2
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        config = replace(config, verbose=True)

    features_path = Path(args.features) if args.features else config.features_path
    if features_path is None:
        stderr.write("A feature directory is required (--features or config paths.features)\n")
        return 2
    if args.results:
        result_paths = [Path(path) for path in args.results]
    else:
        result_paths = [config.results_path] if config.results_path else []

    try:
        documentation = LivingDocGenerator(config=config).generate(
            features_path, result_paths
        )
    except GenerationError as exc:
        logger.warning(f"Generation failed (error={exc})")
        stderr.write(f"{exc}\n")
        return 2

    _write_failures(documentation.parse_failures, stderr=stderr)
    _write_failures(documentation.result_failures, stderr=stderr)
    for file_path in documentation.unrecognized_results:
        stderr.write(f"unrecognized_result: {file_path}\n")
    for warning in documentation.warnings:
        stderr.write(f"{warning.kind}: {warning.message}\n")

    if args.format == "json":
        if not args.output and config.output_path is not None:
            args.output = str(config.output_path)
        return _emit_json(asdict(documentation), args=args, stdout=stdout, stderr=stderr)
    _write_summary_table(documentation, stdout=stdout)
    return 0


def _load_generation_config(config_arg: str | None) -> GenerationConfig:
    """Load the explicit config file, or one found in the working directory.

    Raises:
        ConfigError: If the file is invalid.
    """
    if config_arg:
        return load_config(Path(config_arg))
    found = find_config(Path.cwd())
    if found is None:
        return GenerationConfig()
    return load_config(found)


def _write_failures(
    failures: list[SpecificationFailure] | list[ResultFailure], stderr: TextIO
) -> None:
    for failure in failures:
        stderr.write(f"parse_error: {failure.file_path}: {failure.message}\n")


def _emit_json(
    payload: dict[str, Any], args: argparse.Namespace, stdout: TextIO, stderr: TextIO
) -> int:
    """Write a JSON payload to the output file or to stdout.

    Returns:
        Exit code.
    """
    text = json.dumps(payload, indent=2, sort_keys=True, default=str)
    if not args.output:
        console = Console(file=stdout, force_terminal=False, color_system="truecolor")
        console.print(text, markup=False, highlight=False, soft_wrap=True)
        return 0
    output_path = Path(args.output)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(text, encoding="utf-8")
    except OSError as exc:
        logger.warning(
            f"Failed to write JSON output file (output_path={args.output} error={exc})"
        )
        stderr.write(f"Failed to write JSON output file: {args.output}\n")
        return 2
    return 0


def _write_feature_table(features: list[Feature], stdout: TextIO) -> None:
    console = Console(file=stdout, force_terminal=False, color_system="truecolor")
    table = Table(show_header=True, show_lines=True, expand=True)
    table.add_column("file_path", ratio=3, overflow="fold")
    table.add_column("feature", ratio=3, overflow="fold")
    table.add_column("language", ratio=1)
    table.add_column("rules", ratio=1, justify="right")
    table.add_column("scenarios", ratio=1, justify="right")
    table.add_column("tags", ratio=2, overflow="fold")
    for feature in features:
        scenario_count = len(feature.scenarios) + sum(
            len(rule.scenarios) for rule in feature.rules
        )
        table.add_row(
            feature.file_path,
            feature.name,
            feature.language,
            str(len(feature.rules)),
            str(scenario_count),
            " ".join(feature.tags),
        )
    console.print(table)


def _write_record_table(records: list[ExecutionRecord], stdout: TextIO) -> None:
    console = Console(file=stdout, force_terminal=False, color_system="truecolor")
    records_by_file: dict[str, list[ExecutionRecord]] = {}
    for record in records:
        records_by_file.setdefault(record.source_path, []).append(record)

    for source_path in sorted(records_by_file):
        console.rule(source_path, style=Style(color="cyan"), characters="-")
        table = Table(show_header=True, show_lines=True, expand=True)
        table.add_column("feature", ratio=3, overflow="fold")
        table.add_column("scenario", ratio=4, overflow="fold")
        table.add_column("status", ratio=1)
        table.add_column("steps", ratio=1, justify="right")
        table.add_column("duration", ratio=1, justify="right")
        for record in records_by_file[source_path]:
            table.add_row(
                str(record.feature_path or record.feature_name or ""),
                record.scenario_name,
                _styled(record.status),
                str(len(record.steps)),
                f"{record.duration:.3f}",
            )
        console.print(table)


def _write_summary_table(documentation: DocumentationSet, stdout: TextIO) -> None:
    console = Console(file=stdout, force_terminal=False, color_system="truecolor")
    console.rule(documentation.title, style=Style(color="cyan"), characters="-")
    table = Table(show_header=True, show_lines=True, expand=True)
    table.add_column("feature", ratio=4, overflow="fold")
    table.add_column("status", ratio=1)
    for column in ("passed", "failed", "skipped", "pending", "undefined", "not_executed"):
        table.add_column(column, ratio=1, justify="right")
    table.add_column("pass_rate", ratio=1, justify="right")
    for summary in documentation.summary.by_feature:
        table.add_row(
            summary.name or summary.file_path,
            _styled(summary.status),
            *_count_cells(summary.scenarios),
        )
    total = documentation.summary.scenarios
    table.add_row("total", "", *_count_cells(total))
    console.print(table)


def _count_cells(counts: StatusCounts) -> list[str]:
    return [
        str(counts.passed),
        str(counts.failed),
        str(counts.skipped),
        str(counts.pending),
        str(counts.undefined),
        str(counts.not_executed),
        f"{counts.pass_rate:.1f}%",
    ]


def _styled(status: str) -> str:
    return f"[{STATUS_STYLES[status]}]{status}[/]"


def main() -> None:
    """Run the CLI application and exit."""
    configure_logging()
    exit_code = run(sys.argv[1:], stdout=sys.stdout, stderr=sys.stderr)
    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
