"""Standalone CLI for running one festival research from the command line.

Usage::

    python -m festifind.cli "Lowlands"
    python -m festifind.cli "Lowlands" --target contact_emails --target social_media
    python -m festifind.cli "Lowlands" --linkedin --json -o lowlands.json
    python -m festifind.cli "Lowlands" --events

Builds the orchestrator from ``.env`` and ``config/config.yaml``, runs the
research loop and prints a formatted report (or JSON) to stdout.  Progress
events (``--events``) and log lines go to stderr so stdout carries only the
report.

Exit codes: 0 when the research completed, 1 when it failed (or the
application is not configured), 2 when the query itself is invalid.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
import time
from pathlib import Path

from pydantic import ValidationError

from festifind.models.events import OrchestratorEvent
from festifind.models.research import (
    Priority,
    ResearchQuery,
    ResearchResult,
    ResearchStatus,
    TargetInfo,
)
from festifind.utils.confidence import confidence_to_level
from festifind.utils.errors import ConfigurationError, QueryValidationError

EXIT_COMPLETED = 0
EXIT_FAILED = 1
EXIT_INVALID_QUERY = 2

_SUMMARY_WIDTH = 160


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def _summarize(data: object) -> str:
    text = data if isinstance(data, str) else json.dumps(data, default=str)
    return text if len(text) <= _SUMMARY_WIDTH else text[: _SUMMARY_WIDTH - 3] + "..."


def _format_text_output(result: ResearchResult) -> str:
    """Format a research result as a human-readable text report."""
    lines: list[str] = []
    sep = "=" * 60

    lines.append(sep)
    lines.append("  FestiFind — Research Report")
    lines.append(sep)
    lines.append("")

    festival = result.festival_name
    if result.festival_id:
        festival += f"  (id: {result.festival_id})"
    lines.append(f"Festival:   {festival}")
    lines.append(f"Status:     {result.status.value}  |  Model turns: {result.iterations}")
    if result.error:
        lines.append(f"Error:      {result.error}")
    lines.append("")

    if result.findings:
        lines.append(f"FINDINGS ({len(result.findings)})")
        lines.append("-" * 40)
        for finding in result.findings:
            level = confidence_to_level(finding.confidence).value
            lines.append(f"  [{finding.confidence:.2f} {level}] {finding.type}")
            lines.append(f"    {_summarize(finding.data)}")
        lines.append("")

    if result.linkedin_profiles:
        lines.append("LINKEDIN PROFILES")
        lines.append("-" * 40)
        for profile in result.linkedin_profiles:
            lines.append(f"  [{profile.type.value}] {profile.url}")
        lines.append("")

    high = result.high_confidence_findings()
    lines.append(sep)
    lines.append(f"  High-confidence findings: {len(high)} of {len(result.findings)}")
    lines.append(sep)
    return "\n".join(lines)


def _format_json_output(result: ResearchResult) -> str:
    return json.dumps(result.model_dump(mode="json"), indent=2, default=str)


def _format_event(event: OrchestratorEvent) -> str:
    if event.type == "start":
        return f"start     {event.query.festival_name}"
    if event.type == "thinking":
        return f"thinking  {_summarize(event.content.strip())}"
    if event.type == "tool_call":
        return f"tool_call {event.tool} {_summarize(event.input)}"
    if event.type == "tool_result":
        return f"result    {event.tool} ({len(event.result)} chars)"
    if event.type == "finding":
        return f"finding   {event.finding.type} confidence={event.finding.confidence:.2f}"
    if event.type == "complete":
        return f"complete  {len(event.result.findings)} findings"
    return f"error     {event.error}"


def _print_event(event: OrchestratorEvent) -> None:
    print(_format_event(event), file=sys.stderr, flush=True)


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------


def _configure_cli_logging(quiet: bool) -> None:
    """Send logs to stderr; WARNING+ only when *quiet*.

    Must run before ``festifind.main`` is imported, because structlog caches
    loggers on first use.
    """
    from festifind.config.settings import Settings
    from festifind.utils.logging import configure_logging

    level = "WARNING" if quiet else Settings().log_level
    configure_logging(log_level=level, stream=sys.stderr)


def _build_query(args: argparse.Namespace) -> ResearchQuery:
    if args.linkedin:
        targets = [TargetInfo.LINKEDIN_COMPANY, TargetInfo.LINKEDIN_ORGANIZERS]
        max_depth, priority = 2, Priority.HIGH
    else:
        targets = args.targets or list(TargetInfo)
        max_depth, priority = args.max_depth, args.priority
    return ResearchQuery(
        festival_id=args.festival_id,
        festival_name=args.festival_name,
        target_info=targets,
        max_depth=max_depth,
        priority=priority,
    )


async def _run(args: argparse.Namespace) -> int:
    """Validate the query, build the orchestrator and run one research."""
    try:
        query = _build_query(args)
    except ValidationError as exc:
        print(f"Error: invalid research query: {exc}", file=sys.stderr)
        return EXIT_INVALID_QUERY

    # Deferred import: building providers reads the environment and
    # constructs SDK clients, which is wasted work for an invalid query.
    from festifind.main import build_orchestrator

    try:
        orchestrator = build_orchestrator(
            config_path=args.config,
            overrides={"max_iterations": args.max_iterations},
        )
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_FAILED

    if args.events:
        orchestrator.on_event(_print_event)

    print(f"Researching: {query.festival_name}", file=sys.stderr)
    start = time.monotonic()
    try:
        if args.linkedin:
            result = await orchestrator.find_linkedin(query.festival_name, query.festival_id)
        else:
            result = await orchestrator.research(query)
    except QueryValidationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_INVALID_QUERY
    finally:
        await orchestrator.aclose()
    print(f"Done in {time.monotonic() - start:.1f}s", file=sys.stderr)

    text = _format_json_output(result) if args.json_output else _format_text_output(result)
    if args.output:
        Path(args.output).write_text(text, encoding="utf-8")
        print(f"Results written to: {args.output}", file=sys.stderr)
    else:
        print(text)

    return EXIT_COMPLETED if result.status is ResearchStatus.COMPLETED else EXIT_FAILED


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="festifind-research",
        description=(
            "Research a music festival with a tool-calling language model: "
            "web search, LinkedIn discovery, page extraction and validation."
        ),
    )
    parser.add_argument("festival_name", type=str, help="Name of the festival to research.")
    parser.add_argument("--festival-id", type=str, default=None, help="Opaque id echoed in the result.")
    parser.add_argument(
        "--target",
        dest="targets",
        action="append",
        type=TargetInfo,
        choices=list(TargetInfo),
        metavar="CATEGORY",
        help=(
            "Information category to pursue; repeatable. "
            f"One of: {', '.join(t.value for t in TargetInfo)}. Default: all."
        ),
    )
    parser.add_argument("--max-depth", type=int, default=3, help="Advisory research depth, 1-5 (default 3).")
    parser.add_argument(
        "--priority",
        type=Priority,
        choices=list(Priority),
        default=Priority.NORMAL,
        metavar="{low,normal,high}",
        help="Advisory priority (default normal).",
    )
    parser.add_argument(
        "--linkedin",
        action="store_true",
        help="Quick LinkedIn-only research (company page and organizers).",
    )
    parser.add_argument(
        "--max-iterations",
        type=int,
        default=None,
        help="Override the maximum number of model turns.",
    )
    parser.add_argument(
        "--config",
        type=str,
        default="config/config.yaml",
        help="Path to the YAML configuration file.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        dest="json_output",
        help="Output the result as JSON instead of formatted text.",
    )
    parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="Write results to a file instead of stdout.",
    )
    parser.add_argument(
        "--events",
        action="store_true",
        help="Print live orchestrator events to stderr.",
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress log output below WARNING (implied by --json).",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point; exits with the research outcome's exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_cli_logging(quiet=args.quiet or args.json_output)
    exit_code = asyncio.run(_run(args))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
