"""Standalone CLI for resolving library tracks against online catalogs.

Usage::

    python -m tagresolver.cli import tracks.json
    python -m tagresolver.cli find --output pending.json
    python -m tagresolver.cli find --track-id 12 --track-id 13 --no-auto-apply
    python -m tagresolver.cli apply pending.json selections.json
    python -m tagresolver.cli analysis --clear

``find`` writes every track that needs a user decision to the pending file.
A selections file is a JSON list of objects with ``track_id``,
``selection_id`` (``"provider:id"`` or ``null`` for "not available") and an
optional ``clear_fields`` list.

Files scheduled for bpm/key analysis during ``find`` or ``apply`` are
recorded in the library database before the command exits; ``analysis``
lists them.

Summaries go to stdout; logs go to stderr.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import time
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from tagresolver.models.batch import (
    ApplyOutcome,
    BatchOptions,
    BatchSummary,
    SelectionChoice,
)
from tagresolver.models.candidate import CandidateResult
from tagresolver.models.track import LocalTrack
from tagresolver.pipeline.selection import resolve_choices
from tagresolver.utils.confidence import confidence_to_level
from tagresolver.utils.logging import configure_logging

_TRACKS = TypeAdapter(list[LocalTrack])
_RESULTS = TypeAdapter(list[CandidateResult])
_CHOICES = TypeAdapter(list[SelectionChoice])


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def _format_summary(summary: BatchSummary, elapsed: float) -> str:
    sep = "=" * 50
    lines = [
        sep,
        "  tagresolver -- Find Candidates",
        sep,
        f"  Tracks:         {summary.processed}/{summary.total}",
        f"  Auto-applied:   {summary.auto_applied}",
        f"  Need selection: {summary.pending}",
        f"  No candidates:  {summary.no_candidates}",
        f"  Errors:         {summary.errors}",
    ]
    if summary.cancelled:
        lines.append("  Run was cancelled before all tracks were processed")
    for warning in summary.warnings:
        lines.append(f"  ! {warning}")
    lines.append(f"  Elapsed:        {elapsed:.1f}s")
    lines.append(sep)
    return "\n".join(lines)


def _format_apply(outcome: ApplyOutcome, extra_errors: int) -> str:
    lines = [
        f"Updated: {len(outcome.updated)}",
        f"Skipped: {len(outcome.skipped)}",
        f"Errors:  {len(outcome.errors) + extra_errors}",
    ]
    if outcome.analysis_scheduled:
        lines.append(f"Queued for analysis: {len(outcome.analysis_scheduled)}")
    return "\n".join(lines)


def _format_pending(results: list[CandidateResult]) -> str:
    lines = ["Needs selection:"]
    for result in results:
        best = result.best
        if best is None:
            continue
        level = confidence_to_level(best.confidence).value
        lines.append(
            f"  {result.track_id}  {result.local_title or '?'} -> "
            f"{best.selection_id} ({best.confidence:.2f}, {level})"
        )
    return "\n".join(lines)


def _print_errors(errors) -> None:  # noqa: ANN001
    for error in errors:
        print(f"  {error.track_id}: {error.error}", file=sys.stderr)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


async def _open_services(db_path: str | None):  # noqa: ANN202
    # Deferred: tagresolver.main configures logging and builds the app on import.
    from tagresolver.main import build_services, settings
    from tagresolver.providers.library.sqlite_store import SQLiteLibraryStore

    configure_logging(log_level=settings.log_level, stream=sys.stderr)

    store = SQLiteLibraryStore(db_path or settings.library_db_path)
    await store.initialize()
    return build_services(settings, library_store=store)


async def _close_services(services) -> None:  # noqa: ANN001
    """Persist queued analysis paths, then release the HTTP client."""
    try:
        await services["analysis_scheduler"].flush(services["library_store"].enqueue_analysis)
    finally:
        await services["http_client"].aclose()


async def _cmd_import(args: argparse.Namespace) -> int:
    path = Path(args.tracks_file)
    if not path.exists():
        print(f"Error: File not found: {path}", file=sys.stderr)
        return 1
    try:
        tracks = _TRACKS.validate_json(path.read_text(encoding="utf-8"))
    except ValidationError as exc:
        print(f"Error: Invalid tracks file: {exc}", file=sys.stderr)
        return 1

    services = await _open_services(args.db)
    try:
        count = await services["library_store"].add_tracks(tracks)
    finally:
        await _close_services(services)
    print(f"Imported {count} tracks")
    return 0


async def _cmd_find(args: argparse.Namespace) -> int:
    services = await _open_services(args.db)
    try:
        tracks = await services["library_store"].list_tracks(args.track_id)
        if not tracks:
            print("No tracks to resolve", file=sys.stderr)
            return 1

        print(f"Resolving {len(tracks)} tracks", file=sys.stderr)
        start = time.monotonic()
        outcome = await services["orchestrator"].find_candidates(
            tracks, BatchOptions(auto_apply=not args.no_auto_apply)
        )
        elapsed = time.monotonic() - start
    finally:
        await _close_services(services)

    print(_format_summary(outcome.summary, elapsed))
    if outcome.pending:
        print(_format_pending(list(outcome.pending)))
    _print_errors(outcome.errors)

    Path(args.output).write_text(
        _RESULTS.dump_json(list(outcome.pending), indent=2).decode("utf-8"),
        encoding="utf-8",
    )
    print(f"Pending results written to: {args.output}", file=sys.stderr)
    return 0


async def _cmd_apply(args: argparse.Namespace) -> int:
    try:
        results = _RESULTS.validate_json(Path(args.pending_file).read_text(encoding="utf-8"))
        choices = _CHOICES.validate_json(Path(args.selections_file).read_text(encoding="utf-8"))
    except (OSError, ValidationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    selections, errors = resolve_choices(results, choices)
    services = await _open_services(args.db)
    try:
        outcome = await services["orchestrator"].apply_selections(selections)
    finally:
        await _close_services(services)

    print(_format_apply(outcome, len(errors)))
    _print_errors([*errors, *outcome.errors])
    return 0 if not (errors or outcome.errors) else 2


async def _cmd_analysis(args: argparse.Namespace) -> int:
    services = await _open_services(args.db)
    store = services["library_store"]
    try:
        paths = await store.pending_analysis()
        if args.clear and paths:
            await store.clear_analysis(paths)
    finally:
        await _close_services(services)

    print(f"Waiting for analysis: {len(paths)}")
    for path in paths:
        print(f"  {path}")
    if args.clear:
        print(f"Cleared {len(paths)} paths", file=sys.stderr)
    return 0


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m tagresolver.cli",
        description="Find and apply catalog metadata for library tracks.",
    )
    parser.add_argument(
        "--db",
        default=None,
        help="SQLite library path (default: LIBRARY_DB_PATH or data/library.db)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    import_cmd = sub.add_parser("import", help="Load tracks from a JSON file into the library")
    import_cmd.add_argument("tracks_file", help="JSON list of track objects")
    import_cmd.set_defaults(handler=_cmd_import)

    find_cmd = sub.add_parser("find", help="Find candidates for library tracks")
    find_cmd.add_argument(
        "--track-id",
        action="append",
        default=None,
        help="Restrict the run to this track (repeatable; default: whole library)",
    )
    find_cmd.add_argument(
        "--no-auto-apply",
        action="store_true",
        help="Send confident matches to the pending file instead of applying them",
    )
    find_cmd.add_argument(
        "--output",
        "-o",
        default="pending.json",
        help="Where to write results that need a selection (default: pending.json)",
    )
    find_cmd.set_defaults(handler=_cmd_find)

    apply_cmd = sub.add_parser("apply", help="Apply selections made from a pending file")
    apply_cmd.add_argument("pending_file", help="Pending results written by 'find'")
    apply_cmd.add_argument("selections_file", help="JSON list of selections")
    apply_cmd.set_defaults(handler=_cmd_apply)

    analysis_cmd = sub.add_parser(
        "analysis", help="List files waiting for bpm/key analysis"
    )
    analysis_cmd.add_argument(
        "--clear",
        action="store_true",
        help="Remove the listed files from the queue after printing them",
    )
    analysis_cmd.set_defaults(handler=_cmd_analysis)

    return parser


def main(argv: list[str] | None = None) -> None:
    """Parse arguments and run the chosen command."""
    args = _build_parser().parse_args(argv)
    sys.exit(asyncio.run(args.handler(args)))
