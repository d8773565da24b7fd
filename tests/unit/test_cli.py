"""Unit tests for the command-line interface in tagresolver.cli.resolve."""

from __future__ import annotations

import json
from argparse import Namespace
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from tagresolver.cli.resolve import (
    _build_parser,
    _cmd_analysis,
    _cmd_apply,
    _cmd_find,
    _cmd_import,
    _format_apply,
    _format_summary,
)
from tagresolver.models.batch import ApplyOutcome, BatchSummary
from tagresolver.models.config import TaggerConfig
from tagresolver.models.track import LocalTrack
from tagresolver.pipeline.batch_orchestrator import CandidateBatchOrchestrator
from tagresolver.pipeline.progress_tracker import ProgressTracker
from tagresolver.providers.analysis.queue_scheduler import QueueAnalysisScheduler
from tagresolver.providers.catalog.registry import enabled_in_priority_order
from tagresolver.providers.library.memory_store import MemoryLibraryStore
from tagresolver.services.apply_engine import ApplyEngine
from tagresolver.services.candidate_aggregator import CandidateAggregator
from tagresolver.services.scorer import CandidateScorer
from tests.conftest import FakeProvider, make_raw

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _services(config: TaggerConfig, tracks: list[LocalTrack]) -> dict[str, Any]:
    catalogs = {
        "beatport": FakeProvider(
            "beatport",
            {
                "strings of life": [make_raw("bp1", bpm=124, key="Am", duration=452.0)],
                "can you feel it": [
                    make_raw("bp3", title="Can You Feel It (Vocal)", artists=("Larry Heard",)),
                ],
            },
        ),
    }
    store = MemoryLibraryStore(tracks)
    scheduler = QueueAnalysisScheduler()
    orchestrator = CandidateBatchOrchestrator(
        aggregator_factory=lambda c: CandidateAggregator(
            enabled_in_priority_order(c, catalogs), CandidateScorer()
        ),
        apply_engine=ApplyEngine(store, catalogs, analysis_scheduler=scheduler),
        progress_tracker=ProgressTracker(),
        config_source=lambda: config,
    )
    http_client = MagicMock()
    http_client.aclose = AsyncMock()
    return {
        "library_store": store,
        "orchestrator": orchestrator,
        "analysis_scheduler": scheduler,
        "http_client": http_client,
    }


# ======================================================================
# Parser
# ======================================================================


class TestParser:
    def test_find_defaults(self) -> None:
        args = _build_parser().parse_args(["find"])

        assert args.command == "find"
        assert args.track_id is None
        assert args.no_auto_apply is False
        assert args.output == "pending.json"
        assert args.db is None
        assert args.handler is _cmd_find

    def test_find_repeated_track_ids(self) -> None:
        args = _build_parser().parse_args(
            ["--db", "lib.db", "find", "--track-id", "1", "--track-id", "2", "--no-auto-apply", "-o", "out.json"]
        )

        assert args.db == "lib.db"
        assert args.track_id == ["1", "2"]
        assert args.no_auto_apply is True
        assert args.output == "out.json"

    def test_apply_positional_files(self) -> None:
        args = _build_parser().parse_args(["apply", "pending.json", "choices.json"])

        assert args.pending_file == "pending.json"
        assert args.selections_file == "choices.json"
        assert args.handler is _cmd_apply

    def test_analysis_clear_flag(self) -> None:
        args = _build_parser().parse_args(["analysis", "--clear"])

        assert args.clear is True
        assert args.handler is _cmd_analysis

    def test_subcommand_required(self) -> None:
        with pytest.raises(SystemExit):
            _build_parser().parse_args([])


# ======================================================================
# Formatting
# ======================================================================


class TestFormatting:
    def test_summary_lists_counts_and_warnings(self) -> None:
        summary = BatchSummary(
            total=3,
            processed=2,
            auto_applied=1,
            pending=1,
            cancelled=True,
            warnings=("No catalog providers are enabled",),
        )
        text = _format_summary(summary, 1.5)

        assert "Tracks:         2/3" in text
        assert "Auto-applied:   1" in text
        assert "cancelled" in text
        assert "! No catalog providers are enabled" in text
        assert "Elapsed:        1.5s" in text

    def test_apply_counts_extra_errors(self) -> None:
        outcome = ApplyOutcome(skipped=("t2",), analysis_scheduled=("/music/a.mp3",))
        text = _format_apply(outcome, extra_errors=2)

        assert "Skipped: 1" in text
        assert "Errors:  2" in text
        assert "Queued for analysis: 1" in text


# ======================================================================
# Commands
# ======================================================================


class TestImportCommand:
    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path: Path) -> None:
        result = await _cmd_import(Namespace(tracks_file=str(tmp_path / "none.json"), db=None))
        assert result == 1

    @pytest.mark.asyncio
    async def test_invalid_file(self, tmp_path: Path) -> None:
        bad = tmp_path / "tracks.json"
        bad.write_text(json.dumps([{"title": "no id"}]))

        result = await _cmd_import(Namespace(tracks_file=str(bad), db=None))
        assert result == 1

    @pytest.mark.asyncio
    async def test_imports_tracks(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        tracks_file = tmp_path / "tracks.json"
        tracks_file.write_text(json.dumps([{"id": "t1", "title": "Strings of Life"}]))
        store = MagicMock()
        store.add_tracks = AsyncMock(return_value=1)
        http_client = MagicMock()
        http_client.aclose = AsyncMock()
        services = {
            "library_store": store,
            "analysis_scheduler": QueueAnalysisScheduler(),
            "http_client": http_client,
        }

        with patch(
            "tagresolver.cli.resolve._open_services",
            new_callable=AsyncMock,
            return_value=services,
        ):
            result = await _cmd_import(Namespace(tracks_file=str(tracks_file), db=None))

        assert result == 0
        assert store.add_tracks.await_args.args[0][0].id == "t1"
        http_client.aclose.assert_awaited_once()
        assert "Imported 1 tracks" in capsys.readouterr().out


class TestFindCommand:
    @pytest.mark.asyncio
    async def test_writes_pending_results(
        self,
        tmp_path: Path,
        tagger_config: TaggerConfig,
        sample_tracks: list[LocalTrack],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        services = _services(tagger_config, sample_tracks)
        output = tmp_path / "pending.json"

        with patch(
            "tagresolver.cli.resolve._open_services",
            new_callable=AsyncMock,
            return_value=services,
        ):
            result = await _cmd_find(
                Namespace(db=None, track_id=None, no_auto_apply=False, output=str(output))
            )

        assert result == 0
        pending = json.loads(output.read_text())
        assert [p["track_id"] for p in pending] == ["t3"]
        assert pending[0]["candidates"][0]["provider"] == "beatport"
        updated = await services["library_store"].find_track_by_id("t1")
        assert updated.bpm == 124
        assert "t3  Can You Feel It -> beatport:bp3" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_no_tracks(self, tmp_path: Path, tagger_config: TaggerConfig) -> None:
        services = _services(tagger_config, [])

        with patch(
            "tagresolver.cli.resolve._open_services",
            new_callable=AsyncMock,
            return_value=services,
        ):
            result = await _cmd_find(
                Namespace(
                    db=None, track_id=None, no_auto_apply=False, output=str(tmp_path / "p.json")
                )
            )

        assert result == 1
        services["http_client"].aclose.assert_awaited_once()


class TestApplyCommand:
    async def _pending_file(self, tmp_path: Path, services: dict[str, Any]) -> Path:
        output = tmp_path / "pending.json"
        with patch(
            "tagresolver.cli.resolve._open_services",
            new_callable=AsyncMock,
            return_value=services,
        ):
            await _cmd_find(
                Namespace(db=None, track_id=["t3"], no_auto_apply=False, output=str(output))
            )
        return output

    @pytest.mark.asyncio
    async def test_applies_selection(
        self,
        tmp_path: Path,
        tagger_config: TaggerConfig,
        sample_tracks: list[LocalTrack],
    ) -> None:
        services = _services(tagger_config, sample_tracks)
        pending = await self._pending_file(tmp_path, services)
        choices = tmp_path / "choices.json"
        choices.write_text(json.dumps([{"track_id": "t3", "selection_id": "beatport:bp3"}]))

        with patch(
            "tagresolver.cli.resolve._open_services",
            new_callable=AsyncMock,
            return_value=services,
        ):
            result = await _cmd_apply(
                Namespace(db=None, pending_file=str(pending), selections_file=str(choices))
            )

        assert result == 0
        track = await services["library_store"].find_track_by_id("t3")
        assert track.title == "Can You Feel It (Vocal)"
        assert await services["library_store"].pending_analysis() == ["/music/feel.mp3"]
        assert services["analysis_scheduler"].pending() == []
        services["http_client"].aclose.assert_awaited()

    @pytest.mark.asyncio
    async def test_unknown_selection_exits_with_2(
        self,
        tmp_path: Path,
        tagger_config: TaggerConfig,
        sample_tracks: list[LocalTrack],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        services = _services(tagger_config, sample_tracks)
        pending = await self._pending_file(tmp_path, services)
        choices = tmp_path / "choices.json"
        choices.write_text(json.dumps([{"track_id": "t3", "selection_id": "beatport:zzz"}]))

        with patch(
            "tagresolver.cli.resolve._open_services",
            new_callable=AsyncMock,
            return_value=services,
        ):
            result = await _cmd_apply(
                Namespace(db=None, pending_file=str(pending), selections_file=str(choices))
            )

        assert result == 2
        assert "Unknown selection: beatport:zzz" in capsys.readouterr().err

    @pytest.mark.asyncio
    async def test_unreadable_files(self, tmp_path: Path) -> None:
        result = await _cmd_apply(
            Namespace(
                db=None,
                pending_file=str(tmp_path / "missing.json"),
                selections_file=str(tmp_path / "also-missing.json"),
            )
        )
        assert result == 1


class TestAnalysisCommand:
    @pytest.mark.asyncio
    async def test_lists_waiting_files(
        self,
        tagger_config: TaggerConfig,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        services = _services(tagger_config, [])
        await services["library_store"].enqueue_analysis(["/music/a.mp3", "/music/b.mp3"])

        with patch(
            "tagresolver.cli.resolve._open_services",
            new_callable=AsyncMock,
            return_value=services,
        ):
            result = await _cmd_analysis(Namespace(db=None, clear=False))

        assert result == 0
        out = capsys.readouterr().out
        assert "Waiting for analysis: 2" in out
        assert "  /music/b.mp3" in out
        assert await services["library_store"].pending_analysis() == ["/music/a.mp3", "/music/b.mp3"]

    @pytest.mark.asyncio
    async def test_clear_empties_the_queue(self, tagger_config: TaggerConfig) -> None:
        services = _services(tagger_config, [])
        await services["library_store"].enqueue_analysis(["/music/a.mp3"])

        with patch(
            "tagresolver.cli.resolve._open_services",
            new_callable=AsyncMock,
            return_value=services,
        ):
            result = await _cmd_analysis(Namespace(db=None, clear=True))

        assert result == 0
        assert await services["library_store"].pending_analysis() == []
