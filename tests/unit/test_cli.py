"""Unit tests for the research CLI — festifind.cli.research."""

from __future__ import annotations

import json
from argparse import Namespace
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from festifind.cli.research import (
    EXIT_COMPLETED,
    EXIT_FAILED,
    EXIT_INVALID_QUERY,
    _build_parser,
    _build_query,
    _format_event,
    _format_json_output,
    _format_text_output,
    _run,
    main,
)
from festifind.models.events import ErrorEvent, FindingEvent, ToolCallEvent
from festifind.models.research import (
    Finding,
    LinkedInProfileRef,
    LinkedInProfileType,
    Priority,
    ResearchResult,
    ResearchStatus,
    TargetInfo,
)
from festifind.utils.errors import ConfigurationError


# ======================================================================
# Shared helpers
# ======================================================================


def _args(*argv: str) -> Namespace:
    return _build_parser().parse_args(list(argv))


def _result(status: ResearchStatus = ResearchStatus.COMPLETED, **overrides) -> ResearchResult:
    fields = {
        "festival_id": "fest-1",
        "festival_name": "Lowlands",
        "findings": [
            Finding(type="web_search", data={"success": True}, confidence=0.7, source="web_search"),
            Finding(
                type="validate_linkedin_url",
                data={"is_valid": True, "standardized_url": "https://www.linkedin.com/company/mojo"},
                confidence=0.95,
                source="validate_linkedin_url",
            ),
        ],
        "linkedin_profiles": [
            LinkedInProfileRef(
                url="https://www.linkedin.com/company/mojo",
                type=LinkedInProfileType.COMPANY,
                name="Lowlands",
            )
        ],
        "status": status,
        "iterations": 3,
        "error": "model unavailable" if status is ResearchStatus.FAILED else None,
    }
    fields.update(overrides)
    return ResearchResult(**fields)


def _mock_orchestrator(result: ResearchResult) -> MagicMock:
    orchestrator = MagicMock()
    orchestrator.research = AsyncMock(return_value=result)
    orchestrator.find_linkedin = AsyncMock(return_value=result)
    orchestrator.aclose = AsyncMock()
    return orchestrator


# ======================================================================
# Parser / query
# ======================================================================


class TestParser:
    def test_defaults(self) -> None:
        args = _args("Lowlands")
        assert args.festival_name == "Lowlands"
        assert args.targets is None
        assert args.max_depth == 3
        assert args.priority is Priority.NORMAL
        assert args.linkedin is False
        assert args.json_output is False
        assert args.config == "config/config.yaml"

    def test_repeatable_targets(self) -> None:
        args = _args("Lowlands", "--target", "contact_emails", "--target", "social_media")
        assert args.targets == [TargetInfo.CONTACT_EMAILS, TargetInfo.SOCIAL_MEDIA]

    def test_unknown_target_rejected(self) -> None:
        with pytest.raises(SystemExit):
            _args("Lowlands", "--target", "weather")

    def test_query_defaults_to_all_targets(self) -> None:
        query = _build_query(_args("Lowlands", "--festival-id", "f-9", "--priority", "high"))
        assert query.target_info == list(TargetInfo)
        assert query.festival_id == "f-9"
        assert query.priority is Priority.HIGH

    def test_linkedin_shortcut(self) -> None:
        query = _build_query(_args("Lowlands", "--linkedin", "--target", "venue_details", "--max-depth", "5"))
        assert query.target_info == [TargetInfo.LINKEDIN_COMPANY, TargetInfo.LINKEDIN_ORGANIZERS]
        assert query.max_depth == 2
        assert query.priority is Priority.HIGH


# ======================================================================
# Formatters
# ======================================================================


class TestFormatters:
    def test_text_report(self) -> None:
        text = _format_text_output(_result())
        assert "Festival:   Lowlands  (id: fest-1)" in text
        assert "Status:     completed  |  Model turns: 3" in text
        assert "FINDINGS (2)" in text
        assert "[0.95 very_high] validate_linkedin_url" in text
        assert "[company] https://www.linkedin.com/company/mojo" in text
        assert "High-confidence findings: 1 of 2" in text
        assert "Error:" not in text

    def test_text_report_failed(self) -> None:
        text = _format_text_output(_result(ResearchStatus.FAILED, findings=[], linkedin_profiles=None))
        assert "Error:      model unavailable" in text
        assert "FINDINGS" not in text
        assert "LINKEDIN PROFILES" not in text

    def test_long_data_is_truncated(self) -> None:
        finding = Finding(type="t", data="x" * 500, confidence=0.5, source="t")
        text = _format_text_output(_result(findings=[finding]))
        assert "x" * 157 + "..." in text
        assert "x" * 158 not in text

    def test_json_output(self) -> None:
        data = json.loads(_format_json_output(_result()))
        assert data["status"] == "completed"
        assert data["findings"][1]["confidence"] == 0.95
        assert data["linkedin_profiles"][0]["type"] == "company"

    def test_format_events(self) -> None:
        assert _format_event(ToolCallEvent(tool="web_search", input={"query": "x"})) == (
            'tool_call web_search {"query": "x"}'
        )
        finding = Finding(type="web_search", confidence=0.7, source="web_search")
        assert _format_event(FindingEvent(finding=finding)) == "finding   web_search confidence=0.70"
        assert _format_event(ErrorEvent(error="boom")) == "error     boom"


# ======================================================================
# _run / main
# ======================================================================


class TestRun:
    @pytest.mark.asyncio
    async def test_completed_prints_report(self, capsys: pytest.CaptureFixture[str]) -> None:
        orchestrator = _mock_orchestrator(_result())
        with patch("festifind.main.build_orchestrator", return_value=orchestrator) as build:
            code = await _run(_args("Lowlands", "--max-iterations", "4"))

        assert code == EXIT_COMPLETED
        build.assert_called_once_with(config_path="config/config.yaml", overrides={"max_iterations": 4})
        assert "Research Report" in capsys.readouterr().out
        query = orchestrator.research.await_args.args[0]
        assert query.festival_name == "Lowlands"
        orchestrator.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failed_result_exit_code(self) -> None:
        orchestrator = _mock_orchestrator(_result(ResearchStatus.FAILED))
        with patch("festifind.main.build_orchestrator", return_value=orchestrator):
            assert await _run(_args("Lowlands")) == EXIT_FAILED

    @pytest.mark.asyncio
    async def test_linkedin_uses_shortcut(self) -> None:
        orchestrator = _mock_orchestrator(_result())
        with patch("festifind.main.build_orchestrator", return_value=orchestrator):
            await _run(_args("Lowlands", "--linkedin", "--festival-id", "f-1"))
        orchestrator.find_linkedin.assert_awaited_once_with("Lowlands", "f-1")
        orchestrator.research.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_orchestrator_closed_when_research_raises(self) -> None:
        orchestrator = _mock_orchestrator(_result())
        orchestrator.research = AsyncMock(side_effect=RuntimeError("loop crashed"))
        with patch("festifind.main.build_orchestrator", return_value=orchestrator):
            with pytest.raises(RuntimeError, match="loop crashed"):
                await _run(_args("Lowlands"))
        orchestrator.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_invalid_query_exits_before_building(self) -> None:
        with patch("festifind.main.build_orchestrator") as build:
            code = await _run(_args("   "))
        assert code == EXIT_INVALID_QUERY
        build.assert_not_called()

    @pytest.mark.asyncio
    async def test_configuration_error(self, capsys: pytest.CaptureFixture[str]) -> None:
        with patch(
            "festifind.main.build_orchestrator",
            side_effect=ConfigurationError(message="No LLM provider configured"),
        ):
            code = await _run(_args("Lowlands"))
        assert code == EXIT_FAILED
        assert "No LLM provider configured" in capsys.readouterr().err

    @pytest.mark.asyncio
    async def test_json_written_to_file(self, tmp_path: Path) -> None:
        out = tmp_path / "lowlands.json"
        with patch("festifind.main.build_orchestrator", return_value=_mock_orchestrator(_result())):
            await _run(_args("Lowlands", "--json", "-o", str(out)))
        assert json.loads(out.read_text())["festival_name"] == "Lowlands"

    @pytest.mark.asyncio
    async def test_events_subscribes_printer(self) -> None:
        orchestrator = _mock_orchestrator(_result())
        with patch("festifind.main.build_orchestrator", return_value=orchestrator):
            await _run(_args("Lowlands", "--events"))
        orchestrator.on_event.assert_called_once()


def test_main_exits_with_run_code() -> None:
    with patch("festifind.cli.research._configure_cli_logging") as logging_setup, patch(
        "festifind.main.build_orchestrator", return_value=_mock_orchestrator(_result())
    ):
        with pytest.raises(SystemExit) as exc_info:
            main(["Lowlands", "--quiet"])
    assert exc_info.value.code == EXIT_COMPLETED
    logging_setup.assert_called_once_with(quiet=True)
