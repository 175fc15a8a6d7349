"""Tests for pipeline orchestrator."""

from __future__ import annotations

import asyncio
import copy

import pytest

from resume_curator.config import AppConfig, LLMConfig, PipelineConfig, SelectionConfig
from resume_curator.content.store import ContentLibrary, ContentStore
from resume_curator.exceptions import GenerationError
from resume_curator.logging.cost_calculator import calculate_cost
from resume_curator.models.result import StageStatus, ValidationIssue, ValidationReport
from resume_curator.pipeline.orchestrator import (
    CancellationToken,
    PipelineOrchestrator,
    PipelineResult,
)
from resume_curator.pipeline.stages.highlights import HighlightsStage
from resume_curator.pipeline.stages.summary import SummaryStage

GENERATION_STAGES = ["summary", "highlights", "position_1", "position_2", "early_career"]


@pytest.fixture
def responses(stage_payloads, llm_response):
    """One valid response per generation stage, in run order."""
    return [llm_response(stage_payloads[name]) for name in GENERATION_STAGES]


@pytest.fixture
def short_p1_bullet(stage_payloads, make_text, llm_response):
    payload = copy.deepcopy(stage_payloads["position_1"])
    payload["bullets"][1]["content"] = make_text(20, "Negotiated")
    return llm_response(payload)


def _orchestrator(llm, store, config, **kwargs) -> PipelineOrchestrator:
    return PipelineOrchestrator(llm, store, config=config, **kwargs)


class TestFullRun:
    async def test_all_stages_succeed(
        self, mock_llm_client, small_store, pipeline_config, jd_analysis, responses
    ):
        mock_llm_client.generate.side_effect = responses
        result = await _orchestrator(mock_llm_client, small_store, pipeline_config).run(
            analysis=jd_analysis
        )

        assert isinstance(result, PipelineResult)
        assert result.success
        assert result.first_fatal_error is None
        assert [r.stage_name for r in result.stage_results] == GENERATION_STAGES
        assert all(r.status is StageStatus.SUCCESS for r in result.stage_results)
        assert mock_llm_client.generate.await_count == 5
        assert result.assembled is not None
        assert result.assembled.target_role.company == "Acme Payments"
        assert result.assembled.position(3).overview.startswith("Managed")
        assert result.format_report is not None
        assert result.coverage is not None
        assert result.total_cost > 0

    async def test_analysis_stage_runs_from_jd_text(
        self, mock_llm_client, small_store, pipeline_config, jd_analysis, responses, llm_response
    ):
        mock_llm_client.generate.side_effect = [
            llm_response(jd_analysis.model_dump()), *responses,
        ]
        result = await _orchestrator(mock_llm_client, small_store, pipeline_config).run(
            "Director of Product Marketing at Acme Payments..."
        )

        assert result.success
        assert result.analysis.metadata.company == "Acme Payments"
        first = mock_llm_client.generate.call_args_list[0].kwargs
        assert first["model"] == pipeline_config.llm.analysis_model
        assert first["temperature"] == 0.0
        assert "Acme Payments" in first["prompt"]

    async def test_analysis_temperature_from_config(
        self, mock_llm_client, small_store, jd_analysis, responses, llm_response
    ):
        config = AppConfig(
            llm=LLMConfig(analysis_temperature=0.2),
            selection=SelectionConfig(highlight_count=2, p1_bullet_count=2, p2_bullet_count=1),
        )
        mock_llm_client.generate.side_effect = [
            llm_response(jd_analysis.model_dump()), *responses,
        ]
        await _orchestrator(mock_llm_client, small_store, config).run("Director of PMM...")

        calls = mock_llm_client.generate.call_args_list
        assert calls[0].kwargs["temperature"] == 0.2
        assert calls[1].kwargs["temperature"] == config.llm.temperature

    async def test_state_grows_and_is_banned_downstream(
        self, mock_llm_client, small_store, pipeline_config, jd_analysis, responses
    ):
        mock_llm_client.generate.side_effect = responses
        result = await _orchestrator(mock_llm_client, small_store, pipeline_config).run(
            analysis=jd_analysis
        )

        prompts = [c.kwargs["prompt"] for c in mock_llm_client.generate.call_args_list]
        assert "BANNED ITEMS" not in prompts[0]
        assert "Base ids: SUM-01" in prompts[1]
        assert "Metrics: 40%" in prompts[1]
        assert "Base ids: CH-01, CH-02, SUM-01" in prompts[2]
        assert "Leading verbs: grew, launched" in prompts[2]
        assert "drove" in prompts[3] and "negotiated" in prompts[3]

        state = result.final_state
        assert state.used_base_ids == {
            "SUM-01", "CH-01", "CH-02", "P1-B01", "P1-B02", "P2-B01",
        }
        assert {"launched", "grew", "drove", "negotiated", "rebuilt", "managed"} <= (
            state.used_leading_verbs
        )
        assert state.used_numeric_claims == {"40%", "$12m"}

    async def test_diagnostic_record_per_attempt(
        self, mock_llm_client, small_store, pipeline_config, jd_analysis, responses
    ):
        records = []
        mock_llm_client.generate.side_effect = responses
        await _orchestrator(mock_llm_client, small_store, pipeline_config).run(
            analysis=jd_analysis, on_diagnostic=records.append, run_id="run-42"
        )

        assert [r.stage for r in records] == GENERATION_STAGES
        assert {r.run_id for r in records} == {"run-42"}
        assert all(r.status == "success" and r.tokens_in == 100 for r in records)

    async def test_phase_callbacks(
        self, mock_llm_client, small_store, pipeline_config, jd_analysis, responses
    ):
        phases = []
        mock_llm_client.generate.side_effect = responses
        await _orchestrator(mock_llm_client, small_store, pipeline_config).run(
            analysis=jd_analysis, on_phase=lambda phase, detail: phases.append(phase)
        )
        assert phases == ["selection", *GENERATION_STAGES, "done"]

    async def test_stage_without_positions_is_skipped(
        self, mock_llm_client, small_store, pipeline_config, jd_analysis, responses
    ):
        profile = small_store.get_profile().model_copy(
            update={"positions": small_store.get_profile().positions[:2]}
        )
        store = ContentStore(ContentLibrary(
            profile=profile, items=small_store.get_all_content_items()
        ))
        mock_llm_client.generate.side_effect = responses[:4]
        result = await _orchestrator(mock_llm_client, store, pipeline_config).run(
            analysis=jd_analysis
        )

        assert result.success
        early = result.stage("early_career")
        assert early.status is StageStatus.SUCCESS
        assert early.attempts == 0
        assert early.warnings
        assert mock_llm_client.generate.await_count == 4


class TestRetries:
    async def test_invalid_attempt_retried_with_feedback(
        self, mock_llm_client, small_store, pipeline_config, jd_analysis, responses,
        short_p1_bullet,
    ):
        records = []
        mock_llm_client.generate.side_effect = [
            responses[0], responses[1], short_p1_bullet, *responses[2:],
        ]
        result = await _orchestrator(mock_llm_client, small_store, pipeline_config).run(
            analysis=jd_analysis, on_diagnostic=records.append
        )

        assert result.success
        p1 = result.stage("position_1")
        assert p1.status is StageStatus.RETRY
        assert p1.attempts == 2
        assert p1.validation_issues == ["bullet-2 has 20 words, expected 25-40"]

        retry_prompt = mock_llm_client.generate.call_args_list[3].kwargs["prompt"]
        assert "PREVIOUS ATTEMPT ISSUES - FIX THESE" in retry_prompt
        assert "bullet-2 has 20 words, expected 25-40" in retry_prompt
        first_prompt = mock_llm_client.generate.call_args_list[2].kwargs["prompt"]
        assert "PREVIOUS ATTEMPT ISSUES" not in first_prompt

        p1_records = [r for r in records if r.stage == "position_1"]
        assert [r.status for r in p1_records] == ["retry", "success"]
        assert p1_records[0].issues == ["bullet-2 has 20 words, expected 25-40"]
        model = pipeline_config.llm.model
        assert p1.tokens_in == 200
        assert p1.cost_estimate == pytest.approx(
            calculate_cost([(model, 100, 50), (model, 100, 50)])
        )
        assert result.total_cost == pytest.approx(
            sum(r.cost_estimate for r in result.stage_results)
        )

    async def test_retries_exhausted_halts_run(
        self, mock_llm_client, small_store, pipeline_config, jd_analysis, responses,
        short_p1_bullet,
    ):
        records = []
        mock_llm_client.generate.side_effect = [
            responses[0], responses[1], short_p1_bullet, short_p1_bullet, short_p1_bullet,
        ]
        result = await _orchestrator(mock_llm_client, small_store, pipeline_config).run(
            analysis=jd_analysis, on_diagnostic=records.append
        )

        assert not result.success
        assert result.failed_stage == "position_1"
        assert "bullet-2 has 20 words" in result.first_fatal_error
        assert result.stage("position_1").status is StageStatus.FAILED
        assert result.stage("position_1").attempts == 3
        assert result.stage("position_2") is None
        assert result.assembled is None
        assert mock_llm_client.generate.await_count == 5
        assert [r.status for r in records if r.stage == "position_1"] == [
            "retry", "retry", "failed",
        ]

    async def test_failed_stage_state_not_merged(
        self, mock_llm_client, small_store, pipeline_config, jd_analysis, responses,
        short_p1_bullet,
    ):
        mock_llm_client.generate.side_effect = [
            responses[0], responses[1], short_p1_bullet, short_p1_bullet, short_p1_bullet,
        ]
        result = await _orchestrator(mock_llm_client, small_store, pipeline_config).run(
            analysis=jd_analysis
        )
        assert result.final_state.used_base_ids == {"SUM-01", "CH-01", "CH-02"}
        assert "drove" not in result.final_state.used_leading_verbs

    async def test_unparseable_response_retried(
        self, mock_llm_client, small_store, pipeline_config, jd_analysis, responses, llm_response
    ):
        mock_llm_client.generate.side_effect = [llm_response("Sorry, I can't do that."), responses[0]]
        result = await _orchestrator(
            mock_llm_client, small_store, pipeline_config, stages=[SummaryStage()]
        ).run(analysis=jd_analysis)

        assert result.success
        assert result.stage("summary").status is StageStatus.RETRY
        retry_prompt = mock_llm_client.generate.call_args_list[1].kwargs["prompt"]
        assert "Response was not valid JSON" in retry_prompt

    async def test_schema_mismatch_reported(
        self, mock_llm_client, small_store, pipeline_config, jd_analysis, responses, llm_response
    ):
        mock_llm_client.generate.side_effect = [llm_response({"jd_mapping": []}), responses[0]]
        await _orchestrator(
            mock_llm_client, small_store, pipeline_config, stages=[SummaryStage()]
        ).run(analysis=jd_analysis)

        retry_prompt = mock_llm_client.generate.call_args_list[1].kwargs["prompt"]
        assert "summary: Field required" in retry_prompt

    async def test_request_timeout_counts_as_failed_attempt(
        self, mock_llm_client, small_store, jd_analysis
    ):
        async def slow(**kwargs):
            await asyncio.sleep(5)

        mock_llm_client.generate.side_effect = slow
        config = AppConfig(
            pipeline=PipelineConfig(max_retries=2, request_timeout=0.05),
            selection=SelectionConfig(highlight_count=2),
        )
        result = await _orchestrator(
            mock_llm_client, small_store, config, stages=[SummaryStage()]
        ).run(analysis=jd_analysis)

        assert not result.success
        summary = result.stage("summary")
        assert summary.status is StageStatus.FAILED
        assert summary.attempts == 2
        assert summary.validation_issues == ["Generation request timed out after 0.05s"]


    async def test_permanent_generation_error_not_retried(
        self, mock_llm_client, small_store, pipeline_config, jd_analysis
    ):
        records = []
        mock_llm_client.generate.side_effect = GenerationError(
            "Generation request failed: invalid x-api-key", retryable=False
        )
        result = await _orchestrator(
            mock_llm_client, small_store, pipeline_config, stages=[SummaryStage()]
        ).run(analysis=jd_analysis, on_diagnostic=records.append)

        assert not result.success
        summary = result.stage("summary")
        assert summary.status is StageStatus.FAILED
        assert summary.attempts == 1
        assert mock_llm_client.generate.await_count == 1
        assert [r.status for r in records] == ["failed"]

    async def test_transient_generation_error_retried(
        self, mock_llm_client, small_store, pipeline_config, jd_analysis, responses
    ):
        mock_llm_client.generate.side_effect = [
            GenerationError("Generation request failed: overloaded"), responses[0],
        ]
        result = await _orchestrator(
            mock_llm_client, small_store, pipeline_config, stages=[SummaryStage()]
        ).run(analysis=jd_analysis)

        assert result.success
        assert result.stage("summary").attempts == 2

    async def test_non_retryable_validation_issue_ends_stage(
        self, mock_llm_client, small_store, pipeline_config, jd_analysis, responses
    ):
        class StrictSummaryStage(SummaryStage):
            def validate(self, output, ctx, state):
                return ValidationReport(issues=[
                    ValidationIssue(message="source summary withdrawn", retryable=False),
                ])

        mock_llm_client.generate.side_effect = responses
        result = await _orchestrator(
            mock_llm_client, small_store, pipeline_config, stages=[StrictSummaryStage()]
        ).run(analysis=jd_analysis)

        assert result.failed_stage == "summary"
        assert result.stage("summary").attempts == 1
        assert result.first_fatal_error == (
            "Stage 'summary' failed after 1 attempt(s): source summary withdrawn"
        )

class TestHaltConditions:
    async def test_cancellation_before_next_stage(
        self, mock_llm_client, small_store, pipeline_config, jd_analysis, responses
    ):
        token = CancellationToken()

        def on_phase(phase: str, detail: str) -> None:
            if phase == "highlights":
                token.cancel()

        mock_llm_client.generate.side_effect = responses
        result = await _orchestrator(mock_llm_client, small_store, pipeline_config).run(
            analysis=jd_analysis, on_phase=on_phase, cancel_token=token
        )

        assert not result.success
        assert result.failed_stage == "highlights"
        assert "cancelled" in result.first_fatal_error
        assert mock_llm_client.generate.await_count == 1
        assert result.assembled is None

    async def test_cancelled_before_start(
        self, mock_llm_client, small_store, pipeline_config, jd_analysis
    ):
        token = CancellationToken()
        token.cancel()
        result = await _orchestrator(mock_llm_client, small_store, pipeline_config).run(
            analysis=jd_analysis, cancel_token=token
        )
        assert not result.success
        mock_llm_client.generate.assert_not_awaited()

    async def test_missing_upstream_stage(
        self, mock_llm_client, small_store, pipeline_config, jd_analysis
    ):
        result = await _orchestrator(
            mock_llm_client, small_store, pipeline_config, stages=[HighlightsStage()]
        ).run(analysis=jd_analysis)

        assert not result.success
        assert result.failed_stage == "highlights"
        assert "requires 'summary'" in result.first_fatal_error
        mock_llm_client.generate.assert_not_awaited()
