"""Main pipeline orchestrator: runs the stages in order with retry and state merge."""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel

from resume_curator.clients.llm_client import LLMClient
from resume_curator.config import AppConfig
from resume_curator.content.store import ContentStore
from resume_curator.exceptions import (
    EmptySelectionError,
    GenerationError,
    PipelineCancelledError,
    RetriesExhaustedError,
    StageParseError,
    UpstreamStateMissingError,
)
from resume_curator.logging.cost_calculator import calculate_cost, call_cost
from resume_curator.logging.models import StageAttemptRecord
from resume_curator.models.qa import CoverageReport, FormatReport
from resume_curator.models.result import (
    StageResult,
    StageStatus,
    ValidationIssue,
    ValidationReport,
)
from resume_curator.models.resume import AssembledResume
from resume_curator.models.selection import SelectionResult
from resume_curator.models.signals import RequirementSignals
from resume_curator.models.stages import JDAnalysis
from resume_curator.models.state import AccumulatedState
from resume_curator.pipeline.assembler import assemble_resume
from resume_curator.pipeline.coverage import build_coverage_report, collect_jd_mappings
from resume_curator.pipeline.stages.analysis import AnalysisStage
from resume_curator.pipeline.stages.base import Stage, StageContext
from resume_curator.pipeline.stages.early_career import EarlyCareerStage
from resume_curator.pipeline.stages.highlights import HighlightsStage
from resume_curator.pipeline.stages.positions import PositionStage
from resume_curator.pipeline.stages.summary import SummaryStage
from resume_curator.selection.selector import ContentSelector
from resume_curator.selection.signals import extract_requirement_signals
from resume_curator.validation.format_checker import check_format

logger = logging.getLogger(__name__)


class CancellationToken:
    """Run-scoped cancellation flag, checked before each stage and attempt."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self, stage: str | None = None) -> None:
        if self._cancelled:
            raise PipelineCancelledError(stage)


@dataclass
class PipelineResult:
    """Complete result from one pipeline run."""

    success: bool
    run_id: str
    stage_results: list[StageResult] = field(default_factory=list)
    assembled: AssembledResume | None = None
    analysis: JDAnalysis | None = None
    signals: RequirementSignals | None = None
    selection: SelectionResult | None = None
    final_state: AccumulatedState = field(default_factory=AccumulatedState)
    format_report: FormatReport | None = None
    coverage: CoverageReport | None = None
    total_cost: float = 0.0
    total_duration_ms: int = 0
    first_fatal_error: str | None = None
    failed_stage: str | None = None
    warnings: list[str] = field(default_factory=list)

    def stage(self, name: str) -> StageResult | None:
        for r in self.stage_results:
            if r.stage_name == name:
                return r
        return None


def default_stages() -> list[Stage]:
    return [
        AnalysisStage(),
        SummaryStage(),
        HighlightsStage(),
        PositionStage(1),
        PositionStage(2),
        EarlyCareerStage(),
    ]


class PipelineOrchestrator:
    """Runs the generation stages strictly in order.

    Each stage sees an immutable snapshot of the accumulated state. The
    snapshot is replaced only after a stage succeeds, so a failed attempt
    never leaks into what later stages see.
    """

    def __init__(
        self,
        llm: LLMClient,
        store: ContentStore,
        *,
        config: AppConfig | None = None,
        stages: Sequence[Stage] | None = None,
    ):
        self.llm = llm
        self.store = store
        self.config = config or AppConfig()
        self.stages = list(stages) if stages is not None else default_stages()
        self.max_retries = self.config.pipeline.max_retries
        self.request_timeout = self.config.pipeline.request_timeout

    async def run(
        self,
        jd_text: str = "",
        *,
        analysis: JDAnalysis | None = None,
        on_phase: Callable[[str, str], None] | None = None,
        on_diagnostic: Callable[[StageAttemptRecord], None] | None = None,
        cancel_token: CancellationToken | None = None,
        run_id: str | None = None,
    ) -> PipelineResult:
        """Run the full pipeline.

        Args:
            jd_text: Job description text, analysed by the first stage.
            analysis: A ready JD analysis; skips the analysis stage.
            on_phase: Optional callback(phase_name, detail) for progress.
            on_diagnostic: Optional sink receiving one record per stage attempt.
            cancel_token: Cancels the run before the next stage or attempt.
            run_id: Identifier stamped on diagnostic records.
        """
        start = time.monotonic()
        run_id = run_id or str(uuid.uuid4())
        token = cancel_token or CancellationToken()
        result = PipelineResult(success=False, run_id=run_id, analysis=analysis)

        def _notify(phase: str, detail: str = "") -> None:
            if on_phase:
                on_phase(phase, detail)

        outputs: dict[str, Any] = {}
        completed: set[str] = set()
        state = AccumulatedState()
        profile = self.store.get_profile()
        if analysis is not None:
            outputs["analysis"] = analysis
            completed.add("analysis")

        try:
            for stage in self.stages:
                token.raise_if_cancelled(stage.name)
                if stage.name in completed:
                    continue
                for required in stage.requires:
                    if required not in completed:
                        raise UpstreamStateMissingError(stage.name, required)

                if not isinstance(stage, AnalysisStage) and result.selection is None:
                    self._select(result, outputs.get("analysis"))
                    _notify("selection", f"Blocked by conflicts: {len(result.selection.blocked_ids)}")

                ctx = StageContext(
                    jd_text=jd_text,
                    analysis=outputs.get("analysis"),
                    signals=result.signals,
                    selection=result.selection or SelectionResult(),
                    profile=profile,
                    config=self.config.selection,
                    outputs=MappingProxyType(dict(outputs)),
                )

                if not stage.applicable(ctx):
                    warning = str(EmptySelectionError(stage.name))
                    logger.warning("Skipping stage %s: %s", stage.name, warning)
                    result.warnings.append(warning)
                    result.stage_results.append(StageResult(
                        stage_name=stage.name,
                        status=StageStatus.SUCCESS,
                        attempts=0,
                        warnings=[warning],
                    ))
                    completed.add(stage.name)
                    continue

                _notify(stage.name, f"Running {stage.name}")
                stage_result, output = await self._run_stage(
                    stage, ctx, state, token, run_id, on_diagnostic
                )
                result.stage_results.append(stage_result)
                result.total_cost += stage_result.cost_estimate
                if stage_result.status is StageStatus.FAILED:
                    raise RetriesExhaustedError(
                        stage.name, stage_result.attempts, stage_result.validation_issues
                    )

                outputs[stage.name] = output
                completed.add(stage.name)
                if isinstance(stage, AnalysisStage):
                    result.analysis = output
                state = state.merge(stage.downstream_state(output))
                logger.debug("State after %s: %s", stage.name, state.sizes())
        except (
            RetriesExhaustedError,
            UpstreamStateMissingError,
            PipelineCancelledError,
        ) as e:
            logger.error("Pipeline halted: %s", e)
            result.first_fatal_error = str(e)
            result.failed_stage = e.stage
            result.final_state = state
            result.total_duration_ms = _elapsed_ms(start)
            _notify("failed", str(e))
            return result

        result.final_state = state
        result.assembled = assemble_resume(profile, outputs, result.analysis)
        result.format_report = check_format(result.assembled)
        if result.analysis is not None:
            result.coverage = build_coverage_report(
                result.analysis, collect_jd_mappings(outputs), state.used_jd_phrases
            )
        result.success = True
        result.total_duration_ms = _elapsed_ms(start)
        _notify("done", f"Format score {result.format_report.score}")
        return result

    def _select(self, result: PipelineResult, analysis: JDAnalysis | None) -> None:
        signals = (
            extract_requirement_signals(analysis) if analysis is not None else RequirementSignals()
        )
        selector = ContentSelector(self.store, self.config.selection)
        result.signals = signals
        result.selection = selector.select(signals)
        result.warnings.extend(
            f"No eligible content items for {c}" for c in result.selection.empty_categories
        )

    async def _run_stage(
        self,
        stage: Stage,
        ctx: StageContext,
        state: AccumulatedState,
        token: CancellationToken,
        run_id: str,
        on_diagnostic: Callable[[StageAttemptRecord], None] | None,
    ) -> tuple[StageResult, BaseModel | None]:
        """Bounded retry loop. Issues from one attempt feed the next prompt.

        A report that ``can_retry`` is False ends the stage after the current
        attempt, whatever attempts remain.
        """
        llm_config = self.config.llm
        if stage.uses_analysis_model:
            model, temperature = llm_config.analysis_model, llm_config.analysis_temperature
        else:
            model, temperature = llm_config.model, llm_config.temperature

        issues: list[str] = []
        attempts = 0
        calls: list[tuple[str, int, int]] = []
        start = time.monotonic()

        while attempts < self.max_retries:
            token.raise_if_cancelled(stage.name)
            attempts += 1
            attempt_start = time.monotonic()
            prompt = stage.build_prompt(ctx, state, issues)
            a_in = a_out = 0
            output: BaseModel | None = None
            try:
                response = await asyncio.wait_for(
                    self.llm.generate(
                        prompt=prompt,
                        system=stage.system_prompt,
                        model=model,
                        temperature=temperature,
                        max_tokens=llm_config.max_tokens,
                    ),
                    timeout=self.request_timeout,
                )
                a_in, a_out = response.input_tokens, response.output_tokens
                output = stage.parse(response.text)
                report = stage.validate(output, ctx, state)
            except asyncio.TimeoutError:
                report = _report(f"Generation request timed out after {self.request_timeout}s")
            except GenerationError as e:
                report = _report(str(e), retryable=e.retryable)
            except StageParseError as e:
                report = _report(*e.issues)

            calls.append((model, a_in, a_out))
            a_cost = call_cost(model, a_in, a_out)

            if report.valid:
                status = StageStatus.SUCCESS if attempts == 1 else StageStatus.RETRY
                self._emit(on_diagnostic, StageAttemptRecord(
                    run_id=run_id, stage=stage.name, attempt=attempts, status="success",
                    tokens_in=a_in, tokens_out=a_out, cost_estimate=a_cost,
                    duration_ms=_elapsed_ms(attempt_start),
                ))
                logger.info("Stage %s succeeded on attempt %d", stage.name, attempts)
                return self._stage_result(stage, status, attempts, issues, calls, start, output), output

            issues = report.messages
            last = attempts >= self.max_retries or not report.can_retry
            self._emit(on_diagnostic, StageAttemptRecord(
                run_id=run_id, stage=stage.name, attempt=attempts,
                status="failed" if last else "retry",
                tokens_in=a_in, tokens_out=a_out, cost_estimate=a_cost,
                duration_ms=_elapsed_ms(attempt_start), issues=issues,
            ))
            logger.warning(
                "Stage %s attempt %d/%d failed: %s",
                stage.name, attempts, self.max_retries, "; ".join(issues),
            )
            if last:
                break

        return self._stage_result(stage, StageStatus.FAILED, attempts, issues, calls, start), None

    @staticmethod
    def _stage_result(
        stage: Stage,
        status: StageStatus,
        attempts: int,
        issues: list[str],
        calls: list[tuple[str, int, int]],
        start: float,
        output: BaseModel | None = None,
    ) -> StageResult:
        return StageResult(
            stage_name=stage.name,
            status=status,
            attempts=attempts,
            parsed_output=output,
            validation_issues=issues,
            tokens_in=sum(c[1] for c in calls),
            tokens_out=sum(c[2] for c in calls),
            cost_estimate=calculate_cost(calls),
            duration_ms=_elapsed_ms(start),
        )

    @staticmethod
    def _emit(
        sink: Callable[[StageAttemptRecord], None] | None, record: StageAttemptRecord
    ) -> None:
        if sink is not None:
            sink(record)


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


def _report(*messages: str, retryable: bool = True) -> ValidationReport:
    return ValidationReport(
        issues=[ValidationIssue(message=m, retryable=retryable) for m in messages]
    )
