"""Per-job evaluation state machine."""

from __future__ import annotations

import hashlib
from collections import OrderedDict
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

import structlog

from ..errors import FitScreeningError
from ..rendering import render_job_text
from ..schemas import (
    EvaluationScores,
    JobEvaluationRequest,
    JobEvaluationResponse,
    JobRecord,
    NewJobNotification,
    StructuredResume,
)
from ..store import JobStore
from .combiner import EvaluationInputs, ScoreBreakdown, ScoreCombiner, rating_band
from .extractor import StructuredExtractor
from .scorer import DimensionScorer, DimensionScores
from .yoe import YOECalculator, YOEResult

if TYPE_CHECKING:
    from ..mailbox.channels import Mailbox


class EvaluationState(str, Enum):
    RECEIVED = "received"
    DEDUP_CHECKED = "dedup-checked"
    EXTRACTING_RESUME = "extracting-resume"
    EXTRACTING_JOB = "extracting-job"
    EXTRACTING_YOE_REQUIRED = "extracting-yoe-required"
    EXTRACTING_YOE_ACTUAL = "extracting-yoe-actual"
    SCORING_DIMENSIONS = "scoring-dimensions"
    COMBINING_SCORE = "combining-score"
    PERSISTING = "persisting"
    RESPONDING = "responding"
    DONE = "done"
    ERROR = "error"


@dataclass(slots=True)
class EvaluationOutcome:
    """Stored or freshly created record plus the states visited."""

    record: JobRecord
    deduplicated: bool
    states: list[EvaluationState] = field(default_factory=list)
    breakdown: ScoreBreakdown | None = None

    @property
    def rating(self) -> str:
        return rating_band(self.record.final_score)

    def to_response(self, request_id: str) -> JobEvaluationResponse:
        record = self.record
        return JobEvaluationResponse(
            request_id=request_id,
            results_text=record.rationale_text,
            scores=EvaluationScores(
                final_score=record.final_score,
                rating=self.rating,
                exp_score=record.exp_score,
                edu_score=record.edu_score,
                skill_score=record.skill_score,
                actual_yoe=record.actual_yoe,
                required_yoe=record.required_yoe,
            ),
            job_id=record.external_job_id,
            resume_id=record.resume_id,
            deduplicated=self.deduplicated,
        )


@dataclass
class OrchestratorConfig:
    resume_cache_size: int = 16


def text_digest(text: str) -> str:
    return hashlib.sha1(text.strip().encode("utf-8")).hexdigest()


def build_rationale(
    breakdown: ScoreBreakdown,
    dimensions: DimensionScores,
    required: YOEResult,
    actual: YOEResult,
) -> str:
    inputs = breakdown.inputs
    lines = [
        f"Overall fit: {breakdown.final_percent}/100 ({breakdown.rating})",
        "",
        f"Experience relevance: {inputs.exp_score}/4",
        dimensions.exp_rationale,
        "",
        f"Education: {inputs.edu_score}/4",
        dimensions.edu_rationale,
        "",
        f"Skills coverage: {inputs.skill_score}/4",
        dimensions.skill_rationale,
        "",
        f"Required experience: {inputs.required_yoe:g} years ({required.source})",
        required.justification,
        "",
        f"Relevant experience: {inputs.actual_yoe:g} years",
        actual.justification,
    ]
    return "\n".join(lines).strip()


class EvaluationOrchestrator:
    """Run extraction, YOE, scoring and combination for one job.

    A stored record for the same (resume, job) pair short-circuits the whole
    pipeline. Steps run strictly in sequence and any failure propagates to
    the caller after the ``error`` state is recorded.
    """

    def __init__(
        self,
        *,
        extractor: StructuredExtractor,
        yoe: YOECalculator,
        scorer: DimensionScorer,
        combiner: ScoreCombiner,
        store: JobStore,
        mailbox: Mailbox | None = None,
        config: OrchestratorConfig | None = None,
    ) -> None:
        self._extractor = extractor
        self._yoe = yoe
        self._scorer = scorer
        self._combiner = combiner
        self._store = store
        self._mailbox = mailbox
        self._config = config or OrchestratorConfig()
        self._resume_cache: OrderedDict[str, StructuredResume] = OrderedDict()
        self._logger = structlog.get_logger(__name__)

    def resolve_resume_id(self, request: JobEvaluationRequest) -> str:
        if request.resume_id:
            return request.resume_id
        if self._mailbox is not None:
            active = self._mailbox.active_resume_id()
            if active:
                return active
        return f"resume-{text_digest(request.resume_text)[:12]}"

    @staticmethod
    def resolve_job_id(request: JobEvaluationRequest) -> str:
        if request.external_job_id:
            return request.external_job_id
        return f"job-{text_digest(request.job_description_raw_text)[:16]}"

    async def evaluate(self, request: JobEvaluationRequest) -> EvaluationOutcome:
        states: list[EvaluationState] = []
        log = self._logger.bind(request_id=request.id)

        def enter(state: EvaluationState) -> None:
            states.append(state)
            log.debug("evaluation.state", state=state.value)

        enter(EvaluationState.RECEIVED)
        resume_id = self.resolve_resume_id(request)
        job_id = self.resolve_job_id(request)
        log = log.bind(resume_id=resume_id, job_id=job_id)

        try:
            existing = self._store.get(resume_id, job_id)
            enter(EvaluationState.DEDUP_CHECKED)
            if existing is not None:
                log.info("evaluation.deduplicated", final_score=existing.final_score)
                enter(EvaluationState.RESPONDING)
                enter(EvaluationState.DONE)
                return EvaluationOutcome(record=existing, deduplicated=True, states=states)

            resume = self._cached_resume(request.resume_text)
            if resume is None:
                enter(EvaluationState.EXTRACTING_RESUME)
                resume = await self._extractor.extract_resume(request.resume_text)
                self._remember_resume(request.resume_text, resume)

            enter(EvaluationState.EXTRACTING_JOB)
            job = await self._extractor.extract_job(request.job_description_raw_text)

            enter(EvaluationState.EXTRACTING_YOE_REQUIRED)
            required = await self._yoe.required_yoe(job, request.job_description_raw_text)

            enter(EvaluationState.EXTRACTING_YOE_ACTUAL)
            actual = await self._yoe.actual_yoe(resume, job)

            enter(EvaluationState.SCORING_DIMENSIONS)
            dimensions = await self._scorer.score(resume, job)

            enter(EvaluationState.COMBINING_SCORE)
            inputs = EvaluationInputs.from_raw(
                actual_yoe=actual.years,
                required_yoe=required.years,
                exp_score=dimensions.exp_score,
                edu_score=dimensions.edu_score,
                skill_score=dimensions.skill_score,
            )
            breakdown = self._combiner.combine(inputs)

            enter(EvaluationState.PERSISTING)
            record = self._store.create(
                JobRecord(
                    external_job_id=job_id,
                    resume_id=resume_id,
                    job_title=request.job_title or job.title,
                    company=request.company or job.company,
                    cleaned_job_text=render_job_text(job),
                    rationale_text=build_rationale(breakdown, dimensions, required, actual),
                    final_score=breakdown.final_percent,
                    exp_score=breakdown.inputs.exp_score,
                    edu_score=breakdown.inputs.edu_score,
                    skill_score=breakdown.inputs.skill_score,
                    actual_yoe=breakdown.inputs.actual_yoe,
                    required_yoe=breakdown.inputs.required_yoe,
                )
            )
            if self._mailbox is not None:
                self._mailbox.notify_new_job(NewJobNotification(job_id=job_id, resume_id=resume_id))
        except FitScreeningError as exc:
            enter(EvaluationState.ERROR)
            log.warning(
                "evaluation.failed",
                error_type=type(exc).__name__,
                error=str(exc),
                last_state=states[-2].value,
            )
            raise

        enter(EvaluationState.RESPONDING)
        log.info(
            "evaluation.completed",
            final_score=record.final_score,
            rating=breakdown.rating,
        )
        enter(EvaluationState.DONE)
        return EvaluationOutcome(record=record, deduplicated=False, states=states, breakdown=breakdown)

    def _cached_resume(self, text: str) -> StructuredResume | None:
        key = text_digest(text)
        resume = self._resume_cache.get(key)
        if resume is not None:
            self._resume_cache.move_to_end(key)
        return resume

    def _remember_resume(self, text: str, resume: StructuredResume) -> None:
        self._resume_cache[text_digest(text)] = resume
        while len(self._resume_cache) > self._config.resume_cache_size:
            self._resume_cache.popitem(last=False)
