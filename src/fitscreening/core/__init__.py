"""Core evaluation pipeline components."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..schemas import JobEvaluationRequest
from .combiner import (
    CombinerConfig,
    EvaluationInputs,
    ScoreBreakdown,
    ScoreCombiner,
    rating_band,
)
from .extractor import DocumentKind, ExtractorConfig, ResumeTextFormatter, StructuredExtractor
from .orchestrator import (
    EvaluationOrchestrator,
    EvaluationOutcome,
    EvaluationState,
    OrchestratorConfig,
)
from .scorer import DimensionScorer, DimensionScores
from .yoe import YOECalculator, YOEConfig, YOEResult


@runtime_checkable
class JobEvaluator(Protocol):
    """Anything that turns a job-evaluation request into an outcome."""

    async def evaluate(self, request: JobEvaluationRequest) -> EvaluationOutcome:
        """Evaluate one request, raising a package error on failure."""


__all__ = [
    "CombinerConfig",
    "DimensionScorer",
    "DimensionScores",
    "DocumentKind",
    "EvaluationInputs",
    "EvaluationOrchestrator",
    "EvaluationOutcome",
    "EvaluationState",
    "ExtractorConfig",
    "JobEvaluator",
    "OrchestratorConfig",
    "ResumeTextFormatter",
    "ScoreBreakdown",
    "ScoreCombiner",
    "StructuredExtractor",
    "YOECalculator",
    "YOEConfig",
    "YOEResult",
    "rating_band",
]
