"""Rubric-based experience, education and skill ratings."""

from __future__ import annotations

import re

import structlog
from pydantic import BaseModel, ConfigDict, field_validator

from .. import prompts
from ..errors import ExtractionError, ScoringError
from ..inference import InferenceClient
from ..schemas import StructuredJob, StructuredResume

_SENTENCE_END = re.compile(r"(?<=[.!?])\s+")
MAX_RATIONALE_SENTENCES = 3


def trim_sentences(text: str, limit: int = MAX_RATIONALE_SENTENCES) -> str:
    sentences = [part.strip() for part in _SENTENCE_END.split(text.strip()) if part.strip()]
    return " ".join(sentences[:limit])


class DimensionScores(BaseModel):
    """Three 0-4 ratings with a short rationale each.

    Ratings are not clamped here; the combiner owns range enforcement.
    """

    exp_score: int
    edu_score: int
    skill_score: int
    exp_rationale: str = ""
    edu_rationale: str = ""
    skill_rationale: str = ""

    model_config = ConfigDict(extra="forbid")

    @field_validator("exp_rationale", "edu_rationale", "skill_rationale")
    @classmethod
    def _trim(cls, value: str) -> str:
        return trim_sentences(value)


class DimensionScorer:
    """Rate one résumé against one job in a single inference call."""

    def __init__(self, inference: InferenceClient) -> None:
        self._inference = inference
        self._logger = structlog.get_logger(__name__)

    async def score(self, resume: StructuredResume, job: StructuredJob) -> DimensionScores:
        try:
            scores = await self._inference.infer(
                instructions=prompts.DIMENSION_SCORING_INSTRUCTIONS,
                prompt=prompts.dimension_prompt(resume, job),
                schema=DimensionScores,
            )
        except ExtractionError as exc:
            self._logger.warning("scorer.failed", error=str(exc))
            raise ScoringError(f"Dimension scoring failed: {exc}") from exc

        self._logger.info(
            "scorer.scored",
            exp_score=scores.exp_score,
            edu_score=scores.edu_score,
            skill_score=scores.skill_score,
        )
        return scores
