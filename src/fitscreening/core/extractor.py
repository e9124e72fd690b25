"""Structured extraction of résumés and job postings."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

import structlog
from pydantic import BaseModel, ConfigDict
from rapidfuzz import fuzz

from .. import prompts
from ..errors import ExtractionError
from ..inference import InferenceClient
from ..schemas import (
    ContactAndSummary,
    EducationExtraction,
    ProfessionalExperience,
    SkillSet,
    StructuredJob,
    StructuredResume,
)


class DocumentKind(str, Enum):
    RESUME = "resume"
    JOB = "job"


class FormattedResumeText(BaseModel):
    text: str

    model_config = ConfigDict(extra="forbid")


@dataclass
class ExtractorConfig:
    """Post-processing knobs for extraction results."""

    skill_similarity: float = 95.0
    max_text_chars: int = 20000


def merge_similar(values: Iterable[str], *, threshold: float) -> list[str]:
    """Drop values that are near-duplicates of an earlier one, keeping order."""
    kept: list[str] = []
    for value in values:
        candidate = value.strip()
        if not candidate:
            continue
        lowered = candidate.lower()
        if any(fuzz.ratio(lowered, existing.lower()) >= threshold for existing in kept):
            continue
        kept.append(candidate)
    return kept


class StructuredExtractor:
    """Turn raw résumé or job text into typed records.

    Résumés go through four narrow calls in a fixed order (contact and
    summary, experience, education, skills) and are assembled only after
    all four succeed. Jobs take a single call.
    """

    def __init__(
        self,
        inference: InferenceClient,
        *,
        config: ExtractorConfig | None = None,
    ) -> None:
        self._inference = inference
        self._config = config or ExtractorConfig()
        self._logger = structlog.get_logger(__name__)

    async def extract(self, raw_text: str, kind: DocumentKind) -> StructuredResume | StructuredJob:
        if DocumentKind(kind) is DocumentKind.RESUME:
            return await self.extract_resume(raw_text)
        return await self.extract_job(raw_text)

    async def extract_resume(self, raw_text: str) -> StructuredResume:
        text = self._prepare(raw_text, DocumentKind.RESUME)
        prompt = prompts.document_prompt(text, "resume")

        contact = await self._step(prompts.CONTACT_AND_SUMMARY_INSTRUCTIONS, prompt, ContactAndSummary)
        experience = await self._step(prompts.EXPERIENCE_INSTRUCTIONS, prompt, ProfessionalExperience)
        education = await self._step(prompts.EDUCATION_INSTRUCTIONS, prompt, EducationExtraction)
        skills = await self._step(prompts.SKILLS_INSTRUCTIONS, prompt, SkillSet)

        resume = StructuredResume(
            contact=contact.contact,
            summary=contact.summary,
            work_experience=experience.work_experience,
            other_experience=experience.other_experience,
            education=education.education,
            certifications=education.certifications,
            skills=self._merge_skills(skills),
        )
        self._logger.info(
            "extractor.resume_extracted",
            work_entries=len(resume.work_experience),
            other_entries=len(resume.other_experience),
            education_entries=len(resume.education),
            skills=len(resume.skills.all()),
        )
        return resume

    async def extract_job(self, raw_text: str) -> StructuredJob:
        text = self._prepare(raw_text, DocumentKind.JOB)
        job = await self._step(
            prompts.JOB_INSTRUCTIONS,
            prompts.document_prompt(text, "job posting"),
            StructuredJob,
        )
        required = self._merge_skills(job.required_skills)
        preferred = self._merge_skills(job.preferred_skills) if job.preferred_skills else None
        if preferred is not None:
            preferred = self._without_required(preferred, required)
        job = job.model_copy(update={"required_skills": required, "preferred_skills": preferred})
        self._logger.info(
            "extractor.job_extracted",
            title=job.title,
            level=job.experience_required.level.value,
            required_skills=len(required.all()),
            preferred_skills=len(preferred.all()) if preferred else 0,
        )
        return job

    def _prepare(self, raw_text: str, kind: DocumentKind) -> str:
        text = (raw_text or "").strip()
        if not text:
            raise ExtractionError(f"Cannot extract {kind.value} from empty text")
        if len(text) > self._config.max_text_chars:
            self._logger.info(
                "extractor.text_truncated",
                kind=kind.value,
                length=len(text),
                limit=self._config.max_text_chars,
            )
            text = text[: self._config.max_text_chars]
        return text

    async def _step(self, instructions: str, prompt: str, schema: type[BaseModel]):
        try:
            return await self._inference.infer(instructions=instructions, prompt=prompt, schema=schema)
        except ExtractionError:
            self._logger.warning("extractor.step_failed", schema=schema.__name__)
            raise

    def _merge_skills(self, skills: SkillSet) -> SkillSet:
        threshold = self._config.skill_similarity
        return SkillSet(
            technical=merge_similar(skills.technical, threshold=threshold),
            professional=merge_similar(skills.professional, threshold=threshold),
            industry=merge_similar(skills.industry, threshold=threshold),
        )

    @staticmethod
    def _without_required(preferred: SkillSet, required: SkillSet) -> SkillSet:
        required_keys = {skill.casefold() for skill in required.all()}
        return SkillSet(
            technical=[s for s in preferred.technical if s.casefold() not in required_keys],
            professional=[s for s in preferred.professional if s.casefold() not in required_keys],
            industry=[s for s in preferred.industry if s.casefold() not in required_keys],
        )


class ResumeTextFormatter:
    """Reformat PDF-extracted résumé text into readable plain text."""

    def __init__(self, inference: InferenceClient) -> None:
        self._inference = inference
        self._logger = structlog.get_logger(__name__)

    async def format(self, raw_text: str) -> str:
        text = (raw_text or "").strip()
        if not text:
            raise ExtractionError("Cannot format empty resume text")
        result = await self._inference.infer(
            instructions=prompts.RESUME_TEXT_INSTRUCTIONS,
            prompt=prompts.document_prompt(text, "resume text"),
            schema=FormattedResumeText,
        )
        self._logger.info("formatter.resume_formatted", input_length=len(text), output_length=len(result.text))
        return result.text.strip()
