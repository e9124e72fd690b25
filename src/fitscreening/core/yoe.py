"""Required and job-relevant years-of-experience calculation."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Iterable

import pendulum
import structlog
from pendulum.parsing.exceptions import ParserError
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .. import prompts
from ..errors import ExtractionError, YOEError
from ..inference import InferenceClient
from ..schemas import ExperienceLevel, StructuredJob, StructuredResume
from ..schemas.job import normalize_level

LEVEL_YEARS: dict[ExperienceLevel, float] = {
    ExperienceLevel.ENTRY: 0.0,
    ExperienceLevel.MID: 3.0,
    ExperienceLevel.SENIOR: 5.0,
    ExperienceLevel.LEAD: 7.0,
    ExperienceLevel.EXECUTIVE: 10.0,
}

_NUMBER_WORDS = {
    "one": 1,
    "two": 2,
    "three": 3,
    "four": 4,
    "five": 5,
    "six": 6,
    "seven": 7,
    "eight": 8,
    "nine": 9,
    "ten": 10,
    "twelve": 12,
    "fifteen": 15,
}
_NUMBER = r"\d{1,2}|" + "|".join(_NUMBER_WORDS)

# "3+ years", "3-5 years", "3 to 5 years", "minimum 5 years", "at least two years"
_YEARS_PATTERN = re.compile(
    r"(?P<qualifier>minimum(?:\s+of)?|min\.?|at\s+least)?\s*"
    + r"\b(?P<low>" + _NUMBER + r")"
    + r"\s*(?P<plus>\+|plus)?"
    + r"(?:\s*(?:-|–|to)\s*(?:" + _NUMBER + r")\s*\+?)?"
    + r"\s*(?:years?|yrs?)\b(?=(?P<tail>[^.\n]{0,60}))",
    re.IGNORECASE,
)

_OPEN_ENDED = {"present", "current", "now", "ongoing", "today"}
_TEXT_FORMATS = ("MMM YYYY", "MMMM YYYY", "MM/YYYY")


class RequiredYOEJudgement(BaseModel):
    years: float | None = None
    level: ExperienceLevel | None = None
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    justification: str = ""

    model_config = ConfigDict(extra="forbid")

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, value: Any) -> Any:
        return normalize_level(value)


class RelevanceJudgement(BaseModel):
    relevant_work_indices: list[int] = Field(default_factory=list)
    relevant_other_indices: list[int] = Field(default_factory=list)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    justification: str = ""

    model_config = ConfigDict(extra="forbid")


@dataclass
class YOEConfig:
    """Thresholds for YOE calculation."""

    min_confidence: float = 0.3
    max_years: float = 8.0
    other_weight: float = 0.5


@dataclass(slots=True)
class YOEResult:
    """Years value with the confidence and reasoning behind it."""

    years: float
    confidence: float
    justification: str
    source: str
    notes: list[str] = field(default_factory=list)


Interval = tuple[pendulum.DateTime, pendulum.DateTime]


class YOECalculator:
    """Derive required YOE from a posting and relevant YOE from a résumé.

    Actual YOE is always computed against one target job. The model only
    decides which entries are relevant; durations, overlap removal and
    weighting are computed here.
    """

    def __init__(
        self,
        inference: InferenceClient,
        *,
        config: YOEConfig | None = None,
        now_provider: Any | None = None,
    ) -> None:
        self._inference = inference
        self._config = config or YOEConfig()
        self._now_provider = now_provider or pendulum.now
        self._logger = structlog.get_logger(__name__)

    async def required_yoe(self, job: StructuredJob, raw_text: str = "") -> YOEResult:
        explicit = parse_required_years(raw_text)
        if explicit is not None:
            return self._required_result(explicit, 1.0, f"Explicit requirement of {explicit:g} years", "explicit")

        minimum = job.experience_required.minimum_years
        if minimum is not None:
            return self._required_result(
                float(minimum), 0.9, f"Structured posting states {minimum} years minimum", "structured"
            )

        try:
            judgement = await self._inference.infer(
                instructions=prompts.REQUIRED_YOE_INSTRUCTIONS,
                prompt=prompts.required_yoe_prompt(job, raw_text),
                schema=RequiredYOEJudgement,
            )
        except ExtractionError as exc:
            raise YOEError(f"Required YOE extraction failed: {exc}") from exc

        if judgement.years is not None or judgement.level is not None:
            self._check_confidence(judgement.confidence, "required")
            if judgement.years is not None:
                return self._required_result(
                    max(judgement.years, 0.0), judgement.confidence, judgement.justification, "inference"
                )
            years = LEVEL_YEARS[judgement.level]
            return self._required_result(
                years,
                judgement.confidence,
                judgement.justification or f"{judgement.level.value} level maps to {years:g} years",
                "level",
            )

        level = job.experience_required.level
        years = LEVEL_YEARS[level]
        return self._required_result(years, 0.6, f"{level.value} level maps to {years:g} years", "level")

    async def actual_yoe(self, resume: StructuredResume, job: StructuredJob) -> YOEResult:
        if not resume.work_experience and not resume.other_experience:
            return YOEResult(0.0, 1.0, "No work or other experience listed", "computed")

        try:
            judgement = await self._inference.infer(
                instructions=prompts.ACTUAL_YOE_INSTRUCTIONS,
                prompt=prompts.actual_yoe_prompt(resume, job),
                schema=RelevanceJudgement,
            )
        except ExtractionError as exc:
            raise YOEError(f"Relevant YOE extraction failed: {exc}") from exc
        self._check_confidence(judgement.confidence, "actual")

        now = self._now_provider()
        notes: list[str] = []
        work_intervals = self._collect(
            resume.work_experience,
            judgement.relevant_work_indices,
            now,
            notes,
            label=lambda entry: f"{entry.role} at {entry.company}",
        )
        other_intervals = self._collect(
            resume.other_experience,
            judgement.relevant_other_indices,
            now,
            notes,
            label=lambda entry: entry.title,
        )

        merged_work = merge_intervals(work_intervals)
        merged_other = subtract_intervals(merge_intervals(other_intervals), merged_work)
        work_years = total_years(merged_work)
        other_years = total_years(merged_other)
        raw_years = work_years + self._config.other_weight * other_years
        years = round(min(raw_years, self._config.max_years), 2)

        summary = (
            f"Relevant work {work_years:.2f}y + {self._config.other_weight:g} x "
            f"relevant other {other_years:.2f}y = {raw_years:.2f}y"
        )
        if raw_years > self._config.max_years:
            summary += f" (capped at {self._config.max_years:g})"
        justification = " ".join(part for part in (judgement.justification.strip(), summary, *notes) if part)

        self._logger.info(
            "yoe.actual_computed",
            work_years=round(work_years, 2),
            other_years=round(other_years, 2),
            years=years,
            skipped=len(notes),
        )
        return YOEResult(years, judgement.confidence, justification, "computed", notes)

    def _required_result(self, years: float, confidence: float, justification: str, source: str) -> YOEResult:
        capped = min(years, self._config.max_years)
        self._logger.info("yoe.required_resolved", years=capped, source=source, confidence=confidence)
        return YOEResult(capped, confidence, justification, source)

    def _check_confidence(self, confidence: float, kind: str) -> None:
        if confidence < self._config.min_confidence:
            self._logger.warning("yoe.low_confidence", kind=kind, confidence=confidence)
            raise YOEError(
                f"{kind.capitalize()} YOE confidence {confidence:.2f} is below "
                f"{self._config.min_confidence:.2f}"
            )

    def _collect(
        self,
        entries: list[Any],
        indices: Iterable[int],
        now: pendulum.DateTime,
        notes: list[str],
        *,
        label: Any,
    ) -> list[Interval]:
        intervals: list[Interval] = []
        for index in sorted(set(indices)):
            if index < 0 or index >= len(entries):
                self._logger.warning("yoe.index_out_of_range", index=index, size=len(entries))
                continue
            entry = entries[index]
            start = parse_date(entry.start)
            if start is None:
                notes.append(f"Skipped undated entry: {label(entry)}.")
                continue
            end = parse_date(entry.end, default=now)
            if end is None or end < start or start > now:
                notes.append(f"Skipped entry with invalid dates: {label(entry)}.")
                continue
            intervals.append((start, min(end, now)))
        return intervals


def parse_required_years(text: str | None) -> float | None:
    """Return the smallest explicit years requirement found in ``text``."""
    if not text:
        return None
    found: list[float] = []
    for match in _YEARS_PATTERN.finditer(text):
        qualified = bool(match.group("qualifier") or match.group("plus"))
        if not qualified and "experience" not in match.group("tail").lower():
            continue
        found.append(float(_to_number(match.group("low"))))
    return min(found) if found else None


def _to_number(token: str) -> int:
    token = token.lower()
    if token.isdigit():
        return int(token)
    return _NUMBER_WORDS[token]


def parse_date(
    value: str | None, *, default: pendulum.DateTime | None = None
) -> pendulum.DateTime | None:
    """Parse a résumé date; durations, bare times and junk yield ``None``."""
    if not value:
        return default
    value = value.strip()
    if value.lower() in _OPEN_ENDED:
        return default
    try:
        if len(value) == 7 and value[4] == "-":
            return pendulum.datetime(int(value[:4]), int(value[5:7]), 1)
        if len(value) == 4 and value.isdigit():
            return pendulum.datetime(int(value), 1, 1)
        parsed = pendulum.parse(value, exact=True)
    except (ValueError, ParserError):
        parsed = None
    if isinstance(parsed, pendulum.DateTime):
        return parsed
    if isinstance(parsed, pendulum.Date):
        return pendulum.datetime(parsed.year, parsed.month, parsed.day)
    if parsed is not None:
        return None
    for fmt in _TEXT_FORMATS:
        try:
            return pendulum.from_format(value, fmt)
        except ValueError:
            continue
    return None


def merge_intervals(intervals: Iterable[Interval]) -> list[Interval]:
    """Union of intervals; overlapping or touching spans are counted once."""
    merged: list[Interval] = []
    for start, end in sorted(intervals):
        if merged and start <= merged[-1][1]:
            if end > merged[-1][1]:
                merged[-1] = (merged[-1][0], end)
            continue
        merged.append((start, end))
    return merged


def subtract_intervals(intervals: list[Interval], covered: list[Interval]) -> list[Interval]:
    """Remove every span in ``covered`` from ``intervals`` (both merged)."""
    remaining: list[Interval] = []
    for start, end in intervals:
        cursor = start
        for cov_start, cov_end in covered:
            if cov_end <= cursor or cov_start >= end:
                continue
            if cov_start > cursor:
                remaining.append((cursor, cov_start))
            cursor = max(cursor, cov_end)
            if cursor >= end:
                break
        if cursor < end:
            remaining.append((cursor, end))
    return remaining


def total_years(intervals: Iterable[Interval]) -> float:
    months = sum(end.diff(start).in_months() for start, end in intervals)
    return months / 12.0
