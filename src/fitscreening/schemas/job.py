from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .resume import SkillSet


class ExperienceLevel(str, Enum):
    ENTRY = "entry"
    MID = "mid"
    SENIOR = "senior"
    LEAD = "lead"
    EXECUTIVE = "executive"


_LEVEL_ALIASES: dict[str, ExperienceLevel] = {
    "entry": ExperienceLevel.ENTRY,
    "junior": ExperienceLevel.ENTRY,
    "graduate": ExperienceLevel.ENTRY,
    "intern": ExperienceLevel.ENTRY,
    "mid": ExperienceLevel.MID,
    "intermediate": ExperienceLevel.MID,
    "senior": ExperienceLevel.SENIOR,
    "sr": ExperienceLevel.SENIOR,
    "lead": ExperienceLevel.LEAD,
    "principal": ExperienceLevel.LEAD,
    "staff": ExperienceLevel.LEAD,
    "executive": ExperienceLevel.EXECUTIVE,
    "director": ExperienceLevel.EXECUTIVE,
    "vp": ExperienceLevel.EXECUTIVE,
}


def normalize_level(value: Any) -> Any:
    """Map free-form level labels such as "Mid-level" onto the enum values."""
    if isinstance(value, ExperienceLevel) or not isinstance(value, str):
        return value
    normalized = value.strip().lower().replace("_", "-")
    for suffix in ("-level", " level"):
        if normalized.endswith(suffix):
            normalized = normalized[: -len(suffix)]
    normalized = normalized.strip(" .-")
    return _LEVEL_ALIASES.get(normalized, normalized)


class ExperienceRequirements(BaseModel):
    """Experience expectations stated in the posting."""

    minimum_years: int | None = None
    level: ExperienceLevel = ExperienceLevel.MID
    industry_context: str | None = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, value: Any) -> Any:
        return normalize_level(value)


class StructuredJob(BaseModel):
    """Job posting with required and preferred skills kept apart."""

    title: str = ""
    company: str = ""
    experience_required: ExperienceRequirements = Field(default_factory=ExperienceRequirements)
    required_skills: SkillSet = Field(default_factory=SkillSet)
    preferred_skills: SkillSet | None = None
    responsibilities: list[str] = Field(default_factory=list)
    education_requirements: str | None = None

    model_config = ConfigDict(extra="forbid")
