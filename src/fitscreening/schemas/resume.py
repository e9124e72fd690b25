from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _dedupe(values: list[str]) -> list[str]:
    seen: set[str] = set()
    unique: list[str] = []
    for value in values:
        cleaned = value.strip()
        key = cleaned.casefold()
        if not cleaned or key in seen:
            continue
        seen.add(key)
        unique.append(cleaned)
    return unique


class SkillSet(BaseModel):
    """Skills bucketed by kind; each bucket behaves as a case-insensitive set."""

    technical: list[str] = Field(default_factory=list)
    professional: list[str] = Field(default_factory=list)
    industry: list[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    @field_validator("technical", "professional", "industry")
    @classmethod
    def _unique(cls, values: list[str]) -> list[str]:
        return _dedupe(values)

    def all(self) -> list[str]:
        return _dedupe([*self.technical, *self.professional, *self.industry])

    def is_empty(self) -> bool:
        return not (self.technical or self.professional or self.industry)


class ContactInfo(BaseModel):
    """Contact channels found in the résumé header or footer."""

    name: str | None = None
    email: str | None = None
    phone: str | None = None

    model_config = ConfigDict(extra="forbid")


class WorkExperience(BaseModel):
    """Paid position: employment, internship, freelance or consulting."""

    company: str = ""
    role: str = ""
    start: str = ""
    end: str | None = None
    achievements: list[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class OtherExperience(BaseModel):
    """Unpaid but relevant experience: projects, volunteering, research."""

    title: str = ""
    kind: str = "project"
    organization: str | None = None
    start: str | None = None
    end: str | None = None
    description: str = ""
    technologies: list[str] = Field(default_factory=list)
    achievements: list[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class EducationEntry(BaseModel):
    """Degree, certificate or training programme."""

    institution: str = ""
    degree: str = ""
    field: str | None = None
    year: str | None = None

    model_config = ConfigDict(extra="forbid")


class ContactAndSummary(BaseModel):
    """Output of the first résumé extraction step."""

    contact: ContactInfo = Field(default_factory=ContactInfo)
    summary: str | None = None

    model_config = ConfigDict(extra="forbid")


class ProfessionalExperience(BaseModel):
    """Output of the second résumé extraction step."""

    work_experience: list[WorkExperience] = Field(default_factory=list)
    other_experience: list[OtherExperience] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class EducationExtraction(BaseModel):
    """Output of the third résumé extraction step."""

    education: list[EducationEntry] = Field(default_factory=list)
    certifications: list[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class StructuredResume(BaseModel):
    """Résumé assembled from the four extraction steps.

    Years of experience are deliberately absent: they only make sense
    relative to a target job and are computed during evaluation.
    """

    contact: ContactInfo = Field(default_factory=ContactInfo)
    summary: str | None = None
    work_experience: list[WorkExperience] = Field(default_factory=list)
    other_experience: list[OtherExperience] = Field(default_factory=list)
    education: list[EducationEntry] = Field(default_factory=list)
    certifications: list[str] = Field(default_factory=list)
    skills: SkillSet = Field(default_factory=SkillSet)

    model_config = ConfigDict(extra="forbid")
