from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Base for records shared with other processes in camelCase JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class JobRecord(CamelModel):
    """Persisted evaluation of one (resume, job) pair.

    Created once on the first successful evaluation and never updated in
    place; re-submitting the same pair returns this record unchanged.
    """

    external_job_id: str
    resume_id: str
    job_title: str = ""
    company: str = ""
    cleaned_job_text: str = ""
    rationale_text: str = ""
    final_score: int = Field(ge=0, le=100)
    exp_score: int = Field(ge=0, le=4)
    edu_score: int = Field(ge=0, le=4)
    skill_score: int = Field(ge=0, le=4)
    actual_yoe: float = Field(ge=0.0, le=8.0, alias="actualYOE")
    required_yoe: float = Field(ge=0.0, le=8.0, alias="requiredYOE")
    created_at: datetime = Field(default_factory=utcnow)

    @property
    def key(self) -> tuple[str, str]:
        return self.resume_id, self.external_job_id
