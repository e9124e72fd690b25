from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import Field

from .record import CamelModel, utcnow


class MailboxStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    ERROR = "error"
    STOPPED = "stopped"


def new_request_id() -> str:
    return uuid.uuid4().hex


class RequestEnvelope(CamelModel):
    id: str = Field(default_factory=new_request_id)
    timestamp: datetime = Field(default_factory=utcnow)


class ResponseEnvelope(CamelModel):
    request_id: str
    error: str | None = None
    timestamp: datetime = Field(default_factory=utcnow)


class JobEvaluationRequest(RequestEnvelope):
    resume_text: str
    job_description_raw_text: str
    job_title: str | None = None
    company: str | None = None
    external_job_id: str | None = None
    resume_id: str | None = None


class EvaluationScores(CamelModel):
    final_score: int = Field(ge=0, le=100)
    rating: str | None = None
    exp_score: int | None = None
    edu_score: int | None = None
    skill_score: int | None = None
    actual_yoe: float | None = Field(default=None, alias="actualYOE")
    required_yoe: float | None = Field(default=None, alias="requiredYOE")


class JobEvaluationResponse(ResponseEnvelope):
    results_text: str | None = None
    scores: EvaluationScores | None = None
    job_id: str | None = None
    resume_id: str | None = None
    deduplicated: bool = False


class ResumeCleanRequest(RequestEnvelope):
    resume_text: str


class ResumeCleanResponse(ResponseEnvelope):
    cleaned_text: str | None = None
    structured_resume: dict[str, Any] | None = None


class ResumeTextRequest(RequestEnvelope):
    raw_text: str


class ResumeTextResponse(ResponseEnvelope):
    formatted_text: str | None = None


class NewJobNotification(CamelModel):
    """Side-channel record overwritten after each newly persisted job."""

    job_id: str
    resume_id: str
    timestamp: datetime = Field(default_factory=utcnow)


class ControlCommand(CamelModel):
    timestamp: datetime = Field(default_factory=utcnow)
