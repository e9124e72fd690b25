"""Pydantic schema definitions shared by the pipeline and the mailbox."""

from __future__ import annotations

from .job import ExperienceLevel, ExperienceRequirements, StructuredJob
from .mailbox import (
    ControlCommand,
    EvaluationScores,
    JobEvaluationRequest,
    JobEvaluationResponse,
    MailboxStatus,
    NewJobNotification,
    RequestEnvelope,
    ResponseEnvelope,
    ResumeCleanRequest,
    ResumeCleanResponse,
    ResumeTextRequest,
    ResumeTextResponse,
)
from .record import JobRecord
from .resume import (
    ContactAndSummary,
    ContactInfo,
    EducationEntry,
    EducationExtraction,
    OtherExperience,
    ProfessionalExperience,
    SkillSet,
    StructuredResume,
    WorkExperience,
)

__all__ = [
    "ContactAndSummary",
    "ContactInfo",
    "ControlCommand",
    "EducationEntry",
    "EducationExtraction",
    "EvaluationScores",
    "ExperienceLevel",
    "ExperienceRequirements",
    "JobEvaluationRequest",
    "JobEvaluationResponse",
    "JobRecord",
    "MailboxStatus",
    "NewJobNotification",
    "OtherExperience",
    "ProfessionalExperience",
    "RequestEnvelope",
    "ResponseEnvelope",
    "ResumeCleanRequest",
    "ResumeCleanResponse",
    "ResumeTextRequest",
    "ResumeTextResponse",
    "SkillSet",
    "StructuredJob",
    "StructuredResume",
    "WorkExperience",
]
