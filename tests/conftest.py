from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import pytest
from pydantic import BaseModel, ValidationError

from fitscreening.errors import ExtractionError


@dataclass
class InferenceCall:
    schema: str
    instructions: str
    prompt: str


class ScriptedInferenceClient:
    """Return canned outputs per schema name and record every call.

    Each schema has a queue; the last entry repeats once the others are
    used up. An exception instance in the queue is raised instead.
    """

    def __init__(self, outputs: dict[str, Any] | None = None) -> None:
        self._outputs: dict[str, list[Any]] = {}
        self.calls: list[InferenceCall] = []
        for name, value in (outputs or {}).items():
            self.script(name, value)

    def script(self, schema_name: str, *outputs: Any) -> "ScriptedInferenceClient":
        self._outputs[schema_name] = list(outputs)
        return self

    def schemas_called(self) -> list[str]:
        return [call.schema for call in self.calls]

    async def infer(self, *, instructions: str, prompt: str, schema: type[BaseModel]) -> Any:
        self.calls.append(InferenceCall(schema.__name__, instructions, prompt))
        queue = self._outputs.get(schema.__name__)
        if not queue:
            raise ExtractionError(f"No scripted output for {schema.__name__}")
        output = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(output, Exception):
            raise output
        if isinstance(output, BaseModel):
            output = output.model_dump()
        try:
            return schema.model_validate(output)
        except ValidationError as exc:
            raise ExtractionError(str(exc)) from exc


RESUME_TEXT = """Ada Lovelace | ada@example.com
Backend engineer focused on Python services.
Acme - Backend Engineer 2019-01 to 2021-01
Cafe Uno - Barista 2017-01 to 2018-12
Open-source maintainer of a Python HTTP library 2020-01 to 2022-01
BSc Computer Science, State University 2018
"""

JOB_TEXT = """Backend Engineer at Globex
Requirements: 3+ years of professional Python experience, SQL.
Nice to have: Kubernetes.
"""


def happy_path_outputs() -> dict[str, Any]:
    return {
        "ContactAndSummary": {
            "contact": {"name": "Ada Lovelace", "email": "ada@example.com"},
            "summary": "Backend engineer focused on Python services.",
        },
        "ProfessionalExperience": {
            "work_experience": [
                {
                    "company": "Acme",
                    "role": "Backend Engineer",
                    "start": "2019-01",
                    "end": "2021-01",
                    "achievements": ["Built REST APIs in Python"],
                },
                {"company": "Cafe Uno", "role": "Barista", "start": "2017-01", "end": "2018-12"},
            ],
            "other_experience": [
                {
                    "title": "Open-source maintainer",
                    "kind": "open-source",
                    "start": "2020-01",
                    "end": "2022-01",
                    "description": "Python HTTP library",
                    "technologies": ["Python"],
                }
            ],
        },
        "EducationExtraction": {
            "education": [
                {
                    "institution": "State University",
                    "degree": "BSc",
                    "field": "Computer Science",
                    "year": "2018",
                }
            ],
        },
        "SkillSet": {
            "technical": ["Python", "python", "PostgreSQL"],
            "professional": ["Communication"],
        },
        "StructuredJob": {
            "title": "Backend Engineer",
            "company": "Globex",
            "experience_required": {"minimum_years": None, "level": "Mid-level"},
            "required_skills": {"technical": ["Python", "SQL"]},
            "preferred_skills": {"technical": ["Kubernetes", "Python"]},
            "responsibilities": ["Build and operate backend services"],
        },
        "RequiredYOEJudgement": {"years": 3, "confidence": 0.9, "justification": "3+ years stated"},
        "RelevanceJudgement": {
            "relevant_work_indices": [0],
            "relevant_other_indices": [0],
            "confidence": 0.8,
            "justification": "Backend role and Python library are relevant.",
        },
        "DimensionScores": {
            "exp_score": 2,
            "edu_score": 2,
            "skill_score": 2,
            "exp_rationale": "Two years of backend work.",
            "edu_rationale": "Relevant CS degree.",
            "skill_rationale": "Python covered, SQL partially.",
        },
        "FormattedResumeText": {"text": "Ada Lovelace\nBackend engineer"},
    }


@pytest.fixture
def scripted_inference() -> ScriptedInferenceClient:
    return ScriptedInferenceClient(happy_path_outputs())


@pytest.fixture
def resume_text() -> str:
    return RESUME_TEXT


@pytest.fixture
def job_text() -> str:
    return JOB_TEXT
