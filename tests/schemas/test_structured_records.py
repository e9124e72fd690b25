from __future__ import annotations

import pytest
from pydantic import ValidationError

from fitscreening.schemas import (
    EvaluationScores,
    ExperienceLevel,
    JobEvaluationRequest,
    JobEvaluationResponse,
    JobRecord,
    SkillSet,
    StructuredJob,
    StructuredResume,
)
from fitscreening.schemas.config import AppConfig, load_config


def build_resume() -> StructuredResume:
    return StructuredResume.model_validate(
        {
            "contact": {"name": "Ada", "email": "ada@example.com"},
            "summary": "Engineer",
            "work_experience": [{"company": "Acme", "role": "Engineer", "start": "2020-01"}],
            "other_experience": [{"title": "OSS", "kind": "open-source", "technologies": ["Python"]}],
            "education": [{"institution": "State U", "degree": "BSc"}],
            "certifications": ["AWS SAA"],
            "skills": {"technical": ["Python"], "industry": ["Fintech"]},
        }
    )


def test_structured_resume_round_trip():
    resume = build_resume()

    assert StructuredResume.model_validate_json(resume.model_dump_json()) == resume


def test_structured_resume_rejects_unknown_fields():
    with pytest.raises(ValidationError):
        StructuredResume.model_validate({"years_of_experience": 5})


def test_skill_set_deduplicates_case_insensitively():
    skills = SkillSet(technical=["Python", " python ", "SQL", ""], professional=["Leadership"])

    assert skills.technical == ["Python", "SQL"]
    assert skills.all() == ["Python", "SQL", "Leadership"]
    assert SkillSet().is_empty()


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Senior", ExperienceLevel.SENIOR),
        ("Mid-level", ExperienceLevel.MID),
        ("junior", ExperienceLevel.ENTRY),
        ("Staff", ExperienceLevel.LEAD),
        ("Director", ExperienceLevel.EXECUTIVE),
    ],
)
def test_experience_level_normalisation(raw, expected):
    job = StructuredJob.model_validate({"experience_required": {"level": raw}})

    assert job.experience_required.level is expected


def test_unknown_level_is_rejected():
    with pytest.raises(ValidationError):
        StructuredJob.model_validate({"experience_required": {"level": "wizard"}})


def test_structured_job_round_trip():
    job = StructuredJob.model_validate(
        {
            "title": "Data Engineer",
            "experience_required": {"minimum_years": 4, "level": "senior"},
            "required_skills": {"technical": ["Spark"]},
            "preferred_skills": {"technical": ["Airflow"]},
            "responsibilities": ["Own pipelines"],
            "education_requirements": "BSc",
        }
    )

    assert StructuredJob.model_validate_json(job.model_dump_json()) == job


def test_job_record_wire_format_uses_camel_case():
    record = JobRecord(
        external_job_id="li-1",
        resume_id="res-1",
        final_score=70,
        exp_score=3,
        edu_score=2,
        skill_score=1,
        actual_yoe=2.0,
        required_yoe=3.0,
    )

    wire = record.to_wire()

    assert {"externalJobId", "resumeId", "finalScore", "actualYOE", "requiredYOE", "createdAt"} <= set(wire)
    assert JobRecord.model_validate(wire) == record
    assert record.key == ("res-1", "li-1")


def test_job_record_rejects_out_of_range_scores():
    with pytest.raises(ValidationError):
        JobRecord(
            external_job_id="li-1",
            resume_id="res-1",
            final_score=101,
            exp_score=3,
            edu_score=2,
            skill_score=1,
            actual_yoe=2.0,
            required_yoe=3.0,
        )


def test_mailbox_envelopes_round_trip():
    request = JobEvaluationRequest(resume_text="r", job_description_raw_text="j", job_title="Dev")
    response = JobEvaluationResponse(
        request_id=request.id,
        results_text="ok",
        scores=EvaluationScores(final_score=80, rating="Poor", actual_yoe=2.0),
    )

    request_wire = request.to_wire()
    response_wire = response.to_wire()

    assert request_wire["jobDescriptionRawText"] == "j"
    assert "externalJobId" not in request_wire
    assert response_wire["requestId"] == request.id
    assert response_wire["scores"]["actualYOE"] == 2.0
    assert JobEvaluationRequest.model_validate(request_wire) == request
    assert JobEvaluationResponse.model_validate(response_wire) == response


def test_request_ids_are_unique():
    first = JobEvaluationRequest(resume_text="r", job_description_raw_text="j")
    second = JobEvaluationRequest(resume_text="r", job_description_raw_text="j")

    assert first.id != second.id


def test_load_config_defaults_and_validation():
    assert load_config(None) == AppConfig()

    config = load_config(
        {
            "storage": {"jobs_dir": "/tmp/jobs"},
            "polling": {"work_interval": 0.25},
            "components": {"combiner": {"f_yoe_cap": 1.2}},
        }
    )
    settings = config.to_settings()

    assert settings["storage"] == {"jobs_dir": "/tmp/jobs"}
    assert settings["polling"]["work_interval"] == 0.25
    assert settings["components"] == {"combiner": {"f_yoe_cap": 1.2}}

    with pytest.raises(ValidationError):
        load_config({"polling": {"work_interval": 0}})
    with pytest.raises(ValidationError):
        load_config(["not", "a", "mapping"])
    with pytest.raises(ValidationError):
        load_config({"unknown_section": {}})
