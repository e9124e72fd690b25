from __future__ import annotations

import asyncio

import pytest

from fitscreening.core import DocumentKind, ExtractorConfig, ResumeTextFormatter, StructuredExtractor
from fitscreening.core.extractor import merge_similar
from fitscreening.errors import ExtractionError
from fitscreening.schemas import ExperienceLevel, StructuredJob, StructuredResume

from conftest import ScriptedInferenceClient


def test_resume_extraction_runs_four_steps_in_order(scripted_inference, resume_text):
    extractor = StructuredExtractor(scripted_inference)

    resume = asyncio.run(extractor.extract_resume(resume_text))

    assert scripted_inference.schemas_called() == [
        "ContactAndSummary",
        "ProfessionalExperience",
        "EducationExtraction",
        "SkillSet",
    ]
    assert isinstance(resume, StructuredResume)
    assert resume.contact.name == "Ada Lovelace"
    assert [work.company for work in resume.work_experience] == ["Acme", "Cafe Uno"]
    assert resume.other_experience[0].kind == "open-source"
    assert resume.education[0].field == "Computer Science"
    assert resume.skills.technical == ["Python", "PostgreSQL"]
    assert all(resume_text.strip() in call.prompt for call in scripted_inference.calls)


def test_resume_extraction_stops_at_failed_step(resume_text):
    inference = ScriptedInferenceClient(
        {
            "ContactAndSummary": {"summary": "x"},
            "ProfessionalExperience": ExtractionError("schema violation"),
            "EducationExtraction": {},
            "SkillSet": {},
        }
    )

    with pytest.raises(ExtractionError):
        asyncio.run(StructuredExtractor(inference).extract_resume(resume_text))

    assert inference.schemas_called() == ["ContactAndSummary", "ProfessionalExperience"]


def test_invalid_step_output_is_an_extraction_error(resume_text):
    inference = ScriptedInferenceClient({"ContactAndSummary": {"contact": "not an object"}})

    with pytest.raises(ExtractionError):
        asyncio.run(StructuredExtractor(inference).extract_resume(resume_text))


def test_job_extraction_keeps_required_and_preferred_apart(scripted_inference, job_text):
    job = asyncio.run(StructuredExtractor(scripted_inference).extract_job(job_text))

    assert isinstance(job, StructuredJob)
    assert scripted_inference.schemas_called() == ["StructuredJob"]
    assert job.required_skills.technical == ["Python", "SQL"]
    assert job.preferred_skills is not None
    assert job.preferred_skills.technical == ["Kubernetes"]
    assert job.experience_required.level is ExperienceLevel.MID


def test_extract_dispatches_on_kind(scripted_inference, resume_text, job_text):
    extractor = StructuredExtractor(scripted_inference)

    assert isinstance(asyncio.run(extractor.extract(job_text, DocumentKind.JOB)), StructuredJob)
    assert isinstance(asyncio.run(extractor.extract(resume_text, "resume")), StructuredResume)


@pytest.mark.parametrize("text", ["", "   \n\t"])
def test_empty_text_is_rejected_without_inference(text):
    inference = ScriptedInferenceClient()

    with pytest.raises(ExtractionError):
        asyncio.run(StructuredExtractor(inference).extract_resume(text))
    assert inference.calls == []


def test_long_text_is_truncated(scripted_inference):
    extractor = StructuredExtractor(scripted_inference, config=ExtractorConfig(max_text_chars=12))

    asyncio.run(extractor.extract_job("Backend Engineer" + " filler" * 100))

    prompt = scripted_inference.calls[0].prompt
    assert "Backend Engi" in prompt
    assert "filler" not in prompt


def test_merge_similar_drops_near_duplicates():
    assert merge_similar(["Kubernetes", "Kubernetess", "Go", " ", "Rust"], threshold=95) == [
        "Kubernetes",
        "Go",
        "Rust",
    ]
    assert merge_similar(["Node.js", "NodeJS"], threshold=95) == ["Node.js", "NodeJS"]


def test_formatter_returns_model_text(scripted_inference):
    formatted = asyncio.run(ResumeTextFormatter(scripted_inference).format("Ada   Lovelace\n\nBackend"))

    assert formatted == "Ada Lovelace\nBackend engineer"
    assert scripted_inference.schemas_called() == ["FormattedResumeText"]


def test_formatter_rejects_empty_text():
    with pytest.raises(ExtractionError):
        asyncio.run(ResumeTextFormatter(ScriptedInferenceClient()).format(""))
