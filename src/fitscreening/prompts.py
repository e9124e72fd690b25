"""Instruction texts and prompt builders for every inference call.

Résumé extraction is split into four narrow calls (contact, experience,
education, skills); each instruction block only describes its own part of
the document.
"""

from __future__ import annotations

from .rendering import render_job_text, render_resume_text
from .schemas import StructuredJob, StructuredResume

CONTACT_AND_SUMMARY_INSTRUCTIONS = """\
Extract contact information and the professional summary from this resume.

CONTACT: name, email and phone from the header, footer or contact section.
Leave a field null when it is not clearly present; never guess.

SUMMARY: the summary, objective or profile statement near the top of the
resume. Leave null when there is no such section.

Ignore experience, education and skills in this step."""

EXPERIENCE_INSTRUCTIONS = """\
Extract professional experience from this resume and split it in two lists.

work_experience (paid positions only): full-time, part-time and contract
employment, internships, freelance work and consulting.

other_experience (unpaid but relevant): personal and side projects,
volunteer work, research, open-source contributions, hackathons and
academic projects. Set "kind" to one of: project, volunteer, research,
open-source, hackathon, academic.

Every entry belongs to exactly one list. Dates use YYYY-MM. Use null for
the end date of an ongoing entry. Capture key achievements and, for other
experience, the technologies used."""

EDUCATION_INSTRUCTIONS = """\
Extract education from this resume: degrees, certificates, bootcamps and
training programmes, completed or in progress.

For each entry give the institution, degree or certificate type, field of
study and graduation year when present. List professional certifications
and licences separately under "certifications"."""

SKILLS_INSTRUCTIONS = """\
Extract every skill mentioned anywhere in this resume, including inside
experience descriptions and project details.

technical: languages, software, tools, platforms, frameworks, databases,
equipment and instruments.
professional: leadership, communication, project management, analysis,
collaboration.
industry: domain knowledge, regulations and methodologies (for example
financial modeling, GDPR, Six Sigma, clinical trials)."""

JOB_INSTRUCTIONS = """\
Extract structured data from this job posting.

REQUIRED vs PREFERRED SKILLS. This distinction is critical; do not merge
the two lists.
- required_skills: skills introduced by "must have", "required",
  "essential", "mandatory" or "needed", or listed as core qualifications.
- preferred_skills: skills introduced by "nice to have", "preferred",
  "bonus", "plus" or "desired".
Split each list into technical, professional and industry skills.

EXPERIENCE: minimum years if stated; level as one of entry, mid, senior,
lead, executive; industry context when mentioned.

RESPONSIBILITIES: the core duties of the role.

EDUCATION: the degree, field or certification requirement, if any."""

REQUIRED_YOE_INSTRUCTIONS = """\
You extract the MINIMUM years of experience a job posting requires.

Look for phrases such as "X+ years", "minimum X years", "at least X years".
For a range like "3-5 years" use the lower number. When several numbers
appear use the smallest general requirement, not tool-specific ones.
If no number is stated, return years as null and classify the level as
entry, mid, senior, lead or executive.

Confidence: 1.0 explicit number, 0.8 clear level indicator, 0.6 implied by
responsibilities, 0.4 ambiguous."""

ACTUAL_YOE_INSTRUCTIONS = """\
You decide which parts of a candidate's background are relevant to one
specific target job.

You are given numbered WORK entries (paid roles) and numbered OTHER entries
(projects, volunteering, research). Return the indices of the entries whose
content is directly relevant or clearly transferable to the target job's
responsibilities and required skills. Exclude unrelated roles.

Do not compute durations yourself. Give a confidence between 0 and 1 and a
short justification naming the entries you kept."""

DIMENSION_SCORING_INSTRUCTIONS = """\
You are an expert recruiter rating a candidate for one specific job on
three dimensions, each an integer from 0 to 4.

exp_score: relevance of the experience to the job's core tasks. Judge
relevance, not seniority.
0 none, 1 minimal and only transferable, 2 moderate with key areas missing,
3 strong, 4 excellent and beyond the requirements.

edu_score: relevance and level of education against the stated requirement.
0 none, 1 some coursework or self-study, 2 related degree, 3 required degree,
4 advanced or specialised degree beyond the requirement.

skill_score: coverage of the REQUIRED skills; credit adjacent and
transferable skills.
0 most critical skills missing, 1 major gaps, 2 basic coverage with gaps,
3 strong with minor gaps, 4 excellent coverage.

Give a rationale of at most 2-3 sentences for each score."""

RESUME_TEXT_INSTRUCTIONS = """\
Reformat text extracted from a resume PDF into clean, readable plain text.
Fix broken lines, spacing and bullet characters, keep the original section
order, and do not add, remove or rephrase any content."""


def document_prompt(text: str, label: str) -> str:
    return (
        f"=== RAW {label.upper()} ===\n"
        f"{text}\n"
        f"=== END RAW {label.upper()} ===\n\n"
        "Return the structured data in the requested format."
    )


def required_yoe_prompt(job: StructuredJob, raw_text: str) -> str:
    return (
        "=== JOB DESCRIPTION ===\n"
        f"{raw_text}\n\n"
        "=== EXTRACTED SUMMARY ===\n"
        f"{render_job_text(job)}\n\n"
        "Find the minimum required years of experience."
    )


def actual_yoe_prompt(resume: StructuredResume, job: StructuredJob) -> str:
    work_lines = [
        f"W{idx}: {work.role} at {work.company} ({work.start} - {work.end or 'Present'})"
        + (f": {'; '.join(work.achievements)}" if work.achievements else "")
        for idx, work in enumerate(resume.work_experience)
    ]
    other_lines = [
        f"O{idx}: {other.title} [{other.kind}]"
        + (f": {other.description}" if other.description else "")
        + (f" (tech: {', '.join(other.technologies)})" if other.technologies else "")
        for idx, other in enumerate(resume.other_experience)
    ]
    return (
        "=== TARGET JOB ===\n"
        f"{render_job_text(job)}\n\n"
        "=== WORK ENTRIES ===\n"
        + ("\n".join(work_lines) or "none")
        + "\n\n=== OTHER ENTRIES ===\n"
        + ("\n".join(other_lines) or "none")
        + "\n\nReturn the zero-based indices of relevant work and other entries."
    )


def dimension_prompt(resume: StructuredResume, job: StructuredJob) -> str:
    return (
        "=== JOB DESCRIPTION ===\n"
        f"{render_job_text(job)}\n\n"
        "=== CANDIDATE RESUME ===\n"
        f"{render_resume_text(resume)}\n\n"
        "Rate this candidate on the three dimensions."
    )
