"""Plain-text renderings used in prompts, job records and responses."""

from __future__ import annotations

from typing import Iterable

from .schemas import StructuredJob, StructuredResume


def _join(values: Iterable[str], sep: str = ", ") -> str:
    return sep.join(value for value in values if value) or "None listed"


def render_resume_text(resume: StructuredResume) -> str:
    lines: list[str] = []
    contact = resume.contact
    header = " | ".join(part for part in (contact.name, contact.email, contact.phone) if part)
    if header:
        lines.append(header)
    if resume.summary:
        lines.extend(["", "SUMMARY", resume.summary])

    if resume.work_experience:
        lines.extend(["", "WORK EXPERIENCE"])
        for work in resume.work_experience:
            lines.append(f"- {work.role} at {work.company} ({work.start} - {work.end or 'Present'})")
            lines.extend(f"    * {item}" for item in work.achievements)

    if resume.other_experience:
        lines.extend(["", "OTHER EXPERIENCE"])
        for other in resume.other_experience:
            span = f"{other.start or '?'} - {other.end or 'Present'}"
            lines.append(f"- {other.title} [{other.kind}] ({span})")
            if other.description:
                lines.append(f"    {other.description}")
            if other.technologies:
                lines.append(f"    Technologies: {_join(other.technologies)}")
            lines.extend(f"    * {item}" for item in other.achievements)

    if resume.education:
        lines.extend(["", "EDUCATION"])
        for edu in resume.education:
            field = f" in {edu.field}" if edu.field else ""
            year = f" ({edu.year})" if edu.year else ""
            lines.append(f"- {edu.degree}{field}, {edu.institution}{year}")

    if resume.certifications:
        lines.extend(["", "CERTIFICATIONS", _join(resume.certifications)])

    lines.extend(
        [
            "",
            "SKILLS",
            f"Technical: {_join(resume.skills.technical)}",
            f"Professional: {_join(resume.skills.professional)}",
            f"Industry: {_join(resume.skills.industry)}",
        ]
    )
    return "\n".join(lines).strip()


def render_job_text(job: StructuredJob) -> str:
    exp = job.experience_required
    years = f"{exp.minimum_years}+ years" if exp.minimum_years is not None else "unspecified years"
    lines = [
        f"{job.title or 'Untitled role'} at {job.company or 'Unknown company'}",
        f"Experience: {years}, {exp.level.value} level"
        + (f", {exp.industry_context}" if exp.industry_context else ""),
        "",
        "REQUIRED SKILLS",
        f"Technical: {_join(job.required_skills.technical)}",
        f"Professional: {_join(job.required_skills.professional)}",
        f"Industry: {_join(job.required_skills.industry)}",
    ]
    if job.preferred_skills and not job.preferred_skills.is_empty():
        lines.extend(
            [
                "",
                "PREFERRED SKILLS",
                f"Technical: {_join(job.preferred_skills.technical)}",
                f"Professional: {_join(job.preferred_skills.professional)}",
                f"Industry: {_join(job.preferred_skills.industry)}",
            ]
        )
    if job.responsibilities:
        lines.extend(["", "RESPONSIBILITIES"])
        lines.extend(f"- {item}" for item in job.responsibilities)
    if job.education_requirements:
        lines.extend(["", "EDUCATION", job.education_requirements])
    return "\n".join(lines)
