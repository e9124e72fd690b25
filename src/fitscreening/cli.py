"""Typer CLI entrypoint for the evaluation service."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, NoReturn, Optional

import typer
from pydantic import ValidationError

from .config import ConfigManager
from .container import EvaluationContainer, create_container
from .core import EvaluationInputs, ScoreCombiner, rating_band
from .errors import FitScreeningError
from .logging import configure_logging
from .pdf_utils import extract_resume_text
from .rendering import render_resume_text
from .schemas import JobEvaluationRequest

app = typer.Typer(help="Resume-to-job fit evaluation CLI.")


def _load_settings(
    config: Optional[Path],
    *,
    jobs_dir: Optional[Path],
    mailbox_dir: Optional[Path],
    endpoint: Optional[str],
    api_key: Optional[str],
) -> dict[str, Any]:
    try:
        app_config = ConfigManager.load_app_config(config)
    except ValidationError as exc:
        raise typer.BadParameter(f"Invalid config: {exc}", param_name="config") from exc

    settings = app_config.to_settings()
    if jobs_dir:
        settings["storage"]["jobs_dir"] = str(jobs_dir)
    if mailbox_dir:
        settings["storage"]["mailbox_dir"] = str(mailbox_dir)
    if endpoint:
        settings["inference"]["endpoint"] = endpoint
    if api_key:
        settings["inference"]["api_key"] = api_key
    return settings


@app.callback()
def main_options(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="YAML config path."),
    log_level: str = typer.Option("INFO", help="Log level for structured logging."),
    jobs_dir: Optional[Path] = typer.Option(None, file_okay=False, help="Job record directory."),
    mailbox_dir: Optional[Path] = typer.Option(None, file_okay=False, help="Shared mailbox directory."),
    endpoint: Optional[str] = typer.Option(None, help="Inference API endpoint."),
    api_key: Optional[str] = typer.Option(None, envvar="FITSCREENING_API_KEY", help="Inference API key."),
) -> None:
    """Resolve settings shared by every command."""
    configure_logging(log_level)
    settings = _load_settings(
        config, jobs_dir=jobs_dir, mailbox_dir=mailbox_dir, endpoint=endpoint, api_key=api_key
    )
    ctx.obj = create_container(settings=settings)


def _container(ctx: typer.Context) -> EvaluationContainer:
    return ctx.obj


def _read_document(path: Path) -> str:
    if path.suffix.lower() == ".pdf":
        return extract_resume_text(path)
    return path.read_text(encoding="utf-8")


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))


def _fail(exc: Exception) -> NoReturn:
    typer.echo(f"Error: {exc}", err=True)
    raise typer.Exit(code=1)


@app.command()
def serve(ctx: typer.Context) -> None:
    """Run the evaluator process polling loops until interrupted."""
    service = _container(ctx).monitor_service()
    typer.echo("Evaluator running. Press Ctrl+C to stop.")
    try:
        asyncio.run(service.run())
    except KeyboardInterrupt:
        service.shutdown()
        typer.echo("Evaluator stopped.")


@app.command()
def evaluate(
    ctx: typer.Context,
    resume: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Resume text or PDF."),
    job: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Job description text."),
    job_title: Optional[str] = typer.Option(None, help="Job title shown in the job list."),
    company: Optional[str] = typer.Option(None, help="Company shown in the job list."),
    job_id: Optional[str] = typer.Option(None, help="Job board identifier used for deduplication."),
    resume_id: Optional[str] = typer.Option(None, help="Resume identifier; defaults to the active resume."),
    local: bool = typer.Option(False, "--local", help="Evaluate in this process instead of via the mailbox."),
    timeout: Optional[float] = typer.Option(None, help="Seconds to wait for the evaluator."),
) -> None:
    """Evaluate one resume against one job posting."""
    container = _container(ctx)
    resume_text = _read_document(resume)
    job_text = job.read_text(encoding="utf-8")
    try:
        if local:
            request = JobEvaluationRequest(
                resume_text=resume_text,
                job_description_raw_text=job_text,
                job_title=job_title,
                company=company,
                external_job_id=job_id,
                resume_id=resume_id,
            )
            outcome = asyncio.run(container.orchestrator().evaluate(request))
            response = outcome.to_response(request.id)
        else:
            response = asyncio.run(
                container.client().evaluate_job(
                    resume_text,
                    job_text,
                    job_title=job_title,
                    company=company,
                    external_job_id=job_id,
                    resume_id=resume_id,
                    timeout=timeout,
                )
            )
    except FitScreeningError as exc:
        _fail(exc)
    _echo_json(response.to_wire())


@app.command("clean-resume")
def clean_resume(
    ctx: typer.Context,
    resume: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Resume text or PDF."),
    local: bool = typer.Option(False, "--local", help="Extract in this process instead of via the mailbox."),
    as_json: bool = typer.Option(False, "--json", help="Print the structured resume as JSON."),
    timeout: Optional[float] = typer.Option(None, help="Seconds to wait for the evaluator."),
) -> None:
    """Extract a structured resume and print its cleaned text."""
    container = _container(ctx)
    text = _read_document(resume)
    try:
        if local:
            structured = asyncio.run(container.extractor().extract_resume(text))
            cleaned, payload = render_resume_text(structured), structured.model_dump(mode="json")
        else:
            response = asyncio.run(container.client().clean_resume(text, timeout=timeout))
            cleaned, payload = response.cleaned_text or "", response.structured_resume or {}
    except FitScreeningError as exc:
        _fail(exc)
    if as_json:
        _echo_json(payload)
    else:
        typer.echo(cleaned)


@app.command("format-resume")
def format_resume(
    ctx: typer.Context,
    resume: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Resume text or PDF."),
    local: bool = typer.Option(False, "--local", help="Format in this process instead of via the mailbox."),
    timeout: Optional[float] = typer.Option(None, help="Seconds to wait for the evaluator."),
) -> None:
    """Reformat raw resume text into readable plain text."""
    container = _container(ctx)
    text = _read_document(resume)
    try:
        if local:
            formatted = asyncio.run(container.formatter().format(text))
        else:
            formatted = asyncio.run(container.client().format_resume_text(text, timeout=timeout)).formatted_text
    except FitScreeningError as exc:
        _fail(exc)
    typer.echo(formatted or "")


@app.command()
def score(
    ctx: typer.Context,
    actual_yoe: float = typer.Option(..., help="Relevant years of experience."),
    required_yoe: float = typer.Option(..., help="Required years of experience."),
    exp: float = typer.Option(..., help="Experience rating 0-4."),
    edu: float = typer.Option(..., help="Education rating 0-4."),
    skill: float = typer.Option(..., help="Skill rating 0-4."),
) -> None:
    """Combine five signals into a fit score without any model calls."""
    combiner: ScoreCombiner = _container(ctx).combiner()
    breakdown = combiner.combine(
        EvaluationInputs.from_raw(
            actual_yoe=actual_yoe,
            required_yoe=required_yoe,
            exp_score=exp,
            edu_score=edu,
            skill_score=skill,
        )
    )
    _echo_json(breakdown.to_dict())


@app.command("list-jobs")
def list_jobs(
    ctx: typer.Context,
    resume_id: Optional[str] = typer.Option(None, help="Only jobs evaluated for this resume."),
    as_json: bool = typer.Option(False, "--json", help="Print full records as JSON."),
) -> None:
    """List stored job evaluations, newest first."""
    store = _container(ctx).job_store()
    try:
        records = store.list_for_resume(resume_id) if resume_id else store.list_all()
    except FitScreeningError as exc:
        _fail(exc)
    if as_json:
        _echo_json([record.to_wire() for record in records])
        return
    if not records:
        typer.echo("No jobs stored.")
        return
    for record in records:
        typer.echo(
            f"{record.created_at:%Y-%m-%d} {record.final_score:3d} {rating_band(record.final_score):<6} "
            f"{record.resume_id}/{record.external_job_id} {record.job_title} @ {record.company}"
        )


@app.command("delete-job")
def delete_job(
    ctx: typer.Context,
    resume_id: str = typer.Argument(..., help="Resume identifier."),
    job_id: str = typer.Argument(..., help="Job board identifier."),
) -> None:
    """Delete a stored evaluation so the job can be scored again."""
    try:
        deleted = _container(ctx).job_store().delete(resume_id, job_id)
    except FitScreeningError as exc:
        _fail(exc)
    if not deleted:
        typer.echo(f"No job {job_id} for resume {resume_id}.", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Deleted job {job_id} for resume {resume_id}.")


@app.command("watch-jobs")
def watch_jobs(
    ctx: typer.Context,
    max_checks: Optional[int] = typer.Option(None, min=1, help="Stop after this many polls."),
) -> None:
    """Print a JSON line for every newly stored job evaluation."""
    watcher = _container(ctx).new_job_watcher()
    # Only notifications written after start-up are reported.
    watcher.poll()

    def emit(notification) -> None:
        typer.echo(json.dumps(notification.to_wire(), ensure_ascii=False))

    try:
        asyncio.run(watcher.watch(emit, max_checks=max_checks))
    except KeyboardInterrupt:
        typer.echo("Stopped watching.", err=True)


@app.command()
def stop(ctx: typer.Context) -> None:
    """Ask the evaluator to pause request processing."""
    _container(ctx).client().request_stop()
    typer.echo("Stop command sent.")


@app.command()
def resume(ctx: typer.Context) -> None:
    """Ask a paused evaluator to continue."""
    _container(ctx).client().request_resume()
    typer.echo("Resume command sent.")


@app.command("set-active-resume")
def set_active_resume(
    ctx: typer.Context,
    resume_id: Optional[str] = typer.Argument(None, help="Resume identifier; omit with --clear."),
    clear: bool = typer.Option(False, "--clear", help="Remove the active resume id."),
) -> None:
    """Set the resume used when a request carries no resume id."""
    if not clear and not resume_id:
        raise typer.BadParameter("Provide a resume id or --clear", param_name="resume_id")
    _container(ctx).client().set_active_resume(None if clear else resume_id)
    typer.echo("Active resume cleared." if clear else f"Active resume set to {resume_id}.")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
