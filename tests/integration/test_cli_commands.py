from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest
from dependency_injector import providers
from typer.testing import CliRunner

import fitscreening.cli as cli
from fitscreening.cli import app
from fitscreening.container import create_container
from fitscreening.mailbox import FileKeyValueStore
from fitscreening.schemas import JobRecord
from fitscreening.store import JobStore


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def base_args(tmp_path: Path) -> list[str]:
    return [
        "--log-level",
        "ERROR",
        "--jobs-dir",
        str(tmp_path / "jobs"),
        "--mailbox-dir",
        str(tmp_path / "mailbox"),
    ]


def write_record(tmp_path: Path, job_id: str, score: int) -> JobRecord:
    record = JobRecord(
        external_job_id=job_id,
        resume_id="res-1",
        job_title="Backend Engineer",
        company="Globex",
        final_score=score,
        exp_score=3,
        edu_score=3,
        skill_score=3,
        actual_yoe=4.0,
        required_yoe=3.0,
        created_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
    )
    return JobStore(tmp_path / "jobs").create(record)


def test_score_prints_breakdown(tmp_path: Path, runner: CliRunner):
    result = runner.invoke(
        app,
        base_args(tmp_path)
        + ["score", "--actual-yoe", "8", "--required-yoe", "1", "--exp", "4", "--edu", "4", "--skill", "4"],
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["final_percent"] == 100
    assert payload["rating"] == "Good"


def test_list_and_delete_jobs(tmp_path: Path, runner: CliRunner):
    write_record(tmp_path, "li-1", 95)

    listed = runner.invoke(app, base_args(tmp_path) + ["list-jobs"])
    assert listed.exit_code == 0, listed.output
    assert "res-1/li-1" in listed.stdout
    assert "Good" in listed.stdout

    as_json = runner.invoke(app, base_args(tmp_path) + ["list-jobs", "--json", "--resume-id", "res-1"])
    assert json.loads(as_json.stdout)[0]["externalJobId"] == "li-1"

    deleted = runner.invoke(app, base_args(tmp_path) + ["delete-job", "res-1", "li-1"])
    assert deleted.exit_code == 0, deleted.output
    assert JobStore(tmp_path / "jobs").get("res-1", "li-1") is None

    missing = runner.invoke(app, base_args(tmp_path) + ["delete-job", "res-1", "li-1"])
    assert missing.exit_code == 1


def test_control_commands_write_to_mailbox(tmp_path: Path, runner: CliRunner):
    for command in (["stop"], ["resume"], ["set-active-resume", "res-7"]):
        result = runner.invoke(app, base_args(tmp_path) + command)
        assert result.exit_code == 0, result.output

    kv = FileKeyValueStore(tmp_path / "mailbox")
    assert "timestamp" in kv.get("stopCommand")
    assert "timestamp" in kv.get("resumeCommand")
    assert kv.get("activeResumeId") == "res-7"

    cleared = runner.invoke(app, base_args(tmp_path) + ["set-active-resume", "--clear"])
    assert cleared.exit_code == 0
    assert kv.get("activeResumeId") is None


def test_local_evaluate_uses_injected_inference(
    tmp_path: Path, runner: CliRunner, monkeypatch, scripted_inference, resume_text, job_text
):
    def build_container(*, settings=None):
        container = create_container(settings=settings)
        container.inference.override(providers.Object(scripted_inference))
        return container

    monkeypatch.setattr(cli, "create_container", build_container)
    resume_path = tmp_path / "resume.txt"
    job_path = tmp_path / "job.txt"
    resume_path.write_text(resume_text, encoding="utf-8")
    job_path.write_text(job_text, encoding="utf-8")
    args = base_args(tmp_path) + [
        "evaluate",
        "--resume",
        str(resume_path),
        "--job",
        str(job_path),
        "--job-id",
        "li-9",
        "--resume-id",
        "res-1",
        "--local",
    ]

    first = runner.invoke(app, args)
    second = runner.invoke(app, args)

    assert first.exit_code == 0, first.output
    first_payload = json.loads(first.stdout)
    second_payload = json.loads(second.stdout)
    assert first_payload["jobId"] == "li-9"
    assert second_payload["deduplicated"] is True
    assert second_payload["scores"]["finalScore"] == first_payload["scores"]["finalScore"]
    assert len(JobStore(tmp_path / "jobs").list_all()) == 1


def test_local_evaluate_without_backend_fails_cleanly(tmp_path: Path, runner: CliRunner):
    resume_path = tmp_path / "resume.txt"
    job_path = tmp_path / "job.txt"
    resume_path.write_text("Ada Lovelace, engineer", encoding="utf-8")
    job_path.write_text("Backend Engineer", encoding="utf-8")

    result = runner.invoke(
        app,
        base_args(tmp_path) + ["evaluate", "--resume", str(resume_path), "--job", str(job_path), "--local"],
    )

    assert result.exit_code == 1
    assert "Error: Inference backend is not configured" in result.output


def test_invalid_config_is_rejected(tmp_path: Path, runner: CliRunner):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("polling:\n  work_interval: -1\n", encoding="utf-8")

    result = runner.invoke(app, ["--config", str(config_path), "list-jobs"])

    assert result.exit_code != 0


def test_watch_jobs_uses_configured_interval(tmp_path: Path, runner: CliRunner):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("polling:\n  notification_interval: 0.01\n", encoding="utf-8")

    result = runner.invoke(
        app,
        ["--config", str(config_path)] + base_args(tmp_path) + ["watch-jobs", "--max-checks", "2"],
    )

    assert result.exit_code == 0, result.output
    assert result.stdout == ""
