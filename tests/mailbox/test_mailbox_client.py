from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest

from fitscreening.errors import MailboxTimeoutError, MismatchError, RemoteEvaluationError
from fitscreening.mailbox import (
    JOB_EVALUATION,
    RESUME_TEXT,
    Mailbox,
    MailboxClient,
    MemoryKeyValueStore,
    NewJobWatcher,
    match_response,
)
from fitscreening.mailbox.channels import RESUME_COMMAND_KEY, STOP_COMMAND_KEY
from fitscreening.schemas import (
    EvaluationScores,
    JobEvaluationRequest,
    JobEvaluationResponse,
    MailboxStatus,
    NewJobNotification,
    ResumeTextResponse,
)


def build_client(mailbox: Mailbox, timeout: float = 0.2) -> MailboxClient:
    return MailboxClient(mailbox, poll_interval=0.01, timeout=timeout)


async def answer_when_pending(mailbox: Mailbox, make_response, *, channel=JOB_EVALUATION) -> None:
    for _ in range(200):
        raw = mailbox.store.get(channel.request_key)
        if raw is not None and mailbox.status(channel) is MailboxStatus.PENDING:
            mailbox.write_response(channel, make_response(raw["id"]), MailboxStatus.COMPLETED)
            return
        await asyncio.sleep(0.005)


def test_match_response():
    response = JobEvaluationResponse(request_id="abc")

    assert match_response("abc", None) is None
    assert match_response("abc", response) is response
    with pytest.raises(MismatchError):
        match_response("other", response)


def test_matching_response_is_returned_and_keys_cleared():
    mailbox = Mailbox(MemoryKeyValueStore())
    client = build_client(mailbox)

    async def scenario():
        responder = asyncio.create_task(
            answer_when_pending(
                mailbox,
                lambda rid: JobEvaluationResponse(
                    request_id=rid, results_text="fit", scores=EvaluationScores(final_score=91)
                ),
            )
        )
        response = await client.evaluate_job("resume", "job", external_job_id="li-1")
        await responder
        return response

    response = asyncio.run(scenario())

    assert response.scores.final_score == 91
    assert mailbox.store.keys() == []


def test_mismatched_response_is_ignored_until_timeout():
    store = MemoryKeyValueStore()
    mailbox = Mailbox(store)
    client = build_client(mailbox, timeout=0.1)

    async def scenario():
        async def write_stale():
            await asyncio.sleep(0.02)
            mailbox.write_response(
                JOB_EVALUATION,
                JobEvaluationResponse(request_id="someone-else", scores=EvaluationScores(final_score=10)),
                MailboxStatus.COMPLETED,
            )

        stale = asyncio.create_task(write_stale())
        try:
            await client.evaluate_job("resume", "job")
        finally:
            await stale

    with pytest.raises(MailboxTimeoutError) as excinfo:
        asyncio.run(scenario())

    assert isinstance(excinfo.value, TimeoutError)
    assert excinfo.value.channel == "job-evaluation"
    assert store.keys() == []


def test_timeout_leaves_no_pending_entry_and_resubmission_overwrites():
    store = MemoryKeyValueStore()
    mailbox = Mailbox(store)

    with pytest.raises(MailboxTimeoutError):
        asyncio.run(build_client(mailbox, timeout=0.03).evaluate_job("resume", "job"))
    assert mailbox.status(JOB_EVALUATION) is None

    # An abandoned client that never cleaned up.
    orphan = JobEvaluationRequest(resume_text="old", job_description_raw_text="old")
    mailbox.submit(JOB_EVALUATION, orphan)
    mailbox.write_response(JOB_EVALUATION, JobEvaluationResponse(request_id=orphan.id), MailboxStatus.COMPLETED)
    mailbox.set_status(JOB_EVALUATION, MailboxStatus.PENDING)

    async def scenario():
        responder = asyncio.create_task(
            answer_when_pending(
                mailbox,
                lambda rid: JobEvaluationResponse(request_id=rid, scores=EvaluationScores(final_score=77)),
            )
        )
        response = await build_client(mailbox).evaluate_job("new resume", "new job")
        await responder
        return response

    response = asyncio.run(scenario())

    assert response.scores.final_score == 77
    assert store.keys() == []


def test_error_envelope_raises_remote_error():
    mailbox = Mailbox(MemoryKeyValueStore())

    async def scenario():
        responder = asyncio.create_task(
            answer_when_pending(
                mailbox,
                lambda rid: ResumeTextResponse(request_id=rid, error="model unavailable"),
                channel=RESUME_TEXT,
            )
        )
        try:
            await build_client(mailbox).format_resume_text("raw text")
        finally:
            await responder

    with pytest.raises(RemoteEvaluationError, match="model unavailable"):
        asyncio.run(scenario())


def test_submit_overwrites_request_and_clears_old_response():
    store = MemoryKeyValueStore()
    mailbox = Mailbox(store)
    first = JobEvaluationRequest(resume_text="a", job_description_raw_text="a")
    second = JobEvaluationRequest(resume_text="b", job_description_raw_text="b")

    mailbox.submit(JOB_EVALUATION, first)
    mailbox.write_response(JOB_EVALUATION, JobEvaluationResponse(request_id=first.id), MailboxStatus.COMPLETED)
    mailbox.submit(JOB_EVALUATION, second)

    assert mailbox.read_request(JOB_EVALUATION, JobEvaluationRequest).id == second.id
    assert mailbox.read_response(JOB_EVALUATION, JobEvaluationResponse) is None
    assert mailbox.status(JOB_EVALUATION) is MailboxStatus.PENDING


def test_control_commands_and_active_resume():
    store = MemoryKeyValueStore()
    client = build_client(Mailbox(store))

    client.request_stop()
    client.request_resume()
    client.set_active_resume("res-9")

    assert "timestamp" in store.get(STOP_COMMAND_KEY)
    assert "timestamp" in store.get(RESUME_COMMAND_KEY)
    assert Mailbox(store).active_resume_id() == "res-9"

    client.set_active_resume(None)
    assert Mailbox(store).active_resume_id() is None


def test_new_job_watcher_reports_each_notification_once():
    mailbox = Mailbox(MemoryKeyValueStore())
    watcher = NewJobWatcher(mailbox)

    assert watcher.poll() is None

    first = NewJobNotification(job_id="li-1", resume_id="res-1")
    mailbox.notify_new_job(first)
    assert watcher.poll() == first
    assert watcher.poll() is None

    second = NewJobNotification(job_id="li-2", resume_id="res-1", timestamp=first.timestamp + timedelta(seconds=1))
    mailbox.notify_new_job(second)
    assert watcher.poll().job_id == "li-2"


def test_new_job_watcher_watch_invokes_callback():
    mailbox = Mailbox(MemoryKeyValueStore())
    mailbox.notify_new_job(NewJobNotification(job_id="li-1", resume_id="res-1"))
    seen: list[str] = []

    asyncio.run(NewJobWatcher(mailbox).watch(lambda n: seen.append(n.job_id), interval=0.001, max_checks=3))

    assert seen == ["li-1"]
