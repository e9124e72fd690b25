"""Client side of the mailbox: submit, poll, match and clean up."""

from __future__ import annotations

import asyncio
import time
from datetime import datetime
from typing import Any, Callable, TypeVar

import structlog

from ..errors import MailboxTimeoutError, MismatchError, RemoteEvaluationError
from ..schemas import (
    ControlCommand,
    JobEvaluationRequest,
    JobEvaluationResponse,
    NewJobNotification,
    RequestEnvelope,
    ResponseEnvelope,
    ResumeCleanRequest,
    ResumeCleanResponse,
    ResumeTextRequest,
    ResumeTextResponse,
)
from .channels import (
    CONTROL_STATUS_KEY,
    JOB_EVALUATION,
    RESUME_CLEANING,
    RESUME_COMMAND_KEY,
    RESUME_TEXT,
    STOP_COMMAND_KEY,
    Mailbox,
    MailboxChannel,
)

ResponseT = TypeVar("ResponseT", bound=ResponseEnvelope)


def match_response(request_id: str, response: ResponseEnvelope | None) -> ResponseEnvelope | None:
    """Return ``response`` if it answers ``request_id``.

    ``None`` means nothing has been written yet; a response for another
    request raises :class:`MismatchError`.
    """
    if response is None:
        return None
    if response.request_id != request_id:
        raise MismatchError(request_id, response.request_id)
    return response


class MailboxClient:
    """Submit requests to the evaluator process and wait for the answers.

    One request per channel may be in flight; a new submission overwrites
    whatever an earlier (possibly abandoned) client left behind.
    """

    def __init__(
        self,
        mailbox: Mailbox,
        *,
        poll_interval: float = 0.5,
        timeout: float = 120.0,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._mailbox = mailbox
        self._poll_interval = poll_interval
        self._timeout = timeout
        self._clock = clock or time.monotonic
        self._logger = structlog.get_logger(__name__)

    async def evaluate_job(
        self,
        resume_text: str,
        job_description: str,
        *,
        job_title: str | None = None,
        company: str | None = None,
        external_job_id: str | None = None,
        resume_id: str | None = None,
        timeout: float | None = None,
    ) -> JobEvaluationResponse:
        request = JobEvaluationRequest(
            resume_text=resume_text,
            job_description_raw_text=job_description,
            job_title=job_title,
            company=company,
            external_job_id=external_job_id,
            resume_id=resume_id,
        )
        return await self.request(JOB_EVALUATION, request, JobEvaluationResponse, timeout=timeout)

    async def clean_resume(self, resume_text: str, *, timeout: float | None = None) -> ResumeCleanResponse:
        request = ResumeCleanRequest(resume_text=resume_text)
        return await self.request(RESUME_CLEANING, request, ResumeCleanResponse, timeout=timeout)

    async def format_resume_text(self, raw_text: str, *, timeout: float | None = None) -> ResumeTextResponse:
        request = ResumeTextRequest(raw_text=raw_text)
        return await self.request(RESUME_TEXT, request, ResumeTextResponse, timeout=timeout)

    async def request(
        self,
        channel: MailboxChannel,
        request: RequestEnvelope,
        response_model: type[ResponseT],
        *,
        timeout: float | None = None,
    ) -> ResponseT:
        wait = self._timeout if timeout is None else timeout
        log = self._logger.bind(channel=channel.name, request_id=request.id)
        self._mailbox.submit(channel, request)
        log.info("client.request_submitted")

        deadline = self._clock() + wait
        while True:
            try:
                response = match_response(request.id, self._mailbox.read_response(channel, response_model))
            except MismatchError as exc:
                log.debug("client.response_mismatch", found=exc.actual)
                response = None
            if response is not None:
                self._mailbox.clear(channel)
                if response.error:
                    log.info("client.remote_error", error=response.error)
                    raise RemoteEvaluationError(response.error)
                log.info("client.response_received")
                return response
            if self._clock() >= deadline:
                self._abandon(channel, request.id)
                log.warning("client.timeout", waited=wait)
                raise MailboxTimeoutError(channel.name, request.id, wait)
            await asyncio.sleep(self._poll_interval)

    def _abandon(self, channel: MailboxChannel, request_id: str) -> None:
        # Only clear keys that still belong to this exchange.
        current = self._mailbox.store.get(channel.request_key)
        if not isinstance(current, dict) or current.get("id") == request_id:
            self._mailbox.clear(channel)

    def request_stop(self) -> None:
        self._mailbox.store.set(STOP_COMMAND_KEY, ControlCommand().to_wire())

    def request_resume(self) -> None:
        self._mailbox.store.set(RESUME_COMMAND_KEY, ControlCommand().to_wire())

    def control_status(self) -> Any:
        return self._mailbox.store.get(CONTROL_STATUS_KEY)

    def set_active_resume(self, resume_id: str | None) -> None:
        self._mailbox.set_active_resume_id(resume_id)


class NewJobWatcher:
    """Detect newly persisted jobs by comparing notification timestamps."""

    def __init__(
        self,
        mailbox: Mailbox,
        *,
        interval: float = 2.0,
        last_seen: datetime | None = None,
    ) -> None:
        self._mailbox = mailbox
        self._interval = interval
        self._last_seen = last_seen

    @property
    def last_seen(self) -> datetime | None:
        return self._last_seen

    def poll(self) -> NewJobNotification | None:
        notification = self._mailbox.latest_notification()
        if notification is None:
            return None
        if self._last_seen is not None and notification.timestamp <= self._last_seen:
            return None
        self._last_seen = notification.timestamp
        return notification

    async def watch(
        self,
        callback: Callable[[NewJobNotification], Any],
        *,
        interval: float | None = None,
        max_checks: int | None = None,
    ) -> None:
        wait = self._interval if interval is None else interval
        checks = 0
        while max_checks is None or checks < max_checks:
            notification = self.poll()
            if notification is not None:
                callback(notification)
            checks += 1
            await asyncio.sleep(wait)
