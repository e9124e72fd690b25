"""Polling loops run by the long-lived evaluator process."""

from __future__ import annotations

import asyncio
from typing import Any, Generic, Iterable, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from ..core import JobEvaluator, ResumeTextFormatter, StructuredExtractor
from ..errors import FitScreeningError
from ..rendering import render_resume_text
from ..schemas import (
    ControlCommand,
    EvaluationScores,
    JobEvaluationRequest,
    JobEvaluationResponse,
    MailboxStatus,
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

RequestT = TypeVar("RequestT", bound=RequestEnvelope)

CONTROL_RUNNING = "running"
CONTROL_STOPPED = "stopped"


class CancellationToken:
    """Cooperative stop/resume flag handed to every polling loop.

    ``stop`` pauses work, ``resume`` re-enables it and ``close`` ends the
    loops. Any state change wakes loops that are sleeping in ``sleep``.
    """

    def __init__(self) -> None:
        self._stopped = False
        self._closed = False
        self._changed = asyncio.Event()

    @property
    def is_stopped(self) -> bool:
        return self._stopped

    @property
    def is_closed(self) -> bool:
        return self._closed

    def stop(self) -> None:
        self._stopped = True
        self._notify()

    def resume(self) -> None:
        self._stopped = False
        self._notify()

    def close(self) -> None:
        self._closed = True
        self._notify()

    async def sleep(self, seconds: float) -> None:
        changed = self._changed
        try:
            await asyncio.wait_for(changed.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass

    def _notify(self) -> None:
        changed, self._changed = self._changed, asyncio.Event()
        changed.set()


class PollingMonitor:
    """Fixed-interval loop; a failing tick is logged and the loop goes on."""

    name = "monitor"

    def __init__(self, mailbox: Mailbox, token: CancellationToken, *, interval: float) -> None:
        self._mailbox = mailbox
        self._token = token
        self._interval = interval
        self._logger = structlog.get_logger(__name__).bind(monitor=self.name)

    async def run(self) -> None:
        self._logger.info("monitor.started", interval=self._interval)
        while not self._token.is_closed:
            try:
                await self.tick()
            except Exception as exc:
                self._logger.error("monitor.tick_failed", error=str(exc), exc_info=True)
            await self._token.sleep(self._interval)
        self._logger.info("monitor.stopped")

    async def tick(self) -> bool:
        """Do at most one unit of work; return whether anything was done."""
        raise NotImplementedError


class RequestMonitor(PollingMonitor, Generic[RequestT]):
    """Serve one request/status/response channel."""

    channel: MailboxChannel
    request_model: type[BaseModel]
    parks_when_stopped = False

    async def tick(self) -> bool:
        status = self._mailbox.status(self.channel)
        if self._token.is_stopped:
            if status is MailboxStatus.PENDING and self.parks_when_stopped:
                self._mailbox.set_status(self.channel, MailboxStatus.STOPPED)
                self._logger.info("mailbox.request_parked", channel=self.channel.name)
            return False
        if status is MailboxStatus.STOPPED and self.parks_when_stopped:
            self._mailbox.set_status(self.channel, MailboxStatus.PENDING)
            self._logger.info("mailbox.request_unparked", channel=self.channel.name)
            status = MailboxStatus.PENDING
        if status is not MailboxStatus.PENDING:
            return False

        raw = self._mailbox.store.get(self.channel.request_key)
        if raw is None:
            self._mailbox.set_status(self.channel, MailboxStatus.ERROR)
            self._logger.warning("mailbox.request_missing", channel=self.channel.name)
            return False
        try:
            request = self.request_model.model_validate(raw)
        except ValidationError as exc:
            self._reject(raw, exc)
            return False

        log = self._logger.bind(channel=self.channel.name, request_id=request.id)
        log.info("mailbox.request_received")
        try:
            response = await self.handle(request)
            status = MailboxStatus.COMPLETED
        except FitScreeningError as exc:
            log.warning("mailbox.request_failed", error_type=type(exc).__name__, error=str(exc))
            response = self.error_response(request, str(exc))
            status = MailboxStatus.ERROR
        except Exception as exc:  # noqa: BLE001
            log.error("mailbox.request_crashed", error_type=type(exc).__name__, error=str(exc), exc_info=True)
            response = self.error_response(request, f"Unexpected {type(exc).__name__}: {exc}")
            status = MailboxStatus.ERROR

        current = self._read_request()
        if current is None or current.id != request.id:
            log.info("mailbox.stale_response_dropped")
            return True
        self._mailbox.write_response(self.channel, response, status)
        log.info("mailbox.response_written", status=status.value)
        return True

    def _reject(self, raw: Any, exc: ValidationError) -> None:
        request_id = raw.get("id") if isinstance(raw, dict) else None
        self._logger.warning(
            "mailbox.request_invalid",
            channel=self.channel.name,
            request_id=request_id,
            errors=exc.error_count(),
        )
        if not isinstance(request_id, str) or not request_id:
            self._mailbox.set_status(self.channel, MailboxStatus.ERROR)
            return
        message = f"Invalid {self.channel.name} request: {exc}"
        self._mailbox.write_response(self.channel, self.rejection_response(request_id, message), MailboxStatus.ERROR)

    def _read_request(self) -> Any:
        return self._mailbox.read_request(self.channel, self.request_model)

    async def handle(self, request: RequestT) -> ResponseEnvelope:
        raise NotImplementedError

    def error_response(self, request: RequestT, message: str) -> ResponseEnvelope:
        return self.rejection_response(request.id, message)

    def rejection_response(self, request_id: str, message: str) -> ResponseEnvelope:
        return ResponseEnvelope(request_id=request_id, error=message)


class JobEvaluationMonitor(RequestMonitor[JobEvaluationRequest]):
    name = "job-evaluation"
    channel = JOB_EVALUATION
    request_model = JobEvaluationRequest
    parks_when_stopped = True

    def __init__(
        self,
        mailbox: Mailbox,
        token: CancellationToken,
        evaluator: JobEvaluator,
        *,
        interval: float = 0.5,
    ) -> None:
        super().__init__(mailbox, token, interval=interval)
        self._evaluator = evaluator

    async def handle(self, request: JobEvaluationRequest) -> JobEvaluationResponse:
        outcome = await self._evaluator.evaluate(request)
        return outcome.to_response(request.id)

    def error_response(self, request: JobEvaluationRequest, message: str) -> JobEvaluationResponse:
        return JobEvaluationResponse(
            request_id=request.id,
            error=message,
            results_text=f"Evaluation failed: {message}",
            scores=EvaluationScores(final_score=0, rating="Denied"),
            job_id=request.external_job_id,
            resume_id=request.resume_id,
        )

    def rejection_response(self, request_id: str, message: str) -> JobEvaluationResponse:
        return JobEvaluationResponse(
            request_id=request_id,
            error=message,
            results_text=f"Evaluation failed: {message}",
            scores=EvaluationScores(final_score=0, rating="Denied"),
        )


class ResumeCleaningMonitor(RequestMonitor[ResumeCleanRequest]):
    name = "resume-cleaning"
    channel = RESUME_CLEANING
    request_model = ResumeCleanRequest

    def __init__(
        self,
        mailbox: Mailbox,
        token: CancellationToken,
        extractor: StructuredExtractor,
        *,
        interval: float = 0.5,
    ) -> None:
        super().__init__(mailbox, token, interval=interval)
        self._extractor = extractor

    async def handle(self, request: ResumeCleanRequest) -> ResumeCleanResponse:
        resume = await self._extractor.extract_resume(request.resume_text)
        return ResumeCleanResponse(
            request_id=request.id,
            cleaned_text=render_resume_text(resume),
            structured_resume=resume.model_dump(mode="json"),
        )

    def error_response(self, request: ResumeCleanRequest, message: str) -> ResumeCleanResponse:
        return ResumeCleanResponse(request_id=request.id, error=message)


class ResumeTextMonitor(RequestMonitor[ResumeTextRequest]):
    name = "resume-text"
    channel = RESUME_TEXT
    request_model = ResumeTextRequest

    def __init__(
        self,
        mailbox: Mailbox,
        token: CancellationToken,
        formatter: ResumeTextFormatter,
        *,
        interval: float = 0.5,
    ) -> None:
        super().__init__(mailbox, token, interval=interval)
        self._formatter = formatter

    async def handle(self, request: ResumeTextRequest) -> ResumeTextResponse:
        formatted = await self._formatter.format(request.raw_text)
        return ResumeTextResponse(request_id=request.id, formatted_text=formatted)

    def error_response(self, request: ResumeTextRequest, message: str) -> ResumeTextResponse:
        return ResumeTextResponse(request_id=request.id, error=message)


class ControlMonitor(PollingMonitor):
    """Consume stop/resume commands and flip the shared token."""

    name = "control"

    def __init__(self, mailbox: Mailbox, token: CancellationToken, *, interval: float = 1.0) -> None:
        super().__init__(mailbox, token, interval=interval)

    async def tick(self) -> bool:
        store = self._mailbox.store
        commands: list[tuple[Any, str]] = []
        for key in (STOP_COMMAND_KEY, RESUME_COMMAND_KEY):
            raw = store.get(key)
            if raw is None:
                continue
            store.delete(key)
            commands.append((self._command_time(raw), key))
        if not commands:
            return False

        # Both present: the most recent command wins.
        commands.sort(key=lambda item: item[0])
        for _, key in commands:
            if key == STOP_COMMAND_KEY:
                self._token.stop()
            else:
                self._token.resume()
        state = CONTROL_STOPPED if self._token.is_stopped else CONTROL_RUNNING
        store.set(CONTROL_STATUS_KEY, state)
        self._logger.info("control.state_changed", state=state, commands=[key for _, key in commands])
        return True

    @staticmethod
    def _command_time(raw: Any):
        try:
            return ControlCommand.model_validate(raw).timestamp
        except ValidationError:
            return ControlCommand().timestamp


class MonitorService:
    """Run every monitor concurrently until the token is closed."""

    def __init__(self, monitors: Iterable[PollingMonitor], token: CancellationToken, mailbox: Mailbox) -> None:
        self._monitors = list(monitors)
        self._token = token
        self._mailbox = mailbox
        self._logger = structlog.get_logger(__name__)

    @property
    def token(self) -> CancellationToken:
        return self._token

    async def run(self) -> None:
        self._mailbox.store.set(
            CONTROL_STATUS_KEY, CONTROL_STOPPED if self._token.is_stopped else CONTROL_RUNNING
        )
        self._logger.info("service.started", monitors=[monitor.name for monitor in self._monitors])
        await asyncio.gather(*(monitor.run() for monitor in self._monitors))
        self._logger.info("service.stopped")

    def shutdown(self) -> None:
        self._token.close()
