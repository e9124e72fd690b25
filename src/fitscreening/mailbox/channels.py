"""Mailbox key layout and typed access to request/status/response triples."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from ..schemas import MailboxStatus, NewJobNotification
from .backends import KeyValueStore

EnvelopeT = TypeVar("EnvelopeT", bound=BaseModel)

STOP_COMMAND_KEY = "stopCommand"
RESUME_COMMAND_KEY = "resumeCommand"
CONTROL_STATUS_KEY = "controlStatus"
NEW_JOB_NOTIFICATION_KEY = "newJobNotification"
ACTIVE_RESUME_ID_KEY = "activeResumeId"


@dataclass(frozen=True, slots=True)
class MailboxChannel:
    """One request category with its three keys."""

    name: str
    request_key: str
    status_key: str
    response_key: str

    @property
    def keys(self) -> tuple[str, str, str]:
        return self.request_key, self.status_key, self.response_key


JOB_EVALUATION = MailboxChannel("job-evaluation", "jobEvalRequest", "jobEvalStatus", "jobEvalResponse")
RESUME_CLEANING = MailboxChannel(
    "resume-cleaning", "resumeCleanRequest", "resumeCleanStatus", "resumeCleanResponse"
)
RESUME_TEXT = MailboxChannel("resume-text", "resumeTextRequest", "resumeTextStatus", "resumeTextResponse")

CHANNELS = (JOB_EVALUATION, RESUME_CLEANING, RESUME_TEXT)


class Mailbox:
    """Typed view over a :class:`KeyValueStore`.

    Envelopes are stored in their camelCase wire form so any process that
    speaks the same JSON layout can participate.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store
        self._logger = structlog.get_logger(__name__)

    @property
    def store(self) -> KeyValueStore:
        return self._store

    def submit(self, channel: MailboxChannel, request: BaseModel) -> None:
        """Overwrite any previous request and mark the channel pending."""
        self._store.delete(channel.response_key)
        self._store.set(channel.request_key, request.model_dump(mode="json", by_alias=True, exclude_none=True))
        self._store.set(channel.status_key, MailboxStatus.PENDING.value)

    def read_request(self, channel: MailboxChannel, model: type[EnvelopeT]) -> EnvelopeT | None:
        return self._read(channel.request_key, model)

    def read_response(self, channel: MailboxChannel, model: type[EnvelopeT]) -> EnvelopeT | None:
        return self._read(channel.response_key, model)

    def write_response(self, channel: MailboxChannel, response: BaseModel, status: MailboxStatus) -> None:
        self._store.set(
            channel.response_key, response.model_dump(mode="json", by_alias=True, exclude_none=True)
        )
        self.set_status(channel, status)

    def status(self, channel: MailboxChannel) -> MailboxStatus | None:
        raw = self._store.get(channel.status_key)
        if raw is None:
            return None
        try:
            return MailboxStatus(raw)
        except ValueError:
            self._logger.warning("mailbox.unknown_status", channel=channel.name, status=raw)
            return None

    def set_status(self, channel: MailboxChannel, status: MailboxStatus) -> None:
        self._store.set(channel.status_key, status.value)

    def clear(self, channel: MailboxChannel) -> None:
        for key in channel.keys:
            self._store.delete(key)

    def active_resume_id(self) -> str | None:
        value = self._store.get(ACTIVE_RESUME_ID_KEY)
        return str(value) if value else None

    def set_active_resume_id(self, resume_id: str | None) -> None:
        if resume_id:
            self._store.set(ACTIVE_RESUME_ID_KEY, resume_id)
        else:
            self._store.delete(ACTIVE_RESUME_ID_KEY)

    def notify_new_job(self, notification: NewJobNotification) -> None:
        self._store.set(NEW_JOB_NOTIFICATION_KEY, notification.to_wire())

    def latest_notification(self) -> NewJobNotification | None:
        return self._read(NEW_JOB_NOTIFICATION_KEY, NewJobNotification)

    def _read(self, key: str, model: type[EnvelopeT]) -> EnvelopeT | None:
        raw = self._store.get(key)
        if raw is None:
            return None
        try:
            return model.model_validate(raw)
        except ValidationError as exc:
            self._logger.warning("mailbox.invalid_envelope", key=key, errors=exc.error_count())
            return None
