"""Shared key-value mailbox between the evaluator process and its clients."""

from __future__ import annotations

from .backends import FileKeyValueStore, KeyValueStore, MemoryKeyValueStore
from .channels import (
    ACTIVE_RESUME_ID_KEY,
    CHANNELS,
    CONTROL_STATUS_KEY,
    JOB_EVALUATION,
    NEW_JOB_NOTIFICATION_KEY,
    RESUME_CLEANING,
    RESUME_COMMAND_KEY,
    RESUME_TEXT,
    STOP_COMMAND_KEY,
    Mailbox,
    MailboxChannel,
)
from .client import MailboxClient, NewJobWatcher, match_response
from .monitor import (
    CancellationToken,
    ControlMonitor,
    JobEvaluationMonitor,
    MonitorService,
    PollingMonitor,
    ResumeCleaningMonitor,
    ResumeTextMonitor,
)

__all__ = [
    "ACTIVE_RESUME_ID_KEY",
    "CHANNELS",
    "CONTROL_STATUS_KEY",
    "JOB_EVALUATION",
    "NEW_JOB_NOTIFICATION_KEY",
    "RESUME_CLEANING",
    "RESUME_COMMAND_KEY",
    "RESUME_TEXT",
    "STOP_COMMAND_KEY",
    "CancellationToken",
    "ControlMonitor",
    "FileKeyValueStore",
    "JobEvaluationMonitor",
    "KeyValueStore",
    "Mailbox",
    "MailboxChannel",
    "MailboxClient",
    "MemoryKeyValueStore",
    "MonitorService",
    "NewJobWatcher",
    "PollingMonitor",
    "ResumeCleaningMonitor",
    "ResumeTextMonitor",
    "match_response",
]
