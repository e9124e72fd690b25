"""File-backed job record store with atomic writes."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any
from urllib.parse import quote, unquote

import structlog
from pydantic import ValidationError

from .errors import StoreError
from .schemas import JobRecord


def atomic_write_json(path: Path, payload: Any) -> None:
    """Write JSON so readers see either the old file or the complete new one."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(payload, handle, ensure_ascii=False, indent=2)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def safe_component(identifier: str) -> str:
    """Percent-encode an external identifier into a single path component.

    The mapping is one-to-one, so distinct ids never share a file. A leading
    dot is encoded too, which keeps "." and ".." out of the store and stops
    records from becoming hidden files.
    """
    if not identifier:
        raise StoreError("An empty identifier cannot be used as a store key")
    encoded = quote(identifier, safe="")
    if encoded.startswith("."):
        encoded = "%2E" + encoded[1:]
    return encoded


class JobStore:
    """One JSON file per (resume, job) pair under ``<root>/<resumeId>/``.

    Records are created once and never rewritten; the orchestrator is the
    only writer.
    """

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root).expanduser()
        self._logger = structlog.get_logger(__name__)

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, resume_id: str, external_job_id: str) -> Path:
        return self._root / safe_component(resume_id) / f"{safe_component(external_job_id)}.json"

    def exists(self, resume_id: str, external_job_id: str) -> bool:
        return self.path_for(resume_id, external_job_id).is_file()

    def get(self, resume_id: str, external_job_id: str) -> JobRecord | None:
        path = self.path_for(resume_id, external_job_id)
        if not path.is_file():
            return None
        record = self._load(path)
        if record.key != (resume_id, external_job_id):
            self._logger.warning(
                "store.identity_mismatch",
                path=str(path),
                stored_resume_id=record.resume_id,
                stored_job_id=record.external_job_id,
            )
            raise StoreError(
                f"Record at {path} belongs to job {record.external_job_id!r} "
                f"for resume {record.resume_id!r}"
            )
        return record

    def create(self, record: JobRecord) -> JobRecord:
        path = self.path_for(record.resume_id, record.external_job_id)
        if path.exists():
            raise StoreError(
                f"Job {record.external_job_id!r} already stored for resume {record.resume_id!r}"
            )
        try:
            atomic_write_json(path, record.to_wire())
        except OSError as exc:
            raise StoreError(f"Failed to write job record {path}: {exc}") from exc
        self._logger.info(
            "store.job_created",
            resume_id=record.resume_id,
            job_id=record.external_job_id,
            final_score=record.final_score,
        )
        return record

    def delete(self, resume_id: str, external_job_id: str) -> bool:
        path = self.path_for(resume_id, external_job_id)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise StoreError(f"Failed to delete job record {path}: {exc}") from exc
        self._logger.info("store.job_deleted", resume_id=resume_id, job_id=external_job_id)
        return True

    def list_for_resume(self, resume_id: str) -> list[JobRecord]:
        directory = self._root / safe_component(resume_id)
        return self._sorted(self._load(path) for path in directory.glob("*.json"))

    def list_all(self) -> list[JobRecord]:
        return self._sorted(self._load(path) for path in self._root.glob("*/*.json"))

    def resume_ids(self) -> list[str]:
        if not self._root.is_dir():
            return []
        return sorted(unquote(path.name) for path in self._root.iterdir() if path.is_dir())

    @staticmethod
    def _sorted(records) -> list[JobRecord]:
        return sorted(records, key=lambda record: record.created_at, reverse=True)

    def _load(self, path: Path) -> JobRecord:
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
            return JobRecord.model_validate(payload)
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            self._logger.warning("store.record_unreadable", path=str(path), error=str(exc))
            raise StoreError(f"Failed to read job record {path}: {exc}") from exc


__all__ = ["JobStore", "atomic_write_json", "safe_component"]
