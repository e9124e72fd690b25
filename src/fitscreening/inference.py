"""Schema-guided inference clients."""

from __future__ import annotations

import asyncio
import json
from http.client import HTTPException
from typing import Any, Protocol, TypeVar, runtime_checkable
from urllib import request

import structlog
from pydantic import BaseModel, ValidationError

from .errors import ExtractionError

ModelT = TypeVar("ModelT", bound=BaseModel)


@runtime_checkable
class InferenceClient(Protocol):
    """Narrow contract for model-backed structured output.

    Implementations return an instance of ``schema`` or raise
    :class:`ExtractionError`; they never return partial data.
    """

    async def infer(self, *, instructions: str, prompt: str, schema: type[ModelT]) -> ModelT:
        """Run one inference call and validate the result against ``schema``."""


class HTTPInferenceClient:
    """Send prompt plus JSON schema to an HTTP endpoint that returns JSON."""

    def __init__(self, endpoint: str | None, api_key: str | None = None, *, timeout: float = 60.0):
        self._endpoint = endpoint
        self._api_key = api_key
        self._timeout = timeout
        self._logger = structlog.get_logger(__name__)

    async def infer(self, *, instructions: str, prompt: str, schema: type[ModelT]) -> ModelT:
        if not self._endpoint:
            raise ExtractionError("Inference backend is not configured")
        payload = {
            "instructions": instructions,
            "prompt": prompt,
            "schema_name": schema.__name__,
            "schema": schema.model_json_schema(),
        }
        body = await asyncio.to_thread(self._post, payload)
        return self._validate(body, schema)

    def _post(self, payload: dict[str, Any]) -> Any:
        data = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        req = request.Request(self._endpoint, data=data, headers=headers, method="POST")
        try:
            with request.urlopen(req, timeout=self._timeout) as resp:
                raw = resp.read().decode("utf-8")
        except (OSError, HTTPException, UnicodeDecodeError) as exc:
            self._logger.warning(
                "inference.request_failed", schema=payload["schema_name"], error=str(exc)
            )
            raise ExtractionError(f"Inference request failed: {exc}") from exc
        try:
            return json.loads(raw) if raw else {}
        except json.JSONDecodeError as exc:
            raise ExtractionError(f"Inference returned invalid JSON: {exc}") from exc

    def _validate(self, body: Any, schema: type[ModelT]) -> ModelT:
        if isinstance(body, dict) and "output" in body and isinstance(body["output"], dict):
            body = body["output"]
        try:
            return schema.model_validate(body)
        except ValidationError as exc:
            self._logger.warning(
                "inference.schema_violation",
                schema=schema.__name__,
                errors=exc.error_count(),
            )
            raise ExtractionError(
                f"Inference result does not match {schema.__name__}: {exc}"
            ) from exc


__all__ = ["InferenceClient", "HTTPInferenceClient", "ModelT"]
