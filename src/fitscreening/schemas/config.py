"""Pydantic configuration schema for CLI YAML input."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class StorageConfig(BaseModel):
    jobs_dir: str | None = None
    mailbox_dir: str | None = None

    model_config = ConfigDict(extra="forbid")


class InferenceConfig(BaseModel):
    endpoint: str | None = None
    api_key: str | None = None
    timeout: float = 60.0

    model_config = ConfigDict(extra="forbid")


class PollingConfig(BaseModel):
    work_interval: float = Field(default=0.5, gt=0)
    control_interval: float = Field(default=1.0, gt=0)
    notification_interval: float = Field(default=2.0, gt=0)

    model_config = ConfigDict(extra="forbid")


class ClientConfig(BaseModel):
    timeout: float = Field(default=120.0, gt=0)
    poll_interval: float = Field(default=0.5, gt=0)

    model_config = ConfigDict(extra="forbid")


class ComponentConfig(BaseModel):
    combiner: dict[str, Any] | None = None
    yoe: dict[str, Any] | None = None
    extractor: dict[str, Any] | None = None

    model_config = ConfigDict(extra="forbid")


class AppConfig(BaseModel):
    storage: StorageConfig = Field(default_factory=StorageConfig)
    inference: InferenceConfig = Field(default_factory=InferenceConfig)
    polling: PollingConfig = Field(default_factory=PollingConfig)
    client: ClientConfig = Field(default_factory=ClientConfig)
    components: ComponentConfig = Field(default_factory=ComponentConfig)

    model_config = ConfigDict(extra="forbid")

    def to_settings(self) -> dict[str, Any]:
        settings: dict[str, Any] = {
            "storage": self.storage.model_dump(exclude_none=True),
            "inference": self.inference.model_dump(exclude_none=True),
            "polling": self.polling.model_dump(),
            "client": self.client.model_dump(),
        }
        component_settings = self.components.model_dump(exclude_none=True)
        if component_settings:
            settings["components"] = component_settings
        return settings


def load_config(raw: Any) -> AppConfig:
    if raw is None:
        return AppConfig()
    if not isinstance(raw, dict):
        raise ValidationError.from_exception_data(
            "AppConfig",
            [{"type": "dict_type", "loc": ("config",), "input": raw}],
        )
    return AppConfig.model_validate(raw)
