"""Site configuration and publishing data models."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal

from pydantic import Field

from sitepublisher.models.base import CamelModel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PublishState(str, Enum):
    """Repository publisher state machine."""

    IDLE = "idle"
    CLONING = "cloning"
    WRITING = "writing"
    COMMITTING = "committing"
    PUSHING = "pushing"
    DONE = "done"
    ERROR = "error"


class ChatMessage(CamelModel):
    """A chat message that may contain a configuration."""

    id: str
    role: Literal["user", "assistant", "system", "tool"] = "assistant"
    content: str = ""


class DetectedConfig(CamelModel):
    """A configuration paired with the message it was extracted from."""

    model_config = CamelModel.model_config | {"frozen": True}

    config: dict[str, Any]
    source_message_id: str
    detected_at: datetime = Field(default_factory=utc_now)


class PublishResult(CamelModel):
    """Outcome of one publish attempt."""

    model_config = CamelModel.model_config | {"frozen": True}

    success: bool
    message: str
    commit_message: str | None = None
    commit_sha: str | None = None
    timestamp: str | None = None
    no_changes: bool | None = None
    website_url: str | None = None
    error: str | None = None
    error_kind: str | None = None
    details: Any | None = None


class UpdateConfigRequest(CamelModel):
    """Request body for publishing a configuration."""

    config_object: Any | None = None
    commit_message: str | None = None


class ValidateConfigRequest(CamelModel):
    """Request body for validating a configuration."""

    config_object: Any | None = None


class ValidateConfigResponse(CamelModel):
    is_valid: bool
    errors: list[str]


class ExtractConfigRequest(CamelModel):
    """Request body for extracting a configuration from free text."""

    text: str


class ExtractConfigResponse(CamelModel):
    found: bool
    pattern: str | None = None
    config_object: dict[str, Any] | None = None


class DetectConfigRequest(CamelModel):
    """Request body for scanning chat messages for configurations."""

    messages: list[ChatMessage]
    auto_publish: bool = False


class DetectConfigResponse(CamelModel):
    detected: list[DetectedConfig]
    latest: DetectedConfig | None = None
    config_count: int
    publish_result: PublishResult | None = None
