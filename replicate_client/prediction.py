"""Prediction types and the request used to create one."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .errors import JsonError
from .files_model import FileEncodingStrategy, FileInput


def _mapping(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise JsonError(f"expected an object for {what}, got {type(data).__name__}")
    return data


def _required_str(data: Mapping[str, Any], key: str) -> str:
    if key not in data:
        raise JsonError(f"missing field `{key}`")
    value = data[key]
    if not isinstance(value, str):
        raise JsonError(f"field `{key}` must be a string")
    return value


def _optional_str(data: Mapping[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise JsonError(f"field `{key}` must be a string or null")
    return value


def _optional_dict(data: Mapping[str, Any], key: str) -> dict[str, Any] | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise JsonError(f"field `{key}` must be an object or null")
    return dict(value)


class PredictionStatus(str, Enum):
    """Lifecycle state of a prediction."""

    STARTING = "starting"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"

    def is_terminal(self) -> bool:
        return self in (
            PredictionStatus.SUCCEEDED,
            PredictionStatus.FAILED,
            PredictionStatus.CANCELED,
        )

    def is_running(self) -> bool:
        return self in (PredictionStatus.STARTING, PredictionStatus.PROCESSING)


@dataclass(frozen=True)
class PredictionUrls:
    """URLs for fetching, cancelling and streaming a prediction."""

    get: str
    cancel: str
    stream: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> PredictionUrls:
        obj = _mapping(data, "prediction urls")
        return cls(
            get=_required_str(obj, "get"),
            cancel=_required_str(obj, "cancel"),
            stream=_optional_str(obj, "stream"),
        )


@dataclass(frozen=True)
class Prediction:
    """A prediction made by a hosted model."""

    id: str
    model: str
    version: str
    status: PredictionStatus
    input: dict[str, Any] | None = None
    output: Any = None
    logs: str | None = None
    error: str | None = None
    metrics: dict[str, Any] | None = None
    created_at: str | None = None
    started_at: str | None = None
    completed_at: str | None = None
    urls: PredictionUrls | None = None

    @classmethod
    def from_dict(cls, data: Any) -> Prediction:
        obj = _mapping(data, "prediction")
        raw_status = _required_str(obj, "status")
        try:
            status = PredictionStatus(raw_status)
        except ValueError:
            raise JsonError(f"unknown prediction status `{raw_status}`") from None
        urls = obj.get("urls")
        return cls(
            id=_required_str(obj, "id"),
            model=_required_str(obj, "model"),
            version=_required_str(obj, "version"),
            status=status,
            input=_optional_dict(obj, "input"),
            output=obj.get("output"),
            logs=_optional_str(obj, "logs"),
            error=_optional_str(obj, "error"),
            metrics=_optional_dict(obj, "metrics"),
            created_at=_optional_str(obj, "created_at"),
            started_at=_optional_str(obj, "started_at"),
            completed_at=_optional_str(obj, "completed_at"),
            urls=None if urls is None else PredictionUrls.from_dict(urls),
        )

    def is_complete(self) -> bool:
        return self.status.is_terminal()

    def is_successful(self) -> bool:
        return self.status is PredictionStatus.SUCCEEDED

    def is_failed(self) -> bool:
        return self.status is PredictionStatus.FAILED

    def is_canceled(self) -> bool:
        return self.status is PredictionStatus.CANCELED


@dataclass
class CreatePredictionRequest:
    """Body of a request that creates a prediction.

    ``file_inputs`` and ``file_encoding_strategy`` are resolved into ``input``
    before sending and are never part of the serialized body.
    """

    version: str
    input: dict[str, Any] = field(default_factory=dict)
    webhook: str | None = None
    webhook_completed: str | None = None
    webhook_events_filter: list[str] | None = None
    stream: bool | None = None
    file_inputs: dict[str, FileInput] = field(default_factory=dict)
    file_encoding_strategy: FileEncodingStrategy = FileEncodingStrategy.MULTIPART

    def with_input(self, key: str, value: Any) -> CreatePredictionRequest:
        self.input[str(key)] = value
        return self

    def with_webhook(self, webhook: str) -> CreatePredictionRequest:
        self.webhook = webhook
        return self

    def with_streaming(self) -> CreatePredictionRequest:
        self.stream = True
        return self

    def to_dict(self) -> dict[str, Any]:
        """The JSON body, leaving out unset optional fields."""
        body: dict[str, Any] = {"version": self.version, "input": dict(self.input)}
        optional = {
            "webhook": self.webhook,
            "webhook_completed": self.webhook_completed,
            "webhook_events_filter": (
                None if self.webhook_events_filter is None else list(self.webhook_events_filter)
            ),
            "stream": self.stream,
        }
        body.update({key: value for key, value in optional.items() if value is not None})
        return body