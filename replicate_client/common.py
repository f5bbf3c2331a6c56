"""Common response types shared across the API."""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from .errors import JsonError

T = TypeVar("T")


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


@dataclass(frozen=True)
class PaginatedResponse(Generic[T]):
    """One page of results with links to neighbouring pages."""

    results: list[T] = field(default_factory=list)
    next: str | None = None
    previous: str | None = None

    @classmethod
    def from_dict(
        cls, data: Any, item_factory: Callable[[Any], T]
    ) -> PaginatedResponse[T]:
        page = _mapping(data, "paginated response")
        if "results" not in page:
            raise JsonError("missing field `results`")
        raw = page["results"]
        if not isinstance(raw, list):
            raise JsonError("field `results` must be an array")
        return cls(
            results=[item_factory(item) for item in raw],
            next=_optional_str(page, "next"),
            previous=_optional_str(page, "previous"),
        )

    def has_next(self) -> bool:
        return self.next is not None

    def has_previous(self) -> bool:
        return self.previous is not None

    def is_empty(self) -> bool:
        return not self.results

    def __len__(self) -> int:
        return len(self.results)

    def __iter__(self) -> Iterator[T]:
        return iter(self.results)


@dataclass(frozen=True)
class Hardware:
    """Hardware on which a model can run."""

    sku: str
    name: str

    @classmethod
    def from_dict(cls, data: Any) -> Hardware:
        obj = _mapping(data, "hardware")
        return cls(sku=_required_str(obj, "sku"), name=_required_str(obj, "name"))


@dataclass(frozen=True)
class ModelVersion:
    """Metadata for one version of a model."""

    id: str
    created_at: str
    cog_version: str | None = None
    openapi_schema: Any = None

    @classmethod
    def from_dict(cls, data: Any) -> ModelVersion:
        obj = _mapping(data, "model version")
        return cls(
            id=_required_str(obj, "id"),
            created_at=_required_str(obj, "created_at"),
            cog_version=_optional_str(obj, "cog_version"),
            openapi_schema=obj.get("openapi_schema"),
        )


@dataclass(frozen=True)
class Model:
    """Basic information about a model."""

    owner: str
    name: str
    visibility: str
    description: str | None = None
    github_url: str | None = None
    paper_url: str | None = None
    license_url: str | None = None
    cover_image_url: str | None = None
    latest_version: ModelVersion | None = None

    @classmethod
    def from_dict(cls, data: Any) -> Model:
        obj = _mapping(data, "model")
        latest = obj.get("latest_version")
        return cls(
            owner=_required_str(obj, "owner"),
            name=_required_str(obj, "name"),
            visibility=_required_str(obj, "visibility"),
            description=_optional_str(obj, "description"),
            github_url=_optional_str(obj, "github_url"),
            paper_url=_optional_str(obj, "paper_url"),
            license_url=_optional_str(obj, "license_url"),
            cover_image_url=_optional_str(obj, "cover_image_url"),
            latest_version=None if latest is None else ModelVersion.from_dict(latest),
        )

    def identifier(self) -> str:
        """The full model identifier, ``owner/name``."""
        return f"{self.owner}/{self.name}"