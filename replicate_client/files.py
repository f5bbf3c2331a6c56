"""Upload and manage files, and turn file inputs into prediction values."""

from __future__ import annotations

import base64
import mimetypes
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .errors import FileError, InvalidInputError, JsonError
from .files_model import FileEncodingStrategy, FileInput
from .http_client import HttpClient

_FILES_PATH = "/v1/files"
_OCTET_STREAM = "application/octet-stream"


def _mapping(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise JsonError(f"expected an object for {what}, got {type(data).__name__}")
    return data


def _required(data: Mapping[str, Any], key: str) -> Any:
    if key not in data:
        raise JsonError(f"missing field `{key}`")
    return data[key]


def _required_str(data: Mapping[str, Any], key: str) -> str:
    value = _required(data, key)
    if not isinstance(value, str):
        raise JsonError(f"field `{key}` must be a string")
    return value


def _optional_str(data: Mapping[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise JsonError(f"field `{key}` must be a string or null")
    return value


def _required_int(data: Mapping[str, Any], key: str) -> int:
    value = _required(data, key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise JsonError(f"field `{key}` must be an integer")
    return value


def _required_object(data: Mapping[str, Any], key: str) -> dict[str, Any]:
    value = _required(data, key)
    if not isinstance(value, Mapping):
        raise JsonError(f"field `{key}` must be an object")
    return dict(value)


def _required_str_map(data: Mapping[str, Any], key: str) -> dict[str, str]:
    value = _required_object(data, key)
    if not all(isinstance(item, str) for item in value.values()):
        raise JsonError(f"field `{key}` must map names to strings")
    return value


def _guess_content_type(path: os.PathLike[str] | str) -> str:
    guessed, _ = mimetypes.guess_type(os.fspath(path))
    return guessed or _OCTET_STREAM


@dataclass(frozen=True)
class File:
    """A file uploaded to Replicate."""

    id: str
    name: str
    content_type: str
    size: int
    etag: str
    created_at: str
    checksums: dict[str, str] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)
    expires_at: str | None = None
    urls: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> File:
        obj = _mapping(data, "file")
        return cls(
            id=_required_str(obj, "id"),
            name=_required_str(obj, "name"),
            content_type=_required_str(obj, "content_type"),
            size=_required_int(obj, "size"),
            etag=_required_str(obj, "etag"),
            created_at=_required_str(obj, "created_at"),
            checksums=_required_str_map(obj, "checksums"),
            metadata=_required_object(obj, "metadata"),
            expires_at=_optional_str(obj, "expires_at"),
            urls=_required_str_map(obj, "urls"),
        )


class FilesApi:
    """Upload, fetch, list and delete files."""

    def __init__(self, http: HttpClient) -> None:
        self._http = http

    async def create_from_bytes(
        self,
        content: bytes,
        filename: str | None = None,
        content_type: str | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> File:
        """Upload ``content`` with an optional name, type and metadata."""
        form = HttpClient.create_file_form(content, filename, content_type, metadata)
        return File.from_dict(await self._http.post_multipart_json(_FILES_PATH, form))

    async def create_from_path(
        self, path: str | os.PathLike[str], metadata: Mapping[str, Any] | None = None
    ) -> File:
        """Upload a local file."""
        form = HttpClient.create_file_form_from_path(path, metadata)
        return File.from_dict(await self._http.post_multipart_json(_FILES_PATH, form))

    async def create_from_file_input(
        self, file_input: FileInput, metadata: Mapping[str, Any] | None = None
    ) -> File:
        """Upload a path or byte input; URL inputs cannot be uploaded."""
        if file_input.path is not None:
            return await self.create_from_path(file_input.path, metadata)
        if file_input.data is not None:
            return await self.create_from_bytes(
                file_input.data, file_input.filename, file_input.content_type, metadata
            )
        raise InvalidInputError("Cannot upload from URL - file must be local or bytes")

    async def get(self, file_id: str) -> File:
        return File.from_dict(await self._http.get_json(f"{_FILES_PATH}/{file_id}"))

    async def list(self) -> list[File]:
        page = _mapping(await self._http.get_json(_FILES_PATH), "file list")
        results = _required(page, "results")
        if not isinstance(results, list):
            raise JsonError("field `results` must be an array")
        return [File.from_dict(item) for item in results]

    async def delete(self, file_id: str) -> bool:
        """Delete a file; true when the server answers 204 No Content."""
        response = await self._http.delete(f"{_FILES_PATH}/{file_id}")
        return response.status_code == 204


async def process_file_input(
    file_input: FileInput,
    strategy: FileEncodingStrategy,
    files_api: FilesApi | None = None,
) -> str:
    """Turn a file input into the string value a prediction expects."""
    if strategy is FileEncodingStrategy.BASE64_DATA_URL:
        return await encode_file_as_data_url(file_input)
    if files_api is None:
        raise InvalidInputError("Files API required for multipart upload")
    uploaded = await files_api.create_from_file_input(file_input)
    url = uploaded.urls.get("get")
    if url is None:
        raise InvalidInputError("File missing URL")
    return url


async def encode_file_as_data_url(file_input: FileInput) -> str:
    """Encode a path or byte input as a base64 ``data:`` URL."""
    if file_input.path is not None:
        try:
            content = file_input.path.read_bytes()
        except OSError as exc:
            raise FileError(exc) from exc
        content_type = _guess_content_type(file_input.path)
    elif file_input.data is not None:
        content = file_input.data
        content_type = file_input.content_type or _OCTET_STREAM
    else:
        raise InvalidInputError("Cannot encode URL as data URL without downloading")
    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{content_type};base64,{encoded}"