"""File input and output types used by predictions."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Any

import httpx

from .errors import FileError, HttpError, InvalidInputError


class FileEncodingStrategy(Enum):
    """How local files are sent along with a prediction."""

    BASE64_DATA_URL = "base64_data_url"
    MULTIPART = "multipart"


@dataclass(frozen=True)
class FileInput:
    """A file given to a model: a URL, a local path, or raw bytes.

    Exactly one of ``url``, ``path`` and ``data`` is set; ``filename`` and
    ``content_type`` only accompany ``data``.
    """

    url: str | None = None
    path: Path | None = None
    data: bytes | None = None
    filename: str | None = None
    content_type: str | None = None

    def __post_init__(self) -> None:
        sources = sum(value is not None for value in (self.url, self.path, self.data))
        if sources != 1:
            raise InvalidInputError("a file input needs exactly one of url, path or data")
        if self.data is None and (self.filename is not None or self.content_type is not None):
            raise InvalidInputError("filename and content type apply only to byte inputs")

    @classmethod
    def from_url(cls, url: str) -> FileInput:
        return cls(url=str(url))

    @classmethod
    def from_path(cls, path: str | os.PathLike[str]) -> FileInput:
        return cls(path=Path(path))

    @classmethod
    def from_bytes(
        cls,
        data: bytes | bytearray | memoryview,
        filename: str | None = None,
        content_type: str | None = None,
    ) -> FileInput:
        return cls(data=bytes(data), filename=filename, content_type=content_type)

    @classmethod
    def coerce(cls, value: Any) -> FileInput:
        """Build a file input from a string, path, bytes or existing input.

        Strings starting with ``http://`` or ``https://`` become URLs; any
        other string is taken as a local path.
        """
        if isinstance(value, FileInput):
            return value
        if isinstance(value, str):
            if value.startswith(("http://", "https://")):
                return cls.from_url(value)
            return cls.from_path(value)
        if isinstance(value, os.PathLike):
            return cls.from_path(value)
        if isinstance(value, (bytes, bytearray, memoryview)):
            return cls.from_bytes(value)
        raise TypeError(f"cannot make a file input from {type(value).__name__}")

    def is_url(self) -> bool:
        return self.url is not None

    def is_path(self) -> bool:
        return self.path is not None

    def is_bytes(self) -> bool:
        return self.data is not None

    def as_url(self) -> str | None:
        return self.url

    def as_path(self) -> Path | None:
        return self.path


@dataclass(frozen=True)
class FileOutput:
    """A file produced by a model, reachable at a URL."""

    url: str
    filename: str | None = None
    content_type: str | None = None
    size: int | None = None

    def __post_init__(self) -> None:
        if self.size is not None and self.size < 0:
            raise InvalidInputError("file size cannot be negative")

    def with_filename(self, filename: str) -> FileOutput:
        return replace(self, filename=filename)

    def with_content_type(self, content_type: str) -> FileOutput:
        return replace(self, content_type=content_type)

    def with_size(self, size: int) -> FileOutput:
        return replace(self, size=size)

    async def download(self) -> bytes:
        """Fetch the file's content."""
        try:
            async with httpx.AsyncClient(follow_redirects=True) as client:
                response = await client.get(self.url)
                return response.content
        except httpx.HTTPError as exc:
            raise HttpError(exc) from exc

    async def save_to_path(self, path: str | os.PathLike[str]) -> None:
        """Download the file and write it to ``path``."""
        content = await self.download()
        try:
            Path(path).write_bytes(content)
        except OSError as exc:
            raise FileError(exc) from exc