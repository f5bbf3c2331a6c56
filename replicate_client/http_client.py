"""HTTP transport for the Replicate API with retries and timeouts."""

from __future__ import annotations

import asyncio
import itertools
import json
import mimetypes
import os
import random
import re
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import httpx

from .errors import (
    ApiError,
    AuthError,
    FileError,
    HttpError,
    InvalidInputError,
    JsonError,
    error_for_status,
)

DEFAULT_BASE_URL = "https://api.replicate.com"
USER_AGENT = "replicate-client/0.1.0"

# Responses worth another attempt: request timeout, rate limiting, server errors.
_RETRYABLE_STATUS = frozenset({408, 429}) | frozenset(range(500, 600))
_MIME_TYPE = re.compile(r"^[\w!#$&^.+-]+/[\w!#$&^.+-]+(\s*;.*)?$")


@dataclass(frozen=True)
class RetryConfig:
    """Exponential backoff settings; delays are in seconds."""

    max_retries: int = 3
    min_delay: float = 0.5
    max_delay: float = 30.0
    base_multiplier: int = 2

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise InvalidInputError("max_retries cannot be negative")
        if self.min_delay < 0 or self.max_delay < 0:
            raise InvalidInputError("retry delays cannot be negative")
        if self.min_delay > self.max_delay:
            raise InvalidInputError("min_delay cannot exceed max_delay")
        if self.base_multiplier < 0:
            raise InvalidInputError("base_multiplier cannot be negative")

    def delay_for(self, attempt: int) -> float:
        """Delay before retry number ``attempt`` (counting from zero), with jitter."""
        ceiling = min(self.min_delay * self.base_multiplier**attempt, self.max_delay)
        return random.uniform(min(self.min_delay, ceiling), ceiling)


@dataclass(frozen=True)
class TimeoutConfig:
    """Connection and request timeouts in seconds; ``None`` disables one."""

    connect_timeout: float | None = 30.0
    request_timeout: float | None = 60.0


@dataclass(frozen=True)
class HttpConfig:
    """Retry and timeout settings together."""

    retry: RetryConfig = field(default_factory=RetryConfig)
    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)


@dataclass(frozen=True)
class FileForm:
    """A file and its optional metadata, ready to send as multipart form data."""

    content: bytes
    filename: str = "file"
    content_type: str = "application/octet-stream"
    metadata_json: str | None = None

    def files(self) -> dict[str, tuple[str, bytes, str]]:
        return {"content": (self.filename, self.content, self.content_type)}

    def data(self) -> dict[str, str]:
        return {} if self.metadata_json is None else {"metadata": self.metadata_json}


def _decode_json(response: httpx.Response) -> Any:
    try:
        return json.loads(response.text)
    except ValueError as exc:
        raise JsonError(exc) from exc


class HttpClient:
    """Authenticated client for the Replicate API.

    JSON requests are retried with exponential backoff on timeouts,
    connection failures, 408, 429 and 5xx responses.
    """

    def __init__(
        self,
        api_token: str,
        http_config: HttpConfig | None = None,
        base_url: str = DEFAULT_BASE_URL,
    ) -> None:
        if not api_token:
            raise AuthError("API token cannot be empty")
        self._api_token = api_token
        self._http_config = http_config if http_config is not None else HttpConfig()
        self._base_url = base_url
        self._client: httpx.AsyncClient | None = None
        self._stale: list[httpx.AsyncClient] = []

    async def __aenter__(self) -> HttpClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close every connection pool this client has opened."""
        clients = self._stale + ([self._client] if self._client is not None else [])
        self._stale = []
        self._client = None
        for client in clients:
            await client.aclose()

    @property
    def base_url(self) -> str:
        return self._base_url

    def build_url(self, path: str) -> str:
        """Join ``path`` onto the base URL."""
        if path.startswith("/"):
            path = path[1:]
        return f"{self._base_url.rstrip('/')}/{path}"

    def _auth_header(self) -> str:
        return f"Token {self._api_token}"

    def _timeout(self) -> httpx.Timeout:
        timeouts = self._http_config.timeout
        return httpx.Timeout(timeouts.request_timeout, connect=timeouts.connect_timeout)

    def _pool(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout(), headers={"User-Agent": USER_AGENT}
            )
        return self._client

    def _rebuild(self, http_config: HttpConfig) -> None:
        if self._client is not None:
            self._stale.append(self._client)
            self._client = None
        self._http_config = http_config

    async def _execute(
        self, method: str, path: str, content: bytes | None = None
    ) -> httpx.Response:
        client = self._pool()
        request = client.build_request(
            method,
            self.build_url(path),
            headers={
                "Authorization": self._auth_header(),
                "Content-Type": "application/json",
            },
            content=content,
        )
        retry = self._http_config.retry
        for attempt in itertools.count():
            can_retry = attempt < retry.max_retries
            try:
                response = await client.send(request)
            except (httpx.TimeoutException, httpx.NetworkError) as exc:
                if can_retry:
                    await asyncio.sleep(retry.delay_for(attempt))
                    continue
                raise HttpError(exc) from exc
            except httpx.HTTPError as exc:
                raise HttpError(exc) from exc
            if response.status_code in _RETRYABLE_STATUS and can_retry:
                await asyncio.sleep(retry.delay_for(attempt))
                continue
            if response.is_success:
                return response
            raise error_for_status(response.status_code, response.text)
        raise AssertionError("unreachable")

    async def _execute_json(self, method: str, path: str, body: Any) -> httpx.Response:
        try:
            payload = json.dumps(body).encode()
        except (TypeError, ValueError) as exc:
            raise JsonError(exc) from exc
        return await self._execute(method, path, payload)

    async def get(self, path: str) -> httpx.Response:
        return await self._execute("GET", path)

    async def post(self, path: str, body: Any) -> httpx.Response:
        return await self._execute_json("POST", path, body)

    async def post_empty(self, path: str) -> httpx.Response:
        return await self._execute("POST", path)

    async def put(self, path: str, body: Any) -> httpx.Response:
        return await self._execute_json("PUT", path, body)

    async def delete(self, path: str) -> httpx.Response:
        return await self._execute("DELETE", path)

    async def get_json(self, path: str) -> Any:
        return _decode_json(await self.get(path))

    async def post_json(self, path: str, body: Any) -> Any:
        return _decode_json(await self.post(path, body))

    async def post_empty_json(self, path: str) -> Any:
        return _decode_json(await self.post_empty(path))

    def configure_retries(self, max_retries: int, min_delay: float, max_delay: float) -> None:
        """Replace the retry settings, keeping a multiplier of 2."""
        self.configure_retries_advanced(max_retries, min_delay, max_delay, 2)

    def configure_retries_advanced(
        self, max_retries: int, min_delay: float, max_delay: float, base_multiplier: int
    ) -> None:
        """Replace every retry setting."""
        retry = RetryConfig(max_retries, min_delay, max_delay, base_multiplier)
        self._rebuild(replace(self._http_config, retry=retry))

    def configure_timeouts(
        self, connect_timeout: float | None, request_timeout: float | None
    ) -> None:
        """Replace the timeouts; ``None`` disables a timeout."""
        timeout = TimeoutConfig(connect_timeout, request_timeout)
        self._rebuild(replace(self._http_config, timeout=timeout))

    def retry_config(self) -> RetryConfig:
        return self._http_config.retry

    def timeout_config(self) -> TimeoutConfig:
        return self._http_config.timeout

    def http_config(self) -> HttpConfig:
        return self._http_config

    async def post_multipart(self, path: str, form: FileForm) -> httpx.Response:
        """POST multipart form data; these uploads are not retried."""
        headers = {"Authorization": self._auth_header(), "User-Agent": USER_AGENT}
        try:
            async with httpx.AsyncClient(timeout=None) as client:
                response = await client.post(
                    self.build_url(path),
                    headers=headers,
                    files=form.files(),
                    data=form.data(),
                )
        except httpx.HTTPError as exc:
            raise HttpError(exc) from exc
        if response.is_success:
            return response
        text = response.text
        try:
            parsed = json.loads(text)
        except ValueError:
            raise ApiError(response.status_code, text) from None
        detail = parsed.get("detail") if isinstance(parsed, dict) else None
        message = detail if isinstance(detail, str) else "Unknown API error"
        raise ApiError(response.status_code, message, text)

    async def post_multipart_json(self, path: str, form: FileForm) -> Any:
        return _decode_json(await self.post_multipart(path, form))

    @staticmethod
    def create_file_form(
        content: bytes,
        filename: str | None = None,
        content_type: str | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> FileForm:
        """Build a form holding ``content`` and, if given, its metadata as JSON."""
        content_type = content_type or "application/octet-stream"
        if not _MIME_TYPE.match(content_type):
            raise InvalidInputError(f"Invalid content type: {content_type}")
        metadata_json = None
        if metadata is not None:
            try:
                metadata_json = json.dumps(dict(metadata))
            except (TypeError, ValueError) as exc:
                raise JsonError(exc) from exc
        return FileForm(
            content=bytes(content),
            filename=filename or "file",
            content_type=content_type,
            metadata_json=metadata_json,
        )

    @staticmethod
    def create_file_form_from_path(
        path: str | os.PathLike[str], metadata: Mapping[str, Any] | None = None
    ) -> FileForm:
        """Build a form from a local file, guessing its content type from the name."""
        file_path = Path(path)
        try:
            content = file_path.read_bytes()
        except OSError as exc:
            raise FileError(exc) from exc
        guessed, _ = mimetypes.guess_type(file_path.name)
        return HttpClient.create_file_form(
            content,
            file_path.name or "file",
            guessed or "application/octet-stream",
            metadata,
        )