# replicate-client

An asynchronous Python client for the Replicate API. It creates, polls and
cancels predictions, uploads and manages files, and retries transient
failures with exponential backoff. It is built on `httpx`.

## Installation

```
pip install replicate-client
```

## Creating a prediction

```python
import asyncio

from replicate_client.http_client import HttpClient
from replicate_client.predictions import PredictionBuilder, PredictionsApi


async def main():
    async with HttpClient(api_token="token") as http:
        api = PredictionsApi(http)

        prediction = await (
            PredictionBuilder(api, "replicate/hello-world:version-id")
            .input("text", "Hello!")
            .send_and_wait_with_timeout(60)
        )
        print(prediction.status, prediction.output)

        page = await api.list(None)
        for item in page.results:
            print(item.id, item.status)
        if page.has_next():
            more = await api.list(page.next)


asyncio.run(main())
```

`PredictionBuilder` collects inputs (`input`, `inputs`), file inputs
(`file_input`, `file_input_with_strategy`), a webhook (`webhook`) and the
streaming flag (`stream`), then `send`, `send_and_wait` or
`send_and_wait_with_timeout` creates the prediction.

`PredictionsApi` offers `create`, `get`, `list`, `cancel` and
`wait_for_completion`. Waiting polls every 0.5 seconds by default until the
prediction reaches a terminal status (`succeeded`, `failed` or `canceled`).
A failed prediction raises `ModelExecutionError`, carrying the prediction's
error message and logs; running past `max_duration` (in seconds) raises
`ReplicateTimeoutError`. Without `max_duration` it waits indefinitely.

Responses are returned as frozen dataclasses: `Prediction` (with
`is_complete`, `is_successful`, `is_failed`, `is_canceled`) and
`PaginatedResponse`, which supports `len()`, iteration, `has_next`,
`has_previous` and `is_empty`. `replicate_client.common` also defines
`Model`, `ModelVersion` and `Hardware` with `from_dict` constructors.

## Files

Inputs can be given as a URL, a local path or raw bytes through `FileInput`:

```python
from replicate_client.files_model import FileEncodingStrategy, FileInput

image = FileInput.from_path("image.jpg")
builder = PredictionBuilder(api, "owner/model:version-id").file_input_with_strategy(
    "image", image, FileEncodingStrategy.BASE64_DATA_URL
)
```

`PredictionBuilder.file_input` also accepts a plain string, path or bytes:
strings starting with `http://` or `https://` become URLs, other strings
are treated as local paths.

When the prediction is created, each file input is turned into a string
value:

- `FileEncodingStrategy.MULTIPART` (the default) uploads the file through
  `FilesApi` and uses the uploaded file's `get` URL.
- `FileEncodingStrategy.BASE64_DATA_URL` embeds the file as a
  `data:<type>;base64,...` URL. The type comes from the byte input's
  `content_type` or is guessed from the path's name, falling back to
  `application/octet-stream`.

URL inputs cannot be uploaded or encoded; both strategies raise
`InvalidInputError` for them. The strategy applies to every file input of a
request.

`FilesApi` (in `replicate_client.files`) uploads with `create_from_bytes`,
`create_from_path` and `create_from_file_input`, each taking optional
metadata, and has `get`, `list` and `delete` (which returns `True` when the
server answers 204). Uploaded files are described by `File`.

`FileOutput` describes a file produced by a model; `download()` returns its
bytes and `save_to_path(path)` writes them to disk.

## Retries and timeouts

`HttpClient` retries JSON requests on timeouts, connection failures and
408, 429 and 5xx responses, waiting an exponentially growing, jittered delay
between attempts. Multipart uploads are sent once, without retries or
timeouts.

Behaviour is described by `RetryConfig` (3 retries, 0.5 s to 30 s delay,
multiplier 2 by default) and `TimeoutConfig` (30 s connect, 60 s request by
default; `None` disables a timeout), combined in `HttpConfig` and passed as
`HttpClient(api_token, http_config, base_url)`. They can be changed later
with `configure_retries`, `configure_retries_advanced` and
`configure_timeouts`, and read back with `retry_config`, `timeout_config`
and `http_config`. An empty API token raises `AuthError`.

Use `HttpClient` as an async context manager, or call `aclose()` when done.

## Errors

Every error derives from `ReplicateError` in `replicate_client.errors`.
For JSON requests, `AuthError` is raised for 401, 402 and 403 responses and
`ApiError` (with `status`, `message` and `detail`) for other failed
responses; a failed upload raises `ApiError` with the response's `detail`
as its message. Other errors are `HttpError`, `JsonError`,
`InvalidInputError`, `FileError`, `ModelExecutionError`,
`ReplicateTimeoutError`, `UrlError` and `UnsupportedError`.
`error_for_status(status, body)` performs the status mapping.

## What it does not do

- There is no single top-level client object and the API token is not read
  from the environment; create an `HttpClient` with the token and hand it to
  `PredictionsApi` or `FilesApi`.
- Streamed prediction output is not consumed; `stream()` only asks the
  server to enable streaming, and the stream URL is available on
  `Prediction.urls`.
- There is no command-line tool.