"""Create, fetch, list, cancel and wait for predictions."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any

from .common import PaginatedResponse
from .errors import ModelExecutionError, ReplicateTimeoutError
from .files import FilesApi, process_file_input
from .files_model import FileEncodingStrategy, FileInput
from .http_client import HttpClient
from .prediction import CreatePredictionRequest, Prediction

_PREDICTIONS_PATH = "/v1/predictions"
_DEFAULT_POLL_INTERVAL = 0.5


class PredictionsApi:
    """Operations on predictions."""

    def __init__(self, http: HttpClient) -> None:
        self._http = http
        self._files_api = FilesApi(http)

    async def create(self, request: CreatePredictionRequest) -> Prediction:
        """Create a prediction, first resolving any file inputs into values."""
        body = request.to_dict()
        for key, file_input in request.file_inputs.items():
            body["input"][key] = await process_file_input(
                file_input, request.file_encoding_strategy, self._files_api
            )
        return Prediction.from_dict(await self._http.post_json(_PREDICTIONS_PATH, body))

    async def get(self, prediction_id: str) -> Prediction:
        return Prediction.from_dict(
            await self._http.get_json(f"{_PREDICTIONS_PATH}/{prediction_id}")
        )

    async def list(self, cursor: str | None = None) -> PaginatedResponse[Prediction]:
        """List predictions; ``cursor`` is the path of the page to fetch."""
        data = await self._http.get_json(cursor or _PREDICTIONS_PATH)
        return PaginatedResponse.from_dict(data, Prediction.from_dict)

    async def cancel(self, prediction_id: str) -> Prediction:
        return Prediction.from_dict(
            await self._http.post_empty_json(f"{_PREDICTIONS_PATH}/{prediction_id}/cancel")
        )

    async def wait_for_completion(
        self,
        prediction_id: str,
        max_duration: float | None = None,
        poll_interval: float | None = None,
    ) -> Prediction:
        """Poll until the prediction ends; a failed prediction raises.

        Durations are in seconds. Without ``max_duration`` this waits forever.
        """
        interval = _DEFAULT_POLL_INTERVAL if poll_interval is None else poll_interval

        async def poll() -> Prediction:
            while True:
                prediction = await self.get(prediction_id)
                if prediction.status.is_terminal():
                    if prediction.is_failed():
                        raise ModelExecutionError(
                            prediction_id, prediction.error, prediction.logs
                        )
                    return prediction
                await asyncio.sleep(interval)

        if max_duration is None:
            return await poll()
        try:
            return await asyncio.wait_for(poll(), max_duration)
        except asyncio.TimeoutError:
            raise ReplicateTimeoutError(
                f"Prediction {prediction_id} did not complete within {max_duration}s"
            ) from None


class PredictionBuilder:
    """Fluent construction of a prediction request."""

    def __init__(self, api: PredictionsApi, version: str) -> None:
        self.api = api
        self.request = CreatePredictionRequest(version)

    def input(self, key: str, value: Any) -> PredictionBuilder:
        self.request.with_input(key, value)
        return self

    def inputs(self, inputs: Mapping[str, Any]) -> PredictionBuilder:
        for key, value in inputs.items():
            self.request.with_input(key, value)
        return self

    def file_input(self, key: str, file: Any) -> PredictionBuilder:
        self.request.file_inputs[str(key)] = FileInput.coerce(file)
        return self

    def file_input_with_strategy(
        self, key: str, file: Any, strategy: FileEncodingStrategy
    ) -> PredictionBuilder:
        """Add a file input and set the encoding used for every file input."""
        self.request.file_inputs[str(key)] = FileInput.coerce(file)
        self.request.file_encoding_strategy = strategy
        return self

    def webhook(self, webhook: str) -> PredictionBuilder:
        self.request.with_webhook(webhook)
        return self

    def stream(self) -> PredictionBuilder:
        self.request.with_streaming()
        return self

    async def send(self) -> Prediction:
        return await self.api.create(self.request)

    async def send_and_wait(self) -> Prediction:
        prediction = await self.api.create(self.request)
        return await self.api.wait_for_completion(prediction.id)

    async def send_and_wait_with_timeout(self, max_duration: float) -> Prediction:
        prediction = await self.api.create(self.request)
        return await self.api.wait_for_completion(prediction.id, max_duration)