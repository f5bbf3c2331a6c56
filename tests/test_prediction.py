import pytest

from replicate_client.errors import JsonError
from replicate_client.files_model import FileEncodingStrategy, FileInput
from replicate_client.prediction import (
    CreatePredictionRequest,
    Prediction,
    PredictionStatus,
    PredictionUrls,
)


def _prediction_data(**overrides):
    data = {
        "id": "pred-1",
        "model": "replicate/hello-world",
        "version": "version-id",
        "status": "processing",
        "input": {"text": "Hello"},
        "output": None,
        "logs": "",
        "error": None,
        "metrics": {"predict_time": 1.5},
        "created_at": "2024-01-01T00:00:00Z",
        "urls": {
            "get": "https://api.example.com/v1/predictions/pred-1",
            "cancel": "https://api.example.com/v1/predictions/pred-1/cancel",
        },
    }
    data.update(overrides)
    return data


@pytest.mark.parametrize(
    ("status", "terminal", "running"),
    [
        (PredictionStatus.STARTING, False, True),
        (PredictionStatus.PROCESSING, False, True),
        (PredictionStatus.SUCCEEDED, True, False),
        (PredictionStatus.FAILED, True, False),
        (PredictionStatus.CANCELED, True, False),
    ],
)
def test_status_classification(status, terminal, running):
    assert status.is_terminal() is terminal
    assert status.is_running() is running


@pytest.mark.parametrize(
    ("text", "status"),
    [
        ("starting", PredictionStatus.STARTING),
        ("processing", PredictionStatus.PROCESSING),
        ("succeeded", PredictionStatus.SUCCEEDED),
        ("failed", PredictionStatus.FAILED),
        ("canceled", PredictionStatus.CANCELED),
    ],
)
def test_status_parsed_from_lowercase_names(text, status):
    prediction = Prediction.from_dict(_prediction_data(status=text))
    assert prediction.status is status


def test_prediction_from_dict():
    prediction = Prediction.from_dict(_prediction_data())
    assert prediction.id == "pred-1"
    assert prediction.status is PredictionStatus.PROCESSING
    assert prediction.input == {"text": "Hello"}
    assert prediction.metrics == {"predict_time": 1.5}
    assert prediction.urls is not None
    assert prediction.urls.cancel.endswith("/cancel")
    assert prediction.urls.stream is None
    assert not prediction.is_complete()


@pytest.mark.parametrize(
    ("status", "successful", "failed", "canceled"),
    [
        ("succeeded", True, False, False),
        ("failed", False, True, False),
        ("canceled", False, False, True),
    ],
)
def test_prediction_outcomes(status, successful, failed, canceled):
    prediction = Prediction.from_dict(_prediction_data(status=status))
    assert prediction.is_complete()
    assert prediction.is_successful() is successful
    assert prediction.is_failed() is failed
    assert prediction.is_canceled() is canceled


def test_prediction_unknown_status():
    with pytest.raises(JsonError):
        Prediction.from_dict(_prediction_data(status="exploded"))


def test_prediction_missing_id():
    data = _prediction_data()
    del data["id"]
    with pytest.raises(JsonError):
        Prediction.from_dict(data)


def test_prediction_urls_missing_cancel():
    with pytest.raises(JsonError):
        PredictionUrls.from_dict({"get": "https://api.example.com/x"})


def test_request_defaults():
    request = CreatePredictionRequest("test-version")
    assert request.input == {}
    assert request.file_inputs == {}
    assert request.file_encoding_strategy is FileEncodingStrategy.MULTIPART
    assert request.to_dict() == {"version": "test-version", "input": {}}


def test_request_builders_and_body():
    request = (
        CreatePredictionRequest("test-version")
        .with_input("prompt", "test prompt")
        .with_webhook("https://example.com/webhook")
        .with_streaming()
    )
    assert request.stream is True
    assert request.to_dict() == {
        "version": "test-version",
        "input": {"prompt": "test prompt"},
        "webhook": "https://example.com/webhook",
        "stream": True,
    }


def test_request_body_excludes_file_inputs():
    request = CreatePredictionRequest("v")
    request.file_inputs["image"] = FileInput.from_url("https://example.com/i.png")
    body = request.to_dict()
    assert "file_inputs" not in body
    assert "file_encoding_strategy" not in body
    assert body["input"] == {}


def test_request_body_is_a_copy():
    request = CreatePredictionRequest("v").with_input("a", 1)
    body = request.to_dict()
    body["input"]["b"] = 2
    assert request.input == {"a": 1}