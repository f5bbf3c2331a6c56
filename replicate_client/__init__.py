"""Asynchronous client for running predictions and managing files on Replicate."""

__version__ = "0.1.0"

__all__ = [
    "common",
    "errors",
    "files",
    "files_model",
    "http_client",
    "prediction",
    "predictions",
]