"""Error types and classification for the rotation plugin."""

from __future__ import annotations

import json
from enum import Enum
from typing import Optional

import requests


class ErrorType(Enum):
    """Classification of error types for better handling"""
    NETWORK_ERROR = "network_error"     # Connection, timeout errors
    HTTP_ERROR = "http_error"           # Non-2xx response from the profile page
    AUTH_ERROR = "auth_error"           # 401, 403 - session expired
    PARSE_ERROR = "parse_error"         # Unexpected page or API payload
    HOST_ERROR = "host_error"           # Host lacks a required capability
    CONFIG_ERROR = "config_error"       # Malformed configuration value
    UNKNOWN_ERROR = "unknown_error"     # Catch-all


class RotationError(Exception):
    """Base class for errors raised by the rotation plugin."""

    error_type = ErrorType.UNKNOWN_ERROR

    def __init__(self, message: str, error_type: Optional[ErrorType] = None) -> None:
        super().__init__(message)
        if error_type is not None:
            self.error_type = error_type


class FetchError(RotationError):
    """The candidate pool could not be retrieved."""

    error_type = ErrorType.NETWORK_ERROR


class ConfigParseError(RotationError):
    """A configuration value could not be parsed."""

    error_type = ErrorType.CONFIG_ERROR

    def __init__(self, key: str, value: object, reason: str) -> None:
        super().__init__(f"Invalid value for {key}: {value!r} ({reason})")
        self.key = key
        self.value = value


class PublishError(RotationError):
    """The host did not accept a new active set."""

    error_type = ErrorType.HOST_ERROR


def classify_error(error: Exception) -> ErrorType:
    """Classify an exception into an ErrorType for appropriate handling"""
    if isinstance(error, RotationError):
        return error.error_type
    if isinstance(error, requests.exceptions.HTTPError):
        status_code = error.response.status_code if error.response is not None else 0
        if status_code in [401, 403]:
            return ErrorType.AUTH_ERROR
        return ErrorType.HTTP_ERROR
    if isinstance(error, (requests.exceptions.ConnectionError,
                          requests.exceptions.Timeout)):
        return ErrorType.NETWORK_ERROR
    if isinstance(error, (json.JSONDecodeError, UnicodeDecodeError)):
        return ErrorType.PARSE_ERROR
    return ErrorType.UNKNOWN_ERROR
