"""Exception types raised while generating and saving images."""

from __future__ import annotations


class DalleError(Exception):
    """Base class for every failure that aborts a dall-e invocation."""

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class ConfigurationError(DalleError):
    """Missing prompt or credential, detected before any network call."""


class MissingPromptError(ConfigurationError):
    """No prompt was given on the command line."""


class RequestError(DalleError):
    """The generation endpoint answered with a non-success status."""

    def __init__(
        self, message: str, status_code: int | None = None, body: str = ""
    ):
        super().__init__(message, status_code)
        self.body = body


class DecodingError(DalleError):
    """A success response whose body is not valid JSON."""


class ResponseShapeError(DalleError):
    """The decoded response does not carry a list of image items."""


class DownloadError(DalleError):
    """Fetching a returned image URL failed."""


class FileWriteError(DalleError):
    """Creating the output directory or writing an image failed."""


__all__ = [
    "ConfigurationError",
    "DalleError",
    "DecodingError",
    "DownloadError",
    "FileWriteError",
    "MissingPromptError",
    "RequestError",
    "ResponseShapeError",
]
