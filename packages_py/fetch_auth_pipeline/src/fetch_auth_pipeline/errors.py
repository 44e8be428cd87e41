"""
Network request error taxonomy and classification.

Every failure leaving the pipeline is one of the NetworkRequestError
subclasses below:

    BadRequest(message?)     400
    Unauthorized             401
    Forbidden(message?)      403
    NotFound                 404
    Error4xx(status)         402, 405-499
    ServerError(message?)    500
    Error5xx(status)         501-599
    UnknownError             any other status, or an unrecognised failure
    DecodingError(cause)     bytes received but not decodable
    TransportFailed(cause)   the server could not be reached

Classification is done once per HTTP attempt. Error bodies are parsed only
for non-2xx responses.
"""
import json
import logging
from typing import Any, Optional

import httpx
from pydantic import BaseModel, ValidationError

logger = logging.getLogger("fetch_auth_pipeline.errors")


class NetworkRequestError(Exception):
    """Base class of the closed error taxonomy."""

    kind: str = "unknownError"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        status_code: Optional[int] = None,
        cause: Optional[BaseException] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.cause = cause
        super().__init__(self._describe())

    def _describe(self) -> str:
        parts = [self.kind]
        if self.status_code is not None:
            parts.append(f"status={self.status_code}")
        if self.message:
            parts.append(f"message={self.message}")
        if self.cause is not None:
            parts.append(f"cause={type(self.cause).__name__}: {self.cause}")
        return " ".join(parts)

    def __eq__(self, other: Any) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return (self.status_code, self.message) == (other.status_code, other.message)

    def __hash__(self) -> int:
        return hash((type(self), self.status_code, self.message))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._describe()!r})"


class BadRequest(NetworkRequestError):
    kind = "badRequest"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, status_code=400)


class Unauthorized(NetworkRequestError):
    kind = "unauthorized"

    def __init__(self):
        super().__init__(status_code=401)


class Forbidden(NetworkRequestError):
    kind = "forbidden"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, status_code=403)


class NotFound(NetworkRequestError):
    kind = "notFound"

    def __init__(self):
        super().__init__(status_code=404)


class Error4xx(NetworkRequestError):
    kind = "error4xx"

    def __init__(self, status_code: int):
        super().__init__(status_code=status_code)


class ServerError(NetworkRequestError):
    kind = "serverError"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, status_code=500)


class Error5xx(NetworkRequestError):
    kind = "error5xx"

    def __init__(self, status_code: int):
        super().__init__(status_code=status_code)


class UnknownError(NetworkRequestError):
    kind = "unknownError"

    def __init__(
        self,
        status_code: Optional[int] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(status_code=status_code, cause=cause)


class DecodingError(NetworkRequestError):
    """Bytes were received but could not be decoded into the target type."""

    kind = "decodingError"

    def __init__(self, cause: BaseException):
        super().__init__(cause=cause)


class TransportFailed(NetworkRequestError):
    """The request never produced an HTTP response."""

    kind = "transportFailed"

    def __init__(self, cause: BaseException):
        super().__init__(cause=cause)


class ErrorBody(BaseModel):
    """Structured error body returned by the API on non-2xx responses."""

    errorMessage: Optional[str] = None


def http_error(status_code: int, message: Optional[str] = None) -> NetworkRequestError:
    """Map an HTTP status code to its taxonomy value."""
    if status_code == 400:
        return BadRequest(message)
    if status_code == 401:
        return Unauthorized()
    if status_code == 403:
        return Forbidden(message)
    if status_code == 404:
        return NotFound()
    if status_code == 402 or 405 <= status_code <= 499:
        return Error4xx(status_code)
    if status_code == 500:
        return ServerError(message)
    if 501 <= status_code <= 599:
        return Error5xx(status_code)
    return UnknownError(status_code=status_code)


def parse_error_message(content: bytes) -> Optional[str]:
    """Extract ``errorMessage`` from an error body, or None if unparseable."""
    if not content:
        return None
    try:
        return ErrorBody.model_validate_json(content).errorMessage
    except ValidationError:
        logger.debug("parse_error_message: error body is not an ErrorBody, using bare classification")
        return None


def classify_response(status_code: int, content: bytes = b"") -> Optional[NetworkRequestError]:
    """
    Classify a completed HTTP response.

    Returns None for a successful status in [200, 300). Otherwise returns the
    error for the status, enriched with the error body message when the body
    parses.
    """
    if 200 <= status_code < 300:
        return None
    return http_error(status_code, parse_error_message(content))


def classify_exception(error: BaseException) -> NetworkRequestError:
    """Classify a raised failure into the taxonomy."""
    if isinstance(error, NetworkRequestError):
        return error
    if isinstance(error, (ValidationError, json.JSONDecodeError, UnicodeDecodeError)):
        return DecodingError(error)
    if isinstance(error, (httpx.RequestError, OSError)):
        return TransportFailed(error)
    logger.warning(f"classify_exception: unrecognised failure {type(error).__name__}: {error}")
    return UnknownError(cause=error)
