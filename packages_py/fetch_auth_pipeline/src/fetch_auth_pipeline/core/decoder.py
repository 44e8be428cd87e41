"""
Response envelope decoding.
"""
import logging
from functools import lru_cache
from typing import Any, Generic, Type, TypeVar

from pydantic import BaseModel, PydanticSchemaGenerationError, TypeAdapter, ValidationError

from ..errors import DecodingError
from ..types import ResolvedEndpoint

logger = logging.getLogger("fetch_auth_pipeline.decoder")

T = TypeVar("T")


class ApiResult(BaseModel, Generic[T]):
    """Wrapped response envelope: ``{"result": T, ...metadata}``."""

    result: T


def uses_bare_envelope(endpoint: ResolvedEndpoint) -> bool:
    """v2 and shared-store endpoints return the payload unwrapped."""
    return endpoint.is_v2 or endpoint.is_shared_store


@lru_cache(maxsize=256)
def _adapter(target: Any) -> TypeAdapter:
    return TypeAdapter(target)


def _get_adapter(target: Any) -> TypeAdapter:
    try:
        return _adapter(target)
    except TypeError:
        # Unhashable type expressions are not cached
        return TypeAdapter(target)


def build_adapter(endpoint: ResolvedEndpoint, result_type: Any) -> TypeAdapter:
    """
    Validator for the endpoint's envelope around result_type.

    Raises DecodingError when pydantic cannot build a schema for result_type,
    so callers can reject the target before any request is sent.
    """
    try:
        if uses_bare_envelope(endpoint):
            return _get_adapter(result_type)
        return _get_adapter(ApiResult[result_type])
    except (PydanticSchemaGenerationError, TypeError) as error:
        logger.debug(f"build_adapter: no schema for {result_type!r}: {error}")
        raise DecodingError(error) from error


def decode_response(content: bytes, endpoint: ResolvedEndpoint, result_type: Type[T]) -> T:
    """
    Decode success bytes into result_type.

    The envelope shape is picked from the endpoint flags before parsing;
    a wrapped body sent to a bare endpoint fails rather than falling back.
    """
    adapter = build_adapter(endpoint, result_type)
    payload = content or b"null"
    try:
        value = adapter.validate_json(payload)
    except ValidationError as error:
        logger.debug(f"decode_response: {endpoint.url} did not decode as {result_type!r}: {error}")
        raise DecodingError(error) from error
    return value if uses_bare_envelope(endpoint) else value.result
