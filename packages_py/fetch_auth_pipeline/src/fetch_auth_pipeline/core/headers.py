"""
Header composition for pipeline requests.
"""
import logging
from typing import Dict, Mapping, Optional

from ..config import DEFAULT_USER_AGENT, JSON_CONTENT_TYPE, URL_ENCODED_CONTENT_TYPE
from ..console import mask_sensitive
from ..types import AuthMode, HttpMethod

logger = logging.getLogger("fetch_auth_pipeline.headers")
LOG_PREFIX = f"[HEADERS:{__file__}]"


def content_type_for(method: HttpMethod) -> str:
    """Content-Type for a method: form-url-encoded for GET, JSON otherwise."""
    return URL_ENCODED_CONTENT_TYPE if method == HttpMethod.GET else JSON_CONTENT_TYPE


def merge_headers(
    base: Mapping[str, str],
    extra: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """
    Merge extra headers over base headers, first value wins.

    Header names compare case-insensitively; an extra header whose name is
    already present in base is dropped.
    """
    result = dict(base)
    if not extra:
        return result

    present = {k.lower() for k in result}
    for key, value in extra.items():
        if key.lower() in present:
            logger.debug(f"{LOG_PREFIX} merge_headers: keeping existing value for {key}")
            continue
        result[key] = value
        present.add(key.lower())
    return result


def compose_headers(
    auth_mode: AuthMode,
    method: HttpMethod,
    token: Optional[str] = None,
    extra_headers: Optional[Mapping[str, str]] = None,
    user_agent: str = DEFAULT_USER_AGENT,
) -> Dict[str, str]:
    """Build the header set for one HTTP attempt."""
    headers = {
        "User-Agent": user_agent,
        "Content-Type": content_type_for(method),
    }

    if auth_mode == AuthMode.MANDATORY and token:
        headers["Authorization"] = f"Bearer {token}"
        logger.debug(f"{LOG_PREFIX} compose_headers: attached bearer token {mask_sensitive(token)}")
    elif auth_mode == AuthMode.MANDATORY:
        logger.debug(f"{LOG_PREFIX} compose_headers: auth mandatory but no token stored, sending without Authorization")

    return merge_headers(headers, extra_headers)
