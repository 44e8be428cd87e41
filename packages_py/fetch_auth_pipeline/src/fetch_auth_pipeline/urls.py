"""
URL building for endpoint resolution.
"""
from typing import Mapping, Optional, Union

import httpx

QueryValue = Union[str, int, bool]


def build_url(
    base_url: str,
    path: str,
    query: Optional[Mapping[str, QueryValue]] = None,
) -> str:
    """
    Append path below base_url's own path and merge query parameters.

    The path never replaces the base path: "https://h/api" + "/x" and
    "https://h/api/" + "x" both give "https://h/api/x". Query parameters are
    merged after any query string already present in path.
    """
    url = f"{base_url.rstrip('/')}/{path.lstrip('/')}" if path else base_url
    if not query:
        return url
    params = {key: _query_value(value) for key, value in query.items()}
    return str(httpx.URL(url).copy_merge_params(params))


def _query_value(value: QueryValue) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
