"""Shared requests session setup for the REST adapters."""

from __future__ import annotations

import logging
from typing import Any, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ...config import ApiConfig
from ...domain.errors import NetworkFailureError

logger = logging.getLogger(__name__)

# Only idempotent reads are retried; a retried reorder could land twice.
_RETRIED_METHODS = frozenset({"GET"})
_RETRIED_STATUSES = (429, 502, 503, 504)


def build_session(config: ApiConfig) -> requests.Session:
    """Create a session with retrying GETs and the optional bearer token."""
    session = requests.Session()
    retry = Retry(
        total=config.max_retries,
        backoff_factor=config.backoff_factor,
        status_forcelist=_RETRIED_STATUSES,
        allowed_methods=_RETRIED_METHODS,
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    session.headers.update({"Accept": "application/json"})
    if config.auth_token:
        session.headers["Authorization"] = f"Bearer {config.auth_token}"
    return session


def send(
    session: requests.Session,
    method: str,
    url: str,
    *,
    timeout: float,
    params: Optional[dict[str, Any]] = None,
    json: Any = None,
) -> Any:
    """Send a request and decode the JSON body.

    Returns:
        The decoded body, or None when it is not JSON.

    Raises:
        NetworkFailureError: On transport errors or non-2xx statuses.
    """
    try:
        response = session.request(method, url, params=params, json=json, timeout=timeout)
    except requests.RequestException as e:
        raise NetworkFailureError(f"{method} {url} failed", cause=e, url=url) from e

    if not response.ok:
        raise NetworkFailureError(
            f"{method} {url} returned HTTP {response.status_code}",
            url=url,
            status_code=response.status_code,
        )

    try:
        return response.json()
    except ValueError:
        logger.warning(
            "Response body is not JSON",
            extra={"url": url, "status_code": response.status_code},
        )
        return None


def acknowledged(body: Any) -> bool:
    """Whether a 2xx mutation body reports success.

    The backend wraps results as ``{"status": bool, "message": ...}``; a body
    without a status flag counts as success.
    """
    if isinstance(body, dict) and "status" in body:
        status = body["status"]
        if isinstance(status, str):
            return status.strip().lower() in {"true", "success", "ok", "1"}
        return bool(status)
    return True
