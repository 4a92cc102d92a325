"""REST listing source.

Fetches office and package listings from the public endpoints. The
blocking requests call runs in a worker thread so the event loop stays
free for newer queries.
"""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Optional

import requests

from ...config import ApiConfig, get_config
from ...domain.models import ListingKind, ListingQuery, NumericRange, SortKey
from .session import build_session, send

_SORT_PARAMS: dict[SortKey, tuple[str, str]] = {
    SortKey.PRICE_ASC: ("price", "asc"),
    SortKey.PRICE_DESC: ("price", "desc"),
    SortKey.DURATION_ASC: ("duration_days", "asc"),
    SortKey.DURATION_DESC: ("duration_days", "desc"),
    SortKey.RATING_DESC: ("rating", "desc"),
    SortKey.NAME_ASC: ("name", "asc"),
    SortKey.NAME_DESC: ("name", "desc"),
}


def _put_range(params: dict[str, Any], name: str, bounds: Optional[NumericRange]) -> None:
    if bounds is None:
        return
    if math.isfinite(bounds.minimum):
        params[f"min_{name}"] = bounds.minimum
    if math.isfinite(bounds.maximum):
        params[f"max_{name}"] = bounds.maximum


def query_params(query: ListingQuery) -> dict[str, Any]:
    """Translate a listing query into backend query parameters."""
    params: dict[str, Any] = {
        "page": query.page,
        "per_page": query.page_size,
        "locale": query.locale,
    }
    filters = query.filters
    if filters.search_text and filters.search_text.strip():
        params["search"] = filters.search_text.strip()
    _put_range(params, "price", filters.price_range)
    _put_range(params, "duration", filters.duration_range)
    if filters.min_rating is not None:
        params["min_rating"] = filters.min_rating
    if filters.city and filters.city.strip():
        params["city"] = filters.city.strip()

    # Distance is computed locally; the backend has no notion of it.
    sort = _SORT_PARAMS.get(query.sort.key)
    if sort is not None:
        params["sort_by"], params["sort_direction"] = sort
    return params


@dataclass
class RestListingSource:
    """ListingSourcePort over the public REST endpoints.

    Attributes:
        config: Endpoint, timeout and retry settings
        session: HTTP session; one with retries is built when None
    """

    config: ApiConfig = field(default_factory=lambda: get_config().api)
    session: Optional[requests.Session] = None

    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)
        if self.session is None:
            self.session = build_session(self.config)

    def endpoint(self, kind: ListingKind) -> str:
        path = self.config.offices_path if kind is ListingKind.OFFICE else self.config.packages_path
        return self.config.url(path)

    async def fetch(self, query: ListingQuery) -> Any:
        """Fetch the raw payload for a listing query.

        Raises:
            NetworkFailureError: On transport or HTTP status failures.
        """
        url = self.endpoint(query.kind)
        params = query_params(query)
        self._logger.debug("GET listings", extra={"url": url, "params": params})
        return await asyncio.to_thread(
            send,
            self.session,  # type: ignore[arg-type]
            "GET",
            url,
            timeout=self.config.timeout_seconds,
            params=params,
        )
