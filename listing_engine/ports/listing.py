"""Listing port - Abstraction over the backend listing endpoints.

The engine does not dictate the wire format: a source returns the decoded
JSON payload untouched and the normalizer decides what shape it is.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from ..domain.models import ListingQuery


class ListingSourcePort(Protocol):
    """Port for fetching one page of listings.

    Implementation: adapters/http/rest_listing_source.py
    """

    async def fetch(self, query: ListingQuery) -> Any:
        """Fetch the raw payload for a listing query.

        Args:
            query: Filters, sort, page and locale for this request.

        Returns:
            The decoded JSON payload in whatever shape the backend used,
            or None when the body was not JSON.

        Raises:
            NetworkFailureError: On transport or HTTP status failures.
        """
        ...
