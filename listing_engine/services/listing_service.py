"""Listing query service - One fetch cycle per listing view.

The service wires the listing pipeline together:

1. Issue a pagination ticket and fetch the payload from the source
2. Normalize it (malformed payloads degrade to an empty page)
3. Filter and sort the records client-side
4. Paginate locally when the backend did not paginate itself
5. Hand the page to the coordinator, which discards stale responses and
   clamps the current page; a clamped server page is fetched again
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from typing import Optional, Sequence

from ..config import ListingConfig, get_config
from ..debounce import Debouncer
from ..domain.errors import GeolocationUnavailableError, NetworkFailureError
from ..domain.models import (
    FilterState,
    GeoPoint,
    ListingItem,
    ListingKind,
    ListingQuery,
    Page,
    SortKey,
    SortState,
    ViewStatus,
    clamp_page,
    page_count,
)
from ..listing.filters import FilterBounds, FilterEngine, derive_bounds
from ..listing.geo import GeoRanker
from ..listing.normalizer import ResponseNormalizer, ResponseShape
from ..listing.pagination import PaginationCoordinator, RequestTicket
from ..listing.sorting import SortEngine
from ..ports.geolocation import GeolocationPort
from ..ports.listing import ListingSourcePort


@dataclass
class ListingQueryService:
    """State and fetch cycle of one listing view.

    Filter and sort changes always return to page 1 and invalidate
    in-flight requests; search text changes are debounced.

    Attributes:
        source: Where listing payloads come from
        kind: Whether this view lists offices or packages
        config: Listing defaults (page size, debounce, locale)
        geolocation: Optional provider of the distance reference point
        normalizer: Payload normalizer; built from config when None
    """

    source: ListingSourcePort
    kind: ListingKind
    config: ListingConfig = field(default_factory=lambda: get_config().listing)
    geolocation: Optional[GeolocationPort] = None
    normalizer: Optional[ResponseNormalizer] = None

    filters: FilterState = field(default_factory=FilterState, init=False)
    sort: SortState = field(default_factory=SortState, init=False)
    status: ViewStatus = field(default=ViewStatus.IDLE, init=False)
    last_error: Optional[Exception] = field(default=None, init=False)
    shape: Optional[ResponseShape] = field(default=None, init=False)
    filter_bounds: Optional[FilterBounds] = field(default=None, init=False)

    _normalizer: ResponseNormalizer = field(init=False, repr=False)
    _coordinator: PaginationCoordinator[ListingItem] = field(init=False, repr=False)
    _filter_engine: FilterEngine = field(default_factory=FilterEngine, init=False, repr=False)
    _sort_engine: SortEngine = field(default_factory=SortEngine, init=False, repr=False)
    _search: Debouncer = field(init=False, repr=False)
    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)
        self._normalizer = self.normalizer or ResponseNormalizer(
            locale=self.config.locale,
            fallback_locale=self.config.fallback_locale,
        )
        self._coordinator = PaginationCoordinator(
            page_size=self.config.default_page_size,
            max_page_size=self.config.max_page_size,
        )
        self._search = Debouncer(
            self.config.search_debounce_seconds,
            self._refresh_after_search,
            name=f"search:{self.kind.value}",
        )

    # ----------------------------------------------------------------- views

    @property
    def page(self) -> Page[ListingItem]:
        """The last applied page, or an empty one before the first load."""
        return self._coordinator.page or Page.empty(self._coordinator.page_size)

    @property
    def items(self) -> tuple[ListingItem, ...]:
        return self.page.items

    @property
    def current_page(self) -> int:
        return self._coordinator.current_page

    @property
    def page_size(self) -> int:
        return self._coordinator.page_size

    @property
    def available_sort_keys(self) -> tuple[SortKey, ...]:
        return SortEngine.available_keys(self.sort.reference_point)

    @property
    def ranker(self) -> GeoRanker:
        return GeoRanker(self.sort.reference_point)

    @property
    def search_pending(self) -> bool:
        return self._search.pending

    # ---------------------------------------------------------- state change

    def set_filters(self, filters: FilterState) -> None:
        """Replace the active filters and return to page 1."""
        self.filters = filters
        self._coordinator.reset()

    def set_search_text(self, text: str) -> None:
        """Update the search text; the fetch runs after the debounce delay.

        Must be called from a running event loop.
        """
        self.filters = replace(self.filters, search_text=text or None)
        self._coordinator.reset()
        self._search.trigger()

    def clear_filters(self) -> None:
        self._search.cancel()
        self.set_filters(FilterState())

    def set_sort(self, key: SortKey) -> None:
        """Change the sort key and return to page 1."""
        self.sort = replace(self.sort, key=key)
        self._coordinator.reset()

    def set_reference_point(self, point: Optional[GeoPoint]) -> None:
        self.sort = replace(self.sort, reference_point=point)
        if self.sort.key is SortKey.DISTANCE_ASC:
            self._coordinator.reset()

    def set_page(self, page: int) -> int:
        """Select a page; call refresh() to load it."""
        return self._coordinator.set_page(page)

    def set_page_size(self, page_size: int) -> None:
        self._coordinator.set_page_size(page_size)

    async def locate(self) -> Optional[GeoPoint]:
        """Ask the geolocation provider for a reference point.

        A missing provider or an unavailable position only disables
        distance sorting.
        """
        if self.geolocation is None:
            return None
        try:
            point = await asyncio.to_thread(self.geolocation.reference_point)
        except GeolocationUnavailableError as e:
            self._logger.warning(
                "Geolocation unavailable, distance sort disabled",
                extra={"error": str(e)},
            )
            point = None
        self.set_reference_point(point)
        return point

    # ----------------------------------------------------------------- fetch

    def build_query(self, ticket: RequestTicket) -> ListingQuery:
        return ListingQuery(
            kind=self.kind,
            filters=self.filters,
            sort=SortState(
                key=self._sort_engine.effective_key(self.sort),
                reference_point=self.sort.reference_point,
                tie_break_by_id=self.sort.tie_break_by_id,
            ),
            page=ticket.page,
            page_size=ticket.page_size,
            locale=self.config.locale,
        )

    async def refresh(self) -> Page[ListingItem]:
        """Fetch the current page and apply it unless superseded.

        Returns:
            The page the view shows after this call; unchanged when the
            response was stale or the fetch failed.
        """
        return await self._fetch(allow_correction=True)

    async def flush_search(self) -> None:
        """Run a pending debounced search immediately."""
        await self._search.flush()

    async def _refresh_after_search(self) -> None:
        await self.refresh()

    async def _fetch(self, allow_correction: bool) -> Page[ListingItem]:
        ticket = self._coordinator.issue()
        self.status = ViewStatus.LOADING
        query = self.build_query(ticket)
        self._logger.debug(
            "Fetching listings",
            extra={"kind": self.kind.value, "page": ticket.page, "sequence": ticket.sequence},
        )

        try:
            return await self._load(ticket, query, allow_correction)
        except NetworkFailureError as e:
            if self._coordinator.is_current(ticket):
                self._logger.error(
                    "Listing fetch failed",
                    extra={"kind": self.kind.value, "error": str(e)},
                )
                self._fail(e)
        except Exception as e:
            if self._coordinator.is_current(ticket):
                self._logger.exception(
                    "Unexpected error loading listings", extra={"kind": self.kind.value}
                )
                self._fail(e)
        return self.page

    def _fail(self, error: Exception) -> None:
        self.status = ViewStatus.ERROR
        self.last_error = error

    async def _load(
        self, ticket: RequestTicket, query: ListingQuery, allow_correction: bool
    ) -> Page[ListingItem]:
        payload = await self.source.fetch(query)
        if not self._coordinator.is_current(ticket):
            self._logger.debug(
                "Discarding stale response", extra={"sequence": ticket.sequence}
            )
            return self.page

        normalized, shape = self._normalizer.normalize_safe(
            payload, page_size=ticket.page_size, current_page=ticket.page, kind=self.kind
        )
        if self.filter_bounds is None and self.filters.is_empty:
            self.filter_bounds = derive_bounds(normalized.items)

        if shape.is_server_paginated:
            page = replace(normalized, items=tuple(self._arrange(normalized.items)))
        else:
            page = self._paginate_locally(self._arrange(normalized.items), ticket)

        reconciliation = self._coordinator.on_new_data(page, ticket)
        if not reconciliation.applied:
            return self.page

        self.shape = shape
        self.last_error = None
        if reconciliation.corrected and shape.is_server_paginated and allow_correction:
            self._logger.info(
                "Re-fetching corrected page",
                extra={"page": reconciliation.current_page},
            )
            return await self._fetch(allow_correction=False)

        self.status = ViewStatus.EMPTY if page.total_items == 0 else ViewStatus.READY
        self._logger.info(
            "Listings loaded",
            extra={
                "kind": self.kind.value,
                "shape": shape.value,
                "page": self._coordinator.current_page,
                "total_items": page.total_items,
            },
        )
        return page

    def _arrange(self, items: Sequence[ListingItem]) -> list[ListingItem]:
        return self._sort_engine.apply(self._filter_engine.apply(items, self.filters), self.sort)

    def _paginate_locally(
        self, items: Sequence[ListingItem], ticket: RequestTicket
    ) -> Page[ListingItem]:
        size = ticket.page_size
        total_pages = page_count(len(items), size)
        current = clamp_page(ticket.page, total_pages)
        start = (current - 1) * size
        return Page.build(
            items[start : start + size],
            total_items=len(items),
            page_size=size,
            current_page=current,
            total_pages=total_pages,
        )
