"""Pagination state for one listing view.

The coordinator owns the requested page and page size, reconciles them
with whatever totals the backend reports, and hands out request tickets.
Every state change or issued request advances a monotonic sequence; a
response is applied only when its ticket carries the latest sequence, so
the last request wins even if an older response arrives later.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Generic, Optional, TypeVar

from ..domain.models import Page, clamp_page

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class RequestTicket:
    """Identity of one issued fetch."""

    sequence: int
    page: int
    page_size: int


@dataclass(frozen=True, slots=True)
class Reconciliation:
    """Outcome of handing a page to the coordinator.

    Attributes:
        applied: False when the response was stale and discarded
        requested_page: Page the caller asked for
        current_page: Page after clamping against the new totals
    """

    applied: bool
    requested_page: int
    current_page: int

    @property
    def corrected(self) -> bool:
        """True when the caller should re-fetch at current_page."""
        return self.applied and self.requested_page != self.current_page


@dataclass
class PaginationCoordinator(Generic[T]):
    """Owns current page, page size and the last applied page.

    Attributes:
        page_size: Items per page
        max_page_size: Upper bound accepted by set_page_size
    """

    page_size: int = 12
    max_page_size: int = 100

    current_page: int = field(default=1, init=False)
    page: Optional[Page[T]] = field(default=None, init=False)
    _sequence: int = field(default=0, init=False, repr=False)
    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)
        if not 1 <= self.page_size <= self.max_page_size:
            raise ValueError(
                f"page_size must be between 1 and {self.max_page_size}, got {self.page_size}"
            )

    @property
    def sequence(self) -> int:
        return self._sequence

    @property
    def total_pages(self) -> Optional[int]:
        """Known total pages, or None before the first applied page."""
        return None if self.page is None else self.page.total_pages

    def _advance(self) -> int:
        self._sequence += 1
        return self._sequence

    def set_page(self, page: int) -> int:
        """Request a page, clamped to the known range.

        Returns:
            The page that will be requested.
        """
        known = self.total_pages
        target = max(page, 1) if known is None else clamp_page(page, known)
        if target != self.current_page:
            self.current_page = target
            self._advance()
        return self.current_page

    def set_page_size(self, page_size: int) -> None:
        """Change the page size; always returns to page 1."""
        if not 1 <= page_size <= self.max_page_size:
            raise ValueError(
                f"page_size must be between 1 and {self.max_page_size}, got {page_size}"
            )
        self.page_size = page_size
        self.reset()

    def reset(self) -> None:
        """Return to page 1 and invalidate in-flight requests.

        Must be called after any filter or sort change, before fetching.
        """
        self.current_page = 1
        self._advance()
        self._logger.debug("Pagination reset", extra={"sequence": self._sequence})

    def issue(self) -> RequestTicket:
        """Start a request for the current page."""
        return RequestTicket(
            sequence=self._advance(),
            page=self.current_page,
            page_size=self.page_size,
        )

    def is_current(self, ticket: RequestTicket) -> bool:
        return ticket.sequence == self._sequence

    def on_new_data(
        self, page: Page[T], ticket: Optional[RequestTicket] = None
    ) -> Reconciliation:
        """Apply a fetched page unless a newer request was issued since.

        The current page is clamped into [1, max(total_pages, 1)]. When the
        clamp changes the requested page the result reports a correction
        and the caller is expected to fetch again.

        Args:
            page: The normalized page.
            ticket: Ticket of the request that produced it; None applies
                unconditionally.
        """
        requested = self.current_page if ticket is None else ticket.page
        if ticket is not None and not self.is_current(ticket):
            self._logger.debug(
                "Discarding stale response",
                extra={"sequence": ticket.sequence, "latest": self._sequence},
            )
            return Reconciliation(False, requested, self.current_page)

        self.page = page
        corrected = clamp_page(requested, page.total_pages)
        if corrected != requested:
            self._logger.info(
                "Requested page out of range, correcting",
                extra={"requested": requested, "corrected": corrected},
            )
        self.current_page = corrected
        return Reconciliation(True, requested, corrected)

    @property
    def has_next(self) -> bool:
        return self.page is not None and self.current_page < self.page.total_pages

    @property
    def has_previous(self) -> bool:
        return self.current_page > 1

    @property
    def offset(self) -> int:
        """Index of the first item of the current page."""
        return (self.current_page - 1) * self.page_size
