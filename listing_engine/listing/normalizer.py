"""Normalization of listing payloads into the canonical Page model.

Backends have been observed to answer listing requests in three shapes:

1. a bare JSON array of records,
2. ``{"data": {"data": [...], "total": .., "per_page": .., "last_page": ..}}``
   (nested pagination),
3. ``{"data": [...]}`` (flat data).

Shape detection is an ordered tuple of handlers; the first handler whose
detector accepts the payload extracts the records and whatever pagination
metadata it carries. Records are then mapped into ListingItem through
per-field fallback chains, with locale-specific translations preferred
over base fields.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence

from ..domain.errors import MalformedResponseError
from ..domain.models import ListingItem, ListingKind, Page


class ResponseShape(Enum):
    """Recognized payload shapes, in detection priority order."""

    BARE_ARRAY = "bare_array"
    NESTED_PAGINATION = "nested_pagination"
    FLAT_DATA = "flat_data"
    MALFORMED = "malformed"

    @property
    def is_server_paginated(self) -> bool:
        """Only the nested shape carries the backend's own page slicing."""
        return self is ResponseShape.NESTED_PAGINATION


@dataclass(frozen=True)
class RawPage:
    """Records and optional pagination metadata extracted from a payload."""

    records: Sequence[Any]
    total: Optional[int] = None
    per_page: Optional[int] = None
    current_page: Optional[int] = None
    last_page: Optional[int] = None


@dataclass(frozen=True)
class ShapeHandler:
    """A detector paired with the extractor for the shape it detects."""

    shape: ResponseShape
    detect: Callable[[Any], bool]
    extract: Callable[[Any], RawPage]


def _is_array(value: Any) -> bool:
    return isinstance(value, list)


def _data(payload: Any) -> Any:
    return payload.get("data") if isinstance(payload, Mapping) else None


def _extract_nested(payload: Any) -> RawPage:
    envelope = payload["data"]
    return RawPage(
        records=envelope["data"],
        total=parse_int(envelope.get("total")),
        per_page=parse_int(envelope.get("per_page")),
        current_page=parse_int(envelope.get("current_page")),
        last_page=parse_int(envelope.get("last_page")),
    )


SHAPE_HANDLERS: tuple[ShapeHandler, ...] = (
    ShapeHandler(
        ResponseShape.BARE_ARRAY,
        detect=_is_array,
        extract=lambda payload: RawPage(records=payload),
    ),
    ShapeHandler(
        ResponseShape.NESTED_PAGINATION,
        detect=lambda payload: isinstance(_data(payload), Mapping)
        and _is_array(_data(payload).get("data")),
        extract=_extract_nested,
    ),
    ShapeHandler(
        ResponseShape.FLAT_DATA,
        detect=lambda payload: _is_array(_data(payload)),
        extract=lambda payload: RawPage(records=payload["data"]),
    ),
)


# ===================== Value parsing =====================


def parse_float(value: Any) -> Optional[float]:
    """Parse a finite float; anything else is None (never 0)."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def parse_int(value: Any) -> Optional[int]:
    number = parse_float(value)
    return None if number is None else int(number)


def parse_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _first(values: Iterable[Any]) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


# ===================== Record mapping =====================


@dataclass(frozen=True)
class LocalizedRecord:
    """A raw record with its translations resolved for one locale.

    Lookups go: active-locale translation, base field, fallback-locale
    translation.
    """

    raw: Mapping[str, Any]
    translation: Mapping[str, Any] = field(default_factory=dict)
    fallback: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def resolve(
        cls, raw: Mapping[str, Any], locale: str, fallback_locale: str
    ) -> "LocalizedRecord":
        translations = _translations_by_locale(raw.get("translations"))
        return cls(
            raw=raw,
            translation=translations.get(locale, {}),
            fallback=translations.get(fallback_locale, {}),
        )

    def text(self, *keys: str) -> Optional[str]:
        for source in (self.translation, self.raw, self.fallback):
            for key in keys:
                value = _text(source.get(key))
                if value is not None:
                    return value
        return None

    def number(self, *keys: str) -> Optional[float]:
        return _first(parse_float(self.raw.get(key)) for key in keys)


def _translations_by_locale(value: Any) -> dict[str, Mapping[str, Any]]:
    """Index translations given as a list of {locale: ..} rows or a mapping."""
    if isinstance(value, Mapping):
        return {
            str(locale): entry
            for locale, entry in value.items()
            if isinstance(entry, Mapping)
        }
    if isinstance(value, list):
        indexed: dict[str, Mapping[str, Any]] = {}
        for entry in value:
            if isinstance(entry, Mapping) and entry.get("locale"):
                indexed.setdefault(str(entry["locale"]), entry)
        return indexed
    return {}


def infer_kind(raw: Mapping[str, Any]) -> ListingKind:
    """Guess whether a record is an office or a package."""
    if any(key in raw for key in ("duration_days", "office_id", "price")):
        return ListingKind.PACKAGE
    return ListingKind.OFFICE


@dataclass
class ResponseNormalizer:
    """Turn listing payloads into canonical pages.

    Attributes:
        locale: Active locale for translated fields
        fallback_locale: Locale used when neither the active translation
            nor the base record has a value
        handlers: Shape handlers in priority order
    """

    locale: str = "ar"
    fallback_locale: str = "ar"
    handlers: tuple[ShapeHandler, ...] = SHAPE_HANDLERS

    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    def detect(self, payload: Any) -> ShapeHandler:
        """Return the first handler accepting the payload.

        Raises:
            MalformedResponseError: If no handler recognizes the payload.
        """
        for handler in self.handlers:
            if handler.detect(payload):
                return handler
        raise MalformedResponseError(
            "Unrecognized listing payload shape",
            payload_type=type(payload).__name__,
        )

    def normalize(
        self,
        payload: Any,
        *,
        page_size: int,
        current_page: int = 1,
        kind: Optional[ListingKind] = None,
    ) -> tuple[Page[ListingItem], ResponseShape]:
        """Normalize a payload, raising on unrecognized shapes.

        Args:
            payload: Decoded JSON payload.
            page_size: Page size that was requested; used unless the payload
                reports its own per_page.
            current_page: Page that was requested.
            kind: Listing kind, inferred per record when None.

        Returns:
            The canonical page and the detected shape.

        Raises:
            MalformedResponseError: If the payload shape is not recognized.
        """
        handler = self.detect(payload)
        raw_page = handler.extract(payload)
        items = self.map_records(raw_page.records, kind)

        size = raw_page.per_page if raw_page.per_page and raw_page.per_page > 0 else page_size
        total = raw_page.total if raw_page.total is not None else len(items)
        page = Page.build(
            items,
            total_items=total,
            page_size=size,
            current_page=raw_page.current_page or current_page,
            total_pages=raw_page.last_page,
        )
        self._logger.debug(
            "Payload normalized",
            extra={
                "shape": handler.shape.value,
                "items": len(items),
                "total_items": page.total_items,
                "total_pages": page.total_pages,
            },
        )
        return page, handler.shape

    def normalize_safe(
        self,
        payload: Any,
        *,
        page_size: int,
        current_page: int = 1,
        kind: Optional[ListingKind] = None,
    ) -> tuple[Page[ListingItem], ResponseShape]:
        """Normalize a payload, degrading to an empty page when malformed.

        Returns:
            The canonical page (empty for malformed payloads) and its shape.
        """
        try:
            return self.normalize(
                payload, page_size=page_size, current_page=current_page, kind=kind
            )
        except MalformedResponseError as e:
            self._logger.warning(
                "Malformed listing payload, returning empty page",
                extra={"payload_type": e.payload_type},
            )
            return Page.empty(page_size), ResponseShape.MALFORMED

    def map_records(
        self, records: Sequence[Any], kind: Optional[ListingKind] = None
    ) -> list[ListingItem]:
        """Map raw records, skipping entries that are not usable objects."""
        items: list[ListingItem] = []
        for index, raw in enumerate(records):
            if not isinstance(raw, Mapping):
                self._logger.debug(
                    "Skipping non-object record", extra={"index": index}
                )
                continue
            item = self.map_record(raw, kind)
            if item is None:
                self._logger.debug("Skipping record without id", extra={"index": index})
                continue
            items.append(item)
        return items

    def map_record(
        self, raw: Mapping[str, Any], kind: Optional[ListingKind] = None
    ) -> Optional[ListingItem]:
        """Map one raw record into a ListingItem, or None without an id."""
        item_id = _text(raw.get("id"))
        if item_id is None:
            return None

        kind = kind or infer_kind(raw)
        record = LocalizedRecord.resolve(raw, self.locale, self.fallback_locale)
        office = raw.get("office")
        parent = (
            LocalizedRecord.resolve(office, self.locale, self.fallback_locale)
            if isinstance(office, Mapping)
            else None
        )

        if kind is ListingKind.OFFICE:
            name = record.text("office_name", "name", "title")
        else:
            name = record.text("name", "title", "package_name")

        rating = record.number("rating", "average_rating")
        lat = record.number("latitude", "lat")
        lng = record.number("longitude", "lng", "lon")
        city = record.text("city", "start_location")
        if parent is not None:
            rating = rating if rating is not None else parent.number("rating", "average_rating")
            if lat is None or lng is None:
                lat = parent.number("latitude", "lat")
                lng = parent.number("longitude", "lng", "lon")
            city = city or parent.text("city")

        return ListingItem(
            id=item_id,
            kind=kind,
            name=name or "",
            description=record.text("description") or "",
            price=record.number("price", "base_price"),
            duration_days=_first(parse_int(raw.get(k)) for k in ("duration_days", "duration")),
            rating=rating,
            lat=lat,
            lng=lng,
            city=city,
            is_featured=parse_bool(raw.get("is_featured")),
        )
