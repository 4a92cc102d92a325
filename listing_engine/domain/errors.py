"""Typed domain errors for the listing and curation engine.

Data problems (unrecognized payloads, bad records) are recovered inside the
engine, while persistence problems are raised to the caller after the local
draft has been rolled back.

All errors inherit from ListingEngineError and can optionally wrap a root
cause exception for debugging.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class ListingEngineError(Exception):
    """Base error for the listing engine domain.

    Attributes:
        message: Human-readable error description
        cause: Optional underlying exception that caused this error
    """

    message: str
    cause: Optional[Exception] = field(default=None, repr=False)

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message}: {self.cause}"
        return self.message

    def __post_init__(self) -> None:
        super().__init__(self.message)


@dataclass
class MalformedResponseError(ListingEngineError):
    """Listing payload shape was not recognized.

    Recovered locally as an empty page by the safe normalizer entry point.

    Attributes:
        payload_type: Python type name of the offending payload
    """

    payload_type: str = ""


@dataclass
class NetworkFailureError(ListingEngineError):
    """Transport-level failure talking to the backend.

    Attributes:
        url: Requested URL if known
        status_code: HTTP status code if a response was received
    """

    url: Optional[str] = None
    status_code: Optional[int] = None


@dataclass
class PersistenceError(ListingEngineError):
    """The backend refused or failed to persist a curation change.

    Raised after the optimistic draft has been restored.

    Attributes:
        operation: Either "reorder" or "featured"
        collection: Identifier of the owning collection
    """

    operation: str = ""
    collection: str = ""


@dataclass
class GeolocationUnavailableError(ListingEngineError):
    """No reference point could be obtained.

    Only distance-based sorting is disabled when this happens.

    Attributes:
        query: Place name that was looked up, if any
    """

    query: str = ""


@dataclass
class InvalidStateError(ListingEngineError):
    """An operation was attempted from a state that does not allow it.

    Attributes:
        state: Name of the current state
        operation: Name of the rejected operation
    """

    state: str = ""
    operation: str = ""


@dataclass
class UnknownItemError(ListingEngineError):
    """Item id not found in the curated collection.

    Attributes:
        item_id: The id that was not found
    """

    item_id: str = ""


@dataclass
class ConfigurationError(ListingEngineError):
    """Invalid or missing configuration.

    Attributes:
        setting_name: Name of the problematic setting
        expected_type: Expected type or format
    """

    setting_name: str = ""
    expected_type: Optional[str] = None
