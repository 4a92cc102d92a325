"""Explicit dependency wiring for the listing engine.

Ports are bound to factories and resolved on demand; nothing is scanned
or injected implicitly. Tests build an empty Container and bind fakes for
the ports they exercise.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from .config import AppConfig, get_config
from .domain.models import ListingKind

_UNSET = object()


@dataclass
class Binding:
    """A factory plus, for shared bindings, the instance it produced."""

    factory: Callable[[], Any]
    shared: bool = True
    instance: Any = field(default=_UNSET, repr=False)


@dataclass
class Container:
    """Registry mapping port types to factories.

    Usage:
        container = Container.create_default()
        offices = container.listing_service(ListingKind.OFFICE)
        session = await container.resolve(CurationService).open(gallery)

        container = Container()
        container.register(ListingSourcePort, lambda: FakeSource(payload))
    """

    config: AppConfig = field(default_factory=get_config)

    _bindings: Dict[type[Any], Binding] = field(default_factory=dict, repr=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    def register(
        self,
        port_type: type[Any],
        factory: Callable[[], Any],
        singleton: bool = True,
    ) -> None:
        """Bind port_type to factory, replacing any earlier binding.

        With singleton=False every resolve() calls the factory again.
        """
        with self._lock:
            self._bindings[port_type] = Binding(factory, shared=singleton)

    def resolve(self, port_type: type[Any]) -> Any:
        """Return the instance bound to port_type.

        Raises:
            KeyError: If nothing is bound to port_type.
        """
        with self._lock:
            binding = self._bindings.get(port_type)
            if binding is None:
                raise KeyError(f"Type not registered: {port_type}")
            if not binding.shared:
                return binding.factory()
            if binding.instance is _UNSET:
                binding.instance = binding.factory()
            return binding.instance

    def is_registered(self, port_type: type[Any]) -> bool:
        return port_type in self._bindings

    def clear_singletons(self) -> None:
        with self._lock:
            for binding in self._bindings.values():
                binding.instance = _UNSET

    def clear_all(self) -> None:
        with self._lock:
            self._bindings.clear()

    def listing_service(self, kind: ListingKind) -> Any:
        """Build a fresh ListingQueryService for one listing view.

        A view owns its pagination and filter state, so these services are
        never cached; only the ports behind them are.
        """
        from .ports.geolocation import GeolocationPort
        from .ports.listing import ListingSourcePort
        from .services import ListingQueryService

        geolocation = (
            self.resolve(GeolocationPort) if self.is_registered(GeolocationPort) else None
        )
        return ListingQueryService(
            source=self.resolve(ListingSourcePort),
            kind=kind,
            config=self.config.listing,
            geolocation=geolocation,
        )

    @classmethod
    def create_default(cls, config: Optional[AppConfig] = None) -> Container:
        """Bind the REST adapters, the geolocation provider and the services."""
        from .adapters.cache import InMemoryCache
        from .adapters.geolocation import NominatimGeolocation, StaticGeolocation
        from .adapters.http import RestCurationStore, RestListingSource
        from .ports.cache import CachePort
        from .ports.curation import (
            CurationSourcePort,
            FeaturedPersistencePort,
            OrderPersistencePort,
        )
        from .ports.geolocation import GeolocationPort
        from .ports.listing import ListingSourcePort
        from .services import CurationService

        config = config or get_config()
        container = cls(config=config)

        container.register(CachePort, lambda: InMemoryCache(name="global"))
        container.register(ListingSourcePort, lambda: RestListingSource(config.api))

        # One store loads collections and persists both kinds of change.
        container.register(RestCurationStore, lambda: RestCurationStore(config.api))
        for port in (CurationSourcePort, OrderPersistencePort, FeaturedPersistencePort):
            container.register(port, lambda: container.resolve(RestCurationStore))

        def create_geolocation() -> GeolocationPort:
            if not config.geocoding.place:
                return StaticGeolocation()
            return NominatimGeolocation(
                place=config.geocoding.place,
                language=config.listing.locale,
                config=config.geocoding,
                cache=container.resolve(CachePort),
            )

        container.register(GeolocationPort, create_geolocation)
        container.register(
            CurationService,
            lambda: CurationService(
                source=container.resolve(CurationSourcePort),
                orders=container.resolve(OrderPersistencePort),
                featured=container.resolve(FeaturedPersistencePort),
                config=config.curation,
            ),
        )
        return container


_default_container: Optional[Container] = None
_container_lock = threading.Lock()


def get_container() -> Container:
    """Return the process-wide container, building it on first use."""
    global _default_container
    if _default_container is None:
        with _container_lock:
            if _default_container is None:
                _default_container = Container.create_default()
    return _default_container


def reset_container() -> None:
    """Drop the process-wide container; tests call this between cases."""
    global _default_container
    with _container_lock:
        if _default_container is not None:
            _default_container.clear_all()
        _default_container = None
