"""Curated media editing: optimistic ordering and featured selection."""

from .featured import FeaturedSelector
from .ordering import OrderingEditor, renumber

__all__ = ["FeaturedSelector", "OrderingEditor", "renumber"]
