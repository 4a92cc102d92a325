"""Listing and curation engine for a travel marketplace.

The package turns heterogeneous backend listing payloads into canonical
pages (normalize, filter, sort, paginate, rank by distance) and manages
optimistic editing of curated media collections (ordering and featured
image) with rollback on persistence failure.
"""

__version__ = "0.1.0"
