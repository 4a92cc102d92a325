"""HTTP adapters - requests-based implementations of the backend ports.

Available implementations:
- RestListingSource: Public office and package listings
- RestCurationStore: Office gallery and package image curation
"""

from .rest_curation_store import RestCurationStore
from .rest_listing_source import RestListingSource, query_params

__all__ = ["RestListingSource", "RestCurationStore", "query_params"]
