"""Services layer - Application orchestration.

Available services:
- ListingQueryService: Fetch, filter, sort and paginate one listing view
- CurationService: Open ordering and featured editing sessions
"""

from .curation_service import CurationService, CurationSession
from .listing_service import ListingQueryService

__all__ = ["ListingQueryService", "CurationService", "CurationSession"]
