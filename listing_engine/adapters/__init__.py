"""Adapters layer - Concrete implementations of ports.

This module connects the engine to external systems:
- The REST backend (requests)
- Geolocation (static point, Nominatim)
- In-memory stores and caches
"""
