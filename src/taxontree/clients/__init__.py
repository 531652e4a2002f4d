"""
API clients for external services.

Provides a client for the Unipept taxa2tree endpoint.
"""

from taxontree.clients.unipept import TaxonomyServiceError, UnipeptClient

__all__ = [
    "TaxonomyServiceError",
    "UnipeptClient",
]
