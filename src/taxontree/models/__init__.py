"""
Pydantic data models for taxontree.

Provides type-safe configuration for rendering and the taxonomy service.
"""

from taxontree.models.config import RenderConfig, ServiceConfig

__all__ = [
    "RenderConfig",
    "ServiceConfig",
]
