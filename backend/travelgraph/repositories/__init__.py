# backend/travelgraph/repositories/__init__.py
"""
Repository layer for travelgraph.

Repositories encapsulate data access; services own transactions.
"""

from .base_repository import BaseRepository
from .factory import RepositoryFactory

__all__ = ["BaseRepository", "RepositoryFactory"]
