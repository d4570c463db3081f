"""
Domain Repository Interfaces

Protocols for the store access the domain services depend on.
Implementations live in the infrastructure layer.
"""

from .store_connection import IStoreConnection, IConnectionFactory, ScoredMember

__all__ = [
    "IStoreConnection",
    "IConnectionFactory",
    "ScoredMember",
]
