"""Database layer - async data store client."""

from procurement_kernel.db.client import DataStoreClient

__all__ = [
    "DataStoreClient",
]
