"""Storage contract, object stores and the object-store backed provider."""

from .interface import DailyLogStorage
from .object_store import (
    ObjectStore,
    ObjectStoreError,
    VersionConflictError,
    ListingTruncatedError,
    StoredObject,
    GitHubObjectStore,
    LocalObjectStore,
    InMemoryObjectStore,
)
from .remote_storage import RemoteLogStorage

__all__ = [
    "DailyLogStorage", "ObjectStore", "ObjectStoreError", "VersionConflictError",
    "ListingTruncatedError", "StoredObject", "GitHubObjectStore", "LocalObjectStore", "InMemoryObjectStore",
    "RemoteLogStorage",
]
