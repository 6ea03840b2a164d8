"""Vector record storage for Mane."""

from .errors import InvalidDimensionError, StoreError
from .locks import ReadWriteLock
from .models import CollectionName, MediaClass, Record, collection_for, new_record_id
from .vector_store import VectorRecordStore, open_client

__all__ = [
    "CollectionName",
    "InvalidDimensionError",
    "MediaClass",
    "ReadWriteLock",
    "Record",
    "StoreError",
    "VectorRecordStore",
    "collection_for",
    "new_record_id",
    "open_client",
]
