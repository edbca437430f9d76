from .base import StorageBackend
from .key_value import JsonFileStorage, MemoryStorage
from .local_store import STORAGE_KEYS, LocalStore
from .remote_store import RemoteStore

__all__ = [
    "StorageBackend",
    "JsonFileStorage",
    "MemoryStorage",
    "STORAGE_KEYS",
    "LocalStore",
    "RemoteStore",
]
