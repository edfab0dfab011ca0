"""Storage package for printer profiles and the active selection.

Provides the key-value stores, the profile models and the registry
persistence adapter built on top of them.
"""

from .base import JsonFileStore, KeyValueStore, MemoryStore
from .models import PrinterProfile, ProfileDraft, ProfilePatch
from .registry_store import RegistrySnapshot, RegistryStore

__all__ = [
    # Key-value stores
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    # Models
    "PrinterProfile",
    "ProfileDraft",
    "ProfilePatch",
    # Persistence adapter
    "RegistrySnapshot",
    "RegistryStore",
]
