"""Mapping store contract and adapters."""

from shortlinks.store.base import MappingStore
from shortlinks.store.memory import MemoryMappingStore

__all__ = ["MappingStore", "MemoryMappingStore"]
