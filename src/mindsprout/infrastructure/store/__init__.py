from .json_store import JsonFileRecordStore
from .memory_store import MemoryRecordStore

__all__ = ["JsonFileRecordStore", "MemoryRecordStore"]
