"""
Store Factory
Centralizes the logic for selecting the RecordStore implementation.
"""

import logging

from mindsprout.application.config import AppConfig
from mindsprout.domain.ports import RecordStore
from mindsprout.infrastructure.store import JsonFileRecordStore, MemoryRecordStore

logger = logging.getLogger(__name__)


def get_record_store(config: AppConfig) -> RecordStore:
    """
    Returns the RecordStore implementation selected by config.
    """
    if config.backend == "memory":
        logger.debug("Backend: memory (nothing will be saved)")
        return MemoryRecordStore()

    logger.debug(f"Backend: json ({config.data_dir})")
    return JsonFileRecordStore(config.data_dir)
