"""Shared helpers for CLI commands."""

import asyncio
import logging
from collections.abc import Awaitable
from typing import Any, TypeVar

import typer

from mindsprout.application.config import AppConfig, resolve_config
from mindsprout.application.factory import get_record_store
from mindsprout.application.stats.service import StatsService
from mindsprout.application.study_service import StudyService
from mindsprout.domain.exceptions import MindSproutError
from mindsprout.domain.ports import RecordStore

T = TypeVar("T")

logger = logging.getLogger(__name__)


def _resolve_with_overrides(**kwargs: Any) -> AppConfig:
    """Resolve config, letting non-None CLI values win."""
    return resolve_config({k: v for k, v in kwargs.items() if v is not None})


async def _loaded_service(config: AppConfig, store: RecordStore | None = None) -> StudyService:
    service = StudyService(store or get_record_store(config))
    await service.load()
    return service


def _stats_service(config: AppConfig, store: RecordStore | None = None) -> StatsService:
    return StatsService(store or get_record_store(config))


def _run(coro: Awaitable[T]) -> T:
    """Run a coroutine, turning MindSprout errors into a clean exit."""
    try:
        return asyncio.run(coro)  # type: ignore[arg-type]
    except MindSproutError as e:
        logger.debug("Command failed", exc_info=True)
        typer.secho(f"Error: {e}", fg="red", err=True)
        raise typer.Exit(1) from e
