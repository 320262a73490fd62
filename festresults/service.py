"""Fetch-cycle orchestration: feed -> repository -> reconciliation."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from .config import Settings
from .errors import FestResultsError
from .feed import FeedClient
from .grouping import group
from .models import ProgramGroup
from .publication import PublicationReconciler
from .repository import ResultRepository
from .store import (
    InMemoryPublicationStore,
    PublicationStore,
    SqlitePublicationStore,
    SupabasePublicationStore,
)

logger = logging.getLogger(__name__)


def build_store(settings: Settings) -> PublicationStore:
    if settings.store == "sqlite":
        return SqlitePublicationStore(settings.sqlite_path)
    if settings.store == "supabase":
        if not (settings.supabase_url and settings.supabase_key):
            raise ValueError("Supabase store selected but SUPABASE_URL or key is missing")
        return SupabasePublicationStore(
            settings.supabase_url,
            settings.supabase_key,
            table=settings.status_table,
            timeout=settings.http_timeout,
        )
    if settings.store == "memory":
        return InMemoryPublicationStore()
    raise ValueError(f"Unknown publication store: {settings.store}")


class ResultsService:
    def __init__(
        self,
        feed: FeedClient,
        store: PublicationStore,
        repository: Optional[ResultRepository] = None,
    ):
        self.feed = feed
        self.store = store
        self.repository = repository or ResultRepository()
        self.reconciler = PublicationReconciler(store, self.repository)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ResultsService":
        feed = FeedClient(settings.feed_url, timeout=settings.http_timeout)
        return cls(feed, build_store(settings))

    async def refresh(self) -> List[str]:
        """
        One full cycle. FetchError / EmptyFeedError leave the previous records
        in place; StoreError is raised after the records were replaced.
        Returns the auto-published program codes.
        """
        records = await self.repository.refresh(self.feed.fetch)
        return await self.reconciler.reconcile(records)

    async def run_periodic(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await self.refresh()
            except FestResultsError as exc:
                logger.warning("Periodic refresh failed (%s): %s", exc.kind, exc)
            except Exception:
                logger.exception("Periodic refresh crashed; polling continues")

    def published_groups(
        self,
        search: str = "",
        section: Optional[str] = None,
        team: Optional[str] = None,
    ) -> List[ProgramGroup]:
        visible = self.repository.search(
            search, section=section, team=team, program_codes=self.reconciler.published_codes()
        )
        return group(visible, self.repository.records)
