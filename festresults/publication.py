"""
Publication reconciliation.

Each program code is in one of three states:

    NO_OVERRIDE  no persisted row yet
    UNPUBLISHED  persisted, is_published = False
    PUBLISHED    persisted, is_published = True

Operators move programs between UNPUBLISHED and PUBLISHED freely, one at a
time or all at once. The feed's status column only ever moves a program into
PUBLISHED (auto-publish); nothing derived from the feed moves a program out
of it. Visibility is the persisted flag alone, defaulting to hidden.
"""

from __future__ import annotations

import enum
import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set

from .models import ProgramStatus, ProgramView, ResultRecord
from .repository import ResultRepository
from .rules import PUBLISHED_STATUS
from .store import PublicationStore

logger = logging.getLogger(__name__)


class PublicationState(enum.Enum):
    NO_OVERRIDE = "no_override"
    UNPUBLISHED = "unpublished"
    PUBLISHED = "published"

    @classmethod
    def from_flag(cls, is_published: bool) -> "PublicationState":
        return cls.PUBLISHED if is_published else cls.UNPUBLISHED

    @property
    def is_visible(self) -> bool:
        return self is PublicationState.PUBLISHED


def _now() -> datetime:
    return datetime.now(timezone.utc)


def states_from_rows(rows: Iterable[ProgramStatus]) -> Dict[str, PublicationState]:
    return {row.program_code: PublicationState.from_flag(row.is_published) for row in rows}


def declared_published(records: Iterable[ResultRecord]) -> Set[str]:
    """Program codes whose feed status reads 'published' on any of their rows."""
    return {
        r.program_code
        for r in records
        if r.program_code and r.status.strip().lower() == PUBLISHED_STATUS
    }


def plan_auto_publish(
    records: Iterable[ResultRecord], states: Mapping[str, PublicationState]
) -> List[ProgramStatus]:
    """
    Upserts that auto-publish programs the feed declares published.

    Only programs not already PUBLISHED are proposed; the result never
    contains an unpublish.
    """
    stamp = _now()
    return [
        ProgramStatus(program_code=code, is_published=True, updated_at=stamp)
        for code in sorted(declared_published(records))
        if states.get(code, PublicationState.NO_OVERRIDE) is not PublicationState.PUBLISHED
    ]


class PublicationReconciler:
    def __init__(self, store: PublicationStore, repository: ResultRepository):
        self.store = store
        self.repository = repository
        self.states: Dict[str, PublicationState] = {}

    def state_of(self, program_code: str) -> PublicationState:
        return self.states.get(program_code, PublicationState.NO_OVERRIDE)

    async def load(self) -> Dict[str, PublicationState]:
        """Re-read persisted flags; StoreError propagates."""
        rows = await self.store.select_all()
        self.states = states_from_rows(rows)
        return self.states

    def published_codes(self) -> Set[str]:
        return {code for code, state in self.states.items() if state.is_visible}

    async def set_published(self, program_code: str, is_published: bool) -> PublicationState:
        record = ProgramStatus(program_code=program_code, is_published=is_published, updated_at=_now())
        await self.store.upsert_one(record)
        await self.load()
        logger.info("%s has been %s", program_code, "published" if is_published else "unpublished")
        return self.state_of(program_code)

    async def set_all(self, is_published: bool) -> List[str]:
        codes = sorted(self.repository.unique_program_codes())
        stamp = _now()
        updates = [
            ProgramStatus(program_code=code, is_published=is_published, updated_at=stamp)
            for code in codes
        ]
        await self.store.upsert_many(updates)
        await self.load()
        logger.info(
            "All %d programs have been %s", len(codes), "published" if is_published else "unpublished"
        )
        return codes

    async def reconcile(self, records: Optional[Sequence[ResultRecord]] = None) -> List[str]:
        """
        Auto-publish programs the feed marks published.

        Reads the store, writes the planned batch, then reads the store again
        so ``states`` reflects what was actually persisted. Returns the codes
        that were proposed.
        """
        if records is None:
            records = self.repository.records
        await self.load()
        proposals = plan_auto_publish(records, self.states)
        if not proposals:
            return []

        await self.store.upsert_many(proposals)
        await self.load()
        codes = [p.program_code for p in proposals]
        logger.info("Auto-published %d programs: %s", len(codes), ", ".join(codes))
        return codes

    def views(self) -> List[ProgramView]:
        return sorted(
            (
                ProgramView(
                    code=p.code,
                    name=p.name,
                    section=p.section,
                    source_status=p.source_status,
                    is_published=self.state_of(p.code).is_visible,
                )
                for p in self.repository.programs()
            ),
            key=lambda v: v.code,
        )
