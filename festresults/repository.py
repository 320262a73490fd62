"""In-memory holder of the decoded record sequence for the current fetch cycle."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Dict, List, Optional, Set, Tuple

from .decode import decode
from .errors import FestResultsError
from .models import CycleStatus, ProgramInfo, ResultRecord

logger = logging.getLogger(__name__)

Predicate = Callable[[ResultRecord], bool]


def matches_search(record: ResultRecord, term: str) -> bool:
    """Case-insensitive containment over name, team, program name and code."""
    if not term:
        return True
    needle = term.lower()
    return any(
        needle in value.lower()
        for value in (
            record.candidate_name,
            record.team_code,
            record.program_name,
            record.program_code,
        )
    )


class ResultRepository:
    def __init__(self, records: Tuple[ResultRecord, ...] = ()):
        self._records: Tuple[ResultRecord, ...] = tuple(records)
        self.last_cycle = CycleStatus()

    @property
    def records(self) -> Tuple[ResultRecord, ...]:
        return self._records

    def replace(self, records: Tuple[ResultRecord, ...]) -> None:
        # single assignment, readers see either the old or the new tuple
        self._records = tuple(records)

    async def refresh(self, fetch: Callable[[], Awaitable[str]]) -> Tuple[ResultRecord, ...]:
        """
        Run one fetch -> decode -> replace cycle.

        On failure the previous sequence stays in place, the failure is
        recorded on ``last_cycle`` and the error is re-raised.
        """
        try:
            raw_text = await fetch()
        except FestResultsError as exc:
            self.last_cycle = CycleStatus(
                ok=False,
                error=str(exc),
                error_kind=exc.kind,
                record_count=len(self._records),
                finished_at=datetime.now(timezone.utc),
            )
            logger.warning("Feed refresh failed (%s); keeping %d records", exc, len(self._records))
            raise

        records = decode(raw_text)
        self.replace(records)
        self.last_cycle = CycleStatus(
            ok=True,
            record_count=len(records),
            finished_at=datetime.now(timezone.utc),
        )
        logger.info("Feed refresh decoded %d result entries", len(records))
        return records

    def unique_program_codes(self) -> Set[str]:
        return {r.program_code for r in self._records if r.program_code}

    def filter(self, predicate: Predicate) -> Tuple[ResultRecord, ...]:
        return tuple(r for r in self._records if predicate(r))

    def programs(self) -> List[ProgramInfo]:
        """Unique programs in first-seen order, with the first non-empty feed status."""
        seen: Dict[str, ProgramInfo] = {}
        for r in self._records:
            if not r.program_code:
                continue
            info = seen.get(r.program_code)
            if info is None:
                seen[r.program_code] = ProgramInfo(
                    code=r.program_code,
                    name=r.program_name,
                    section=r.program_section,
                    source_status=r.status,
                )
            elif not info.source_status and r.status:
                info.source_status = r.status
        return list(seen.values())

    def teams(self) -> List[str]:
        return sorted({r.team_code for r in self._records if r.team_code})

    def for_chest_no(self, chest_no: str) -> Tuple[ResultRecord, ...]:
        wanted = chest_no.lower()
        return self.filter(lambda r: r.chest_no.lower() == wanted)

    def search(
        self,
        term: str = "",
        section: Optional[str] = None,
        team: Optional[str] = None,
        program_codes: Optional[Set[str]] = None,
    ) -> Tuple[ResultRecord, ...]:
        def predicate(r: ResultRecord) -> bool:
            if program_codes is not None and r.program_code not in program_codes:
                return False
            if section and r.program_section != section:
                return False
            if team and r.team_code != team:
                return False
            return matches_search(r, term)

        return self.filter(predicate)
