"""Grouping of result records by program, most recently appearing program first."""

from __future__ import annotations

from typing import Dict, Iterable, List, Sequence, Tuple

from .models import ProgramGroup, ResultRecord


def source_index(source: Sequence[ResultRecord]) -> Dict[Tuple[str, str, str], int]:
    """First index of each (program_code, chest_no, candidate_name) in ``source``."""
    index: Dict[Tuple[str, str, str], int] = {}
    for i, record in enumerate(source):
        index.setdefault(record.identity, i)
    return index


def group(records: Iterable[ResultRecord], source: Sequence[ResultRecord]) -> List[ProgramGroup]:
    """
    Group ``records`` by program code and order the groups.

    ``records`` may be any filtered subset of ``source``, the full decoded
    sequence. Members are matched back to ``source`` by value, so a group's
    rank is the highest position any of its members holds there. Records with
    an empty program code are left out. Groups with equal rank keep the order
    in which they first appeared in ``records``.
    """
    groups: Dict[str, ProgramGroup] = {}
    for record in records:
        code = record.program_code
        if not code:
            continue
        if code not in groups:
            groups[code] = ProgramGroup(
                program_code=code,
                program_name=record.program_name,
                program_section=record.program_section,
            )
        groups[code].entries.append(record)

    positions = source_index(source)
    for g in groups.values():
        g.latest_index = max(positions.get(e.identity, -1) for e in g.entries)

    # sorted() is stable, ties keep first-appearance order
    return sorted(groups.values(), key=lambda g: g.latest_index, reverse=True)


def ticker_items(groups: Iterable[ProgramGroup]) -> List[str]:
    return [f"{g.program_code}: {g.program_name}" for g in groups]
