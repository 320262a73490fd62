"""
Tabular decoding of the results feed.

Responsibilities:
- feed bytes -> text (encoding detection, newline folding)
- header names -> identifier form for the by-name fill
- positional overrides for position / grade / status
- program-info carry-forward across merged-cell rows
- dropping spacer rows without a candidate
"""

from __future__ import annotations

import re
from typing import Dict, List, NamedTuple, Optional, Tuple

from charset_normalizer import from_bytes

from .models import ResultRecord
from .rules import FEED_DELIMITER, POSITIONAL_OVERRIDES, QUOTE_CHAR

_IDENTIFIER_BREAK = re.compile(r"[^a-zA-Z0-9]+(.)")


class ProgramContext(NamedTuple):
    code: str = ""
    name: str = ""
    section: str = ""


def decode_bytes(raw: bytes) -> str:
    """
    Decode feed bytes to text.

    Rules:
    - Detect encoding best-effort via charset-normalizer.
    - A UTF-8 BOM is consumed, never carried into the first header.
    - Undecodable input falls back to UTF-8 with replacement characters.
    - CRLF/CR are folded to LF.
    """
    if not raw:
        return ""

    match = from_bytes(raw).best()
    decode_used = match.encoding if match is not None else "utf-8"
    if raw.startswith(b"\xef\xbb\xbf") and decode_used.lower().replace("-", "_") in ("utf_8", "utf8"):
        decode_used = "utf-8-sig"

    try:
        text = raw.decode(decode_used)
    except (UnicodeDecodeError, LookupError):
        text = raw.decode("utf-8", errors="replace")

    return text.replace("\r\n", "\n").replace("\r", "\n")


def to_identifier(header: str) -> str:
    """'Program Code' -> 'programCode', 'candidate name' -> 'candidateName'."""
    return _IDENTIFIER_BREAK.sub(lambda m: m.group(1).upper(), header.lower())


def _clean(value: str) -> str:
    return value.strip().replace(QUOTE_CHAR, "")


def parse_header(line: str) -> List[str]:
    return [to_identifier(_clean(h)) for h in line.split(FEED_DELIMITER)]


def _fill_row(header: List[str], values: List[str]) -> Dict[str, str]:
    entry: Dict[str, str] = {}
    for index, name in enumerate(header):
        entry[name] = values[index] if index < len(values) else ""

    for field, index in POSITIONAL_OVERRIDES.items():
        entry[field] = values[index] if index < len(values) else ""

    return entry


def decode_row(
    header: List[str], line: str, context: ProgramContext
) -> Tuple[Optional[ResultRecord], ProgramContext]:
    """
    Decode one data line against the current program context.

    Returns the record (or None for a spacer / context-only row) and the
    context to use for the next row.
    """
    values = [_clean(v) for v in line.split(FEED_DELIMITER)]
    entry = _fill_row(header, values)

    declared = entry.get("programCode", "")
    if declared.strip():
        context = ProgramContext(declared, entry.get("name", ""), entry.get("section", ""))

    candidate = entry.get("candidateName", "")
    if not candidate.strip():
        return None, context

    record = ResultRecord(
        position=entry["position"],
        chest_no=entry.get("chestNo", ""),
        candidate_name=candidate,
        team_code=entry.get("teamCode", ""),
        grade=entry["grade"],
        status=entry["status"],
        program_code=context.code,
        program_name=context.name,
        program_section=context.section,
    )
    return record, context


def decode(raw_text: str) -> Tuple[ResultRecord, ...]:
    lines = raw_text.strip().split("\n")
    if len(lines) < 2:
        return ()

    header = parse_header(lines[0])
    records: List[ResultRecord] = []
    context = ProgramContext()

    for line in lines[1:]:
        record, context = decode_row(header, line, context)
        if record is not None:
            records.append(record)

    return tuple(records)
