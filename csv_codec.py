"""
csv_codec.py
Import/export of members as plain CSV text (header: name,phone,type,amount,start,end).

Fields are split and joined on bare commas: there is no quoting, so a value
that itself contains a comma does not survive an export/import cycle.
"""

from __future__ import annotations

import logging
import re

from models import DEFAULT_MEMBERSHIP_TYPE, EmptyOrMalformedCSV, Member
from utils import coerce_amount, format_amount, generate_id

logger = logging.getLogger(__name__)

CSV_COLUMNS = ("name", "phone", "type", "amount", "start", "end")
CSV_HEADER = ",".join(CSV_COLUMNS)

EXPORT_FILENAME = "b7_members_export.csv"

_LINE_SPLIT = re.compile(r"\r?\n|\r")


def _header_index(header_line: str) -> dict[str, int]:
    tokens = [h.strip().lower() for h in header_line.split(",")]
    index: dict[str, int] = {}
    for pos, token in enumerate(tokens):
        if token in CSV_COLUMNS and token not in index:
            index[token] = pos
    return index


def _cell(cols: list[str], index: dict[str, int], column: str) -> str:
    pos = index.get(column)
    if pos is None or pos >= len(cols):
        return ""
    return cols[pos].strip()


def parse_csv(text: str) -> tuple[list[Member], int]:
    """
    Parse CSV text into new members (fresh ids), in file order.

    Rows without a name or phone are skipped. Raises EmptyOrMalformedCSV only
    when the text has no non-blank line at all; a header with no usable rows
    gives ([], 0).
    """
    lines = [line.strip() for line in _LINE_SPLIT.split(text or "")]
    lines = [line for line in lines if line]
    if not lines:
        raise EmptyOrMalformedCSV("CSV is empty (no header row).")

    index = _header_index(lines[0])
    missing = [c for c in CSV_COLUMNS if c not in index]
    if missing:
        logger.debug("CSV header lacks columns %s; using defaults", missing)

    records: list[Member] = []
    for line_no, line in enumerate(lines[1:], start=2):
        cols = line.split(",")
        name = _cell(cols, index, "name")
        phone = _cell(cols, index, "phone")
        if not name or not phone:
            logger.debug("Skipping CSV row %d: name and phone are required", line_no)
            continue
        records.append(
            Member(
                id=generate_id(),
                name=name,
                phone=phone,
                type=_cell(cols, index, "type") or DEFAULT_MEMBERSHIP_TYPE,
                amount=coerce_amount(_cell(cols, index, "amount")),
                start=_cell(cols, index, "start"),
                end=_cell(cols, index, "end"),
            )
        )

    logger.info("Parsed %d member(s) from %d CSV row(s)", len(records), len(lines) - 1)
    return records, len(records)


def _row(member: Member) -> list[str]:
    return [
        member.name,
        member.phone,
        member.type,
        format_amount(member.amount),
        member.start,
        member.end,
    ]


def serialize_csv(members: list[Member]) -> str:
    lines = [CSV_HEADER]
    for m in members:
        fields = _row(m)
        if any("," in f for f in fields):
            logger.warning("Member %s has a comma in a field; the exported row will not re-import cleanly", m.id)
        lines.append(",".join(fields))
    return "\n".join(lines)


def members_to_csv_bytes(members: list[Member]) -> bytes:
    return serialize_csv(members).encode("utf-8")
