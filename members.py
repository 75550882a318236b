"""
members.py
In-memory member collection with write-through persistence to a key-value store.

Every mutating call returns an Outcome; domain failures (InvalidRecord,
NotFound, EmptyOrMalformedCSV) are reported on the outcome, never raised.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime

from csv_codec import parse_csv, serialize_csv
from models import (
    DEFAULT_MEMBERSHIP_TYPE,
    FILTER_ALL,
    MEMBERS_KEY,
    STATUS_ACTIVE,
    EmptyOrMalformedCSV,
    InvalidRecord,
    Member,
    MemberError,
    MemberInput,
    NotFound,
)
from utils import coerce_amount, generate_id, is_expiring_soon, status_of, try_parse_iso, validate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Outcome:
    members: list[Member]
    member: Member | None = None
    count: int = 0
    error: MemberError | None = None
    messages: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None


def member_from_dict(data: dict) -> Member:
    return Member(
        id=str(data["id"]),
        name=str(data.get("name") or ""),
        phone=str(data.get("phone") or ""),
        type=str(data.get("type") or DEFAULT_MEMBERSHIP_TYPE),
        amount=coerce_amount(data.get("amount")),
        start=str(data.get("start") or ""),
        end=str(data.get("end") or ""),
    )


def query_members(
    members: list[Member],
    text: str = "",
    type_filter: str = FILTER_ALL,
    status_filter: str = FILTER_ALL,
    now: datetime | None = None,
) -> list[Member]:
    """
    Filtered view sorted by end date (ascending, stable; unparseable ends last).
    Name matching ignores case; phone matching is a plain substring test.
    """
    now = now or datetime.now()
    q = (text or "").strip().lower()

    def keep(m: Member) -> bool:
        if q and q not in m.name.lower() and q not in str(m.phone):
            return False
        if type_filter != FILTER_ALL and m.type != type_filter:
            return False
        if status_filter != FILTER_ALL and status_of(m, now) != status_filter:
            return False
        return True

    def end_key(m: Member):
        end = try_parse_iso(m.end)
        return (end is None, end or datetime.min.date())

    return sorted((m for m in members if keep(m)), key=end_key)


def summarize(members: list[Member], now: datetime | None = None) -> dict[str, int]:
    now = now or datetime.now()
    active = sum(1 for m in members if status_of(m, now) == STATUS_ACTIVE)
    return {
        "total": len(members),
        "active": active,
        "expired": len(members) - active,
        "expiring_soon": sum(1 for m in members if is_expiring_soon(m, now)),
    }


class MemberCollection:
    """Ordered members (most recently added first) owned by one session."""

    def __init__(self, store, key: str = MEMBERS_KEY, members: list[Member] | None = None):
        self.store = store
        self.key = key
        self._members: list[Member] = list(members or [])

    @classmethod
    def load(cls, store, key: str = MEMBERS_KEY) -> "MemberCollection":
        raw = store.get(key)
        if raw is None:
            logger.info("No stored members under %s; starting empty", key)
            return cls(store, key)
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error("Stored members under %s are not valid JSON: %s", key, e)
            raise
        members = [member_from_dict(d) for d in data]
        logger.info("Loaded %d member(s) from %s", len(members), key)
        return cls(store, key, members)

    @property
    def members(self) -> list[Member]:
        return list(self._members)

    def __len__(self) -> int:
        return len(self._members)

    def get(self, member_id: str) -> Member | None:
        return next((m for m in self._members if m.id == member_id), None)

    def _persist(self) -> None:
        payload = json.dumps([m.to_dict() for m in self._members])
        self.store.set(self.key, payload)

    def _outcome(self, **kwargs) -> Outcome:
        return Outcome(members=self.members, **kwargs)

    # ---------- Mutations ----------

    def add(self, candidate: MemberInput) -> Outcome:
        try:
            clean = validate(candidate)
        except InvalidRecord as e:
            logger.info("Rejected new member: %s", e)
            return self._outcome(error=e, messages=e.errors)

        member = Member(id=generate_id(), **vars(clean))
        self._members.insert(0, member)
        self._persist()
        logger.info("Added member %s (%s)", member.id, member.name)
        return self._outcome(member=member, count=1, messages=["Member added."])

    def update(self, member_id: str, candidate: MemberInput) -> Outcome:
        pos = next((i for i, m in enumerate(self._members) if m.id == member_id), None)
        if pos is None:
            err = NotFound(member_id)
            logger.info("Update skipped: %s", err)
            return self._outcome(error=err, messages=[str(err)])
        try:
            clean = validate(candidate)
        except InvalidRecord as e:
            logger.info("Rejected update of %s: %s", member_id, e)
            return self._outcome(error=e, messages=e.errors)

        member = Member(id=member_id, **vars(clean))
        self._members[pos] = member
        self._persist()
        logger.info("Updated member %s", member_id)
        return self._outcome(member=member, count=1, messages=["Member updated."])

    def remove(self, member_id: str) -> Outcome:
        member = self.get(member_id)
        if member is None:
            logger.debug("Remove of unknown member %s ignored", member_id)
            return self._outcome()
        self._members = [m for m in self._members if m.id != member_id]
        self._persist()
        logger.info("Deleted member %s", member_id)
        return self._outcome(member=member, count=1, messages=["Member deleted."])

    def bulk_import(self, records: list[Member]) -> Outcome:
        taken = {m.id for m in self._members}
        fresh: list[Member] = []
        for r in records:
            # ids must stay unique across the collection
            while r.id in taken:
                r = replace(r, id=generate_id())
            taken.add(r.id)
            fresh.append(r)
        records = fresh
        if records:
            self._members = records + self._members
            self._persist()
            logger.info("Imported %d member(s)", len(records))
        return self._outcome(count=len(records), messages=[f"Imported {len(records)} members"])

    def import_csv(self, text: str) -> Outcome:
        try:
            records, count = parse_csv(text)
        except EmptyOrMalformedCSV as e:
            logger.info("CSV import rejected: %s", e)
            return self._outcome(error=e, messages=["No valid rows found in CSV"])
        if not count:
            return self._outcome(count=0, messages=["No valid rows found in CSV"])
        return self.bulk_import(records)

    # ---------- Views ----------

    def export_csv(self) -> str:
        return serialize_csv(self._members)

    def query(
        self,
        text: str = "",
        type_filter: str = FILTER_ALL,
        status_filter: str = FILTER_ALL,
        now: datetime | None = None,
    ) -> list[Member]:
        return query_members(self._members, text, type_filter, status_filter, now)
