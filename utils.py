"""
utils.py
Validation, ids, dates, membership status, table views.
"""

from __future__ import annotations

import math
import re
import secrets
import string
import time
from datetime import date, datetime, time as dt_time, timedelta

import pandas as pd

from models import (
    DEFAULT_MEMBERSHIP_TYPE,
    MEMBERSHIP_TYPES,
    STATUS_ACTIVE,
    STATUS_EXPIRED,
    InvalidRecord,
    Member,
    MemberInput,
)

# Fixed day length; no DST/timezone correction
DAY_SECONDS = 24 * 60 * 60

_BASE36 = string.digits + string.ascii_lowercase


_ISO_DATE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def parse_iso(d: str) -> date:
    # Strict YYYY-MM-DD only
    d = d.strip()
    if not _ISO_DATE.fullmatch(d):
        raise ValueError(f"not a YYYY-MM-DD date: {d!r}")
    return date.fromisoformat(d)


def try_parse_iso(d) -> date | None:
    """Parse a YYYY-MM-DD value, returning None when it is not a calendar date."""
    if isinstance(d, datetime):
        return d.date()
    if isinstance(d, date):
        return d
    if not isinstance(d, str) or not d.strip():
        return None
    try:
        return parse_iso(d)
    except ValueError:
        return None


def end_of_day(d: date) -> datetime:
    return datetime.combine(d, dt_time(23, 59, 59))


def _to_base36(n: int) -> str:
    if n == 0:
        return "0"
    out = []
    while n:
        n, r = divmod(n, 36)
        out.append(_BASE36[r])
    return "".join(reversed(out))


def generate_id() -> str:
    """
    Millisecond timestamp plus 5 random chars, both base-36 (e.g. 'lrx3k9q2ab4cd').
    """
    stamp = _to_base36(time.time_ns() // 1_000_000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(5))
    return stamp + suffix


def coerce_amount(value) -> float:
    """Number from text or number; blank, unparseable or non-finite values give 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        amount = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(amount):
        return 0.0
    return amount


def format_amount(amount: float) -> str:
    # 50.0 -> "50", 12.5 -> "12.5"
    if float(amount).is_integer():
        return str(int(amount))
    return repr(float(amount))


# ---------- Validation ----------

def validate_member_inputs(candidate: MemberInput) -> list[str]:
    errors: list[str] = []
    if not (candidate.name or "").strip():
        errors.append("Name is required.")
    if not (candidate.phone or "").strip():
        errors.append("Phone is required.")

    member_type = (candidate.type or "").strip() or DEFAULT_MEMBERSHIP_TYPE
    if member_type not in MEMBERSHIP_TYPES:
        errors.append(f"Membership type must be one of: {', '.join(MEMBERSHIP_TYPES)}.")

    if coerce_amount(candidate.amount) < 0:
        errors.append("Amount paid cannot be negative.")

    sd = try_parse_iso(candidate.start)
    ed = try_parse_iso(candidate.end)
    if sd is None:
        errors.append("Start date must be a valid date (YYYY-MM-DD).")
    if ed is None:
        errors.append("End date must be a valid date (YYYY-MM-DD).")
    if sd and ed and ed < sd:
        errors.append("End date cannot be before start date.")
    return errors


def validate(candidate: MemberInput) -> MemberInput:
    """
    Return the normalized candidate (trimmed text, ISO dates, float amount).
    Raises InvalidRecord listing every problem found.
    """
    errors = validate_member_inputs(candidate)
    if errors:
        raise InvalidRecord(errors)

    return MemberInput(
        name=candidate.name.strip(),
        phone=candidate.phone.strip(),
        type=(candidate.type or "").strip() or DEFAULT_MEMBERSHIP_TYPE,
        amount=coerce_amount(candidate.amount),
        start=try_parse_iso(candidate.start).isoformat(),
        end=try_parse_iso(candidate.end).isoformat(),
    )


# ---------- Status ----------

def status_of(member: Member, now: datetime | None = None) -> str:
    """
    Active while the end date has not fully passed: the membership counts
    until 23:59:59 on its end date.
    """
    end = try_parse_iso(member.end)
    if end is None:
        return STATUS_EXPIRED
    now = now or datetime.now()
    return STATUS_ACTIVE if end_of_day(end) >= now else STATUS_EXPIRED


def days_remaining(member: Member, now: datetime | None = None) -> int | None:
    """
    Whole days until end of the end date, partial days rounded up.
    Zero or negative once expired; None if the end date is unparseable.
    """
    end = try_parse_iso(member.end)
    if end is None:
        return None
    now = now or datetime.now()
    delta = end_of_day(end) - now
    return math.ceil(delta.total_seconds() / DAY_SECONDS)


def status_label(member: Member, now: datetime | None = None) -> str:
    now = now or datetime.now()
    days = days_remaining(member, now)
    if days is None:
        return "Invalid end date"
    if status_of(member, now) == STATUS_ACTIVE:
        return f"{days} day(s) left"
    return f"Expired {abs(days)} day(s) ago"


def is_expiring_soon(member: Member, now: datetime | None = None, within_days: int = 7) -> bool:
    now = now or datetime.now()
    end = try_parse_iso(member.end)
    if end is None or status_of(member, now) != STATUS_ACTIVE:
        return False
    return end <= (now + timedelta(days=within_days)).date()


# ---------- Views ----------

MEMBER_TABLE_COLUMNS = ["id", "name", "phone", "type", "amount", "start", "end", "status", "days"]


def members_to_dataframe(members: list[Member], now: datetime | None = None) -> pd.DataFrame:
    now = now or datetime.now()
    rows = [
        {**m.to_dict(), "status": status_of(m, now), "days": status_label(m, now)}
        for m in members
    ]
    if not rows:
        return pd.DataFrame(columns=MEMBER_TABLE_COLUMNS)
    return pd.DataFrame(rows, columns=MEMBER_TABLE_COLUMNS)


def amount_by_type(members: list[Member]) -> pd.DataFrame:
    """Total amount paid and member count per membership type."""
    df = pd.DataFrame([m.to_dict() for m in members])
    if df.empty:
        return pd.DataFrame(columns=["type", "members", "amount"])
    out = (
        df.groupby("type", sort=True)
        .agg(members=("id", "count"), amount=("amount", "sum"))
        .reset_index()
    )
    return out
