"""
models.py
Lightweight domain helpers (membership types, dataclasses, errors).
"""

from __future__ import annotations
from dataclasses import dataclass, asdict
from datetime import date

# Storage key holding the whole member collection
MEMBERS_KEY = "gym_members_v1"

MEMBERSHIP_TYPES = ["Gym", "Muay Thai", "Muay Thai Kids", "Zumba"]
DEFAULT_MEMBERSHIP_TYPE = "Gym"

STATUS_ACTIVE = "Active"
STATUS_EXPIRED = "Expired"
STATUSES = [STATUS_ACTIVE, STATUS_EXPIRED]

# Filter value meaning "no filter" for type and status selects
FILTER_ALL = "All"


class MemberError(Exception):
    """Base class for member collection failures."""


class InvalidRecord(MemberError):
    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Invalid member record.")


class NotFound(MemberError):
    def __init__(self, member_id: str):
        self.member_id = member_id
        super().__init__(f"No member with id {member_id!r}.")


class EmptyOrMalformedCSV(MemberError):
    def __init__(self, message: str = "No valid rows found in CSV"):
        super().__init__(message)


@dataclass(frozen=True)
class MemberInput:
    """Candidate record as typed into the form (validated before any mutation)."""
    name: str = ""
    phone: str = ""
    type: str = DEFAULT_MEMBERSHIP_TYPE
    amount: str | float | None = None
    start: str | date | None = None
    end: str | date | None = None


@dataclass(frozen=True)
class Member:
    id: str
    name: str
    phone: str
    type: str
    amount: float
    start: str  # YYYY-MM-DD
    end: str  # YYYY-MM-DD

    def to_dict(self) -> dict:
        return asdict(self)

