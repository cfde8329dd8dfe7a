"""
Attendance status normalization.

Maps free-text status markers ("P", "present", "✓", "1", ...) onto a
canonical two-valued status. Anything outside the vocabulary is kept as
Unrecognized with its original (trimmed) text so it can be reported.

Present is tested before Absent: a value matching both rules is Present.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

PRESENT_TOKENS: frozenset[str] = frozenset({
    "p",
    "present",
    "yes",
    "1",
    "✓",
    "attended",
    "here",
    "active",
})

ABSENT_TOKENS: frozenset[str] = frozenset({
    "a",
    "absent",
    "no",
    "0",
    "✗",
    "missing",
    "leave",
    "off",
    "sick",
    "holiday",
})

PRESENT_SUBSTRING = "present"
ABSENT_SUBSTRING = "absent"


class StatusKind(Enum):
    PRESENT = "Present"
    ABSENT = "Absent"
    UNRECOGNIZED = "Unrecognized"


@dataclass(frozen=True)
class CanonicalStatus:
    kind: StatusKind
    raw: Optional[str] = None

    @classmethod
    def unrecognized(cls, raw: str) -> "CanonicalStatus":
        return cls(StatusKind.UNRECOGNIZED, raw)

    @property
    def is_present(self) -> bool:
        return self.kind is StatusKind.PRESENT

    @property
    def is_absent(self) -> bool:
        return self.kind is StatusKind.ABSENT

    @property
    def is_unrecognized(self) -> bool:
        return self.kind is StatusKind.UNRECOGNIZED

    @property
    def label(self) -> str:
        """'Present', 'Absent', or the original text when unrecognized."""
        if self.kind is StatusKind.UNRECOGNIZED:
            return self.raw or ""
        return self.kind.value

    def __str__(self) -> str:
        return self.label


PRESENT = CanonicalStatus(StatusKind.PRESENT)
ABSENT = CanonicalStatus(StatusKind.ABSENT)


def normalize_status(raw: Optional[str]) -> CanonicalStatus:
    """
    Normalize a raw status cell.

    >>> normalize_status("PRESENT ").label
    'Present'
    >>> normalize_status("a").label
    'Absent'
    >>> normalize_status(" maybe ")
    CanonicalStatus(kind=<StatusKind.UNRECOGNIZED: 'Unrecognized'>, raw='maybe')
    """
    trimmed = "" if raw is None else str(raw).strip()
    value = trimmed.lower()

    if value in PRESENT_TOKENS or PRESENT_SUBSTRING in value:
        return PRESENT
    if value in ABSENT_TOKENS or ABSENT_SUBSTRING in value:
        return ABSENT
    return CanonicalStatus.unrecognized(trimmed)
