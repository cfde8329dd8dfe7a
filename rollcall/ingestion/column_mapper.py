"""
Rollcall Column Mapping Engine

Alias library + fuzzy header resolution for attendance sheets.

RULES:
- Headers are normalized before comparison: lowercase, every
  non-alphanumeric character becomes a space, whitespace collapsed, trimmed.
- A header matches an alias when either string contains the other.
- Alias entries are walked in declaration order. The first entry that matches
  and whose field is still unmapped binds the column. A column binds at most
  one field and a bound field is never rebound (first column wins).
- Identifier, Name and Status must resolve or the dataset is rejected.
- No column is silently dropped: unbound headers are reported.

Public API:
  resolve_headers(raw_headers, alias_table=..., overrides=...) -> HeaderMapping
  get_unmatched_headers(mapping) -> list[str]
  normalize_header(raw) -> str
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Sequence

from rollcall.ingestion.errors import SchemaError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Canonical schema
# ---------------------------------------------------------------------------


class CanonicalField(Enum):
    IDENTIFIER = "Identifier"
    NAME = "Name"
    STATUS = "Status"
    EMAIL = "Email"
    UNIT = "Unit"


REQUIRED_FIELDS: tuple[CanonicalField, ...] = (
    CanonicalField.IDENTIFIER,
    CanonicalField.NAME,
    CanonicalField.STATUS,
)

# ---------------------------------------------------------------------------
# Alias vocabulary
# ---------------------------------------------------------------------------
# Sections are declared in precedence order. When a header could satisfy two
# fields, the field whose section comes first wins (provided it is still
# unmapped). Keep Identifier and Name ahead of Status, Email and Unit.
#
# No bare "id" entry: it is a substring of headers like "Candidate". A plain
# "ID" header still resolves to Identifier because "student id" contains it.
# ---------------------------------------------------------------------------

_IDENTIFIER_ALIASES: tuple[str, ...] = (
    "P.No",
    "P No",
    "PNo",
    "Ticket No",
    "Ticket Number",
    "Roll No",
    "Roll Number",
    "Student ID",
    "Employee ID",
    "Emp ID",
    "Staff ID",
    "Reg No",
    "Registration No",
    "Registration Number",
    "Enrollment No",
)

_NAME_ALIASES: tuple[str, ...] = (
    "Name",
    "Full Name",
    "Student Name",
    "Employee Name",
    "Candidate",
    "Participant",
)

_STATUS_ALIASES: tuple[str, ...] = (
    "Status",
    "Attendance",
    "Attendance Status",
    "Present",
    "Present/Absent",
)

_EMAIL_ALIASES: tuple[str, ...] = (
    "Email",
    "E-mail",
    "Email Address",
    "Contact Email",
    "Mail",
)

_UNIT_ALIASES: tuple[str, ...] = (
    "Shop Name",
    "Shop",
    "Department",
    "Dept",
    "Trade",
    "Unit",
    "Workshop",
    "Division",
    "Branch",
    "Section",
    "Location",
    "Zone",
    "Site",
    "Center",
)

_ALL_SECTIONS: list[tuple[CanonicalField, tuple[str, ...]]] = [
    (CanonicalField.IDENTIFIER, _IDENTIFIER_ALIASES),
    (CanonicalField.NAME, _NAME_ALIASES),
    (CanonicalField.STATUS, _STATUS_ALIASES),
    (CanonicalField.EMAIL, _EMAIL_ALIASES),
    (CanonicalField.UNIT, _UNIT_ALIASES),
]


_NON_ALNUM = re.compile(r"[^a-z0-9]")
_WHITESPACE = re.compile(r"\s+")


def normalize_header(raw: Optional[str]) -> str:
    """Lowercase, punctuation to spaces, collapse whitespace, trim."""
    if raw is None:
        return ""
    lowered = str(raw).lower()
    return _WHITESPACE.sub(" ", _NON_ALNUM.sub(" ", lowered)).strip()


@dataclass(frozen=True)
class AliasEntry:
    alias: str
    field: CanonicalField

    def matches(self, normalized_header: str) -> bool:
        if not normalized_header:
            return False
        return self.alias in normalized_header or normalized_header in self.alias


@dataclass(frozen=True)
class AliasTable:
    """Ordered, immutable (alias, field) vocabulary."""

    entries: tuple[AliasEntry, ...]

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[str, CanonicalField]]) -> "AliasTable":
        """
        Normalize and de-duplicate alias pairs, preserving first-seen order.

        Raises ValueError if one normalized alias maps to two different
        fields; the table would otherwise depend on which entry came first.
        """
        seen: dict[str, CanonicalField] = {}
        entries: list[AliasEntry] = []
        for raw_alias, target in pairs:
            alias = normalize_header(raw_alias)
            if not alias:
                raise ValueError(f"Alias '{raw_alias}' normalizes to an empty string.")
            if alias in seen:
                if seen[alias] is not target:
                    raise ValueError(
                        f"Alias table conflict: '{raw_alias}' (normalized: '{alias}') "
                        f"maps to {target.value} but was already mapped to "
                        f"{seen[alias].value}. Remove or reconcile the conflicting entry."
                    )
                continue
            seen[alias] = target
            entries.append(AliasEntry(alias, target))
        return cls(tuple(entries))

    def extended(self, pairs: Iterable[tuple[str, CanonicalField]]) -> "AliasTable":
        """Return a new table with extra aliases appended after these entries."""
        existing = [(entry.alias, entry.field) for entry in self.entries]
        return AliasTable.from_pairs(existing + list(pairs))

    def aliases_for(self, target: CanonicalField) -> list[str]:
        return [entry.alias for entry in self.entries if entry.field is target]

    def __iter__(self):
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


def _build_alias_table() -> AliasTable:
    return AliasTable.from_pairs(
        (alias, target) for target, aliases in _ALL_SECTIONS for alias in aliases
    )


# Module-level alias table. Built once, never mutated.
DEFAULT_ALIAS_TABLE: AliasTable = _build_alias_table()


# ---------------------------------------------------------------------------
# Header mapping
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class HeaderMapping:
    """CanonicalField -> column position for one dataset."""

    headers: tuple[str, ...]
    positions: Mapping[CanonicalField, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "positions", MappingProxyType(dict(self.positions)))

    def __contains__(self, target: object) -> bool:
        return target in self.positions

    def index(self, target: CanonicalField) -> Optional[int]:
        return self.positions.get(target)

    def header(self, target: CanonicalField) -> Optional[str]:
        """Original header text of the column bound to ``target``, if any."""
        position = self.positions.get(target)
        if position is None:
            return None
        return self.headers[position]

    def unmatched_headers(self) -> list[str]:
        bound = set(self.positions.values())
        return [h for i, h in enumerate(self.headers) if i not in bound]

    def as_dict(self) -> dict[str, str]:
        """{raw_header: field name} in column order, for logs and reports."""
        by_position = sorted(self.positions.items(), key=lambda item: item[1])
        return {self.headers[pos]: target.value for target, pos in by_position}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def resolve_headers(
    raw_headers: Sequence[Optional[str]],
    *,
    alias_table: AliasTable = DEFAULT_ALIAS_TABLE,
    overrides: Optional[Mapping[str, CanonicalField]] = None,
) -> HeaderMapping:
    """
    Resolve raw sheet headers to canonical fields.

    Parameters
    ----------
    raw_headers : sequence of str or None
        Header cells in column order. ``None`` is treated as a blank header.
    alias_table : AliasTable
        Vocabulary to match against. Defaults to the built-in table.
    overrides : mapping, optional
        Operator-confirmed bindings, ``{raw header text: CanonicalField}``.
        Applied before fuzzy matching; the first column carrying an
        overridden header wins.

    Returns
    -------
    HeaderMapping
        Positions for every resolved field.

    Raises
    ------
    SchemaError
        If Identifier, Name or Status has no resolved column.
    """
    headers = tuple("" if h is None else str(h) for h in raw_headers)
    positions: dict[CanonicalField, int] = {}
    bound_columns: set[int] = set()

    if overrides:
        for index, header in enumerate(headers):
            target = overrides.get(header)
            if target is None or target in positions:
                continue
            positions[target] = index
            bound_columns.add(index)
            logger.info("[column_mapper] override '%s' -> %s", header, target.value)

    for index, header in enumerate(headers):
        if index in bound_columns:
            continue
        normalized = normalize_header(header)
        if not normalized:
            continue
        shadowed: Optional[CanonicalField] = None
        for entry in alias_table:
            if not entry.matches(normalized):
                continue
            if entry.field in positions:
                shadowed = shadowed or entry.field
                continue
            positions[entry.field] = index
            bound_columns.add(index)
            logger.info(
                "[column_mapper] '%s' -> %s (alias '%s')",
                header, entry.field.value, entry.alias,
            )
            break
        else:
            if shadowed is not None:
                logger.warning(
                    "[column_mapper] '%s' also matches %s; column %d ignored "
                    "(first occurrence wins)",
                    header, shadowed.value, index + 1,
                )

    missing = [f for f in REQUIRED_FIELDS if f not in positions]
    if missing:
        raise SchemaError(missing_fields=missing, headers=list(headers))

    return HeaderMapping(headers=headers, positions=positions)


def get_unmatched_headers(mapping: HeaderMapping) -> list[str]:
    """
    Return raw headers that were not bound to any canonical field.

    These are surfaced in the report and never silently dropped. Original
    header text (casing, whitespace) is preserved.
    """
    return mapping.unmatched_headers()
