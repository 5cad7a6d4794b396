"""Core dataclasses shared by the SQL intelligence services."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Clause(str, Enum):
    """Represents the current SQL clause under the cursor."""

    ANY = "any"
    SELECT = "select"
    FROM = "from"
    WHERE = "where"
    GROUP = "group"
    HAVING = "having"
    ORDER = "order"
    LIMIT = "limit"
    INSERT = "insert"
    UPDATE = "update"
    SET = "set"
    DELETE = "delete"


class SuggestionType(str, Enum):
    """Types of suggestions surfaced to the editor."""

    SCHEMA = "schema"
    TABLE = "table"


@dataclass(slots=True)
class Suggestion:
    """Single autocomplete entry."""

    label: str
    type: SuggestionType
    detail: str | None = None


@dataclass(slots=True)
class AnalysisResult:
    """Cursor context derived from the editor buffer."""

    buffer: str
    cursor: int
    clause: Clause
    prefix: str


__all__ = [
    "AnalysisResult",
    "Clause",
    "Suggestion",
    "SuggestionType",
]
