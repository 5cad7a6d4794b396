"""SQL intelligence services and helpers."""

from __future__ import annotations

from .models import AnalysisResult, Clause, Suggestion, SuggestionType
from .service import MAX_SUGGESTIONS, SqlIntelService
from .tables import TraceSink, build_table_suggestions, log_unqualified_table

__all__ = [
    "AnalysisResult",
    "Clause",
    "MAX_SUGGESTIONS",
    "SqlIntelService",
    "Suggestion",
    "SuggestionType",
    "TraceSink",
    "build_table_suggestions",
    "log_unqualified_table",
]
