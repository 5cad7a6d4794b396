"""Completion service feeding schema and table hints to the editor."""

from __future__ import annotations

import re

import sqlglot
from sqlglot.errors import TokenError
from sqlglot.tokens import TokenType

from sqlplex.config import AppConfig
from sqlplex.models import ConnectionMap, SchemaMetadata

from .models import AnalysisResult, Clause, Suggestion
from .tables import TraceSink, build_table_suggestions, log_unqualified_table

MAX_SUGGESTIONS = 50

TABLE_CLAUSES = frozenset({Clause.FROM, Clause.INSERT, Clause.UPDATE, Clause.DELETE})


class SqlIntelService:
    """Facade that keeps the latest catalog snapshot and answers completion requests."""

    def __init__(
        self,
        metadata: SchemaMetadata | None = None,
        connections: ConnectionMap | None = None,
        *,
        dialect: str = "postgres",
        trace_suggestions: bool = False,
        trace: TraceSink | None = None,
    ) -> None:
        self._metadata = metadata or SchemaMetadata()
        self._connections: ConnectionMap = dict(connections or {})
        self._dialect = dialect
        self._trace = trace or (log_unqualified_table if trace_suggestions else None)
        self._suggestions: tuple[Suggestion, ...] = ()
        self._rebuild()

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        metadata: SchemaMetadata | None = None,
        *,
        dialect: str = "postgres",
    ) -> SqlIntelService:
        """Build a service seeded with the configured connections and trace setting."""

        return cls(
            metadata,
            config.connection_map(),
            dialect=dialect,
            trace_suggestions=config.trace_suggestions,
        )

    @property
    def metadata(self) -> SchemaMetadata:
        return self._metadata

    @property
    def suggestions(self) -> tuple[Suggestion, ...]:
        """Every schema and table suggestion for the current snapshot."""

        return self._suggestions

    def update_metadata(
        self,
        metadata: SchemaMetadata | None = None,
        connections: ConnectionMap | None = None,
    ) -> None:
        """Replace the catalog and/or connection snapshot and rebuild suggestions."""

        if metadata is not None:
            self._metadata = metadata
        if connections is not None:
            self._connections = dict(connections)
        self._rebuild()

    async def analyze(self, buffer: str, cursor: int) -> AnalysisResult:
        """Derive the clause and identifier prefix at the cursor."""

        head = buffer[:cursor]
        return AnalysisResult(
            buffer=buffer,
            cursor=cursor,
            clause=_detect_clause(head, self._dialect),
            prefix=_current_word(head),
        )

    async def suggest(self, buffer: str, cursor: int) -> list[Suggestion]:
        """Return ordered suggestions for the current cursor location."""

        analysis = await self.analyze(buffer, cursor)
        return self.suggestions_from_analysis(analysis)

    def suggestions_from_analysis(self, analysis: AnalysisResult) -> list[Suggestion]:
        """Filter the cached suggestions using a precomputed analysis result."""

        if analysis.clause not in TABLE_CLAUSES:
            return []
        prefix = _normalize(analysis.prefix)
        matches = [entry for entry in self._suggestions if _normalize(entry.label).startswith(prefix)]
        return matches[:MAX_SUGGESTIONS]

    def _rebuild(self) -> None:
        self._suggestions = tuple(
            build_table_suggestions(self._metadata, self._connections, trace=self._trace)
        )


_CLAUSE_TOKENS: dict[TokenType, Clause] = {
    TokenType.SELECT: Clause.SELECT,
    TokenType.FROM: Clause.FROM,
    TokenType.JOIN: Clause.FROM,
    TokenType.WHERE: Clause.WHERE,
    TokenType.GROUP_BY: Clause.GROUP,
    TokenType.HAVING: Clause.HAVING,
    TokenType.ORDER_BY: Clause.ORDER,
    TokenType.LIMIT: Clause.LIMIT,
    TokenType.INSERT: Clause.INSERT,
    TokenType.INTO: Clause.INSERT,
    TokenType.UPDATE: Clause.UPDATE,
    TokenType.SET: Clause.SET,
    TokenType.DELETE: Clause.DELETE,
}

_WORD_RE = re.compile(r'[\w."$]*$')


def _detect_clause(head: str, dialect: str) -> Clause:
    if not head.strip():
        return Clause.ANY
    try:
        tokens = sqlglot.tokenize(head, read=dialect)
    except TokenError:
        return Clause.ANY
    clause = Clause.ANY
    for token in tokens:
        clause = _CLAUSE_TOKENS.get(token.token_type, clause)
    return clause


def _current_word(head: str) -> str:
    match = _WORD_RE.search(head)
    return match.group(0) if match else ""


def _normalize(value: str) -> str:
    return value.replace('"', "").lower()


__all__ = ["MAX_SUGGESTIONS", "SqlIntelService", "TABLE_CLAUSES"]
