# Role: Append-only audit trail of search turns (query, outcome, timing). Write-only from the turn's point of
# view; read back only by the API/console for inspection.

from __future__ import annotations

from typing import List, Optional, Sequence

import alumni_bot.config as config
from alumni_bot.models.intent import Intent
from alumni_bot.models.query_log import QueryLogEntry, QueryMetadata, SearchResult


class QueryLog:
    def __init__(self) -> None:
        self._entries: List[QueryLogEntry] = []

    def record(
        self,
        *,
        query: str,
        intent: Intent,
        results: Optional[Sequence[SearchResult]] = None,
        response: str = "",
        success: bool = True,
        processing_time_ms: float = 0.0,
        metadata: Optional[QueryMetadata] = None,
        whatsapp_number: Optional[str] = None,
    ) -> QueryLogEntry:
        entry = QueryLogEntry(
            query=query,
            intent=intent.type.value,
            results=list(results or []),
            response=response,
            success=success,
            processing_time_ms=processing_time_ms,
            metadata=metadata or QueryMetadata(),
            whatsapp_number=whatsapp_number,
        )
        self._entries.append(entry)

        if config.DEBUG:
            print("\n--- QUERY LOG ---")
            print("QUERY:", query)
            print("RESULTS:", len(entry.results), "SUCCESS:", success)
            print("TIME (ms):", round(processing_time_ms, 2))
            print("-----------------\n")

        return entry

    def entries(self) -> List[QueryLogEntry]:
        return list(self._entries)

    def recent(self, limit: int = 20) -> List[QueryLogEntry]:
        if limit <= 0:
            return []
        return self._entries[-limit:]

    def __len__(self) -> int:
        return len(self._entries)
