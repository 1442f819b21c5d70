# Role: Audit record for one completed search turn. Written by the transport side after a search,
# never read by the classifier.

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from alumni_bot.models.session import utc_now


class SearchResult(BaseModel):
    user_id: str
    score: float = 0.0
    matched: bool = False


class QueryMetadata(BaseModel):
    search_type: str = "people"
    filters: Dict[str, Any] = Field(default_factory=dict)
    location: Optional[str] = None


class QueryLogEntry(BaseModel):
    query: str
    intent: str
    results: List[SearchResult] = Field(default_factory=list)
    response: str = ""
    success: bool = True
    processing_time_ms: float = 0.0
    whatsapp_number: Optional[str] = None
    metadata: QueryMetadata = Field(default_factory=QueryMetadata)
    timestamp: datetime = Field(default_factory=utc_now)
