from rrfsearch.search.engine import QueryEngine, SupabaseQueryEngine
from rrfsearch.search.orchestrator import SearchOrchestrator
from rrfsearch.search.ranking import fuse, hits_from_rows
from rrfsearch.search.types import (
    EngineRequest,
    FusedResult,
    RankedHit,
    SearchParams,
    SearchResponse,
    SearchSummary,
)

__all__ = [
    "EngineRequest",
    "FusedResult",
    "QueryEngine",
    "RankedHit",
    "SearchOrchestrator",
    "SearchParams",
    "SearchResponse",
    "SearchSummary",
    "SupabaseQueryEngine",
    "fuse",
    "hits_from_rows",
]
