from dataclasses import dataclass, field
from typing import Any

from rrfsearch.constants import (
    DEFAULT_DISTANCE_METHOD,
    DEFAULT_FULL_TEXT_WEIGHT,
    DEFAULT_MATCH_COUNT,
    DEFAULT_RRF_K,
    DEFAULT_SEMANTIC_WEIGHT,
)
from rrfsearch.filters import is_filter_applied

type DocumentId = int | str


@dataclass(frozen=True)
class RankedHit:
    """One document's position in a single source ranking (1 = best)."""

    document_id: DocumentId
    rank: int
    score: float | None = None

    # Document payload, carried so fused results can be returned directly
    content: str | None = None
    metadata: dict | None = None
    created_at: str | None = None

    def __post_init__(self):
        if self.rank < 1:
            raise ValueError(f"rank must be a positive integer, got {self.rank}")


@dataclass
class FusedResult:
    """Merged result with RRF score and per-source provenance."""

    document_id: DocumentId
    content: str | None = None
    metadata: dict | None = None
    created_at: str | None = None

    keyword_score: float | None = None
    keyword_rank: int | None = None
    similarity_score: float | None = None
    semantic_rank: int | None = None

    rrf_score: float = 0.0

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "FusedResult":
        return cls(
            document_id=row.get("id"),
            content=row.get("content"),
            metadata=row.get("metadata"),
            created_at=row.get("created_at"),
            keyword_score=row.get("keyword_score"),
            keyword_rank=row.get("keyword_rank"),
            similarity_score=row.get("similarity_score"),
            semantic_rank=row.get("semantic_rank"),
            rrf_score=row.get("rrf_score") or 0.0,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.document_id,
            "content": self.content,
            "metadata": self.metadata,
            "created_at": self.created_at,
            "search_scores": {
                "keyword_score": self.keyword_score,
                "keyword_rank": self.keyword_rank,
                "similarity_score": self.similarity_score,
                "semantic_rank": self.semantic_rank,
                "rrf_score": self.rrf_score,
            },
        }


@dataclass(frozen=True)
class SearchParams:
    match_count: int = DEFAULT_MATCH_COUNT
    full_text_weight: float = DEFAULT_FULL_TEXT_WEIGHT
    semantic_weight: float = DEFAULT_SEMANTIC_WEIGHT
    rrf_k: int = DEFAULT_RRF_K
    distance_method: str = DEFAULT_DISTANCE_METHOD


@dataclass(frozen=True)
class EngineRequest:
    """Everything the query engine needs for one hybrid search."""

    query_text: str
    query_embedding: list[float]
    metadata_filter: Any
    params: SearchParams

    def to_rpc_body(self) -> dict[str, Any]:
        return {
            "query_text": self.query_text,
            "query_embedding": self.query_embedding,
            "match_count": self.params.match_count,
            "metadata_filter": self.metadata_filter,
            "full_text_weight": self.params.full_text_weight,
            "semantic_weight": self.params.semantic_weight,
            "rrf_k": self.params.rrf_k,
            "distance_method": self.params.distance_method,
        }


@dataclass
class SearchSummary:
    total_results: int
    has_keyword_matches: bool
    has_semantic_matches: bool
    distance_method_used: str
    filter_applied: bool


@dataclass
class SearchResponse:
    results: list[FusedResult]
    query: str
    original_filter: Any
    transformed_filter: Any
    params: SearchParams
    summary: SearchSummary = field(init=False)

    def __post_init__(self):
        self.summary = SearchSummary(
            total_results=len(self.results),
            has_keyword_matches=any(r.keyword_score is not None for r in self.results),
            has_semantic_matches=any(r.similarity_score is not None for r in self.results),
            distance_method_used=self.params.distance_method,
            filter_applied=is_filter_applied(self.transformed_filter),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "results": [r.to_dict() for r in self.results],
            "search_params": {
                "query": self.query,
                "original_filter": self.original_filter,
                "transformed_filter": self.transformed_filter,
                "match_count": self.params.match_count,
                "full_text_weight": self.params.full_text_weight,
                "semantic_weight": self.params.semantic_weight,
                "rrf_k": self.params.rrf_k,
                "distance_method": self.params.distance_method,
            },
            "summary": {
                "total_results": self.summary.total_results,
                "has_keyword_matches": self.summary.has_keyword_matches,
                "has_semantic_matches": self.summary.has_semantic_matches,
                "distance_method_used": self.summary.distance_method_used,
                "filter_applied": self.summary.filter_applied,
            },
        }
