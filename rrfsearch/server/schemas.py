from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from rrfsearch.constants import (
    DEFAULT_DISTANCE_METHOD,
    DEFAULT_FULL_TEXT_WEIGHT,
    DEFAULT_MATCH_COUNT,
    DEFAULT_RRF_K,
    DEFAULT_SEMANTIC_WEIGHT,
    MAX_MATCH_COUNT,
)
from rrfsearch.search import SearchParams


class SearchRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    # Presence is checked by the orchestrator so a blank query reports MissingQuery
    query: str | None = None

    metadata_filter: Any = Field(default_factory=dict)
    filter: Any = None

    match_count: int = Field(DEFAULT_MATCH_COUNT, ge=1, le=MAX_MATCH_COUNT)
    full_text_weight: float = Field(DEFAULT_FULL_TEXT_WEIGHT, ge=0)
    semantic_weight: float = Field(DEFAULT_SEMANTIC_WEIGHT, ge=0)
    rrf_k: int = Field(DEFAULT_RRF_K, ge=0)
    distance_method: str = DEFAULT_DISTANCE_METHOD

    @property
    def effective_filter(self) -> Any:
        # `filter` wins over `metadata_filter` whenever it is set
        if self.filter:
            return self.filter
        return self.metadata_filter

    def to_params(self) -> SearchParams:
        return SearchParams(
            match_count=self.match_count,
            full_text_weight=self.full_text_weight,
            semantic_weight=self.semantic_weight,
            rrf_k=self.rrf_k,
            distance_method=self.distance_method,
        )


class SearchScores(BaseModel):
    keyword_score: float | None = None
    keyword_rank: int | None = None
    similarity_score: float | None = None
    semantic_rank: int | None = None
    rrf_score: float


class SearchResultItem(BaseModel):
    id: Any
    content: str | None = None
    metadata: Any = None
    created_at: str | None = None
    search_scores: SearchScores


class SearchSummaryModel(BaseModel):
    total_results: int
    has_keyword_matches: bool
    has_semantic_matches: bool
    distance_method_used: str
    filter_applied: bool


class SearchResponseModel(BaseModel):
    results: list[SearchResultItem]
    search_params: dict[str, Any]
    summary: SearchSummaryModel


class ErrorResponse(BaseModel):
    error: str
    code: str
