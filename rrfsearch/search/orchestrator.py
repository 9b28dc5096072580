from typing import Any, Protocol

from rrfsearch.config import Config
from rrfsearch.constants import DISTANCE_METHODS
from rrfsearch.errors import InvalidDistanceMethod, InvalidFilter, MissingQuery, QueryEngineFailure
from rrfsearch.filters import canonicalize, check_values, parse_filter, validate
from rrfsearch.logging import get_logger
from rrfsearch.search.engine import QueryEngine
from rrfsearch.search.ranking import fuse
from rrfsearch.search.types import EngineRequest, FusedResult, SearchParams, SearchResponse

_logger = get_logger(__name__)


class QueryEmbedder(Protocol):
    async def embed_one(self, text: str) -> list[float]: ...


class SearchOrchestrator:
    """Validates a search request, then drives the embedder and query engine.

    Every validation runs before the first external call, so a rejected request
    never costs an embedding.
    """

    def __init__(self, config: Config, embedder: QueryEmbedder, engine: QueryEngine):
        self.config = config
        self.embedder = embedder
        self.engine = engine

    def check_request(self, query: Any, metadata_filter: Any, params: SearchParams) -> Any:
        """Run all request validation and return the canonical filter."""
        if not isinstance(query, str) or not query.strip():
            raise MissingQuery()

        if params.distance_method not in DISTANCE_METHODS:
            raise InvalidDistanceMethod(params.distance_method)

        if not validate(metadata_filter):
            raise InvalidFilter()

        if self.config.strict_filters:
            check_values(parse_filter(metadata_filter))

        return canonicalize(metadata_filter)

    async def search(self, query: Any, metadata_filter: Any, params: SearchParams) -> SearchResponse:
        canonical = self.check_request(query, metadata_filter, params)
        log = _logger.bind(distance_method=params.distance_method, match_count=params.match_count)

        try:
            embedding = await self.embedder.embed_one(query)
        except Exception as e:
            log.error("embedding failed", error=str(e))
            raise QueryEngineFailure(
                "Embedding failed",
                original_filter=metadata_filter,
                transformed_filter=canonical,
                stage="embedding",
                cause=e,
            ) from e

        request = EngineRequest(
            query_text=query,
            query_embedding=embedding,
            metadata_filter=canonical,
            params=params,
        )

        try:
            results = await self._run_engine(request)
        except Exception as e:
            log.error("query engine failed", error=str(e), transformed_filter=canonical)
            raise QueryEngineFailure(
                "Search failed",
                original_filter=metadata_filter,
                transformed_filter=canonical,
                cause=e,
            ) from e

        log.info("search completed", results=len(results), fusion=self.config.fusion_mode)
        return SearchResponse(
            results=results,
            query=query,
            original_filter=metadata_filter,
            transformed_filter=canonical,
            params=params,
        )

    async def _run_engine(self, request: EngineRequest) -> list[FusedResult]:
        params = request.params

        if self.config.fusion_mode == "local":
            limit = params.match_count * self.config.overfetch_factor
            keyword_hits, semantic_hits = await self.engine.ranked_search(request, limit)
            return fuse(
                keyword_hits,
                semantic_hits,
                full_text_weight=params.full_text_weight,
                semantic_weight=params.semantic_weight,
                k=params.rrf_k,
                match_count=params.match_count,
            )

        results = await self.engine.hybrid_search(request)
        # The procedure is expected to sort and bound its output; enforce it anyway
        results.sort(key=lambda r: r.rrf_score, reverse=True)
        return results[: params.match_count]
