from collections.abc import Sequence

from rrfsearch.constants import (
    DEFAULT_FULL_TEXT_WEIGHT,
    DEFAULT_MATCH_COUNT,
    DEFAULT_RRF_K,
    DEFAULT_SEMANTIC_WEIGHT,
)
from rrfsearch.search.types import DocumentId, FusedResult, RankedHit


def rrf_term(weight: float, k: int, rank: int | None) -> float:
    if rank is None:
        return 0.0
    return weight * (1 / (k + rank))


def _lookup(hits: Sequence[RankedHit]) -> dict[DocumentId, RankedHit]:
    # A document listed twice in one source keeps its best rank
    table: dict[DocumentId, RankedHit] = {}
    for hit in sorted(hits, key=lambda h: h.rank):
        table.setdefault(hit.document_id, hit)
    return table


def fuse(
    keyword_hits: Sequence[RankedHit],
    semantic_hits: Sequence[RankedHit],
    full_text_weight: float = DEFAULT_FULL_TEXT_WEIGHT,
    semantic_weight: float = DEFAULT_SEMANTIC_WEIGHT,
    k: int = DEFAULT_RRF_K,
    match_count: int = DEFAULT_MATCH_COUNT,
) -> list[FusedResult]:
    """Reciprocal Rank Fusion of a keyword ranking and a semantic ranking.

    Each document scores ``full_text_weight / (k + keyword_rank) +
    semantic_weight / (k + semantic_rank)``; a source that did not return the
    document contributes nothing. Results are sorted by descending score, ties
    keep first-seen order (keyword list, then semantic list), and at most
    `match_count` are returned.
    """
    if k < 0:
        raise ValueError(f"rrf_k must be non-negative, got {k}")
    if full_text_weight < 0 or semantic_weight < 0:
        raise ValueError("fusion weights must be non-negative")
    if match_count < 0:
        raise ValueError(f"match_count must be non-negative, got {match_count}")

    keyword_lookup = _lookup(keyword_hits)
    semantic_lookup = _lookup(semantic_hits)

    # dict preserves first-seen order, which the stable sort below relies on
    seen: dict[DocumentId, None] = {}
    for hit in (*keyword_hits, *semantic_hits):
        seen.setdefault(hit.document_id)

    results: list[FusedResult] = []
    for document_id in seen:
        keyword = keyword_lookup.get(document_id)
        semantic = semantic_lookup.get(document_id)
        payload = keyword or semantic

        keyword_rank = keyword.rank if keyword else None
        semantic_rank = semantic.rank if semantic else None

        results.append(
            FusedResult(
                document_id=document_id,
                content=payload.content,
                metadata=payload.metadata,
                created_at=payload.created_at,
                keyword_score=keyword.score if keyword else None,
                keyword_rank=keyword_rank,
                similarity_score=semantic.score if semantic else None,
                semantic_rank=semantic_rank,
                rrf_score=rrf_term(full_text_weight, k, keyword_rank) + rrf_term(semantic_weight, k, semantic_rank),
            )
        )

    results.sort(key=lambda r: r.rrf_score, reverse=True)
    return results[:match_count]


def hits_from_rows(rows: Sequence[dict]) -> list[RankedHit]:
    """Turn an ordered list of engine rows into 1-based ranked hits."""
    return [
        RankedHit(
            document_id=row["id"],
            rank=i + 1,
            score=row.get("score"),
            content=row.get("content"),
            metadata=row.get("metadata"),
            created_at=row.get("created_at"),
        )
        for i, row in enumerate(rows)
    ]
