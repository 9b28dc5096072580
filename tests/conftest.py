import hashlib
from collections.abc import AsyncGenerator

import numpy as np
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from rrfsearch.config import Config
from rrfsearch.search import EngineRequest, FusedResult, RankedHit, SearchOrchestrator
from rrfsearch.server.runtime import Runtime, reset_runtime

TEST_EMBEDDING_DIM = 1536


def mock_embedding(text: str) -> list[float]:
    h = hashlib.md5(text.encode()).hexdigest()
    # MD5 is 32 chars, repeat to get TEST_EMBEDDING_DIM
    arr = np.array([int(c, 16) / 15.0 for c in h] * (TEST_EMBEDDING_DIM // 32))
    norm = np.linalg.norm(arr)
    return (arr / norm if norm > 0 else arr).tolist()


def make_row(doc_id: int, rrf_score: float, keyword_rank: int | None = 1, semantic_rank: int | None = 1) -> dict:
    return {
        "id": doc_id,
        "content": f"document {doc_id}",
        "metadata": {"status": "published"},
        "created_at": "2024-01-01T00:00:00+00:00",
        "keyword_score": 0.5 if keyword_rank else None,
        "keyword_rank": keyword_rank,
        "similarity_score": 0.8 if semantic_rank else None,
        "semantic_rank": semantic_rank,
        "rrf_score": rrf_score,
    }


class FakeEmbedder:
    def __init__(self, error: Exception | None = None):
        self.calls: list[str] = []
        self.error = error

    async def embed_one(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.error:
            raise self.error
        return mock_embedding(text)


class FakeEngine:
    """In-memory query engine recording every request it receives."""

    def __init__(
        self,
        rows: list[dict] | None = None,
        keyword_hits: list[RankedHit] | None = None,
        semantic_hits: list[RankedHit] | None = None,
        error: Exception | None = None,
    ):
        self.rows = rows or []
        self.keyword_hits = keyword_hits or []
        self.semantic_hits = semantic_hits or []
        self.error = error
        self.requests: list[EngineRequest] = []
        self.limits: list[int] = []

    async def hybrid_search(self, request: EngineRequest) -> list[FusedResult]:
        self.requests.append(request)
        if self.error:
            raise self.error
        return [FusedResult.from_row(row) for row in self.rows]

    async def ranked_search(self, request: EngineRequest, limit: int) -> tuple[list[RankedHit], list[RankedHit]]:
        self.requests.append(request)
        self.limits.append(limit)
        if self.error:
            raise self.error
        return self.keyword_hits, self.semantic_hits


def make_config(**overrides) -> Config:
    values = {
        "supabase_url": "https://project.supabase.co",
        "supabase_service_role_key": "service-key",
        "openai_api_key": "test-key",
        **overrides,
    }
    return Config(_env_file=None, **values)


@pytest.fixture
def config() -> Config:
    return make_config()


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine(rows=[make_row(i, 1 / (50 + i)) for i in range(1, 8)])


@pytest.fixture
def orchestrator(config: Config, embedder: FakeEmbedder, engine: FakeEngine) -> SearchOrchestrator:
    return SearchOrchestrator(config, embedder, engine)


@pytest_asyncio.fixture
async def test_runtime(config: Config, embedder: FakeEmbedder, engine: FakeEngine) -> AsyncGenerator[Runtime]:
    """Isolated runtime wired to fake collaborators"""
    await reset_runtime()

    runtime = Runtime(config=config, embedder=embedder, engine=engine)
    await runtime.connect()

    # Set global runtime for API endpoints
    import rrfsearch.server.runtime as runtime_module

    runtime_module._runtime = runtime

    yield runtime

    await reset_runtime()


@pytest_asyncio.fixture
async def test_client(test_runtime: Runtime) -> AsyncGenerator[AsyncClient]:
    """HTTP client for API testing"""
    from rrfsearch.server.app import app

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
