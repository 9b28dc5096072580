import asyncio

import httpx

from rrfsearch.config import Config, get_config
from rrfsearch.embedder import Embedder
from rrfsearch.logging import get_logger
from rrfsearch.search import QueryEngine, SearchOrchestrator, SupabaseQueryEngine
from rrfsearch.search.orchestrator import QueryEmbedder

_logger = get_logger(__name__)


class Runtime:
    """Process-wide collaborators, built once from the config at startup."""

    def __init__(
        self,
        config: Config | None = None,
        embedder: QueryEmbedder | None = None,
        engine: QueryEngine | None = None,
    ):
        self.config = config or get_config()
        self.embedder = embedder or Embedder(self.config.embedding)
        self._http: httpx.AsyncClient | None = None
        self._engine = engine
        self.orchestrator: SearchOrchestrator | None = None
        self._connected = False

    @property
    def engine(self) -> QueryEngine:
        if self._engine is None:
            self._http = httpx.AsyncClient(timeout=self.config.request_timeout)
            self._engine = SupabaseQueryEngine(self.config, client=self._http)
        return self._engine

    async def connect(self) -> None:
        if self._connected:
            return

        if missing := self.config.missing():
            _logger.warning("missing configuration, searches will fail", missing=missing)

        self.orchestrator = SearchOrchestrator(self.config, self.embedder, self.engine)
        self._connected = True

    async def close(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None
        self._connected = False


_runtime: Runtime | None = None
_runtime_lock = asyncio.Lock()


async def get_runtime_async() -> Runtime:
    global _runtime
    async with _runtime_lock:
        if _runtime is None:
            _runtime = Runtime()
            await _runtime.connect()
    return _runtime


def get_runtime() -> Runtime:
    if _runtime is None:
        raise RuntimeError("Runtime not initialized. Call get_runtime_async() first.")
    if not _runtime._connected:
        raise RuntimeError("Runtime not connected. Call await runtime.connect() first.")
    return _runtime


def is_debug() -> bool:
    return _runtime is not None and _runtime.config.debug


async def reset_runtime() -> None:
    global _runtime
    if _runtime is not None:
        await _runtime.close()
        _runtime = None
