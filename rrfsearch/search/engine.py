from typing import Any, Protocol

import httpx

from rrfsearch.config import Config
from rrfsearch.errors import CollaboratorError
from rrfsearch.logging import get_logger
from rrfsearch.search.ranking import hits_from_rows
from rrfsearch.search.types import EngineRequest, FusedResult, RankedHit

_logger = get_logger(__name__)


class QueryEngine(Protocol):
    async def hybrid_search(self, request: EngineRequest) -> list[FusedResult]: ...

    async def ranked_search(self, request: EngineRequest, limit: int) -> tuple[list[RankedHit], list[RankedHit]]: ...


class SupabaseQueryEngine:
    """Calls hybrid search procedures through the PostgREST RPC endpoint.

    `hybrid_search` delegates fusion to the database procedure. `ranked_search`
    fetches the keyword and semantic rankings separately so they can be fused
    in-process.
    """

    def __init__(self, config: Config, client: httpx.AsyncClient | None = None):
        self.config = config
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.config.request_timeout)
        return self._client

    async def close(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    def _headers(self) -> dict[str, str]:
        key = self.config.supabase_service_role_key or ""
        return {
            "apikey": key,
            "Authorization": f"Bearer {key}",
            "Content-Type": "application/json",
        }

    async def _rpc(self, name: str, body: dict[str, Any]) -> list[dict]:
        url = f"{self.config.rest_url}/rpc/{name}"
        try:
            resp = await self.client.post(url, headers=self._headers(), json=body)
        except httpx.HTTPError as e:
            raise CollaboratorError(f"{name} request failed: {e}") from e

        if resp.is_error:
            raise CollaboratorError(f"{name} returned {resp.status_code}: {_error_message(resp)}")

        try:
            data = resp.json()
        except ValueError as e:
            raise CollaboratorError(f"{name} returned a non-JSON body") from e
        if not isinstance(data, list):
            raise CollaboratorError(f"{name} returned {type(data).__name__}, expected a list of rows")
        return data

    async def hybrid_search(self, request: EngineRequest) -> list[FusedResult]:
        rows = await self._rpc(self.config.hybrid_rpc, request.to_rpc_body())
        _logger.debug("hybrid search returned", rows=len(rows))
        return [FusedResult.from_row(row) for row in rows]

    async def ranked_search(self, request: EngineRequest, limit: int) -> tuple[list[RankedHit], list[RankedHit]]:
        keyword_rows = await self._rpc(
            self.config.keyword_rpc,
            {
                "query_text": request.query_text,
                "match_count": limit,
                "metadata_filter": request.metadata_filter,
            },
        )
        semantic_rows = await self._rpc(
            self.config.semantic_rpc,
            {
                "query_embedding": request.query_embedding,
                "match_count": limit,
                "metadata_filter": request.metadata_filter,
                "distance_method": request.params.distance_method,
            },
        )
        _logger.debug("ranked search returned", keyword=len(keyword_rows), semantic=len(semantic_rows))
        try:
            return hits_from_rows(keyword_rows), hits_from_rows(semantic_rows)
        except (KeyError, TypeError) as e:
            raise CollaboratorError(f"malformed ranking row: {e!r}") from e


def _error_message(resp: httpx.Response) -> str:
    try:
        payload = resp.json()
    except ValueError:
        return resp.text
    if isinstance(payload, dict):
        return payload.get("message") or payload.get("error") or str(payload)
    return str(payload)
