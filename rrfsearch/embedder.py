from dataclasses import dataclass

import litellm
import numpy as np

from rrfsearch.constants import EMBEDDING_TEXT_LIMIT
from rrfsearch.errors import CollaboratorError
from rrfsearch.logging import get_logger

_logger = get_logger(__name__)


@dataclass
class EmbeddingConfig:
    model: str
    dim: int
    api_key: str | None = None


class Embedder:
    def __init__(self, config: EmbeddingConfig):
        self.config = config

    def _normalize(self, embeddings: np.ndarray) -> np.ndarray:
        norms = np.linalg.norm(embeddings, axis=1, keepdims=True)
        return embeddings / np.where(norms == 0, 1, norms)

    def _parse_response(self, response) -> np.ndarray:
        sorted_data = sorted(response.data, key=lambda x: x["index"])
        embeddings = np.array([item["embedding"] for item in sorted_data], dtype=np.float64)
        if embeddings.ndim != 2 or embeddings.shape[1] != self.config.dim:
            raise CollaboratorError(
                f"Embedding provider returned shape {embeddings.shape}, expected (*, {self.config.dim})"
            )
        return self._normalize(embeddings)

    async def embed(self, texts: list[str]) -> np.ndarray:
        if not texts:
            return np.array([])
        truncated = [t[:EMBEDDING_TEXT_LIMIT] for t in texts]
        response = await litellm.aembedding(
            model=self.config.model,
            input=truncated,
            dimensions=self.config.dim,
            api_key=self.config.api_key,
        )
        return self._parse_response(response)

    async def embed_one(self, text: str) -> list[float]:
        vector = (await self.embed([text]))[0]
        _logger.debug("query embedded", model=self.config.model, dim=len(vector))
        return vector.tolist()
