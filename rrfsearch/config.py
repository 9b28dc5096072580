from typing import Literal

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from rrfsearch.constants import (
    DEFAULT_EMBEDDING_MODEL,
    EMBEDDING_MODELS,
    HYBRID_RPC,
    KEYWORD_RPC,
    QUERY_EMBEDDING_DIM,
    QUERY_ENGINE_TIMEOUT,
    RRF_OVERFETCH_FACTOR,
    SEMANTIC_RPC,
)
from rrfsearch.embedder import EmbeddingConfig
from rrfsearch.logging import get_logger

_logger = get_logger(__name__)


class Config(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="RRFSEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        validate_assignment=True,
        populate_by_name=True,
    )

    # Service credentials — read from standard env vars via aliases
    supabase_url: str | None = Field(default=None, alias="SUPABASE_URL")
    supabase_service_role_key: str | None = Field(default=None, alias="SUPABASE_SERVICE_ROLE_KEY")
    openai_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("openai_api_key", "OPENAI_API_KEY", "OPEN_API_KEY"),
    )

    embedding_model: str = DEFAULT_EMBEDDING_MODEL

    # Remote procedures on the query engine
    hybrid_rpc: str = HYBRID_RPC
    keyword_rpc: str = KEYWORD_RPC
    semantic_rpc: str = SEMANTIC_RPC

    # "engine": the hybrid procedure fuses; "local": two raw rankings fused in-process
    fusion_mode: Literal["engine", "local"] = "engine"
    overfetch_factor: int = RRF_OVERFETCH_FACTOR
    request_timeout: float = QUERY_ENGINE_TIMEOUT

    # Reject filter values that do not fit their operator
    strict_filters: bool = False

    # Include exception messages and tracebacks in error responses
    debug: bool = False

    log_level: str = "INFO"
    json_logs: bool = False

    @field_validator("embedding_model")
    @classmethod
    def _validate_embedding_model(cls, v: str) -> str:
        if v not in EMBEDDING_MODELS:
            raise ValueError(f"Unsupported embedding model: {v}. Must be one of: {', '.join(EMBEDDING_MODELS)}")
        return v

    @field_validator("supabase_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str | None) -> str | None:
        return v.rstrip("/") if v else v

    @field_validator("overfetch_factor")
    @classmethod
    def _validate_overfetch(cls, v: int) -> int:
        if not 1 <= v <= 10:
            raise ValueError(f"overfetch_factor must be 1-10, got {v}")
        return v

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @model_validator(mode="after")
    def _warn_debug(self) -> "Config":
        if self.debug:
            _logger.warning("debug enabled: error responses include exception details")
        return self

    @property
    def embedding(self) -> EmbeddingConfig:
        # The query engine's vector column is fixed at 1536 dimensions
        return EmbeddingConfig(
            model=self.embedding_model,
            dim=min(EMBEDDING_MODELS[self.embedding_model], QUERY_EMBEDDING_DIM),
            api_key=self.openai_api_key,
        )

    @property
    def rest_url(self) -> str:
        if not self.supabase_url:
            raise ValueError("SUPABASE_URL is not set")
        return f"{self.supabase_url}/rest/v1"

    def missing(self) -> list[str]:
        """Names of required environment variables that are unset."""
        required = {
            "SUPABASE_URL": self.supabase_url,
            "SUPABASE_SERVICE_ROLE_KEY": self.supabase_service_role_key,
            "OPENAI_API_KEY": self.openai_api_key,
        }
        return [name for name, value in required.items() if not value]


_config: Config | None = None


def get_config() -> Config:
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config() -> None:
    global _config
    _config = None
