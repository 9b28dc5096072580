# --- Filter DSL ---

FILTER_OPERATORS = (
    "eq",
    "neq",
    "gt",
    "gte",
    "lt",
    "lte",
    "like",
    "ilike",
    "in",
    "contains",
    "is",
    "not",
    "fts",
    "match",
)

# Literal values accepted by the `is` operator besides null/true/false
IS_LITERALS = frozenset({"null", "true", "false", "unknown"})


# --- Ranking ---

DISTANCE_METHODS = ("cosine", "euclidean", "inner_product")

DEFAULT_MATCH_COUNT = 10
DEFAULT_FULL_TEXT_WEIGHT = 1.0
DEFAULT_SEMANTIC_WEIGHT = 1.0
DEFAULT_RRF_K = 50
DEFAULT_DISTANCE_METHOD = "cosine"

# Each source is asked for match_count * factor hits before local fusion
RRF_OVERFETCH_FACTOR = 2

MAX_MATCH_COUNT = 200


# --- Embeddings ---

EMBEDDING_TEXT_LIMIT = 8000

# Embedding models (OpenAI): model -> dimension
EMBEDDING_MODELS: dict[str, int] = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}

DEFAULT_EMBEDDING_MODEL = "text-embedding-3-small"
QUERY_EMBEDDING_DIM = 1536


# --- Query engine ---

HYBRID_RPC = "search_documents_hybrid"
KEYWORD_RPC = "search_documents_keyword"
SEMANTIC_RPC = "search_documents_semantic"

QUERY_ENGINE_TIMEOUT = 30.0  # seconds
