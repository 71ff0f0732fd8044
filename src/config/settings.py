"""Application settings loaded from environment variables via pydantic-settings.

Values are read from (highest priority first):

  1. Environment variables, e.g. ``RETRIEVAL_SCORE_THRESHOLD=0.5``
  2. A ``.env`` file in the working directory
  3. The defaults declared below

Field ``retrieval_score_threshold`` maps to env var
``RETRIEVAL_SCORE_THRESHOLD`` (pydantic-settings matches case-insensitively).
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Document Q&A service settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Embedding ===
    # "fastembed" (ONNX, no PyTorch) or "sentence_transformers".
    embedding_backend: str = "fastembed"
    embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"
    embedding_dimension: int = Field(default=384, gt=0)
    # Each text is cut to this many characters before it reaches the model.
    embedding_max_chars: int = Field(default=512, gt=0)

    # === Vector store ===
    # "chromadb" (persistent) or "memory" (process-local, for development).
    vector_store_backend: str = "chromadb"
    chromadb_persist_dir: str = "./data/chromadb"
    chromadb_collection: str = "document_chunks"

    # === Chunking ===
    chunk_max_words: int = Field(default=800, gt=0)
    chunk_overlap_words: int = Field(default=120, ge=0)
    table_max_rows: int = Field(default=25, gt=0)

    # === Retrieval ===
    # Results scoring at or below the threshold are discarded.
    retrieval_score_threshold: float = 0.4
    # The store is asked for max(min_candidates, top_k * candidate_multiplier)
    # candidates and top_k * fetch_multiplier results before local filtering.
    retrieval_min_candidates: int = Field(default=100, gt=0)
    retrieval_candidate_multiplier: int = Field(default=10, gt=0)
    retrieval_fetch_multiplier: int = Field(default=3, gt=0)
    default_top_k: int = Field(default=5, gt=0)

    # === Ingestion ===
    ingest_file_timeout_seconds: float = Field(default=300.0, gt=0)

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8081
    app_env: str = "development"
    log_level: str = "INFO"
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
