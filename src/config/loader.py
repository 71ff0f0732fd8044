"""YAML configuration loader with environment variable overrides.

Configuration is layered (later layers override earlier):

  1. config/config.yaml  -- static defaults checked into the repo
  2. .env file           -- local developer overrides (not committed)
  3. Environment vars    -- set at deploy time

``load_config`` reads the YAML file, then deep-merges the values resolved
by :class:`Settings` on top of it.
"""

from __future__ import annotations

from pathlib import Path

import yaml

from src.config.settings import Settings


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Args:
        path: Path to the YAML configuration file.  A missing file is
            treated as an empty mapping.
        settings: Pre-built settings; a fresh :class:`Settings` is read
            from the environment when omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    settings = settings or Settings()
    env_overrides = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "embedding": {
            "backend": settings.embedding_backend,
            "model": settings.embedding_model,
            "dimension": settings.embedding_dimension,
            "max_chars": settings.embedding_max_chars,
        },
        "vector_store": {
            "backend": settings.vector_store_backend,
            "persist_dir": settings.chromadb_persist_dir,
            "collection": settings.chromadb_collection,
        },
        "chunking": {
            "max_words": settings.chunk_max_words,
            "overlap_words": settings.chunk_overlap_words,
            "table_max_rows": settings.table_max_rows,
        },
        "retrieval": {
            "score_threshold": settings.retrieval_score_threshold,
            "min_candidates": settings.retrieval_min_candidates,
            "candidate_multiplier": settings.retrieval_candidate_multiplier,
            "fetch_multiplier": settings.retrieval_fetch_multiplier,
            "default_top_k": settings.default_top_k,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
