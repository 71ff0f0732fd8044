# =============================================================================
# src/cli/__init__.py — CLI Module Overview
# =============================================================================
#
# Command-line access to the document Q&A pipeline for operators who work
# outside the HTTP API. The CLI builds the same providers and services as
# the web app (see src/main.py ``_build_all``) and runs one command per
# process.
#
#   INGESTION (ingest.py)
#      Indexes plain-text and table files, singly or a whole directory,
#      then answers questions and reports corpus statistics.
#
# Architecture Notes:
#   - argparse for argument parsing (not Click/Typer).
#   - Heavy imports (embedding models, vector stores) are deferred until a
#     subcommand actually needs services.
# =============================================================================

"""CLI tools for the document Q&A pipeline.

- ``python -m src.cli.ingest`` — ingest text/table files, query, stats.
"""
