"""Allow ``python -m src.cli`` execution.

Delegates to the ingestion CLI (``src/cli/ingest.py``), which also hosts
the ``query`` and ``stats`` subcommands.
"""

from src.cli.ingest import main

main()
