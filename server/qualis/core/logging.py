from __future__ import annotations
"""server/qualis/core/logging.py
~~~~~~~~~~~~~~~~~~~~~~~~
Logging setup.
"""
import logging


def setup_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    # httpx logs every request at INFO, which duplicates the drain logs.
    logging.getLogger("httpx").setLevel(logging.WARNING)
