"""Retrieval of the upstream opcode table."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import requests

from .errors import DataInconsistency

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


def fetch_opcode_table(
    url: str,
    cache_path: Path,
    *,
    force: bool = False,
    session: Optional[requests.Session] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> Path:
    """Download the table into ``cache_path`` unless it is already cached.

    The table is stored pretty-printed so that upstream changes diff cleanly.
    """

    if cache_path.exists() and not force:
        logger.info("Using cached opcode table %s", cache_path)
        return cache_path

    logger.info("Downloading opcode table from %s", url)
    getter = session.get if session is not None else requests.get
    response = getter(url, timeout=timeout)
    response.raise_for_status()
    data = response.json()
    if not isinstance(data, dict) or "unprefixed" not in data:
        raise DataInconsistency(url, "downloaded document is not an opcode table")

    cache_path.parent.mkdir(parents=True, exist_ok=True)
    partial = cache_path.with_name(cache_path.name + ".partial")
    partial.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    partial.replace(cache_path)
    logger.debug("Cached opcode table at %s", cache_path)
    return cache_path


__all__ = ["fetch_opcode_table"]
