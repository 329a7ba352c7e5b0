"""Locate the proxy executable among well-known install paths."""

from __future__ import annotations

import logging
import os
from typing import Iterable, Optional

logger = logging.getLogger(__name__)


def find_binary(candidate_paths: Iterable[str]) -> Optional[str]:
    """Return the first existing executable path, or None."""
    for raw_path in candidate_paths:
        path = os.path.expanduser(raw_path)
        if os.path.isfile(path) and os.access(path, os.X_OK):
            logger.debug("Using proxy binary at %s", path)
            return path
    return None
