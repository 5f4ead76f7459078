"""Filesystem helpers for chronyx."""

import os
from pathlib import Path


def get_chronyx_home() -> Path:
    """Directory holding the queue snapshot, logs and credentials.

    ``CHRONYX_DATA_DIR`` wins over the default ``~/.chronyx``.
    """
    override = os.environ.get("CHRONYX_DATA_DIR")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".chronyx"
