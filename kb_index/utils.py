"""Utility functions for KB indexing."""

from __future__ import annotations

import hashlib
import json
import os
import tempfile
from typing import Any, Iterable, List, Mapping, Optional, Sequence


def sha1_text(text: str) -> str:
    """Calculate SHA1 hash of a text string."""
    return hashlib.sha1(text.encode("utf-8")).hexdigest()


def iter_batches(items: Sequence, batch_size: int) -> Iterable[List]:
    """Yield batches of items."""
    if batch_size <= 0:
        raise ValueError(f"batch_size must be positive, got {batch_size}")
    for start in range(0, len(items), batch_size):
        yield list(items[start : start + batch_size])


def text_or_empty(value: Any) -> str:
    """Render a scalar as text, mapping None to an empty string."""
    if value is None:
        return ""
    return str(value)


def join_items(values: Any, sep: str = ", ") -> str:
    """Join a list of values as text; non-lists degrade to their text form."""
    if values is None:
        return ""
    if isinstance(values, (list, tuple)):
        return sep.join(text_or_empty(value) for value in values if value is not None)
    return text_or_empty(values)


def lookup(data: Any, *path: str) -> Any:
    """Walk nested mappings, returning None when any step is missing."""
    current = data
    for key in path:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def atomic_write_json(path: str, payload: Any, indent: Optional[int] = None) -> None:
    """
    Write JSON to ``path`` atomically.

    Data goes to a temp file in the same directory which then replaces the
    target with ``os.replace``, so readers see either the old or the new file.
    """
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(prefix=".kb_store_", suffix=".tmp", dir=directory)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(payload, handle, ensure_ascii=False, indent=indent)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise
