"""Tests for KB Index utilities."""

import json
import os

import pytest

from kb_index.utils import (
    atomic_write_json,
    iter_batches,
    join_items,
    lookup,
    sha1_text,
    text_or_empty,
)


def test_sha1_text():
    """Test SHA1 hash generation."""
    text = "hello world"
    hash1 = sha1_text(text)
    hash2 = sha1_text(text)
    assert hash1 == hash2
    assert len(hash1) == 40  # SHA1 hex length

    # Different text should produce different hash
    hash3 = sha1_text("different text")
    assert hash1 != hash3


def test_iter_batches_preserves_order():
    """Test batching keeps order and sizes."""
    batches = list(iter_batches(list(range(7)), 3))
    assert batches == [[0, 1, 2], [3, 4, 5], [6]]


def test_iter_batches_empty():
    """Test batching an empty list yields nothing."""
    assert list(iter_batches([], 5)) == []


def test_iter_batches_rejects_non_positive_size():
    """Test batch size validation."""
    with pytest.raises(ValueError):
        list(iter_batches([1, 2], 0))


def test_text_or_empty():
    """Test None maps to empty text."""
    assert text_or_empty(None) == ""
    assert text_or_empty(2019) == "2019"


def test_join_items():
    """Test joining lists and degrading other values."""
    assert join_items(["Pro", "Mini"]) == "Pro, Mini"
    assert join_items(None) == ""
    assert join_items("single") == "single"
    assert join_items(["a", None, "b"]) == "a, b"


def test_lookup_nested():
    """Test nested lookup tolerates missing steps."""
    data = {"contact": {"cs_email": "cs@example.com"}}
    assert lookup(data, "contact", "cs_email") == "cs@example.com"
    assert lookup(data, "contact", "cs_tel") is None
    assert lookup(data, "policies", "warranty") is None
    assert lookup({"contact": "n/a"}, "contact", "cs_email") is None


def test_atomic_write_json(tmp_path):
    """Test atomic JSON write replaces the file and leaves no temp files."""
    path = tmp_path / "nested" / "store.json"
    atomic_write_json(str(path), {"a": 1})
    atomic_write_json(str(path), {"a": 2})

    with open(path, "r", encoding="utf-8") as handle:
        assert json.load(handle) == {"a": 2}
    assert os.listdir(path.parent) == ["store.json"]
