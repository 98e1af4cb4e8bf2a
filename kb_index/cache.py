"""Decide whether a persisted vector store can be reused for a document set."""

from __future__ import annotations

from dataclasses import dataclass
from typing import AbstractSet, Dict, FrozenSet, Iterable, Mapping, Optional, Sequence, Set

from .schemas import Document
from .utils import sha1_text


@dataclass(frozen=True)
class IdDiff:
    """Id-level difference between a stored vector set and current documents."""
    added: FrozenSet[str]
    removed: FrozenSet[str]
    kept: FrozenSet[str]

    @property
    def is_exact(self) -> bool:
        return not self.added and not self.removed


def document_ids(documents: Iterable[Document]) -> Set[str]:
    return {doc.id for doc in documents}


def diff_ids(stored_ids: Iterable[str], current_ids: Iterable[str]) -> IdDiff:
    """Split ids into added (current only), removed (stored only) and kept."""
    stored = frozenset(stored_ids)
    current = frozenset(current_ids)
    return IdDiff(
        added=current - stored,
        removed=stored - current,
        kept=current & stored,
    )


def is_cache_valid(
    stored_vectors: Optional[Mapping[str, object]],
    current_ids: AbstractSet[str],
) -> bool:
    """
    Check whether a persisted vector store matches the current document ids.

    Valid iff the store exists and its key set equals ``current_ids`` exactly.
    Content is not compared; see ``stale_ids`` for fingerprint checks.
    """
    if stored_vectors is None:
        return False
    if len(stored_vectors) != len(current_ids):
        return False
    return all(doc_id in stored_vectors for doc_id in current_ids)


def fingerprint_documents(documents: Sequence[Document]) -> Dict[str, str]:
    """Map each document id to the SHA1 of its content."""
    return {doc.id: sha1_text(doc.content) for doc in documents}


def stale_ids(
    stored_fingerprints: Optional[Mapping[str, str]],
    current_fingerprints: Mapping[str, str],
) -> Set[str]:
    """Ids whose content changed, or that carry no stored fingerprint."""
    stored = stored_fingerprints or {}
    return {
        doc_id
        for doc_id, digest in current_fingerprints.items()
        if stored.get(doc_id) != digest
    }
