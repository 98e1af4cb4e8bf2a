"""Durable per-knowledge-base storage for entries, vectors and the name registry."""

from __future__ import annotations

import copy
import json
import logging
import os
import threading
from typing import Any, Callable, Dict, List, Optional, Sequence

from .schemas import KnowledgeEntry
from .utils import atomic_write_json

logger = logging.getLogger(__name__)

VectorStore = Dict[str, List[float]]

NAMES = "knowledge_base_names"
ENTRIES = "knowledge_bases"
VECTORS = "vector_stores"
FINGERPRINTS = "fingerprints"


class KnowledgeBaseStoreError(Exception):
    """Raised when the backing store file cannot be read."""
    pass


def _empty_state() -> Dict[str, Any]:
    return {NAMES: [], ENTRIES: {}, VECTORS: {}, FINGERPRINTS: {}}


class KnowledgeBaseStore:
    """
    Keyed storage for knowledge bases.

    All tables live in one JSON document. Every mutation builds a new state
    and writes it with an atomic file replace, so a write spanning entries,
    vectors and the registry is never partially visible. With ``path=None``
    the store is memory-only.

    Any write of entries or vectors registers the knowledge base name.
    """

    def __init__(self, path: Optional[str] = None) -> None:
        self.path = path
        self._lock = threading.RLock()
        self._state = self._load()

    def _load(self) -> Dict[str, Any]:
        if not self.path or not os.path.exists(self.path):
            return _empty_state()
        try:
            with open(self.path, "r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, ValueError) as exc:
            raise KnowledgeBaseStoreError(f"Failed to read store file {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise KnowledgeBaseStoreError(f"Store file {self.path} does not contain an object")
        state = _empty_state()
        for key in state:
            if key in data:
                state[key] = data[key]
        return state

    def _commit(self, mutate: Callable[[Dict[str, Any]], None]) -> None:
        with self._lock:
            state = copy.deepcopy(self._state)
            mutate(state)
            if self.path:
                atomic_write_json(self.path, state)
            self._state = state

    @staticmethod
    def _register(state: Dict[str, Any], name: str) -> None:
        if name not in state[NAMES]:
            state[NAMES].append(name)

    # Reads

    def get_knowledge(self, name: str) -> Optional[List[KnowledgeEntry]]:
        with self._lock:
            raw = self._state[ENTRIES].get(name)
        if raw is None:
            return None
        return [KnowledgeEntry.model_validate(item) for item in raw]

    def get_vector_store(self, name: str) -> Optional[VectorStore]:
        with self._lock:
            vectors = self._state[VECTORS].get(name)
            return None if vectors is None else copy.deepcopy(vectors)

    def get_fingerprints(self, name: str) -> Optional[Dict[str, str]]:
        with self._lock:
            fingerprints = self._state[FINGERPRINTS].get(name)
            return None if fingerprints is None else dict(fingerprints)

    def list_knowledge_base_names(self) -> List[str]:
        with self._lock:
            return list(self._state[NAMES])

    # Writes

    def set_knowledge(self, name: str, entries: Sequence[KnowledgeEntry]) -> None:
        payload = [entry.model_dump(by_alias=True) for entry in entries]

        def mutate(state: Dict[str, Any]) -> None:
            state[ENTRIES][name] = payload
            self._register(state, name)

        self._commit(mutate)

    def set_vector_store(self, name: str, vectors: VectorStore) -> None:
        payload = {doc_id: list(vector) for doc_id, vector in vectors.items()}

        def mutate(state: Dict[str, Any]) -> None:
            state[VECTORS][name] = payload
            self._register(state, name)

        self._commit(mutate)

    def save_knowledge_base(
        self,
        name: str,
        entries: Sequence[KnowledgeEntry],
        vectors: VectorStore,
        fingerprints: Optional[Dict[str, str]] = None,
    ) -> None:
        """Persist entries, vectors and fingerprints and register the name in one write."""
        entry_payload = [entry.model_dump(by_alias=True) for entry in entries]
        vector_payload = {doc_id: list(vector) for doc_id, vector in vectors.items()}

        def mutate(state: Dict[str, Any]) -> None:
            state[ENTRIES][name] = entry_payload
            state[VECTORS][name] = vector_payload
            if fingerprints is None:
                state[FINGERPRINTS].pop(name, None)
            else:
                state[FINGERPRINTS][name] = dict(fingerprints)
            self._register(state, name)

        self._commit(mutate)
        logger.info(
            "Saved knowledge base '%s': entries=%d, vectors=%d",
            name,
            len(entry_payload),
            len(vector_payload),
        )

    def delete_knowledge_base(self, name: str) -> None:
        """Remove entries, vectors and the registry entry together."""

        def mutate(state: Dict[str, Any]) -> None:
            state[ENTRIES].pop(name, None)
            state[VECTORS].pop(name, None)
            state[FINGERPRINTS].pop(name, None)
            state[NAMES] = [item for item in state[NAMES] if item != name]

        self._commit(mutate)
        logger.info("Knowledge base '%s' deleted from store.", name)

    def clear_knowledge_base(self, name: str) -> None:
        """Drop entries and vectors but keep the name registered."""

        def mutate(state: Dict[str, Any]) -> None:
            state[ENTRIES].pop(name, None)
            state[VECTORS].pop(name, None)
            state[FINGERPRINTS].pop(name, None)

        self._commit(mutate)
        logger.info("Knowledge base '%s' cleared from store.", name)

    def clear_all(self) -> None:
        def mutate(state: Dict[str, Any]) -> None:
            state.clear()
            state.update(_empty_state())

        self._commit(mutate)
        logger.info("All knowledge bases have been cleared.")
