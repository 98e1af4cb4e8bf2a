"""In-memory, per-knowledge-base snapshots used for queries."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import faiss
import numpy as np

from .schemas import Document

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class ActiveSnapshot:
    """
    Immutable {documents, vectors} pair for one knowledge base.

    ``index`` is an exhaustive inner-product FAISS index over L2-normalized
    rows aligned with ``documents``; documents without a usable vector get a
    zero row and therefore score 0.
    """
    documents: Tuple[Document, ...]
    vectors: Mapping[str, List[float]]
    dimension: int = 0
    index: Optional[faiss.Index] = None

    @classmethod
    def build(
        cls,
        documents: Iterable[Document],
        vectors: Mapping[str, Sequence[float]],
    ) -> "ActiveSnapshot":
        docs = tuple(documents)
        frozen_vectors = MappingProxyType({doc_id: list(vec) for doc_id, vec in vectors.items()})
        if not frozen_vectors:
            return cls(documents=docs, vectors=frozen_vectors)

        dimension = _infer_dimension(docs, frozen_vectors)
        if dimension == 0:
            return cls(documents=docs, vectors=frozen_vectors)
        matrix = np.zeros((len(docs), dimension), dtype="float32")
        for row, doc in enumerate(docs):
            vector = frozen_vectors.get(doc.id)
            if vector is None:
                continue
            if len(vector) != dimension:
                logger.warning(
                    "Skipping vector for '%s': dimension %d != %d", doc.id, len(vector), dimension
                )
                continue
            matrix[row] = vector

        faiss.normalize_L2(matrix)
        index = faiss.IndexFlatIP(dimension)
        if len(docs):
            index.add(matrix)
        return cls(documents=docs, vectors=frozen_vectors, dimension=dimension, index=index)

    @property
    def is_empty(self) -> bool:
        return not self.vectors

    def rank(self, query_vector: Sequence[float]) -> List[Tuple[int, float]]:
        """
        Return a (document position, cosine similarity) pair for every document.

        Scores come from the float32 FAISS index, so callers needing exact
        order must rescore. Documents without a usable vector score 0.

        Raises:
            ValueError: If the query dimension does not match the snapshot
        """
        if self.index is None or self.index.ntotal == 0:
            return [(position, 0.0) for position in range(len(self.documents))]
        query = np.asarray([query_vector], dtype="float32")
        if query.ndim != 2 or query.shape[1] != self.dimension:
            raise ValueError(
                f"Query vector dimension {query.shape[-1]} does not match index dimension {self.dimension}"
            )
        faiss.normalize_L2(query)
        scores, positions = self.index.search(query, self.index.ntotal)
        return [
            (int(position), float(score))
            for position, score in zip(positions[0], scores[0])
            if position != -1
        ]


def _infer_dimension(documents: Sequence[Document], vectors: Mapping[str, List[float]]) -> int:
    for doc in documents:
        vector = vectors.get(doc.id)
        if vector:
            return len(vector)
    return len(next(iter(vectors.values())))


EMPTY_SNAPSHOT = ActiveSnapshot(documents=(), vectors=MappingProxyType({}))


class ActiveIndex:
    """
    Holds the current snapshot per knowledge base.

    Snapshots are replaced wholesale by swapping a new mapping in, never
    mutated, so a reader holding a snapshot always sees a consistent pair.
    """

    def __init__(self) -> None:
        self._snapshots: Mapping[str, ActiveSnapshot] = MappingProxyType({})

    def get(self, name: str) -> Optional[ActiveSnapshot]:
        return self._snapshots.get(name)

    def names(self) -> List[str]:
        return list(self._snapshots)

    def _swap(self, name: str, snapshot: Optional[ActiveSnapshot]) -> None:
        updated: Dict[str, ActiveSnapshot] = dict(self._snapshots)
        if snapshot is None:
            updated.pop(name, None)
        else:
            updated[name] = snapshot
        self._snapshots = MappingProxyType(updated)

    def publish(
        self,
        name: str,
        documents: Iterable[Document],
        vectors: Mapping[str, Sequence[float]],
    ) -> ActiveSnapshot:
        snapshot = ActiveSnapshot.build(documents, vectors)
        self._swap(name, snapshot)
        logger.debug(
            "Published snapshot for '%s': documents=%d, vectors=%d",
            name,
            len(snapshot.documents),
            len(snapshot.vectors),
        )
        return snapshot

    def reset(self, name: str) -> ActiveSnapshot:
        """Replace the snapshot with an empty one (initialized but empty)."""
        self._swap(name, EMPTY_SNAPSHOT)
        return EMPTY_SNAPSHOT

    def discard(self, name: str) -> None:
        self._swap(name, None)

    def clear(self) -> None:
        self._snapshots = MappingProxyType({})
