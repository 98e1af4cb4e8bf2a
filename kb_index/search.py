"""Cosine similarity search over active snapshots."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import numpy as np

from .index import EMPTY_SNAPSHOT, ActiveIndex
from .pipeline import EmbeddingPipeline
from .schemas import SearchHit, SearchResult

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 5


def cosine_similarity(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    """
    Compute cosine similarity between two vectors.

    Returns 0.0 when either vector has zero magnitude.

    Raises:
        ValueError: If vectors have different dimensions
    """
    a = np.asarray(vec_a, dtype="float64")
    b = np.asarray(vec_b, dtype="float64")
    if a.shape != b.shape:
        raise ValueError(f"Vector dimensions must match: {a.shape} != {b.shape}")

    magnitude_a = float(np.linalg.norm(a))
    magnitude_b = float(np.linalg.norm(b))
    if magnitude_a == 0 or magnitude_b == 0:
        return 0.0
    return float(np.dot(a, b) / (magnitude_a * magnitude_b))


class SimilaritySearchEngine:
    """
    Embed a query and rank a knowledge base's active documents by cosine similarity.

    Only published snapshots are read. ``min_similarity``, when set, drops
    hits below it; by default every ranked document up to ``top_k`` is kept.
    """

    def __init__(
        self,
        index: ActiveIndex,
        pipeline: EmbeddingPipeline,
        top_k: int = DEFAULT_TOP_K,
        min_similarity: Optional[float] = None,
    ) -> None:
        self.index = index
        self.pipeline = pipeline
        self.top_k = top_k
        self.min_similarity = min_similarity

    async def search(self, name: str, query: str, top_k: Optional[int] = None) -> SearchResult:
        k = self.top_k if top_k is None else top_k
        snapshot = self.index.get(name) or EMPTY_SNAPSHOT

        if snapshot.is_empty:
            logger.warning("Vector index for '%s' not initialized or empty.", name)
            return SearchResult(knowledge_base=name, query=query)

        try:
            query_vector = await self.pipeline.embed_query(query)
            ranked = snapshot.rank(query_vector)
        except Exception as exc:
            logger.warning("Error searching for similar documents in '%s': %s", name, exc)
            return SearchResult(
                knowledge_base=name,
                query=query,
                status="failed",
                error=str(exc),
                status_code=getattr(exc, "status_code", None),
            )

        # Every document is rescored exactly before the top-K cut.
        scored = []
        for position, _ in ranked:
            document = snapshot.documents[position]
            vector = snapshot.vectors.get(document.id)
            similarity = 0.0
            if vector and len(vector) == len(query_vector):
                similarity = cosine_similarity(query_vector, vector)
            scored.append((similarity, position, document))
        scored.sort(key=lambda item: (-item[0], item[1]))

        hits = [
            SearchHit(rank=rank, similarity=similarity, document=document)
            for rank, (similarity, _, document) in enumerate(scored[:max(k, 0)], start=1)
        ]
        if self.min_similarity is not None:
            hits = [hit for hit in hits if hit.similarity >= self.min_similarity]

        return SearchResult(knowledge_base=name, query=query, hits=hits)
