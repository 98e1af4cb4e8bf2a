"""Chunked, rate-limited embedding of compiled documents."""

from __future__ import annotations

import asyncio
import logging
import math
from typing import Dict, List, Optional, Sequence

from tqdm import tqdm

from .gateway import EmbeddingGateway, parse_embedding_response
from .schemas import Document
from .utils import iter_batches

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 50
DEFAULT_CHUNK_DELAY_MS = 200


class RebuildCancelled(Exception):
    """Raised when a cancel event is observed between chunks."""
    pass


class EmbeddingPipeline:
    """
    Embed documents through a gateway in fixed-size, sequential chunks.

    Each chunk is one batched request; chunks are awaited one after another
    with a static pause between them (never after the last one). Any chunk
    failure aborts the whole run, and nothing is returned partially.
    """

    def __init__(
        self,
        gateway: EmbeddingGateway,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        chunk_delay_ms: int = DEFAULT_CHUNK_DELAY_MS,
        show_progress: bool = False,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        if chunk_delay_ms < 0:
            raise ValueError(f"chunk_delay_ms must be >= 0, got {chunk_delay_ms}")
        self.gateway = gateway
        self.chunk_size = chunk_size
        self.chunk_delay_ms = chunk_delay_ms
        self.show_progress = show_progress

    def chunk_count(self, document_count: int) -> int:
        return math.ceil(document_count / self.chunk_size)

    async def _pause(self) -> None:
        await asyncio.sleep(self.chunk_delay_ms / 1000)

    async def embed_documents(
        self,
        documents: Sequence[Document],
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Dict[str, List[float]]:
        """
        Embed documents and return an id -> vector mapping.

        Args:
            documents: Documents to embed, in order
            cancel_event: Optional event checked before each chunk

        Returns:
            Mapping from document id to embedding vector

        Raises:
            EmbeddingGatewayError: If any chunk request fails
            RebuildCancelled: If ``cancel_event`` is set before a chunk starts
        """
        vectors: Dict[str, List[float]] = {}
        if not documents:
            return vectors

        total = self.chunk_count(len(documents))
        logger.info("Generating embeddings for %d documents in %d chunk(s)", len(documents), total)

        with tqdm(total=len(documents), desc="Embedding documents", disable=not self.show_progress) as progress:
            for number, batch in enumerate(iter_batches(documents, self.chunk_size), start=1):
                if cancel_event is not None and cancel_event.is_set():
                    raise RebuildCancelled(f"Rebuild cancelled before chunk {number}/{total}")

                response = await self.gateway.create([doc.content for doc in batch])
                batch_vectors = parse_embedding_response(response, expected=len(batch))

                for doc, vector in zip(batch, batch_vectors):
                    vectors[doc.id] = vector

                progress.update(len(batch))
                logger.info("Processed chunk %d/%d", number, total)

                if number < total:
                    await self._pause()

        return vectors

    async def embed_query(self, text: str) -> List[float]:
        """Embed a single query string."""
        response = await self.gateway.create(text)
        return parse_embedding_response(response, expected=1)[0]
