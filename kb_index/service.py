"""Initialize, query and manage knowledge base vector indexes."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Dict, Iterable, List, Optional

from .cache import diff_ids, document_ids, fingerprint_documents, is_cache_valid, stale_ids
from .compiler import EntryLike, FactLike, coerce_entry, compile_documents
from .config import IndexSettings
from .gateway import EmbeddingGateway
from .index import ActiveIndex, ActiveSnapshot
from .pipeline import EmbeddingPipeline
from .schemas import KnowledgeEntry, RebuildReport, SearchResult
from .search import SimilaritySearchEngine
from .store import KnowledgeBaseStore, VectorStore

logger = logging.getLogger(__name__)


class IndexBuildError(Exception):
    """Raised when a knowledge base index could not be (re)built."""

    def __init__(self, knowledge_base: str, message: str) -> None:
        super().__init__(f"Failed to initialize vector index for '{knowledge_base}': {message}")
        self.knowledge_base = knowledge_base

    @property
    def status_code(self) -> Optional[int]:
        return getattr(self.__cause__, "status_code", None)


class KnowledgeBaseService:
    """
    Keeps each knowledge base's persisted vectors and active snapshot in step
    with its entries.

    ``initialize`` reuses stored vectors when their ids match the compiled
    documents and otherwise rebuilds them through the embedding pipeline.
    Concurrent ``initialize`` calls for the same knowledge base share one
    in-flight rebuild and all receive its result.
    """

    def __init__(
        self,
        gateway: EmbeddingGateway,
        store: Optional[KnowledgeBaseStore] = None,
        settings: Optional[IndexSettings] = None,
        index: Optional[ActiveIndex] = None,
    ) -> None:
        self.settings = settings or IndexSettings()
        self.store = store if store is not None else KnowledgeBaseStore(self.settings.store_path)
        self.index = index if index is not None else ActiveIndex()
        self.pipeline = EmbeddingPipeline(
            gateway,
            chunk_size=self.settings.chunk_size,
            chunk_delay_ms=self.settings.chunk_delay_ms,
            show_progress=self.settings.show_progress,
        )
        self.engine = SimilaritySearchEngine(
            self.index,
            self.pipeline,
            top_k=self.settings.top_k,
            min_similarity=self.settings.min_similarity,
        )
        self._inflight: Dict[str, "asyncio.Future[RebuildReport]"] = {}

    def snapshot(self, name: str) -> Optional[ActiveSnapshot]:
        return self.index.get(name)

    async def initialize(
        self,
        name: str,
        entries: Iterable[EntryLike],
        facts: Iterable[FactLike] = (),
        cancel_event: Optional[asyncio.Event] = None,
    ) -> RebuildReport:
        """
        Bring the index for ``name`` up to date with ``entries`` and ``facts``.

        Raises:
            IndexBuildError: If embedding or persisting fails; the active
                snapshot is reset to empty and nothing is persisted
        """
        task = self._inflight.get(name)
        if task is None:
            task = asyncio.ensure_future(
                self._initialize(name, [coerce_entry(e) for e in entries], list(facts), cancel_event)
            )
            self._inflight[name] = task
            task.add_done_callback(lambda done, name=name: self._forget(name, done))
        else:
            logger.info("Rebuild for '%s' already in flight; waiting for its result.", name)
        return await asyncio.shield(task)

    def _forget(self, name: str, task: "asyncio.Future[RebuildReport]") -> None:
        if self._inflight.get(name) is task:
            del self._inflight[name]

    async def _initialize(
        self,
        name: str,
        entries: List[KnowledgeEntry],
        facts: List[FactLike],
        cancel_event: Optional[asyncio.Event],
    ) -> RebuildReport:
        start_time = time.perf_counter()
        logger.info("Initializing vector index for '%s'...", name)

        documents = compile_documents(entries, facts)
        current_ids = document_ids(documents)
        stored = await asyncio.to_thread(self.store.get_vector_store, name)

        fingerprints = fingerprint_documents(documents) if self.settings.verify_content else None
        changed = set()
        if fingerprints is not None and stored is not None:
            stored_fingerprints = await asyncio.to_thread(self.store.get_fingerprints, name)
            changed = stale_ids(stored_fingerprints, fingerprints)

        if is_cache_valid(stored, current_ids) and not changed:
            self.index.publish(name, documents, stored)
            logger.info("Cache is valid; initialized '%s' from store with %d documents.", name, len(documents))
            return RebuildReport(
                knowledge_base=name,
                status="cache_hit",
                document_count=len(documents),
                reused_count=len(documents),
                duration_s=time.perf_counter() - start_time,
            )

        logger.info("Cache is invalid or missing for '%s'. Rebuilding...", name)

        if not documents:
            logger.warning("No documents to process for '%s'; storing an empty index.", name)
            try:
                await asyncio.to_thread(self.store.save_knowledge_base, name, entries, {}, fingerprints)
            except Exception as exc:
                self.index.reset(name)
                raise IndexBuildError(name, str(exc)) from exc
            self.index.reset(name)
            return RebuildReport(
                knowledge_base=name,
                status="empty",
                document_count=0,
                duration_s=time.perf_counter() - start_time,
            )

        retained: VectorStore = {}
        if self.settings.incremental and stored:
            diff = diff_ids(stored, current_ids)
            retained = {doc_id: stored[doc_id] for doc_id in diff.kept if doc_id not in changed}
            logger.info(
                "Incremental rebuild for '%s': added=%d, removed=%d, reused=%d",
                name,
                len(diff.added),
                len(diff.removed),
                len(retained),
            )
        pending = [doc for doc in documents if doc.id not in retained]

        try:
            fresh = await self.pipeline.embed_documents(pending, cancel_event=cancel_event)
            vectors: VectorStore = {
                doc.id: fresh[doc.id] if doc.id in fresh else retained[doc.id] for doc in documents
            }
            await asyncio.to_thread(self.store.save_knowledge_base, name, entries, vectors, fingerprints)
        except asyncio.CancelledError:
            self.index.reset(name)
            raise
        except Exception as exc:
            self.index.reset(name)
            logger.error("Failed to initialize vector index for '%s': %s", name, exc)
            raise IndexBuildError(name, str(exc)) from exc

        self.index.publish(name, documents, vectors)
        logger.info("Index for '%s' rebuilt with %d vectors.", name, len(vectors))
        return RebuildReport(
            knowledge_base=name,
            status="rebuilt",
            document_count=len(documents),
            embedded_count=len(fresh),
            reused_count=len(retained),
            chunk_count=self.pipeline.chunk_count(len(pending)),
            duration_s=time.perf_counter() - start_time,
        )

    async def search(self, name: str, query: str, top_k: Optional[int] = None) -> SearchResult:
        return await self.engine.search(name, query, top_k=top_k)

    async def load_knowledge(self, name: str) -> Optional[List[KnowledgeEntry]]:
        return await asyncio.to_thread(self.store.get_knowledge, name)

    async def list_knowledge_bases(self) -> List[str]:
        return await asyncio.to_thread(self.store.list_knowledge_base_names)

    async def delete_knowledge_base(self, name: str) -> None:
        await asyncio.to_thread(self.store.delete_knowledge_base, name)
        self.index.discard(name)

    async def clear_knowledge_base(self, name: str) -> None:
        await asyncio.to_thread(self.store.clear_knowledge_base, name)
        self.index.reset(name)

    async def clear_all(self) -> None:
        await asyncio.to_thread(self.store.clear_all)
        self.index.clear()
