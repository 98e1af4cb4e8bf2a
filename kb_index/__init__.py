"""KB Index - Per-tenant knowledge base vector indexing for RAG chat assistants."""

from .cache import diff_ids, is_cache_valid
from .compiler import compile_documents
from .config import IndexSettings
from .gateway import (
    EmbeddingGateway,
    EmbeddingGatewayError,
    EmbeddingResponseError,
    LangChainEmbeddingGateway,
)
from .index import ActiveIndex, ActiveSnapshot
from .pipeline import EmbeddingPipeline, RebuildCancelled
from .schemas import (
    CompanyProfile,
    Document,
    KnowledgeEntry,
    RebuildReport,
    SearchHit,
    SearchResult,
    TenantFact,
)
from .search import SimilaritySearchEngine, cosine_similarity
from .service import IndexBuildError, KnowledgeBaseService
from .store import KnowledgeBaseStore, KnowledgeBaseStoreError

__version__ = "0.1.0"

__all__ = [
    "ActiveIndex",
    "ActiveSnapshot",
    "CompanyProfile",
    "Document",
    "EmbeddingGateway",
    "EmbeddingGatewayError",
    "EmbeddingPipeline",
    "EmbeddingResponseError",
    "IndexBuildError",
    "IndexSettings",
    "KnowledgeBaseService",
    "KnowledgeBaseStore",
    "KnowledgeBaseStoreError",
    "KnowledgeEntry",
    "LangChainEmbeddingGateway",
    "RebuildCancelled",
    "RebuildReport",
    "SearchHit",
    "SearchResult",
    "SimilaritySearchEngine",
    "TenantFact",
    "compile_documents",
    "cosine_similarity",
    "diff_ids",
    "is_cache_valid",
]
