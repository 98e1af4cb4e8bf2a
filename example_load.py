#!/usr/bin/env python3
"""Example: Restore a persisted knowledge base and query it."""

import asyncio
import os
import sys

from langchain_community.embeddings import OllamaEmbeddings

from kb_index import IndexSettings, KnowledgeBaseService, LangChainEmbeddingGateway


async def run(service: KnowledgeBaseService, kb_name: str) -> None:
    entries = await service.load_knowledge(kb_name)
    if entries is None:
        names = await service.list_knowledge_bases()
        print(f"Error: Knowledge base not found: {kb_name}")
        print(f"Available: {', '.join(names) or '(none)'}")
        sys.exit(1)

    report = await service.initialize(kb_name, entries)
    snapshot = service.snapshot(kb_name)

    print(f"✓ Loaded successfully ({report.status})")
    print(f"  - Entries:    {len(entries)}")
    print(f"  - Documents:  {len(snapshot.documents)}")
    print(f"  - Dimensions: {snapshot.dimension}")
    print()

    print("=" * 60)
    print("Enter queries (or 'quit' to exit)")
    print("=" * 60)
    print()

    while True:
        query = input("Query: ").strip()
        if not query or query.lower() in ("quit", "exit", "q"):
            break

        print()
        result = await service.search(kb_name, query)
        if result.failed:
            print(f"Error: {result.error}", file=sys.stderr)
            print()
            continue

        print(f"Top {len(result.hits)} results:")
        print()
        for hit in result.hits:
            print(f"[{hit.rank}] Score: {hit.similarity:.4f}")
            print(f"    Id:    {hit.document.id}")
            excerpt = hit.document.content
            if len(excerpt) > 150:
                excerpt = excerpt[:150].rstrip() + "..."
            print(f"    Text:  {excerpt}")
            print()

    print("Goodbye!")


def main():
    kb_name = os.getenv("KB_NAME", "Demo")
    embed_model = os.getenv("EMBED_MODEL", "mxbai-embed-large")
    ollama_base_url = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
    settings = IndexSettings.from_env()
    if settings.store_path is None:
        settings.store_path = "./kb/store.json"

    if not os.path.exists(settings.store_path):
        print(f"Error: Store not found: {settings.store_path}")
        print("Run example_build.py first or set KB_INDEX_STORE_PATH environment variable")
        sys.exit(1)

    print("=" * 60)
    print("Knowledge Base Query Example")
    print("=" * 60)
    print(f"Store path:      {settings.store_path}")
    print(f"Knowledge base:  {kb_name}")
    print(f"Embedding model: {embed_model}")
    print(f"Ollama base URL: {ollama_base_url}")
    print()

    embeddings = OllamaEmbeddings(model=embed_model, base_url=ollama_base_url)
    service = KnowledgeBaseService(LangChainEmbeddingGateway(embeddings, model=embed_model), settings=settings)
    asyncio.run(run(service, kb_name))


if __name__ == "__main__":
    main()
