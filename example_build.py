#!/usr/bin/env python3
"""Example: Initialize a knowledge base index from a JSON file of entries."""

import asyncio
import json
import logging
import os
import sys

from langchain_community.embeddings import OllamaEmbeddings

from kb_index import IndexSettings, KnowledgeBaseService, LangChainEmbeddingGateway


def main():
    # Configuration
    entries_file = os.getenv("ENTRIES_FILE", "./knowledge.json")
    kb_name = os.getenv("KB_NAME", "Demo")
    embed_model = os.getenv("EMBED_MODEL", "mxbai-embed-large")
    ollama_base_url = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
    settings = IndexSettings.from_env()
    if settings.store_path is None:
        settings.store_path = "./kb/store.json"

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if not os.path.isfile(entries_file):
        print(f"Error: Entries file not found: {entries_file}")
        print("Set ENTRIES_FILE environment variable or create ./knowledge.json")
        sys.exit(1)

    # Accepts either a list of entries or {"knowledgeItems": [...], "facts": [...]}
    with open(entries_file, "r", encoding="utf-8") as handle:
        payload = json.load(handle)
    if isinstance(payload, dict):
        entries = payload.get("knowledgeItems", [])
        facts = payload.get("facts", [])
    else:
        entries, facts = payload, []

    print("=" * 60)
    print("Knowledge Base Index Builder")
    print("=" * 60)
    print(f"Entries file:     {entries_file}")
    print(f"Knowledge base:   {kb_name}")
    print(f"Store path:       {settings.store_path}")
    print(f"Embedding model:  {embed_model}")
    print(f"Ollama base URL:  {ollama_base_url}")
    print(f"Chunk size:       {settings.chunk_size}")
    print(f"Chunk delay (ms): {settings.chunk_delay_ms}")
    print("=" * 60)
    print()

    embeddings = OllamaEmbeddings(model=embed_model, base_url=ollama_base_url)
    service = KnowledgeBaseService(LangChainEmbeddingGateway(embeddings, model=embed_model), settings=settings)

    try:
        report = asyncio.run(service.initialize(kb_name, entries, facts))
    except Exception as e:
        print(f"\nError during index build: {e}", file=sys.stderr)
        sys.exit(1)

    print()
    print("=" * 60)
    print("Initialization completed successfully!")
    print("=" * 60)
    print(f"Status:         {report.status}")
    print(f"Document count: {report.document_count}")
    print(f"Embedded:       {report.embedded_count}")
    print(f"Reused:         {report.reused_count}")
    print(f"Duration:       {report.duration_s:.1f}s")
    print("=" * 60)


if __name__ == "__main__":
    main()
