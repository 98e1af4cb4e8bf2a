"""Shared fixtures for KB Index tests."""

import asyncio
import hashlib
from typing import Dict, List, Optional

import pytest

from kb_index.config import IndexSettings
from kb_index.gateway import EmbeddingGatewayError
from kb_index.service import KnowledgeBaseService
from kb_index.store import KnowledgeBaseStore


class FakeGateway:
    """Records every request and returns deterministic vectors."""

    def __init__(
        self,
        vectors: Optional[Dict[str, List[float]]] = None,
        dimension: int = 4,
        fail_on_call: Optional[int] = None,
        status_code: int = 500,
    ):
        self.vectors = vectors or {}
        self.dimension = dimension
        self.fail_on_call = fail_on_call
        self.status_code = status_code
        self.requests = []

    def embed(self, text: str) -> List[float]:
        if text in self.vectors:
            return self.vectors[text]
        digest = hashlib.sha1(text.encode("utf-8")).digest()
        return [byte / 255.0 + 0.01 for byte in digest[: self.dimension]]

    async def create(self, input):
        self.requests.append(input)
        if self.fail_on_call is not None and len(self.requests) == self.fail_on_call:
            raise EmbeddingGatewayError("embedding backend unavailable", self.status_code)
        texts = [input] if isinstance(input, str) else list(input)
        return {"data": [{"embedding": self.embed(text)} for text in texts]}

    @property
    def batch_requests(self):
        return [request for request in self.requests if not isinstance(request, str)]


class GatedGateway(FakeGateway):
    """FakeGateway whose requests block until ``release`` is set."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.release = asyncio.Event()

    async def create(self, input):
        await self.release.wait()
        return await super().create(input)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def store():
    return KnowledgeBaseStore()


@pytest.fixture
def settings():
    return IndexSettings(chunk_delay_ms=0)


@pytest.fixture
def service(gateway, store, settings):
    return KnowledgeBaseService(gateway, store=store, settings=settings)
