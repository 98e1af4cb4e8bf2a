"""Tests for the embedding gateway contract and LangChain adapter."""

from typing import List

import pytest
from langchain_core.embeddings import Embeddings
from langchain_core.embeddings.fake import DeterministicFakeEmbedding

from kb_index.gateway import (
    EmbeddingGatewayError,
    EmbeddingResponseError,
    LangChainEmbeddingGateway,
    parse_embedding_response,
)
from kb_index.schemas import EmbeddingData, EmbeddingResponse


class _Unauthorized(Exception):
    status_code = 401


class FailingEmbeddings(Embeddings):
    def embed_documents(self, texts: List[str]) -> List[List[float]]:
        raise _Unauthorized("invalid api key")

    def embed_query(self, text: str) -> List[float]:
        raise RuntimeError("connection reset")


def test_parse_dict_response():
    """Test a plain dict response is parsed in order."""
    vectors = parse_embedding_response({"data": [{"embedding": [1, 2]}, {"embedding": [3, 4]}]}, expected=2)
    assert vectors == [[1.0, 2.0], [3.0, 4.0]]


def test_parse_orders_by_index():
    """Test entries carrying an index are realigned."""
    response = EmbeddingResponse(
        data=[EmbeddingData(embedding=[2.0], index=1), EmbeddingData(embedding=[1.0], index=0)]
    )
    assert parse_embedding_response(response, expected=2) == [[1.0], [2.0]]


def test_parse_mismatched_count():
    """Test a vector count mismatch fails the chunk."""
    with pytest.raises(EmbeddingResponseError):
        parse_embedding_response({"data": [{"embedding": [1.0]}]}, expected=2)


def test_parse_malformed_response():
    """Test malformed payloads raise EmbeddingResponseError."""
    with pytest.raises(EmbeddingResponseError):
        parse_embedding_response({"error": "nope"}, expected=1)


def test_auth_error_flag():
    """Test authentication failures are distinguishable."""
    assert EmbeddingGatewayError("denied", 401).is_auth_error
    assert EmbeddingGatewayError("denied", 403).is_auth_error
    assert not EmbeddingGatewayError("boom", 500).is_auth_error
    assert not EmbeddingGatewayError("boom").is_auth_error


@pytest.mark.asyncio
async def test_langchain_gateway_batch():
    """Test batched input maps to embed_documents."""
    gateway = LangChainEmbeddingGateway(DeterministicFakeEmbedding(size=8), model="fake")
    response = await gateway.create(["first", "second"])

    vectors = parse_embedding_response(response, expected=2)
    assert len(vectors) == 2
    assert all(len(vector) == 8 for vector in vectors)
    assert response.model == "fake"


@pytest.mark.asyncio
async def test_langchain_gateway_single_input_is_deterministic():
    """Test single string input maps to embed_query."""
    gateway = LangChainEmbeddingGateway(DeterministicFakeEmbedding(size=8))
    first = parse_embedding_response(await gateway.create("query"), expected=1)
    second = parse_embedding_response(await gateway.create("query"), expected=1)

    assert first == second


@pytest.mark.asyncio
async def test_langchain_gateway_wraps_errors():
    """Test client exceptions surface as EmbeddingGatewayError with status."""
    gateway = LangChainEmbeddingGateway(FailingEmbeddings())

    with pytest.raises(EmbeddingGatewayError) as excinfo:
        await gateway.create(["text"])
    assert excinfo.value.status_code == 401
    assert excinfo.value.is_auth_error

    with pytest.raises(EmbeddingGatewayError) as excinfo:
        await gateway.create("text")
    assert excinfo.value.status_code is None
