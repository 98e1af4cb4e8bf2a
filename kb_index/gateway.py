"""Embedding gateway contract and adapters."""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Protocol, Sequence, Union

from langchain_core.embeddings import Embeddings
from pydantic import ValidationError

from .schemas import EmbeddingData, EmbeddingResponse

EmbeddingInput = Union[str, Sequence[str]]

AUTH_STATUS_CODES = (401, 403)


class EmbeddingGatewayError(Exception):
    """Raised when the embedding gateway rejects or fails a request."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_auth_error(self) -> bool:
        return self.status_code in AUTH_STATUS_CODES


class EmbeddingResponseError(EmbeddingGatewayError):
    """Raised when a gateway response cannot be aligned with its inputs."""
    pass


class EmbeddingGateway(Protocol):
    """
    Request/response contract of the external embedding service.

    ``create`` takes ``input`` as a single string or a list of strings and
    returns ``{"data": [{"embedding": [...]}, ...]}`` with one entry per
    input, in input order. Failures raise ``EmbeddingGatewayError``.
    """

    async def create(self, input: EmbeddingInput) -> Union[EmbeddingResponse, Mapping[str, Any]]: ...


def parse_embedding_response(response: Any, expected: int) -> List[List[float]]:
    """
    Validate a gateway response and return its vectors in input order.

    Raises:
        EmbeddingResponseError: If the payload is malformed or the vector
            count does not match ``expected``
    """
    if not isinstance(response, EmbeddingResponse):
        try:
            response = EmbeddingResponse.model_validate(response)
        except ValidationError as exc:
            raise EmbeddingResponseError(f"Malformed embedding response: {exc}") from exc

    if len(response.data) != expected:
        raise EmbeddingResponseError(
            f"Embedding response returned mismatched vector count: "
            f"expected {expected}, got {len(response.data)}"
        )

    data = response.data
    if all(item.index is not None for item in data):
        data = sorted(data, key=lambda item: item.index)
    return [list(item.embedding) for item in data]


class LangChainEmbeddingGateway:
    """Adapt a LangChain ``Embeddings`` client (e.g. ``OllamaEmbeddings``) to the gateway contract."""

    def __init__(self, embeddings: Embeddings, model: Optional[str] = None) -> None:
        self.embeddings = embeddings
        self.model = model

    async def create(self, input: EmbeddingInput) -> EmbeddingResponse:
        try:
            if isinstance(input, str):
                vectors = [await self.embeddings.aembed_query(input)]
            else:
                vectors = await self.embeddings.aembed_documents(list(input))
        except EmbeddingGatewayError:
            raise
        except Exception as exc:
            status_code = getattr(exc, "status_code", None)
            if status_code is None:
                status_code = getattr(getattr(exc, "response", None), "status_code", None)
            raise EmbeddingGatewayError(f"Failed to get embeddings: {exc}", status_code) from exc

        return EmbeddingResponse(
            data=[EmbeddingData(embedding=vector, index=i) for i, vector in enumerate(vectors)],
            model=self.model,
        )
