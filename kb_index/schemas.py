"""Data schemas for KB Index."""

from __future__ import annotations

from typing import List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class KnowledgeEntry(BaseModel):
    """An administrator-maintained intent/answer record."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    type: str = "intent"
    intent: str = ""
    answer: str = ""
    category: str = ""
    utterances: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("utterances", "user_utterances"),
        serialization_alias="user_utterances",
    )


class TenantFact(BaseModel):
    """Opaque structured record tagged by kind (e.g. a company profile)."""
    model_config = ConfigDict(extra="allow")

    id: str
    type: str


class CompanyContact(BaseModel):
    cs_email: Optional[str] = None
    cs_tel: Optional[str] = None
    kakao: Optional[str] = None
    biz_hours: Optional[str] = None


class CompanyPolicies(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    warranty: Optional[str] = None
    return_policy: Optional[str] = Field(default=None, alias="return")
    repair: Optional[str] = None
    subscription: Optional[str] = None


class CompanyProfile(TenantFact):
    """Company profile fact; expanded into synthetic documents."""
    type: str = "company_profile"
    brand: Optional[str] = None
    one_liner: Optional[str] = None
    founded: Optional[Union[int, str]] = None
    hq: Optional[str] = None
    core_products: List[str] = Field(default_factory=list)
    channels: List[str] = Field(default_factory=list)
    contact: CompanyContact = Field(default_factory=CompanyContact)
    policies: CompanyPolicies = Field(default_factory=CompanyPolicies)


class Document(BaseModel):
    """Compiled text unit that gets embedded."""
    model_config = ConfigDict(frozen=True)

    id: str
    content: str


class SearchHit(BaseModel):
    """A ranked document with its cosine similarity to the query."""
    rank: int
    similarity: float
    document: Document


class SearchResult(BaseModel):
    """Outcome of a similarity search.

    ``status`` separates "nothing relevant" (``ok`` with no hits) from
    "search infrastructure unavailable" (``failed``).
    """
    knowledge_base: str
    query: str
    status: Literal["ok", "failed"] = "ok"
    hits: List[SearchHit] = Field(default_factory=list)
    error: Optional[str] = None
    status_code: Optional[int] = None

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @property
    def documents(self) -> List[Document]:
        return [hit.document for hit in self.hits]


class EmbeddingData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    embedding: List[float]
    index: Optional[int] = None


class EmbeddingResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    data: List[EmbeddingData]
    model: Optional[str] = None


class RebuildReport(BaseModel):
    """Summary of one ``initialize`` call."""
    knowledge_base: str
    status: Literal["cache_hit", "rebuilt", "empty"]
    document_count: int
    embedded_count: int = 0
    reused_count: int = 0
    chunk_count: int = 0
    duration_s: float = 0.0
