"""Compile knowledge entries and tenant facts into embeddable documents."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .schemas import Document, KnowledgeEntry, TenantFact
from .utils import join_items, lookup, text_or_empty

logger = logging.getLogger(__name__)

COMPANY_PROFILE = "company_profile"
DEFAULT_BRAND = "the company"

FactLike = Union[TenantFact, Mapping[str, Any]]
EntryLike = Union[KnowledgeEntry, Mapping[str, Any]]


def entry_content(entry: KnowledgeEntry) -> str:
    """Text embedded for a knowledge entry."""
    return f"topic: {entry.intent}. content: {entry.answer}"


def _summary(p: Dict[str, Any], brand: str) -> str:
    return (
        f"{brand} is a startup described as '{text_or_empty(p.get('one_liner'))}'. "
        f"It was founded in {text_or_empty(p.get('founded'))} and is headquartered in "
        f"{text_or_empty(p.get('hq'))}."
    )


def _products(p: Dict[str, Any], brand: str) -> str:
    return (
        f"The main product lineup of {brand} consists of {join_items(p.get('core_products'))}. "
        "Each product helps measure and manage indoor air quality."
    )


def _channels(p: Dict[str, Any], brand: str) -> str:
    return f"{brand} products can be purchased or used through {join_items(p.get('channels'))}."


def _contact(p: Dict[str, Any], brand: str) -> str:
    return (
        f"To contact {brand} customer service, use email ({text_or_empty(lookup(p, 'contact', 'cs_email'))}) "
        f"or phone ({text_or_empty(lookup(p, 'contact', 'cs_tel'))}). "
        f"Inquiries are also possible through the KakaoTalk channel "
        f"'{text_or_empty(lookup(p, 'contact', 'kakao'))}', and business hours are weekdays "
        f"{text_or_empty(lookup(p, 'contact', 'biz_hours'))}."
    )


def _warranty(p: Dict[str, Any], brand: str) -> str:
    return f"All {brand} devices are covered by {text_or_empty(lookup(p, 'policies', 'warranty'))}."


def _return(p: Dict[str, Any], brand: str) -> str:
    return f"The return policy for {brand} products is: {text_or_empty(lookup(p, 'policies', 'return'))}."


def _repair(p: Dict[str, Any], brand: str) -> str:
    return (
        "If a product needs repair (after-sales service), it can be arranged through "
        f"{text_or_empty(lookup(p, 'policies', 'repair'))}."
    )


def _subscription(p: Dict[str, Any], brand: str) -> str:
    return (
        f"The {brand} subscription service follows the "
        f"{text_or_empty(lookup(p, 'policies', 'subscription'))} policy."
    )


# Fixed suffixes keep synthetic document ids stable across recompiles.
PROFILE_SECTIONS: Tuple[Tuple[str, Callable[[Dict[str, Any], str], str]], ...] = (
    ("summary", _summary),
    ("products", _products),
    ("channels", _channels),
    ("contact", _contact),
    ("warranty", _warranty),
    ("return", _return),
    ("repair", _repair),
    ("subscription", _subscription),
)


def _fact_payload(fact: FactLike) -> Dict[str, Any]:
    if isinstance(fact, TenantFact):
        return fact.model_dump(by_alias=True)
    if isinstance(fact, Mapping):
        return dict(fact)
    return {}


def coerce_entry(entry: EntryLike) -> KnowledgeEntry:
    if isinstance(entry, KnowledgeEntry):
        return entry
    return KnowledgeEntry.model_validate(entry)


def find_company_profile(facts: Iterable[FactLike]) -> Optional[Dict[str, Any]]:
    """Return the first company profile fact as a plain dict, if any."""
    for fact in facts or ():
        payload = _fact_payload(fact)
        if payload.get("type") == COMPANY_PROFILE:
            return payload
    return None


def expand_company_profile(profile: Mapping[str, Any]) -> List[Document]:
    """Expand a company profile into its fixed sequence of synthetic documents."""
    payload = dict(profile)
    fact_id = text_or_empty(payload.get("id"))
    brand = text_or_empty(payload.get("brand")) or DEFAULT_BRAND
    return [
        Document(id=f"{fact_id}-{suffix}", content=render(payload, brand))
        for suffix, render in PROFILE_SECTIONS
    ]


def compile_documents(
    entries: Iterable[EntryLike],
    facts: Iterable[FactLike] = (),
) -> List[Document]:
    """
    Compile knowledge entries and tenant facts into ordered documents.

    Entries come first in input order, followed by the synthetic company
    profile documents in fixed order. Missing profile fields render as empty
    text.

    Args:
        entries: Knowledge entries (models or raw dicts in wire shape)
        facts: Tenant facts; only the first ``company_profile`` is expanded

    Returns:
        Ordered list of documents
    """
    documents = [
        Document(id=item.id, content=entry_content(item))
        for item in (coerce_entry(entry) for entry in entries or ())
    ]

    profile = find_company_profile(facts)
    if profile is not None:
        documents.extend(expand_company_profile(profile))

    logger.debug("Compiled %d documents (company profile: %s)", len(documents), profile is not None)
    return documents
