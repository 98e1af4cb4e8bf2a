"""Tests for the document compiler."""

from kb_index.compiler import PROFILE_SECTIONS, compile_documents
from kb_index.schemas import CompanyProfile, KnowledgeEntry, TenantFact


PROFILE = {
    "id": "cp-1",
    "type": "company_profile",
    "brand": "AirBeam",
    "one_liner": "indoor air quality for everyone",
    "founded": 2019,
    "hq": "Seoul",
    "core_products": ["AirBeam Pro", "AirBeam Mini"],
    "channels": ["online store", "retail partners"],
    "contact": {
        "cs_email": "cs@airbeam.example",
        "cs_tel": "1588-0000",
        "kakao": "@airbeam",
        "biz_hours": "10:00-17:00",
    },
    "policies": {
        "warranty": "a one-year free warranty",
        "return": "within 7 days of delivery",
        "repair": "the service center",
        "subscription": "monthly",
    },
}


def _entries():
    return [
        KnowledgeEntry(id="i-1", intent="hello", answer="hi"),
        KnowledgeEntry(id="i-2", intent="returnPolicy", answer="7 days"),
    ]


def test_entry_documents():
    """Test each entry becomes one 'topic/content' document."""
    docs = compile_documents(_entries())

    assert [doc.id for doc in docs] == ["i-1", "i-2"]
    assert docs[0].content == "topic: hello. content: hi"


def test_entries_from_wire_dicts():
    """Test raw dict entries are accepted."""
    docs = compile_documents([{"id": "x", "intent": "a", "answer": "b", "user_utterances": ["q"]}])

    assert docs[0].id == "x"
    assert docs[0].content == "topic: a. content: b"


def test_company_profile_expansion_order():
    """Test entries come first, then profile sections in fixed order."""
    docs = compile_documents(_entries(), [PROFILE])

    expected_ids = ["i-1", "i-2"] + [f"cp-1-{suffix}" for suffix, _ in PROFILE_SECTIONS]
    assert [doc.id for doc in docs] == expected_ids
    assert len(PROFILE_SECTIONS) == 8


def test_company_profile_content():
    """Test profile fields are interpolated into the synthetic documents."""
    docs = {doc.id: doc.content for doc in compile_documents([], [PROFILE])}

    assert "AirBeam" in docs["cp-1-summary"]
    assert "2019" in docs["cp-1-summary"]
    assert "AirBeam Pro, AirBeam Mini" in docs["cp-1-products"]
    assert "cs@airbeam.example" in docs["cp-1-contact"]
    assert "within 7 days of delivery" in docs["cp-1-return"]
    assert "monthly" in docs["cp-1-subscription"]


def test_company_profile_model_and_missing_fields():
    """Test absent profile fields degrade to empty text."""
    profile = CompanyProfile(id="cp-2")
    docs = compile_documents([], [profile])

    assert len(docs) == 8
    by_id = {doc.id: doc.content for doc in docs}
    assert "the company" in by_id["cp-2-summary"]
    assert "email ()" in by_id["cp-2-contact"]


def test_sparse_profile_dict_never_fails():
    """Test a dict profile without nested sections compiles."""
    docs = compile_documents([], [{"id": "cp-3", "type": "company_profile", "core_products": None}])

    assert [doc.id for doc in docs][0] == "cp-3-summary"
    assert "consists of ." in docs[1].content


def test_other_fact_kinds_ignored():
    """Test only company profiles expand into documents."""
    fact = TenantFact(id="f1", type="store_list")
    docs = compile_documents(_entries(), [fact])

    assert [doc.id for doc in docs] == ["i-1", "i-2"]


def test_only_first_profile_expanded():
    """Test at most one profile contributes documents."""
    second = dict(PROFILE, id="cp-9")
    docs = compile_documents([], [PROFILE, second])

    assert all(doc.id.startswith("cp-1-") for doc in docs)


def test_empty_inputs():
    """Test no entries and no facts compile to nothing."""
    assert compile_documents([], []) == []


def test_compiler_determinism():
    """Test identical inputs produce identical output."""
    first = compile_documents(_entries(), [PROFILE])
    second = compile_documents(_entries(), [PROFILE])

    assert [(d.id, d.content) for d in first] == [(d.id, d.content) for d in second]
