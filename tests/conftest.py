"""Shared test fixtures."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from resume_curator.clients.llm_client import LLMClient, LLMResponse
from resume_curator.config import AppConfig, PipelineConfig, SelectionConfig
from resume_curator.content.store import ContentLibrary, ContentStore
from resume_curator.models.content import ContentItem
from resume_curator.models.stages import JDAnalysis

FIXTURES_DIR = Path(__file__).parent / "fixtures"

FILLER = (
    "customer pipeline revenue launch segment pricing channel partner "
    "analytics roadmap retention onboarding forecast portfolio"
).split()


@pytest.fixture
def make_text():
    """Build a sentence of exactly ``n`` words starting with ``verb``."""

    def _make(n: int, verb: str = "Built") -> str:
        words = [verb] + [FILLER[i % len(FILLER)] for i in range(n - 1)]
        return " ".join(words)

    return _make


@pytest.fixture
def make_item():
    def _make(item_id: str, category: str, **kwargs) -> ContentItem:
        return ContentItem(id=item_id, category=category, **kwargs)

    return _make


@pytest.fixture
def llm_response():
    def _make(payload, input_tokens: int = 100, output_tokens: int = 50) -> LLMResponse:
        text = payload if isinstance(payload, str) else json.dumps(payload)
        return LLMResponse(text=text, input_tokens=input_tokens, output_tokens=output_tokens)

    return _make


@pytest.fixture
def mock_llm_client() -> LLMClient:
    """Create a mock LLM client."""
    client = AsyncMock(spec=LLMClient)
    client.generate = AsyncMock(
        return_value=LLMResponse(text="{}", input_tokens=100, output_tokens=50)
    )
    return client


@pytest.fixture
def library_path() -> Path:
    return FIXTURES_DIR / "library.yaml"


@pytest.fixture
def jd_analysis() -> JDAnalysis:
    return JDAnalysis.model_validate({
        "metadata": {
            "company": "Acme Payments",
            "title": "Director of Product Marketing",
            "industry": "Financial services, B2B payments",
            "level": "Director",
        },
        "sections": [
            {
                "name": "Responsibilities",
                "key_phrases": [
                    {"phrase": "go-to-market strategy", "weight": "HIGH"},
                    {"phrase": "product positioning", "weight": "HIGH"},
                    {"phrase": "sales enablement", "weight": "MEDIUM"},
                ],
            },
            {
                "name": "Qualifications",
                "key_phrases": [
                    {"phrase": "fintech experience", "weight": "HIGH"},
                    {"phrase": "cross-functional leadership", "weight": "MEDIUM"},
                    {"phrase": "data fluency", "weight": "LOW"},
                ],
            },
        ],
        "themes": [{"theme": "Revenue Growth", "priority": "Critical"}],
        "role_functions": ["product-marketing"],
        "ats_keywords": ["SaaS", "payments"],
    })


@pytest.fixture
def small_store() -> ContentStore:
    """Exactly enough content for a run with 2 highlights and 2+1 bullets."""
    return ContentStore(ContentLibrary.model_validate({
        "profile": {
            "header": {"name": "Jordan Lee", "email": "jordan@example.com"},
            "positions": [
                {"number": 1, "company": "Northwind", "title": "VP Marketing"},
                {"number": 2, "company": "Contoso", "title": "Director, PMM"},
                {"number": 3, "company": "Fabrikam", "title": "Senior PMM"},
            ],
            "education": [{"institution": "State University", "degree": "BA"}],
        },
        "items": [
            {"id": "SUM-01", "category": "summary", "text": "Marketing leader.",
             "tags": {"function": ["product-marketing"]}},
            {"id": "CH-01", "category": "highlight", "text": "Launched a payments product.",
             "tags": {"industry": ["financial-services"], "function": ["product-marketing"]}},
            {"id": "CH-02", "category": "highlight", "text": "Grew pipeline.",
             "tags": {"industry": ["technology"]}},
            {"id": "P1-B01", "category": "bullet", "position_slot": 1, "text": "Drove revenue."},
            {"id": "P1-B02", "category": "bullet", "position_slot": 1, "text": "Negotiated deals."},
            {"id": "P2-B01", "category": "bullet", "position_slot": 2, "text": "Rebuilt pricing."},
            {"id": "OV-1", "category": "overview", "position_slot": 1, "text": "Led marketing."},
            {"id": "OV-2", "category": "overview", "position_slot": 2, "text": "Ran PMM."},
            {"id": "OV-3", "category": "overview", "position_slot": 3, "text": "Wrote launches."},
        ],
    }))


@pytest.fixture
def pipeline_config() -> AppConfig:
    return AppConfig(
        pipeline=PipelineConfig(max_retries=3, request_timeout=5.0),
        selection=SelectionConfig(highlight_count=2, p1_bullet_count=2, p2_bullet_count=1),
    )


def _mapping(phrase: str) -> dict:
    return {"phrase_used": phrase, "jd_section": "Responsibilities", "jd_phrase_source": phrase}


@pytest.fixture
def stage_payloads(make_text) -> dict[str, dict]:
    """Valid responses for every generation stage against ``small_store``."""
    return {
        "summary": {
            "positioning_decision": {"approach": "operator", "rationale": "fits"},
            "summary": {"content": make_text(150, "Marketing"), "sources_used": ["SUM-01"]},
            "jd_mapping": [
                _mapping("go-to-market strategy"),
                _mapping("product positioning"),
                _mapping("fintech experience"),
            ],
            "thematic_anchors": {"primary_narrative": "builder"},
            "state_for_downstream": {
                "used_base_ids": ["SUM-01"],
                "used_verbs": [],
                "used_metrics": ["40%"],
                "jd_phrases_used": ["go-to-market strategy"],
            },
        },
        "highlights": {
            "career_highlights": [
                {"base_id": "CH-01", "headline": "Payments launch",
                 "content": make_text(40, "Launched"), "primary_verb": "launched",
                 "jd_mapping": [_mapping("product positioning"), _mapping("fintech experience")]},
                {"base_id": "CH-02", "headline": "Pipeline growth",
                 "content": make_text(40, "Grew"), "primary_verb": "grew",
                 "jd_mapping": [_mapping("sales enablement"), _mapping("go-to-market strategy")]},
            ],
            "state_for_downstream": {
                "used_base_ids": ["CH-01", "CH-02"],
                "used_verbs": ["launched", "grew"],
                "used_metrics": ["$12M"],
            },
        },
        "position_1": {
            "overview": {"source_id": "OV-1", "content": make_text(50, "Led")},
            "bullets": [
                {"base_id": "P1-B01", "content": make_text(30, "Drove"), "primary_verb": "drove",
                 "jd_mapping": [_mapping("sales enablement")]},
                {"base_id": "P1-B02", "content": make_text(32, "Negotiated"),
                 "primary_verb": "negotiated",
                 "jd_mapping": [_mapping("cross-functional leadership")]},
            ],
            "state_for_downstream": {
                "used_base_ids": ["P1-B01", "P1-B02"],
                "used_verbs": ["drove", "negotiated"],
            },
        },
        "position_2": {
            "overview": {"source_id": "OV-2", "content": make_text(45, "Ran")},
            "bullets": [
                {"base_id": "P2-B01", "content": make_text(30, "Rebuilt"),
                 "primary_verb": "rebuilt", "pattern_proof": "Same pricing instinct.",
                 "jd_mapping": [_mapping("data fluency")]},
            ],
            "state_for_downstream": {"used_base_ids": ["P2-B01"], "used_verbs": ["rebuilt"]},
        },
        "early_career": {
            "overviews": [
                {"position": 3, "source_id": "OV-3", "content": make_text(30, "Managed"),
                 "starting_verb": "managed"},
            ],
            "verbs_used": ["managed"],
            "trajectory_narrative": "From launches to leadership.",
        },
    }
