"""Deterministic extraction of RequirementSignals from a JD analysis."""

from __future__ import annotations

import logging
import re

from resume_curator.models.signals import RequirementSignals
from resume_curator.models.stages import JDAnalysis

logger = logging.getLogger(__name__)

# substrings of the industry field -> industry tags
INDUSTRY_TERMS: list[tuple[tuple[str, ...], tuple[str, ...]]] = [
    (("financial", "banking", "payment"), ("financial-services", "banking", "payments")),
    (("health", "pharma"), ("healthcare", "pharma")),
    (("tech", "software", "saas"), ("technology", "enterprise-software")),
    (("consumer", "retail", "cpg"), ("consumer", "retail", "cpg")),
    (("consulting", "professional"), ("professional-services", "consulting")),
    (("b2b", "enterprise"), ("b2b",)),
    (("b2c", "consumer"), ("b2c", "consumer")),
]

# substrings of ATS keywords -> industry tags
KEYWORD_INDUSTRIES: dict[str, tuple[str, ...]] = {
    "technology": ("technology",),
    "software": ("technology", "software"),
    "saas": ("technology", "saas", "b2b"),
    "enterprise": ("b2b", "enterprise-software"),
    "fintech": ("financial-services", "fintech", "technology"),
    "banking": ("financial-services", "banking"),
    "payments": ("financial-services", "payments"),
    "healthcare": ("healthcare",),
    "pharma": ("healthcare", "pharma"),
    "retail": ("retail", "consumer"),
    "e-commerce": ("e-commerce", "retail", "technology"),
    "cpg": ("cpg", "consumer"),
    "consumer": ("consumer",),
    "b2b": ("b2b",),
    "b2c": ("b2c", "consumer"),
}

# substrings of the job title -> function tags
TITLE_FUNCTIONS: list[tuple[tuple[str, ...], tuple[str, ...]]] = [
    (("product marketing", "product marketer"), ("product-marketing",)),
    (("brand",), ("brand-strategy",)),
    (("growth", "demand"), ("demand-generation", "growth-strategy")),
    (("gtm", "go-to-market"), ("go-to-market",)),
]


def _theme_tags(theme: str) -> list[str]:
    lowered = theme.lower().strip()
    tags = [re.sub(r"[^a-z0-9-]", "", re.sub(r"\s+", "-", lowered))]
    tags.extend(w for w in lowered.split() if len(w) > 3)
    return [t for t in tags if t]


def extract_requirement_signals(analysis: JDAnalysis) -> RequirementSignals:
    """Normalise a JD analysis into tag sets used by the Scoring Engine."""
    industry = analysis.metadata.industry.lower()
    industries: set[str] = set()
    for terms, tags in INDUSTRY_TERMS:
        if any(t in industry for t in terms):
            industries.update(tags)
    for keyword in analysis.ats_keywords:
        kw = keyword.lower()
        for term, tags in KEYWORD_INDUSTRIES.items():
            if term in kw:
                industries.update(tags)

    functions = {f.strip().lower() for f in analysis.role_functions if f.strip()}
    title = analysis.metadata.title.lower()
    for terms, tags in TITLE_FUNCTIONS:
        if any(t in title for t in terms):
            functions.update(tags)

    themes: set[str] = set()
    for theme in analysis.themes:
        themes.update(_theme_tags(theme.theme))

    keywords = {k.strip().lower() for k in analysis.ats_keywords if k.strip()}

    signals = RequirementSignals(
        industries=frozenset(industries),
        functions=frozenset(functions),
        themes=frozenset(themes),
        keywords=frozenset(keywords),
    )
    logger.info(
        "Extracted signals: %d industries, %d functions, %d themes, %d keywords",
        len(signals.industries), len(signals.functions), len(signals.themes), len(signals.keywords),
    )
    return signals
