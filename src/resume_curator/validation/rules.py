"""Shared formatting rules: word ranges, banned words, and text helpers."""

from __future__ import annotations

import re
from dataclasses import dataclass

EMDASH = "—"


@dataclass(frozen=True)
class WordRange:
    min: int
    max: int

    def contains(self, count: int) -> bool:
        return self.min <= count <= self.max

    def __str__(self) -> str:
        return f"{self.min}-{self.max}"


SUMMARY_WORDS = WordRange(140, 160)
HIGHLIGHT_WORDS = WordRange(35, 50)
OVERVIEW_WORDS = WordRange(40, 60)
BULLET_WORDS = WordRange(25, 40)
EARLY_OVERVIEW_WORDS = WordRange(20, 40)

MIN_SUMMARY_JD_MAPPINGS = 3
MIN_HIGHLIGHT_JD_MAPPINGS = 2
MIN_BULLET_JD_MAPPINGS = 1

OVERUSE_THRESHOLD = 3
CROSS_RESUME_VERB_LIMIT = 2
MIN_CONTENT_WORD_LENGTH = 4

FORBIDDEN_WORDS = (
    "leveraged",
    "utilized",
    "spearheaded",
    "synergy",
    "passionate",
    "passion",
    "dynamic",
    "results-driven",
    "self-starter",
    "team player",
    "responsible for",
    "assisted with",
)

STOP_WORDS = frozenset(
    """
    the a an and or but in on at to for of with by from as is was are were be
    been being have has had do does did will would could should may might must
    shall can that which who whom this these those it its their they them we
    our us you your he she his her i my me into through during before after
    above below between under over out up down off about against more most
    other some such no not only same so than too very just also now here there
    when where why how all each every both few any many much new
    """.split()
)


def count_words(text: str) -> int:
    return len(text.split())


def leading_verb(text: str) -> str:
    """First word of a sentence, lower-cased and stripped of punctuation."""
    words = text.split()
    if not words:
        return ""
    return re.sub(r"[^\w-]", "", words[0]).lower()


def find_forbidden_words(text: str) -> list[str]:
    lowered = text.lower()
    found = []
    for word in FORBIDDEN_WORDS:
        if re.search(rf"\b{re.escape(word)}\b", lowered):
            found.append(word)
    return found


def content_words(text: str) -> list[str]:
    """Lower-cased words of 4+ characters that are not stop-words."""
    cleaned = re.sub(r"[^\w\s]", "", text.lower())
    return [
        w for w in cleaned.split()
        if len(w) >= MIN_CONTENT_WORD_LENGTH and w not in STOP_WORDS
    ]
