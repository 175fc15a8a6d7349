"""Format Checker: deterministic formatting review of an assembled resume.

Runs once over the whole resume. Never calls the generation service and never
triggers a retry; it only scores and reports.
"""

from __future__ import annotations

import logging
from collections import Counter

from resume_curator.models.qa import FormatIssue, FormatReport
from resume_curator.models.resume import AssembledResume
from resume_curator.validation.rules import (
    BULLET_WORDS,
    CROSS_RESUME_VERB_LIMIT,
    EARLY_OVERVIEW_WORDS,
    EMDASH,
    HIGHLIGHT_WORDS,
    OVERUSE_THRESHOLD,
    OVERVIEW_WORDS,
    SUMMARY_WORDS,
    count_words,
    content_words,
    leading_verb,
)

logger = logging.getLogger(__name__)

MAX_SCORE = 10.0

# (per-issue deduction, cap)
EMDASH_PENALTY = (1.0, 2.0)
OVERUSED_PENALTY = (0.5, 2.0)
SUMMARY_LENGTH_PENALTY = 1.0
BULLET_LENGTH_PENALTY = (0.5, 2.0)
VERB_WITHIN_PENALTY = 1.0
VERB_ACROSS_PENALTY = 0.5
VERB_REPETITION_CAP = 2.0
OVERVIEW_LENGTH_PENALTY = (0.5, 1.0)


def _texts(resume: AssembledResume) -> list[tuple[str, str]]:
    """(location, text) for every checked block, in reading order."""
    texts = [("summary", resume.summary)]
    for i, ch in enumerate(resume.career_highlights, start=1):
        texts.append((f"career-highlight-{i}", f"{ch.headline} {ch.content}".strip()))
    for p in resume.positions:
        if p.overview:
            texts.append((f"p{p.number}-overview", p.overview))
        for i, bullet in enumerate(p.bullets, start=1):
            texts.append((f"p{p.number}-bullet-{i}", bullet))
    return texts


def _capped(count: int, penalty: tuple[float, float]) -> float:
    per_issue, cap = penalty
    return min(count * per_issue, cap)


def check_emdashes(resume: AssembledResume) -> list[FormatIssue]:
    return [
        FormatIssue(
            category="emdash", severity="warning", location=location,
            message=f"Em-dash found in {location}",
        )
        for location, text in _texts(resume)
        if EMDASH in text
    ]


def word_frequency(resume: AssembledResume) -> Counter:
    counts: Counter = Counter()
    for _, text in _texts(resume):
        counts.update(content_words(text))
    return counts


def check_word_variety(resume: AssembledResume) -> tuple[list[FormatIssue], dict[str, int]]:
    overused = {
        word: n for word, n in word_frequency(resume).most_common() if n >= OVERUSE_THRESHOLD
    }
    issues = [
        FormatIssue(
            category="overused_word", severity="suggestion", location=word,
            message=f"'{word}' appears {n} times",
        )
        for word, n in overused.items()
    ]
    return issues, overused


def check_summary_length(resume: AssembledResume) -> list[FormatIssue]:
    n = count_words(resume.summary)
    if SUMMARY_WORDS.contains(n):
        return []
    return [FormatIssue(
        category="summary_length", severity="warning", location="summary",
        message=f"summary has {n} words, expected {SUMMARY_WORDS}",
    )]


def check_bullet_lengths(resume: AssembledResume) -> list[FormatIssue]:
    issues = []
    for i, ch in enumerate(resume.career_highlights, start=1):
        n = count_words(ch.content)
        if not HIGHLIGHT_WORDS.contains(n):
            issues.append(FormatIssue(
                category="bullet_length", severity="warning", location=f"career-highlight-{i}",
                message=f"career-highlight-{i} has {n} words, expected {HIGHLIGHT_WORDS}",
            ))
    for p in resume.positions:
        for i, bullet in enumerate(p.bullets, start=1):
            n = count_words(bullet)
            if not BULLET_WORDS.contains(n):
                location = f"p{p.number}-bullet-{i}"
                issues.append(FormatIssue(
                    category="bullet_length", severity="warning", location=location,
                    message=f"{location} has {n} words, expected {BULLET_WORDS}",
                ))
    return issues


def check_verb_repetition(resume: AssembledResume) -> tuple[list[FormatIssue], list[FormatIssue]]:
    """Return (within-section issues, across-resume issues)."""
    groups: list[tuple[str, list[str]]] = [
        ("career-highlights", [leading_verb(ch.content) for ch in resume.career_highlights]),
    ]
    for p in resume.positions:
        if p.bullets:
            groups.append((f"p{p.number}", [leading_verb(b) for b in p.bullets]))

    within = []
    all_verbs: list[str] = []
    for location, verbs in groups:
        verbs = [v for v in verbs if v]
        all_verbs.extend(verbs)
        for verb, n in Counter(verbs).items():
            if n > 1:
                within.append(FormatIssue(
                    category="verb_repetition", severity="blocker", location=location,
                    message=f"'{verb}' starts {n} entries in {location}",
                ))

    across = [
        FormatIssue(
            category="verb_repetition", severity="suggestion", location="resume",
            message=f"'{verb}' starts {n} entries across the resume",
        )
        for verb, n in Counter(all_verbs).items()
        if n > CROSS_RESUME_VERB_LIMIT
    ]
    return within, across


def check_overview_lengths(resume: AssembledResume) -> list[FormatIssue]:
    issues = []
    for p in resume.positions:
        if not p.overview:
            continue
        expected = OVERVIEW_WORDS if p.number <= 2 else EARLY_OVERVIEW_WORDS
        n = count_words(p.overview)
        if not expected.contains(n):
            location = f"p{p.number}-overview"
            issues.append(FormatIssue(
                category="overview_length", severity="warning", location=location,
                message=f"{location} has {n} words, expected {expected}",
            ))
    return issues


def check_format(resume: AssembledResume) -> FormatReport:
    """Run every format check and compute the 0-10 score."""
    emdash = check_emdashes(resume)
    overused, frequency = check_word_variety(resume)
    summary = check_summary_length(resume)
    bullets = check_bullet_lengths(resume)
    within, across = check_verb_repetition(resume)
    overviews = check_overview_lengths(resume)

    score = MAX_SCORE
    score -= _capped(len(emdash), EMDASH_PENALTY)
    score -= _capped(len(overused), OVERUSED_PENALTY)
    score -= SUMMARY_LENGTH_PENALTY if summary else 0.0
    score -= _capped(len(bullets), BULLET_LENGTH_PENALTY)
    score -= min(
        len(within) * VERB_WITHIN_PENALTY + len(across) * VERB_ACROSS_PENALTY,
        VERB_REPETITION_CAP,
    )
    score -= _capped(len(overviews), OVERVIEW_LENGTH_PENALTY)
    score = max(0.0, round(score * 10) / 10)

    issues = emdash + summary + bullets + overviews + within + across + overused
    logger.info("Format check: score %.1f, %d issues", score, len(issues))
    return FormatReport(score=score, issues=issues, word_frequency=frequency)
