"""Per-stage structural validators.

Pure and deterministic. Every check returns ``ValidationIssue`` records rather
than raising, so one pass reports everything wrong with an attempt and the
full list can be fed back to the next one.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from resume_curator.models.result import ValidationIssue, ValidationReport
from resume_curator.models.stages import (
    EarlyCareerOutput,
    HighlightsOutput,
    JDAnalysis,
    JDMappingEntry,
    PositionOutput,
    SummaryOutput,
)
from resume_curator.models.state import AccumulatedState, StateForDownstream
from resume_curator.validation.rules import (
    BULLET_WORDS,
    EARLY_OVERVIEW_WORDS,
    EMDASH,
    HIGHLIGHT_WORDS,
    MIN_BULLET_JD_MAPPINGS,
    MIN_HIGHLIGHT_JD_MAPPINGS,
    MIN_SUMMARY_JD_MAPPINGS,
    OVERVIEW_WORDS,
    SUMMARY_WORDS,
    WordRange,
    count_words,
    find_forbidden_words,
    leading_verb,
)

MIN_KEY_PHRASES_PER_SECTION = 3


@dataclass(frozen=True)
class StageConstraints:
    """What a generation stage must respect on this attempt."""

    state: AccumulatedState = field(default_factory=AccumulatedState)
    candidate_ids: frozenset[str] | None = None  # None disables the pool check
    required_count: int | None = None


# --- building blocks ---


def check_word_range(text: str, words: WordRange, field_name: str) -> list[ValidationIssue]:
    n = count_words(text)
    if words.contains(n):
        return []
    return [ValidationIssue(
        message=f"{field_name} has {n} words, expected {words}",
        field=field_name,
    )]


def check_count(actual: int, expected: int, noun: str) -> list[ValidationIssue]:
    if actual == expected:
        return []
    return [ValidationIssue(message=f"Expected exactly {expected} {noun}, got {actual}", field=noun)]


def check_text_rules(text: str, field_name: str) -> list[ValidationIssue]:
    issues = []
    if EMDASH in text:
        issues.append(ValidationIssue(message=f"{field_name} contains an em-dash", field=field_name))
    for word in find_forbidden_words(text):
        issues.append(ValidationIssue(
            message=f"{field_name} uses forbidden word '{word}'", field=field_name,
        ))
    return issues


def check_jd_mappings(
    mappings: Sequence[JDMappingEntry], minimum: int, field_name: str
) -> list[ValidationIssue]:
    if len(mappings) >= minimum:
        return []
    return [ValidationIssue(
        message=f"{field_name} has {len(mappings)} JD mappings, expected at least {minimum}",
        field=field_name,
    )]


def check_distinct_verbs(verbs: Sequence[tuple[str, str]]) -> list[ValidationIssue]:
    """``verbs`` is (field, verb) pairs; each verb may lead only one field."""
    fields_by_verb: dict[str, list[str]] = {}
    for field_name, verb in verbs:
        if verb:
            fields_by_verb.setdefault(verb, []).append(field_name)
    return [
        ValidationIssue(
            message=f"Verb '{verb}' starts more than one entry ({', '.join(fields)})",
            field=fields[-1],
        )
        for verb, fields in fields_by_verb.items()
        if len(fields) > 1
    ]


def check_distinct_base_ids(base_ids: Sequence[tuple[str, str]]) -> list[ValidationIssue]:
    counts = Counter(b for _, b in base_ids)
    return [
        ValidationIssue(message=f"Base id {b} used more than once", field="base_id")
        for b, n in counts.items()
        if n > 1
    ]


def check_banned(
    state: AccumulatedState,
    *,
    field_name: str,
    text: str = "",
    base_id: str | None = None,
    verb: str = "",
) -> list[ValidationIssue]:
    issues = []
    if base_id is not None and base_id in state.used_base_ids:
        issues.append(ValidationIssue(
            message=f"{field_name} reuses banned base id {base_id}", field=field_name,
        ))
    if verb and verb in state.used_leading_verbs:
        issues.append(ValidationIssue(
            message=f"{field_name} starts with banned verb '{verb}'", field=field_name,
        ))
    lowered = text.lower()
    for metric in sorted(state.used_numeric_claims):
        if metric and metric in lowered:
            issues.append(ValidationIssue(
                message=f"{field_name} repeats banned metric '{metric}'", field=field_name,
            ))
    return issues


def check_candidate_pool(
    base_id: str, candidate_ids: frozenset[str] | None, field_name: str
) -> list[ValidationIssue]:
    if candidate_ids is None or base_id in candidate_ids:
        return []
    return [ValidationIssue(
        message=f"{field_name} uses base id {base_id}, which is not in the candidate pool",
        field=field_name,
    )]


def check_declared_state(
    declared: StateForDownstream,
    *,
    base_ids: Iterable[str] = (),
    verbs: Iterable[str] = (),
) -> list[ValidationIssue]:
    """The declared downstream state must cover everything the stage emitted."""
    issues = []
    declared_ids = {b.strip() for b in declared.used_base_ids}
    declared_verbs = {v.strip().lower() for v in declared.used_verbs}
    missing_ids = sorted(set(base_ids) - declared_ids)
    if missing_ids:
        issues.append(ValidationIssue(
            message=f"state_for_downstream.used_base_ids is missing {', '.join(missing_ids)}",
            field="state_for_downstream",
        ))
    missing_verbs = sorted({v for v in verbs if v} - declared_verbs)
    if missing_verbs:
        issues.append(ValidationIssue(
            message=f"state_for_downstream.used_verbs is missing {', '.join(missing_verbs)}",
            field="state_for_downstream",
        ))
    return issues


def _verb(primary_verb: str, content: str) -> str:
    return primary_verb.strip().lower() or leading_verb(content)


# --- stage validators ---


def validate_jd_analysis(analysis: JDAnalysis) -> ValidationReport:
    issues = []
    if not analysis.metadata.company.strip():
        issues.append(ValidationIssue(message="metadata.company is missing", field="metadata"))
    if not analysis.metadata.title.strip():
        issues.append(ValidationIssue(message="metadata.title is missing", field="metadata"))
    if not analysis.sections:
        issues.append(ValidationIssue(message="No JD sections extracted", field="sections"))
    for section in analysis.sections:
        if len(section.key_phrases) < MIN_KEY_PHRASES_PER_SECTION:
            issues.append(ValidationIssue(
                message=(
                    f"Section '{section.name}' has {len(section.key_phrases)} key phrases, "
                    f"expected at least {MIN_KEY_PHRASES_PER_SECTION}"
                ),
                field="sections",
            ))
    if not analysis.themes:
        issues.append(ValidationIssue(message="No themes extracted", field="themes"))
    return ValidationReport(issues=issues)


def validate_summary(output: SummaryOutput, constraints: StageConstraints) -> ValidationReport:
    content = output.summary.content
    issues = check_word_range(content, SUMMARY_WORDS, "summary")
    issues += check_jd_mappings(output.jd_mapping, MIN_SUMMARY_JD_MAPPINGS, "summary")
    issues += check_text_rules(content, "summary")
    issues += check_banned(constraints.state, field_name="summary", text=content)
    if constraints.candidate_ids is not None:
        for source in output.summary.sources_used:
            issues += check_candidate_pool(source, constraints.candidate_ids, "summary")
    issues += check_declared_state(
        output.state_for_downstream, base_ids=output.summary.sources_used
    )
    return ValidationReport(issues=issues)


def validate_highlights(output: HighlightsOutput, constraints: StageConstraints) -> ValidationReport:
    entries = output.career_highlights
    issues = []
    if constraints.required_count is not None:
        issues += check_count(len(entries), constraints.required_count, "career highlights")

    verbs: list[tuple[str, str]] = []
    base_ids: list[tuple[str, str]] = []
    for i, entry in enumerate(entries, start=1):
        name = f"highlight-{i}"
        verb = _verb(entry.primary_verb, entry.content)
        verbs.append((name, verb))
        base_ids.append((name, entry.base_id))
        issues += check_word_range(entry.content, HIGHLIGHT_WORDS, name)
        issues += check_jd_mappings(entry.jd_mapping, MIN_HIGHLIGHT_JD_MAPPINGS, name)
        issues += check_text_rules(f"{entry.headline} {entry.content}", name)
        issues += check_candidate_pool(entry.base_id, constraints.candidate_ids, name)
        issues += check_banned(
            constraints.state, field_name=name, text=entry.content,
            base_id=entry.base_id, verb=verb,
        )

    issues += check_distinct_verbs(verbs)
    issues += check_distinct_base_ids(base_ids)
    issues += check_declared_state(
        output.state_for_downstream,
        base_ids=[b for _, b in base_ids],
        verbs=[v for _, v in verbs],
    )
    return ValidationReport(issues=issues)


def validate_position(
    output: PositionOutput,
    constraints: StageConstraints,
    *,
    require_pattern_proof: bool = False,
) -> ValidationReport:
    issues = check_word_range(output.overview.content, OVERVIEW_WORDS, "overview")
    issues += check_text_rules(output.overview.content, "overview")
    if constraints.required_count is not None:
        issues += check_count(len(output.bullets), constraints.required_count, "bullets")

    verbs: list[tuple[str, str]] = []
    base_ids: list[tuple[str, str]] = []
    for i, bullet in enumerate(output.bullets, start=1):
        name = f"bullet-{i}"
        verb = _verb(bullet.primary_verb, bullet.content)
        verbs.append((name, verb))
        base_ids.append((name, bullet.base_id))
        issues += check_word_range(bullet.content, BULLET_WORDS, name)
        issues += check_jd_mappings(bullet.jd_mapping, MIN_BULLET_JD_MAPPINGS, name)
        issues += check_text_rules(bullet.content, name)
        issues += check_candidate_pool(bullet.base_id, constraints.candidate_ids, name)
        issues += check_banned(
            constraints.state, field_name=name, text=bullet.content,
            base_id=bullet.base_id, verb=verb,
        )
        if require_pattern_proof and not (bullet.pattern_proof or "").strip():
            issues.append(ValidationIssue(message=f"{name} is missing pattern_proof", field=name))

    issues += check_distinct_verbs(verbs)
    issues += check_distinct_base_ids(base_ids)
    issues += check_declared_state(
        output.state_for_downstream,
        base_ids=[b for _, b in base_ids],
        verbs=[v for _, v in verbs],
    )
    return ValidationReport(issues=issues)


def validate_early_career(
    output: EarlyCareerOutput,
    constraints: StageConstraints,
    positions: Sequence[int],
) -> ValidationReport:
    issues = check_count(len(output.overviews), len(positions), "position overviews")
    returned = sorted(o.position for o in output.overviews)
    if returned != sorted(positions) and len(output.overviews) == len(positions):
        issues.append(ValidationIssue(
            message=f"Expected overviews for positions {sorted(positions)}, got {returned}",
            field="overviews",
        ))
    if not output.trajectory_narrative.strip():
        issues.append(ValidationIssue(
            message="trajectory_narrative is missing", field="trajectory_narrative",
        ))
    if not output.verbs_used:
        issues.append(ValidationIssue(message="verbs_used is missing", field="verbs_used"))

    verbs: list[tuple[str, str]] = []
    for overview in output.overviews:
        name = f"position-{overview.position} overview"
        verb = _verb(overview.starting_verb, overview.content)
        verbs.append((name, verb))
        issues += check_word_range(overview.content, EARLY_OVERVIEW_WORDS, name)
        issues += check_text_rules(overview.content, name)
        issues += check_banned(constraints.state, field_name=name, text=overview.content, verb=verb)

    issues += check_distinct_verbs(verbs)
    declared = StateForDownstream(
        used_base_ids=output.state_for_downstream.used_base_ids,
        used_verbs=[*output.state_for_downstream.used_verbs, *output.verbs_used],
    )
    issues += check_declared_state(declared, verbs=[v for _, v in verbs])
    return ValidationReport(issues=issues)
