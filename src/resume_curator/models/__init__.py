"""Data models for the resume curator."""

from resume_curator.models.content import ContentCategory, ContentItem, ItemTags, Variant
from resume_curator.models.profile import Profile
from resume_curator.models.qa import CoverageReport, FormatIssue, FormatReport
from resume_curator.models.result import (
    StageResult,
    StageStatus,
    ValidationIssue,
    ValidationReport,
)
from resume_curator.models.resume import AssembledResume
from resume_curator.models.selection import ScoredCandidate, SelectionResult
from resume_curator.models.signals import RequirementSignals
from resume_curator.models.stages import JDAnalysis
from resume_curator.models.state import AccumulatedState, StateForDownstream

__all__ = [
    "AccumulatedState",
    "AssembledResume",
    "ContentCategory",
    "ContentItem",
    "CoverageReport",
    "FormatIssue",
    "FormatReport",
    "ItemTags",
    "JDAnalysis",
    "Profile",
    "RequirementSignals",
    "ScoredCandidate",
    "SelectionResult",
    "StageResult",
    "StageStatus",
    "StateForDownstream",
    "ValidationIssue",
    "ValidationReport",
    "Variant",
]
