"""Exceptions raised by content selection and the generation pipeline."""

from __future__ import annotations


class CuratorError(Exception):
    """Base class for all resume-curator errors."""


class ContentLibraryError(CuratorError):
    """The content library file or its conflict table is malformed."""


class GenerationError(CuratorError):
    """The generation service failed after transport-level retries.

    Attributes:
        retryable: False when another attempt cannot succeed, e.g. bad
            credentials or a rejected request
    """

    def __init__(self, message: str, *, retryable: bool = True):
        self.retryable = retryable
        super().__init__(message)


class StageParseError(CuratorError):
    """A stage response could not be parsed into its expected schema.

    Attributes:
        stage: Name of the stage whose response failed to parse
        issues: Human-readable parse problems, fed back on retry
    """

    def __init__(self, stage: str, issues: list[str]):
        self.stage = stage
        self.issues = list(issues)
        super().__init__(f"Could not parse {stage} response: {'; '.join(self.issues)}")


class RetriesExhaustedError(CuratorError):
    """A stage failed validation on every allowed attempt.

    Attributes:
        stage: Name of the failed stage
        attempts: Number of attempts made
        issues: Issues reported by the last attempt
    """

    def __init__(self, stage: str, attempts: int, issues: list[str]):
        self.stage = stage
        self.attempts = attempts
        self.issues = list(issues)
        message = f"Stage '{stage}' failed after {attempts} attempt(s)"
        if self.issues:
            message += ": " + "; ".join(self.issues)
        super().__init__(message)


class EmptySelectionError(CuratorError):
    """A content category had no eligible candidates.

    Not fatal to a run. The selector records it as a warning unless it is
    asked to be strict.
    """

    def __init__(self, category: str, position_slot: int | None = None):
        self.category = category
        self.position_slot = position_slot
        label = category if position_slot is None else f"{category} (position {position_slot})"
        super().__init__(f"No eligible content items for {label}")


class UpstreamStateMissingError(CuratorError):
    """A stage needs state from a predecessor that never succeeded."""

    def __init__(self, stage: str, missing: str):
        self.stage = stage
        self.missing = missing
        super().__init__(f"Stage '{stage}' requires '{missing}', which has not succeeded")


class PipelineCancelledError(CuratorError):
    """The run's cancellation token was triggered."""

    def __init__(self, stage: str | None = None):
        self.stage = stage
        where = f" before stage '{stage}'" if stage else ""
        super().__init__(f"Pipeline cancelled{where}")
