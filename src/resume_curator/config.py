"""Application configuration loaded from config.yaml."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml


@dataclass(frozen=True)
class LLMConfig:
    model: str = "claude-sonnet-4-5-20250929"
    analysis_model: str = "claude-haiku-4-5-20251001"
    max_tokens: int = 4096
    temperature: float = 0.3
    analysis_temperature: float = 0.0
    timeout: int = 120
    max_retries: int = 3  # transport-level retries for transient API errors

    def __post_init__(self) -> None:
        if self.timeout < 1:
            raise ValueError(f"llm.timeout must be >= 1, got {self.timeout}")
        if not 0.0 <= self.temperature <= 1.0:
            raise ValueError(f"llm.temperature must be in [0, 1], got {self.temperature}")
        if not 0.0 <= self.analysis_temperature <= 1.0:
            raise ValueError(
                f"llm.analysis_temperature must be in [0, 1], got {self.analysis_temperature}"
            )
        if self.max_tokens < 1:
            raise ValueError(f"llm.max_tokens must be >= 1, got {self.max_tokens}")
        if self.max_retries < 1:
            raise ValueError(f"llm.max_retries must be >= 1, got {self.max_retries}")


@dataclass(frozen=True)
class PipelineConfig:
    max_retries: int = 3  # total attempts per stage, including the first
    request_timeout: float = 180.0

    def __post_init__(self) -> None:
        if not 1 <= self.max_retries <= 10:
            raise ValueError(f"pipeline.max_retries must be in 1..10, got {self.max_retries}")
        if self.request_timeout <= 0:
            raise ValueError(
                f"pipeline.request_timeout must be > 0, got {self.request_timeout}"
            )


@dataclass(frozen=True)
class SelectionConfig:
    highlight_count: int = 5
    p1_bullet_count: int = 4
    p2_bullet_count: int = 3
    score_cap: int = 9

    def __post_init__(self) -> None:
        for name in ("highlight_count", "p1_bullet_count", "p2_bullet_count", "score_cap"):
            value = getattr(self, name)
            if value < 1:
                raise ValueError(f"selection.{name} must be >= 1, got {value}")

    def bullet_count(self, position: int) -> int:
        return self.p1_bullet_count if position == 1 else self.p2_bullet_count


@dataclass(frozen=True)
class ContentConfig:
    library_path: str = "~/.resume-curator/library.yaml"

    @property
    def resolved_library_path(self) -> Path:
        return Path(self.library_path).expanduser()


@dataclass(frozen=True)
class DiagnosticsConfig:
    enabled: bool = False
    db_path: str = "~/.resume-curator/diagnostics.db"

    @property
    def resolved_db_path(self) -> Path:
        return Path(self.db_path).expanduser()


@dataclass(frozen=True)
class AppConfig:
    llm: LLMConfig = field(default_factory=LLMConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    selection: SelectionConfig = field(default_factory=SelectionConfig)
    content: ContentConfig = field(default_factory=ContentConfig)
    diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load config from YAML file, falling back to defaults."""
    if path is None:
        candidates = [
            Path.cwd() / "config.yaml",
            Path(__file__).resolve().parent.parent.parent / "config.yaml",
        ]
        for c in candidates:
            if c.exists():
                path = c
                break

    raw: dict = {}
    if path is not None:
        p = Path(path)
        if p.exists():
            raw = yaml.safe_load(p.read_text()) or {}

    return AppConfig(
        llm=LLMConfig(**raw.get("llm", {})),
        pipeline=PipelineConfig(**raw.get("pipeline", {})),
        selection=SelectionConfig(**raw.get("selection", {})),
        content=ContentConfig(**raw.get("content", {})),
        diagnostics=DiagnosticsConfig(**raw.get("diagnostics", {})),
    )
