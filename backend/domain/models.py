"""Framework-agnostic domain models for the recording-to-report pipeline.

Orchestrators work only with these dataclasses. Pydantic DTOs in models.py
stay at the HTTP boundary, with mappers in between.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal, Optional

Stage = Literal["transcribing", "generating"]
Step = Literal["analyzing", "splitting", "processing", "merging"]

STAGES: tuple[str, ...] = ("transcribing", "generating")
STEPS: tuple[str, ...] = ("analyzing", "splitting", "processing", "merging")


def new_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ProgressEvent:
    """A single progress update pushed to an observer."""
    stage: Stage
    step: Step
    current: int
    total: int
    message: str

    def __post_init__(self):
        if self.stage not in STAGES:
            raise ValueError(f"Unknown stage: {self.stage!r}")
        if self.step not in STEPS:
            raise ValueError(f"Unknown step: {self.step!r}")
        if self.total < 1:
            raise ValueError(f"total must be positive, got {self.total}")
        if not 0 <= self.current <= self.total:
            raise ValueError(f"current must be within 0..{self.total}, got {self.current}")


@dataclass(frozen=True)
class AudioPayload:
    """Binary audio as received from the caller."""
    data: bytes
    content_type: Optional[str] = None
    filename: str = "audio.wav"

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class AudioSegment:
    """A contiguous byte range of an AudioPayload."""
    index: int
    data: bytes
    content_type: Optional[str] = None
    filename: str = "audio.wav"

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class TextChunk:
    """A contiguous character range of a transcript."""
    index: int
    total: int
    text: str

    @property
    def is_first(self) -> bool:
        return self.index == 0

    @property
    def is_last(self) -> bool:
        return self.index == self.total - 1


@dataclass(frozen=True)
class SpeechResult:
    text: str
    confidence: Optional[float] = None


@dataclass(frozen=True)
class GenerationResult:
    content: str
    token_count: Optional[int] = None


@dataclass(frozen=True)
class UnitOutcome:
    """Result of one segment or chunk sub-request.

    Failed units carry their placeholder marker as ``value``.
    """
    index: int
    value: str
    succeeded: bool
    confidence: float = 0.0
    token_count: int = 0


@dataclass(frozen=True)
class TranscriptResult:
    text: str
    confidence: Optional[float] = None
    id: str = field(default_factory=new_id)
    timestamp: datetime = field(default_factory=utc_now)
    segment_count: int = 1
    failed_segments: tuple[int, ...] = ()

    @property
    def is_partial(self) -> bool:
        return bool(self.failed_segments)


@dataclass(frozen=True)
class ReportResult:
    content: str
    prompt: str
    token_count: int = 0
    id: str = field(default_factory=new_id)
    timestamp: datetime = field(default_factory=utc_now)
    chunk_count: int = 1
    failed_chunks: tuple[int, ...] = ()

    @property
    def is_partial(self) -> bool:
        return bool(self.failed_chunks)


@dataclass(frozen=True)
class PipelineResult:
    """Both artifacts produced for one recording."""
    transcript: TranscriptResult
    report: ReportResult
