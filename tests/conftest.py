import asyncio
from typing import Optional

import pytest

from domain.chunking import BYTES_PER_MB
from domain.models import AudioPayload, AudioSegment, GenerationResult, ProgressEvent, SpeechResult
from exceptions import ServiceError
from ports.rate_limiter import RateLimiterPort
from ports.text_generation import TextGenerationPort
from ports.transcription import SpeechToTextPort


class FakeSpeech(SpeechToTextPort):
    """Returns "text N" for segment N, failing for indices in fail_on."""

    def __init__(self, confidences: Optional[dict] = None, fail_on=(), default_confidence: Optional[float] = 0.9):
        self.segments: list[AudioSegment] = []
        self.confidences = confidences or {}
        self.fail_on = set(fail_on)
        self.default_confidence = default_confidence
        self.in_flight = 0
        self.max_in_flight = 0

    async def transcribe(self, segment: AudioSegment) -> SpeechResult:
        self.segments.append(segment)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            if segment.index in self.fail_on:
                raise ServiceError("Bad Request", status_code=400)
            return SpeechResult(
                text=f"text {segment.index + 1}",
                confidence=self.confidences.get(segment.index, self.default_confidence),
            )
        finally:
            self.in_flight -= 1

    def model_name(self) -> str:
        return "fake-speech"


class FakeGenerator(TextGenerationPort):
    """Returns "part N" for the Nth call, failing for call indices in fail_on."""

    def __init__(self, token_counts: Optional[dict] = None, fail_on=(), default_tokens: Optional[int] = 100):
        self.calls: list[tuple[str, str]] = []
        self.token_counts = token_counts or {}
        self.fail_on = set(fail_on)
        self.default_tokens = default_tokens

    async def generate(self, system_instruction: str, user_text: str) -> GenerationResult:
        index = len(self.calls)
        self.calls.append((system_instruction, user_text))
        await asyncio.sleep(0)
        if index in self.fail_on:
            raise ServiceError("Rate limit reached", status_code=429)
        return GenerationResult(
            content=f"part {index + 1}",
            token_count=self.token_counts.get(index, self.default_tokens),
        )

    def model_name(self) -> str:
        return "fake-generator"


class CountingRateLimiter(RateLimiterPort):
    """Never sleeps, counts wait() calls."""

    def __init__(self):
        self.calls = 0

    async def wait(self) -> None:
        self.calls += 1
        await asyncio.sleep(0)


class EventRecorder:
    def __init__(self):
        self.events: list[ProgressEvent] = []

    def __call__(self, event: ProgressEvent) -> None:
        self.events.append(event)

    @property
    def steps(self) -> list[tuple[str, str]]:
        return [(e.stage, e.step) for e in self.events]


def kb_payload(size_kb: int, content_type: Optional[str] = "audio/webm") -> AudioPayload:
    """Payload of size_kb kilobytes with a byte pattern that makes misordering visible."""
    data = bytes(i % 251 for i in range(size_kb * 1024))
    return AudioPayload(data=data, content_type=content_type)


def kb_as_mb(size_kb: float) -> float:
    return size_kb * 1024 / BYTES_PER_MB


@pytest.fixture
def speech():
    return FakeSpeech()


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def limiter():
    return CountingRateLimiter()


@pytest.fixture
def recorder():
    return EventRecorder()
