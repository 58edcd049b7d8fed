"""TranscriptionOrchestrator — turns an audio payload into a single transcript.

Payloads within the size limit go to the speech service in one call. Larger
payloads are split into byte-range segments that are transcribed strictly
one after another, with a rate-limiter suspension between requests. A failed
segment is replaced by a placeholder marker and the job carries on.
"""

import logging
from typing import Literal, Optional

from domain.chunking import MediaChunker
from domain.models import AudioPayload, AudioSegment, TranscriptResult, UnitOutcome
from domain.progress import ProgressReporter, ProgressSubscriber
from exceptions import ServiceError
from ports.rate_limiter import RateLimiterPort
from ports.transcription import SpeechToTextPort

logger = logging.getLogger(__name__)

STAGE = "transcribing"
DEFAULT_LIMIT_MB = 24.0

ConfidencePolicy = Literal["planned", "completed"]
CONFIDENCE_POLICIES: tuple[str, ...] = ("planned", "completed")


def segment_placeholder(index: int) -> str:
    return f"[segment {index + 1} transcription failed]"


def average_confidence(outcomes: list[UnitOutcome], policy: ConfidencePolicy = "planned") -> float:
    """Average segment confidence.

    "planned" divides by every segment, failed ones counting as 0.
    "completed" divides by the successful segments only.
    """
    if policy == "completed":
        completed = [o for o in outcomes if o.succeeded]
        if not completed:
            return 0.0
        return sum(o.confidence for o in completed) / len(completed)
    if not outcomes:
        return 0.0
    return sum(o.confidence for o in outcomes) / len(outcomes)


class TranscriptionOrchestrator:
    def __init__(
        self,
        speech: SpeechToTextPort,
        rate_limiter: RateLimiterPort,
        chunker: Optional[MediaChunker] = None,
        stage_pacer: Optional[RateLimiterPort] = None,
        limit_mb: float = DEFAULT_LIMIT_MB,
        confidence_policy: ConfidencePolicy = "planned",
    ):
        if confidence_policy not in CONFIDENCE_POLICIES:
            raise ValueError(f"Unknown confidence policy: {confidence_policy!r}")
        self._speech = speech
        self._rate_limiter = rate_limiter
        self._chunker = chunker or MediaChunker()
        self._stage_pacer = stage_pacer
        self._limit_mb = limit_mb
        self._confidence_policy = confidence_policy

    async def transcribe(
        self,
        payload: AudioPayload,
        limit_mb: Optional[float] = None,
        on_progress: Optional[ProgressSubscriber] = None,
    ) -> TranscriptResult:
        """Transcribe the payload. Raises InvalidPayloadError, or ServiceError on the single-call path."""
        self._chunker.validate(payload)

        limit = limit_mb if limit_mb is not None else self._limit_mb
        reporter = ProgressReporter(on_progress)
        size_mb = self._chunker.size_in_mb(payload)

        logger.info(f"Transcribing {size_mb:.2f}MB payload (type={payload.content_type or 'unknown'}, limit={limit}MB)")
        reporter.report(STAGE, "analyzing", 0, 1, f"Analyzing audio file ({size_mb:.1f}MB)...")

        if self._chunker.is_within_limit(payload, limit):
            return await self._transcribe_single(payload, reporter)

        logger.info(f"Payload exceeds {limit}MB, transcribing in segments")
        return await self._transcribe_segments(payload, limit, reporter)

    async def _transcribe_single(self, payload: AudioPayload, reporter: ProgressReporter) -> TranscriptResult:
        reporter.report(STAGE, "processing", 1, 1)
        await self._pace()

        segment = AudioSegment(0, payload.data, payload.content_type, payload.filename)
        result = await self._speech.transcribe(segment)

        logger.info(f"Transcription complete: {len(result.text)} characters")
        return TranscriptResult(text=result.text, confidence=result.confidence)

    async def _transcribe_segments(
        self,
        payload: AudioPayload,
        limit_mb: float,
        reporter: ProgressReporter,
    ) -> TranscriptResult:
        reporter.report(STAGE, "splitting", 0, 1)
        segments = self._chunker.split(payload, limit_mb)
        total = len(segments)

        await self._pace()

        outcomes: list[UnitOutcome] = []
        for i, segment in enumerate(segments):
            reporter.report(STAGE, "processing", i + 1, total, f"Transcribing segment {i + 1} of {total}...")
            logger.info(f"Transcribing segment {i + 1}/{total} ({segment.size} bytes)")
            outcomes.append(await self._transcribe_segment(segment))

            if i < total - 1:
                await self._rate_limiter.wait()

        reporter.report(STAGE, "merging", total, total)

        text = " ".join(o.value for o in outcomes).strip()
        failed = tuple(o.index for o in outcomes if not o.succeeded)
        if failed:
            logger.warning(f"{len(failed)}/{total} segments failed: {[i + 1 for i in failed]}")

        return TranscriptResult(
            text=text,
            confidence=average_confidence(outcomes, self._confidence_policy),
            segment_count=total,
            failed_segments=failed,
        )

    async def _transcribe_segment(self, segment: AudioSegment) -> UnitOutcome:
        try:
            result = await self._speech.transcribe(segment)
        except ServiceError as e:
            logger.warning(f"Segment {segment.index + 1} failed: {e}")
            return UnitOutcome(index=segment.index, value=segment_placeholder(segment.index), succeeded=False)

        return UnitOutcome(
            index=segment.index,
            value=result.text,
            succeeded=True,
            confidence=result.confidence or 0.0,
        )

    async def _pace(self) -> None:
        if self._stage_pacer is not None:
            await self._stage_pacer.wait()
