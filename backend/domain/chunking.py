"""Size checks and range partitioning for audio payloads and transcripts.

Audio is split on raw byte offsets, not on frame boundaries, so a segment may
start or end mid-frame. Transcripts are split on character offsets with the
same discipline: fixed-size ranges, remainder in the last one.
"""

import logging
import math
from typing import Optional

from domain.models import AudioPayload, AudioSegment, TextChunk
from exceptions import InvalidPayloadError

logger = logging.getLogger(__name__)

BYTES_PER_MB = 1024 * 1024

SUPPORTED_CONTENT_TYPES = frozenset({
    "audio/webm",
    "audio/wav",
    "audio/mp3",
    "audio/mpeg",
    "audio/ogg",
})


def mb_to_bytes(size_mb: float) -> int:
    size = int(size_mb * BYTES_PER_MB)
    if size <= 0:
        raise ValueError(f"Chunk size must be positive, got {size_mb} MB")
    return size


class MediaChunker:
    """Stateless validation and byte-range splitting of audio payloads."""

    def __init__(self, supported_types: frozenset[str] = SUPPORTED_CONTENT_TYPES):
        self._supported_types = supported_types

    def validate(self, payload: Optional[AudioPayload]) -> None:
        """Raise InvalidPayloadError if the payload cannot be transcribed.

        Only the declared content type is checked; the bytes are not sniffed.
        A payload without a declared type is accepted.
        """
        if payload is None or payload.data is None:
            raise InvalidPayloadError("audio payload was not provided")
        if payload.size == 0:
            raise InvalidPayloadError("audio payload is empty")
        content_type = (payload.content_type or "").split(";")[0].strip().lower()
        if content_type and content_type not in self._supported_types:
            raise InvalidPayloadError(f"unsupported media type: {payload.content_type}")

    def size_in_mb(self, payload: AudioPayload) -> float:
        return payload.size / BYTES_PER_MB

    def is_within_limit(self, payload: AudioPayload, limit_mb: float) -> bool:
        return self.size_in_mb(payload) <= limit_mb

    def split(self, payload: AudioPayload, chunk_size_mb: float) -> list[AudioSegment]:
        """Partition the payload into consecutive, non-overlapping byte ranges."""
        chunk_bytes = mb_to_bytes(chunk_size_mb)

        if payload.size <= chunk_bytes:
            return [AudioSegment(0, payload.data, payload.content_type, payload.filename)]

        view = memoryview(payload.data)
        segments: list[AudioSegment] = []
        for index, start in enumerate(range(0, payload.size, chunk_bytes)):
            end = min(start + chunk_bytes, payload.size)
            segments.append(AudioSegment(
                index=index,
                data=bytes(view[start:end]),
                content_type=payload.content_type,
                filename=payload.filename,
            ))
            logger.debug(f"Segment {index + 1}: bytes {start}-{end} ({(end - start) / BYTES_PER_MB:.2f}MB)")

        logger.info(f"Split {self.size_in_mb(payload):.2f}MB payload into {len(segments)} segments of {chunk_size_mb}MB")
        return segments


def split_text(text: str, chunk_size: int) -> list[TextChunk]:
    """Partition text into ``ceil(len / chunk_size)`` consecutive character ranges."""
    if chunk_size <= 0:
        raise ValueError(f"Chunk size must be positive, got {chunk_size}")
    if not text:
        return [TextChunk(index=0, total=1, text=text)]

    total = math.ceil(len(text) / chunk_size)
    return [
        TextChunk(index=i, total=total, text=text[i * chunk_size:(i + 1) * chunk_size])
        for i in range(total)
    ]
