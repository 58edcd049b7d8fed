"""ReportOrchestrator — turns a transcript and an instruction into a document.

Short transcripts are sent in one call with the instruction untouched. Long
transcripts are split into character chunks; each chunk is sent with the
instruction plus a note on where the chunk sits and whether the service
should continue or conclude. Parts are joined with a horizontal rule.
"""

import logging
from typing import Optional

from domain.chunking import split_text
from domain.models import ReportResult, TextChunk, UnitOutcome
from domain.progress import ProgressReporter, ProgressSubscriber
from exceptions import ServiceError
from ports.rate_limiter import RateLimiterPort
from ports.text_generation import TextGenerationPort

logger = logging.getLogger(__name__)

STAGE = "generating"
DEFAULT_CHUNK_THRESHOLD = 8000
PART_SEPARATOR = "\n\n---\n\n"


def chunk_placeholder(index: int, total: int) -> str:
    return f"[part {index + 1}/{total} processing failed]"


def frame_instruction(instruction: str, chunk: TextChunk) -> str:
    """Append position context and a continuation directive to the instruction."""
    if chunk.is_first:
        context = "This is the first part of a long transcript."
    elif chunk.is_last:
        context = "This is the last part of a long transcript."
    else:
        context = f"This is part {chunk.index + 1} of {chunk.total} of a long transcript."

    if chunk.is_last:
        continuation = "Conclude the report, taking into account that this is the final part."
    else:
        continuation = "Continue the report so that it can be concatenated with the following parts."

    return f"{instruction}\n\nCONTEXT: {context}\nCONTINUATION: {continuation}"


class ReportOrchestrator:
    def __init__(
        self,
        generator: TextGenerationPort,
        rate_limiter: RateLimiterPort,
        stage_pacer: Optional[RateLimiterPort] = None,
        chunk_threshold: int = DEFAULT_CHUNK_THRESHOLD,
        chunk_size: Optional[int] = None,
    ):
        if chunk_size is None:
            chunk_size = chunk_threshold
        if chunk_threshold <= 0:
            raise ValueError(f"Chunk threshold must be positive, got {chunk_threshold}")
        if not 0 < chunk_size <= chunk_threshold:
            raise ValueError(f"Chunk size must be within 1..{chunk_threshold}, got {chunk_size}")
        self._generator = generator
        self._rate_limiter = rate_limiter
        self._stage_pacer = stage_pacer
        self._chunk_threshold = chunk_threshold
        self._chunk_size = chunk_size

    async def generate(
        self,
        transcript_text: str,
        instruction: str,
        on_progress: Optional[ProgressSubscriber] = None,
    ) -> ReportResult:
        """Generate the report. Raises ServiceError only on the single-call path."""
        reporter = ProgressReporter(on_progress)
        length = len(transcript_text)

        logger.info(f"Generating report for {length} characters (instruction {len(instruction)} characters)")
        reporter.report(STAGE, "analyzing", 0, 1)

        if length <= self._chunk_threshold:
            return await self._generate_single(transcript_text, instruction, reporter)

        logger.info(f"Transcript exceeds {self._chunk_threshold} characters, generating in chunks")
        return await self._generate_chunks(transcript_text, instruction, reporter)

    async def _generate_single(
        self,
        transcript_text: str,
        instruction: str,
        reporter: ProgressReporter,
    ) -> ReportResult:
        reporter.report(STAGE, "processing", 1, 1)
        await self._pace()

        result = await self._generator.generate(instruction, transcript_text)

        logger.info(f"Report complete: {len(result.content)} characters, {result.token_count or 0} tokens")
        return ReportResult(
            content=result.content,
            prompt=instruction,
            token_count=result.token_count or 0,
        )

    async def _generate_chunks(
        self,
        transcript_text: str,
        instruction: str,
        reporter: ProgressReporter,
    ) -> ReportResult:
        reporter.report(STAGE, "splitting", 0, 1)
        chunks = split_text(transcript_text, self._chunk_size)
        total = len(chunks)
        logger.info(f"Transcript split into {total} chunks of up to {self._chunk_size} characters")

        await self._pace()

        outcomes: list[UnitOutcome] = []
        for chunk in chunks:
            reporter.report(
                STAGE, "processing", chunk.index + 1, total,
                f"Generating report - part {chunk.index + 1} of {total}...",
            )
            logger.info(f"Processing report chunk {chunk.index + 1}/{total}")
            outcomes.append(await self._generate_chunk(instruction, chunk))

            if not chunk.is_last:
                await self._rate_limiter.wait()

        reporter.report(STAGE, "merging", total, total)

        token_count = sum(o.token_count for o in outcomes)
        failed = tuple(o.index for o in outcomes if not o.succeeded)
        if failed:
            logger.warning(f"{len(failed)}/{total} report chunks failed: {[i + 1 for i in failed]}")
        logger.info(f"Chunked report complete, {token_count} tokens")

        return ReportResult(
            content=PART_SEPARATOR.join(o.value for o in outcomes),
            prompt=instruction,
            token_count=token_count,
            chunk_count=total,
            failed_chunks=failed,
        )

    async def _generate_chunk(self, instruction: str, chunk: TextChunk) -> UnitOutcome:
        try:
            result = await self._generator.generate(frame_instruction(instruction, chunk), chunk.text)
        except ServiceError as e:
            logger.warning(f"Report chunk {chunk.index + 1} failed: {e}")
            return UnitOutcome(
                index=chunk.index,
                value=chunk_placeholder(chunk.index, chunk.total),
                succeeded=False,
            )

        return UnitOutcome(
            index=chunk.index,
            value=result.content,
            succeeded=True,
            token_count=result.token_count or 0,
        )

    async def _pace(self) -> None:
        if self._stage_pacer is not None:
            await self._stage_pacer.wait()
