"""Domain <-> DTO mappers.

Converts the frozen domain dataclasses into pydantic DTOs for HTTP responses
and the newline-delimited progress stream.
"""

from domain.models import PipelineResult, ProgressEvent, ReportResult, TranscriptResult
from models import PipelineResponse, ProgressEventModel, ReportResponse, TranscriptionResponse


def transcript_to_dto(result: TranscriptResult) -> TranscriptionResponse:
    return TranscriptionResponse(
        id=result.id,
        text=result.text,
        timestamp=result.timestamp,
        confidence=result.confidence,
        segment_count=result.segment_count,
        failed_segments=list(result.failed_segments),
    )


def report_to_dto(result: ReportResult) -> ReportResponse:
    return ReportResponse(
        id=result.id,
        content=result.content,
        prompt=result.prompt,
        timestamp=result.timestamp,
        tokens=result.token_count,
        chunk_count=result.chunk_count,
        failed_chunks=list(result.failed_chunks),
    )


def pipeline_to_dto(result: PipelineResult) -> PipelineResponse:
    return PipelineResponse(
        transcript=transcript_to_dto(result.transcript),
        report=report_to_dto(result.report),
    )


def progress_to_dto(event: ProgressEvent) -> ProgressEventModel:
    return ProgressEventModel(
        stage=event.stage,
        step=event.step,
        current=event.current,
        total=event.total,
        message=event.message,
    )
