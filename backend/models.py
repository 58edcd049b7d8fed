from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class ProgressEventModel(BaseModel):
    """A progress update as streamed to HTTP clients"""
    type: Literal["progress"] = "progress"
    stage: Literal["transcribing", "generating"]
    step: Literal["analyzing", "splitting", "processing", "merging"]
    current: int = Field(ge=0)
    total: int = Field(ge=1)
    message: str


class TranscriptionResponse(BaseModel):
    """Transcript returned to the caller"""
    id: str
    text: str
    timestamp: datetime
    confidence: Optional[float] = None
    segment_count: int = 1
    failed_segments: List[int] = []


class ReportRequest(BaseModel):
    prompt: str = ""
    transcription: str = ""


class ReportResponse(BaseModel):
    """Generated document returned to the caller"""
    id: str
    content: str
    prompt: str
    timestamp: datetime
    tokens: int = 0
    chunk_count: int = 1
    failed_chunks: List[int] = []


class PipelineResponse(BaseModel):
    transcript: TranscriptionResponse
    report: ReportResponse


class SuccessEnvelope(BaseModel):
    success: bool = True
    data: Dict[str, Any]


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None
