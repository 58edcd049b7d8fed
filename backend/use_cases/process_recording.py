"""ProcessRecordingUseCase — audio + instruction in, transcript + report out.

Both stages report through the same subscriber, so one observer sees the
transcribing events followed by the generating events.
"""

import logging
from typing import Optional

from domain.models import AudioPayload, PipelineResult
from domain.progress import ProgressSubscriber
from use_cases.generate_report import ReportOrchestrator
from use_cases.transcribe import TranscriptionOrchestrator

logger = logging.getLogger(__name__)


class ProcessRecordingUseCase:
    def __init__(self, transcription: TranscriptionOrchestrator, report: ReportOrchestrator):
        self._transcription = transcription
        self._report = report

    async def execute(
        self,
        payload: AudioPayload,
        instruction: str,
        on_progress: Optional[ProgressSubscriber] = None,
    ) -> PipelineResult:
        transcript = await self._transcription.transcribe(payload, on_progress=on_progress)
        if transcript.is_partial:
            logger.warning(f"Transcript {transcript.id} is partial, failed segments: {list(transcript.failed_segments)}")

        report = await self._report.generate(transcript.text, instruction, on_progress=on_progress)
        logger.info(f"Pipeline complete: transcript={transcript.id}, report={report.id}")
        return PipelineResult(transcript=transcript, report=report)
