"""SpeechToTextPort — abstract interface for speech-to-text services."""

from abc import ABC, abstractmethod

from domain.models import AudioSegment, SpeechResult


class SpeechToTextPort(ABC):
    @abstractmethod
    async def transcribe(self, segment: AudioSegment) -> SpeechResult:
        """Transcribe one audio segment. Raises ServiceError on a non-success response."""

    @abstractmethod
    def model_name(self) -> str:
        """Return the model identifier used for transcription."""
