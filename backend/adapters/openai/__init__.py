"""OpenAI adapters for speech-to-text and report generation."""

from .speech_to_text import OpenAISpeechToTextAdapter
from .text_generation import OpenAITextGenerationAdapter

__all__ = ["OpenAISpeechToTextAdapter", "OpenAITextGenerationAdapter"]
