"""TextGenerationPort — abstract interface for text-generation services."""

from abc import ABC, abstractmethod

from domain.models import GenerationResult


class TextGenerationPort(ABC):
    @abstractmethod
    async def generate(self, system_instruction: str, user_text: str) -> GenerationResult:
        """Generate content for user_text under system_instruction.

        Raises ServiceError on a non-success response, with the service's
        structured error message as detail when one is available.
        """

    @abstractmethod
    def model_name(self) -> str:
        """Return the model identifier used for generation."""
