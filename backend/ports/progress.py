"""ProgressPort — abstract interface for observers of pipeline progress."""

from abc import ABC, abstractmethod

from domain.models import ProgressEvent


class ProgressPort(ABC):
    @abstractmethod
    def report(self, event: ProgressEvent) -> None:
        """Receive one progress event. Called inline, so it must return quickly."""

    def __call__(self, event: ProgressEvent) -> None:
        self.report(event)
