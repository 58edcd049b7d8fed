"""ProgressReporter — builds ProgressEvents and pushes them to a subscriber.

Every orchestrator reports in the same order so one observer can render both
stages: analyzing, splitting (chunked jobs only), one processing event per
unit of work, then merging with current == total.
"""

import logging
from typing import Callable, Optional

from domain.models import ProgressEvent, Stage, Step

logger = logging.getLogger(__name__)

ProgressSubscriber = Callable[[ProgressEvent], None]

DEFAULT_MESSAGES: dict[tuple[str, str], str] = {
    ("transcribing", "analyzing"): "Analyzing audio file...",
    ("transcribing", "splitting"): "Splitting file into segments...",
    ("transcribing", "processing"): "Transcribing audio...",
    ("transcribing", "merging"): "Merging segment transcriptions...",
    ("generating", "analyzing"): "Analyzing transcript...",
    ("generating", "splitting"): "Splitting transcript into parts...",
    ("generating", "processing"): "Generating report...",
    ("generating", "merging"): "Finalizing report...",
}


def default_message(stage: Stage, step: Step, current: int = 0, total: int = 1) -> str:
    base = DEFAULT_MESSAGES.get((stage, step), f"{stage}: {step}")
    if step == "processing" and total > 1:
        return f"{base.rstrip('.')} - {current} of {total}"
    return base


class ProgressReporter:
    """Stateless apart from the subscriber it forwards to."""

    def __init__(self, subscriber: Optional[ProgressSubscriber] = None):
        self._subscriber = subscriber

    @property
    def has_subscriber(self) -> bool:
        return self._subscriber is not None

    def report(
        self,
        stage: Stage,
        step: Step,
        current: int,
        total: int,
        message: Optional[str] = None,
    ) -> None:
        """Push one event. Never raises; a missing subscriber makes this a no-op."""
        if self._subscriber is None:
            return

        try:
            event = ProgressEvent(
                stage=stage,
                step=step,
                current=current,
                total=total,
                message=message or default_message(stage, step, current, total),
            )
            self._subscriber(event)
        except Exception as e:
            logger.warning(f"Progress report {stage}/{step} {current}/{total} dropped: {e}", exc_info=True)
