"""LogProgressAdapter — reports progress via logging."""

import logging

from domain.models import ProgressEvent
from ports.progress import ProgressPort

logger = logging.getLogger(__name__)


class LogProgressAdapter(ProgressPort):
    def __init__(self, job_id: str = ""):
        self._job_id = job_id

    def report(self, event: ProgressEvent) -> None:
        msg = f"[{self._job_id}] " if self._job_id else ""
        msg += f"{event.stage}/{event.step} {event.current}/{event.total}"
        if event.message:
            msg += f" - {event.message}"
        logger.info(msg)
