"""
Persistence failure reporting.

Reporters receive PersistenceWriteFailure instances from the saver. They
must never raise: a broken reporter cannot be allowed to break the board.
"""
import json
import logging
from datetime import datetime, timezone
from typing import Optional

import requests

from .errors import PersistenceWriteFailure

logger = logging.getLogger(__name__)


class FailureReporter:
    """Base reporter: does nothing."""

    def report(self, failure: PersistenceWriteFailure) -> None:
        pass


class LoggingReporter(FailureReporter):
    """Report failures to the log only."""

    def report(self, failure: PersistenceWriteFailure) -> None:
        logger.warning(f"Snapshot not persisted: {failure.reason} (target={failure.target})")


class WebhookReporter(FailureReporter):
    """POST failures as JSON to a webhook. Falls back to logging."""

    def __init__(self, url: str, board: str = "default", timeout: float = 2):
        self.url = url
        self.board = board
        self.timeout = timeout
        self._fallback = LoggingReporter()

    def _payload(self, failure: PersistenceWriteFailure) -> str:
        body = failure.to_dict()
        body["board"] = self.board
        body["ts"] = datetime.now(timezone.utc).isoformat()
        return json.dumps(body)

    def report(self, failure: PersistenceWriteFailure) -> None:
        try:
            r = requests.post(
                self.url,
                data=self._payload(failure),
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
            if r.ok:
                return
            logger.debug(f"Failure webhook returned HTTP {r.status_code}")
        except requests.RequestException as e:
            logger.debug(f"Failure webhook unreachable: {e}")
        self._fallback.report(failure)


def build_reporter(webhook_url: Optional[str], board: str = "default") -> FailureReporter:
    if webhook_url:
        return WebhookReporter(webhook_url, board=board)
    return LoggingReporter()
