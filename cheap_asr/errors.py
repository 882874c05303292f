from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class ErrorKind(StrEnum):
    CONFIGURATION = "TranscriptionConfigurationError"
    TRANSCRIPTION = "TranscriptionError"
    JOB_CREATION = "JobCreationError"
    WEBHOOK = "WebhookError"
    AUTHENTICATION = "AuthenticationError"


@dataclass(frozen=True, slots=True)
class Failure:
    """A classified, caller-visible failure of a submit or resume step.

    Failures are returned rather than raised so every call site has to
    branch on them explicitly. ``status_code`` is the HTTP status the
    failure should surface with; 4xx means the caller (or the remote job)
    is at fault, 5xx means the remote contract was broken.
    """

    kind: ErrorKind
    message: str
    status_code: int = 400

    @property
    def is_client_fault(self) -> bool:
        return 400 <= self.status_code < 500

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.kind.value, "message": self.message}
