from __future__ import annotations

from cheap_asr.errors import ErrorKind, Failure
from cheap_asr.schemas import TranscriptionRequest

MIN_SEGMENT_DURATION = 6
MAX_SEGMENT_DURATION = 30


def validate_request(request: TranscriptionRequest) -> list[str]:
    violations: list[str] = []
    if not MIN_SEGMENT_DURATION <= request.segment_duration <= MAX_SEGMENT_DURATION:
        violations.append(
            f"- Segment duration must be between {MIN_SEGMENT_DURATION} and "
            f"{MAX_SEGMENT_DURATION} seconds (inclusive)."
        )
    if not 0.0 <= request.minimum_confidence <= 1.0:
        violations.append("- Minimum confidence must be between 0.0 and 1.0 (inclusive).")
    return violations


def check_request(request: TranscriptionRequest) -> Failure | None:
    violations = validate_request(request)
    if not violations:
        return None
    return Failure(ErrorKind.CONFIGURATION, "\n".join(violations), 400)
