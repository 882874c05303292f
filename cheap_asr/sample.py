from __future__ import annotations

from typing import Any

from cheap_asr.schemas import TranscriptionRequest

SAMPLE_JOB_ID = "00000000-1111-7222-b333-444444444444-sic"


def _sample_words() -> list[dict[str, Any]]:
    return [{"text": "This", "start": 1.234, "end": 1.345}]


def build_sample_job(request: TranscriptionRequest) -> dict[str, Any]:
    segment: dict[str, Any] = {
        "id": 1,
        "start": 1.234,
        "end": 12.345,
        "seek": 1234.5,
        "text": "This is an example of some transcribed text output.",
        "confidence": 1.0,
        "language": "en (99.95%)",
        "processing_duration_in_s": 0.321,
        "words": _sample_words() if request.can_parse_words else None,
    }
    if request.can_label_audio:
        segment["label"] = "speech"
    if request.can_parse_speakers:
        segment["speaker_id"] = "A"

    return {
        "id": SAMPLE_JOB_ID,
        "status": "COMPLETED",
        "output": {"request": request.api_payload(), "segments": [segment]},
    }
