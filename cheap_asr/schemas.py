from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Fields that steer this service but are not part of the remote job contract.
ROUTING_FIELDS = frozenset({"token", "can_include_json"})


class TranscriptionRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    token: str = Field(min_length=1)
    input_url: str
    can_parse_speakers: bool = Field(default=False)
    can_parse_words: bool = Field(default=False)
    can_label_audio: bool = Field(default=False)
    can_include_json: bool = Field(default=False)
    minimum_confidence: float = Field(default=0.5)
    segment_duration: int = Field(default=30)
    hotwords: str | None = Field(default=None)
    prompt: str | None = Field(default=None)
    language: str | None = Field(default=None)

    def api_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude=set(ROUTING_FIELDS))


class Word(BaseModel):
    text: str
    start: float
    end: float


class Segment(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int
    start: float
    end: float
    seek: float
    text: str
    confidence: float
    language: str
    processing_duration_in_s: float
    label: str | None = None
    speaker_id: str | None = None
    words: list[Word] | None = None


class SuccessOutput(BaseModel):
    request: dict[str, Any] = Field(default_factory=dict)
    segments: list[Segment]


class ErrorOutput(BaseModel):
    request: dict[str, Any] = Field(default_factory=dict)
    error: str | None = None


class TranscriptionJob(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(min_length=1)
    status: str
    output: SuccessOutput | ErrorOutput | None = None
    json_text: str | None = Field(default=None, alias="json")


class CallbackEndpoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: str
    url: str
