from __future__ import annotations

import secrets
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Any, Protocol, TypeAlias

from cheap_asr.errors import ErrorKind, Failure
from cheap_asr.schemas import CallbackEndpoint, TranscriptionRequest

Outcome: TypeAlias = dict[str, Any] | Failure


class CallbackProvider(Protocol):
    def issue(self, request: TranscriptionRequest) -> CallbackEndpoint: ...

    def bind(self, token: str, job_id: str) -> None: ...

    def consume(self, token: str) -> TranscriptionRequest | Failure: ...

    def resolve(self, token: str, outcome: Outcome) -> None: ...

    def result(self, job_id: str) -> Outcome | None: ...

    def release(self, token: str) -> None: ...

    def pending_count(self) -> int: ...


@dataclass(frozen=True, slots=True)
class _Entry:
    request: TranscriptionRequest
    issued_at: float
    job_id: str | None = None
    consumed_at: float | None = None
    outcome: Outcome | None = None


class CallbackRegistry:
    """In-memory, single-use callback endpoints keyed by an unguessable token.

    Each submission gets its own token; the originating request is kept as
    the resume context until the remote service calls back. The resolved
    outcome then stays readable by job id until ``ttl_seconds`` after it
    was issued.
    """

    def __init__(
        self,
        *,
        base_url: str,
        ttl_seconds: float = 24 * 60 * 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._ttl = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, _Entry] = {}
        self._jobs: dict[str, str] = {}

    def issue(self, request: TranscriptionRequest) -> CallbackEndpoint:
        token = secrets.token_urlsafe(32)
        now = self._clock()
        with self._lock:
            self._expire(now)
            self._entries[token] = _Entry(request=request, issued_at=now)
        return CallbackEndpoint(token=token, url=f"{self._base_url}/v1/callbacks/{token}")

    def bind(self, token: str, job_id: str) -> None:
        with self._lock:
            entry = self._entries.get(token)
            if entry is None:
                return
            self._entries[token] = replace(entry, job_id=job_id)
            self._jobs[job_id] = token

    def consume(self, token: str) -> TranscriptionRequest | Failure:
        now = self._clock()
        with self._lock:
            self._expire(now)
            entry = self._entries.get(token)
            if entry is None:
                return Failure(ErrorKind.WEBHOOK, f"Unknown or expired callback: {token}", 404)
            if entry.consumed_at is not None:
                return Failure(ErrorKind.WEBHOOK, f"Callback {token} was already consumed", 409)
            self._entries[token] = replace(entry, consumed_at=now)
            return entry.request

    def resolve(self, token: str, outcome: Outcome) -> None:
        with self._lock:
            entry = self._entries.get(token)
            if entry is not None:
                self._entries[token] = replace(entry, outcome=outcome)

    def result(self, job_id: str) -> Outcome | None:
        with self._lock:
            self._expire(self._clock())
            token = self._jobs.get(job_id)
            entry = self._entries.get(token) if token else None
        if entry is None:
            return Failure(ErrorKind.WEBHOOK, f"Unknown or expired job: {job_id}", 404)
        return entry.outcome

    def release(self, token: str) -> None:
        with self._lock:
            entry = self._entries.pop(token, None)
            if entry is not None and entry.job_id is not None:
                self._jobs.pop(entry.job_id, None)

    def pending_count(self) -> int:
        with self._lock:
            return sum(1 for e in self._entries.values() if e.consumed_at is None)

    def _expire(self, now: float) -> None:
        cutoff = now - self._ttl
        for token in [t for t, e in self._entries.items() if e.issued_at < cutoff]:
            entry = self._entries.pop(token)
            if entry.job_id is not None:
                self._jobs.pop(entry.job_id, None)
