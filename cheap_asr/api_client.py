from __future__ import annotations

import json
from typing import Any

import httpx

DEFAULT_API_BASE_URL = "https://api.speechischeap.com/v2"


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class SpeechApiClient:
    def __init__(
        self,
        *,
        base_url: str = DEFAULT_API_BASE_URL,
        timeout_seconds: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(
            timeout=self._timeout, follow_redirects=True, transport=self._transport
        )

    def create_job(self, *, token: str, payload: dict[str, Any]) -> httpx.Response:
        # Single attempt; callers decide whether to resubmit.
        body = json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
        headers = {"Content-Type": "application/json", **_bearer(token)}
        with self._client() as client:
            return client.post(f"{self._base_url}/jobs/", content=body, headers=headers)

    def check_auth(self, *, token: str) -> bool:
        with self._client() as client:
            resp = client.get(f"{self._base_url}/jobs/auth", headers=_bearer(token))
        return resp.is_success
