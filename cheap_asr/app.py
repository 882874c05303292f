from __future__ import annotations

from typing import Any

import httpx
from fastapi import Body, FastAPI, Header
from fastapi.responses import JSONResponse

from cheap_asr.api_client import SpeechApiClient
from cheap_asr.callbacks import CallbackProvider, CallbackRegistry
from cheap_asr.config import Settings, settings as default_settings
from cheap_asr.errors import ErrorKind, Failure
from cheap_asr.logs import jlog
from cheap_asr.schemas import TranscriptionRequest
from cheap_asr.transcription import check_delivery, resume, submit


def _failure_response(failure: Failure) -> JSONResponse:
    # A remote 2xx/3xx that still counts as a failure must not read as success.
    status_code = failure.status_code if failure.status_code >= 400 else 502
    return JSONResponse(content=failure.to_dict(), status_code=status_code)


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    return authorization.split(" ", 1)[1].strip() or None


def create_app(
    *,
    settings: Settings | None = None,
    client: SpeechApiClient | None = None,
    callbacks: CallbackProvider | None = None,
) -> FastAPI:
    cfg = settings or default_settings
    api = client or SpeechApiClient(base_url=cfg.api_base_url, timeout_seconds=cfg.request_timeout_s)
    registry = callbacks or CallbackRegistry(
        base_url=cfg.public_base_url, ttl_seconds=cfg.callback_ttl_seconds
    )

    app = FastAPI(title="Speech is Cheap transcription bridge", version="1.0.0")

    @app.post("/v1/transcriptions")
    def create_transcription(request: TranscriptionRequest, sample: bool = False) -> Any:
        outcome = submit(request, callbacks=registry, client=api, is_sample=sample)
        if isinstance(outcome, Failure):
            return _failure_response(outcome)
        return JSONResponse(content=outcome, status_code=200 if sample else 202)

    @app.get("/v1/transcriptions/{job_id}")
    def get_transcription(job_id: str) -> Any:
        outcome = registry.result(job_id)
        if outcome is None:
            return JSONResponse(content={"id": job_id, "status": "PENDING"}, status_code=202)
        if isinstance(outcome, Failure):
            return _failure_response(outcome)
        return outcome

    @app.post("/v1/callbacks/{token}")
    def deliver_callback(token: str, payload: dict[str, Any] = Body(...)) -> Any:
        malformed = check_delivery(payload)
        if malformed is not None:
            return _failure_response(malformed)

        context = registry.consume(token)
        if isinstance(context, Failure):
            if context.status_code == 409:
                jlog(event="callback_redelivered", severity="WARNING")
                return {"received": True, "duplicate": True}
            jlog(event="callback_rejected", severity="WARNING", status_code=context.status_code)
            return _failure_response(context)

        outcome = resume(payload, context)
        registry.resolve(token, outcome)
        if isinstance(outcome, Failure):
            jlog(event="job_unsuccessful", kind=outcome.kind, message=outcome.message)
        else:
            jlog(event="job_resolved", job_id=outcome.get("id"))
        return {"received": True, "duplicate": False}

    @app.get("/v1/auth/check")
    def check_auth(authorization: str | None = Header(default=None)) -> Any:
        token = _bearer_token(authorization)
        if token is None:
            return _failure_response(
                Failure(ErrorKind.AUTHENTICATION, "Missing bearer token", 401)
            )
        try:
            valid = api.check_auth(token=token)
        except httpx.HTTPError as exc:
            jlog(event="auth_check_unreachable", severity="ERROR", error=str(exc))
            return _failure_response(
                Failure(ErrorKind.AUTHENTICATION, f"Auth check failed: {exc}", 502)
            )
        if not valid:
            return _failure_response(Failure(ErrorKind.AUTHENTICATION, "Invalid API token", 401))
        return {"valid": True}

    @app.get("/health")
    def health() -> dict[str, Any]:
        return {
            "status": "ok",
            "service": cfg.service_name,
            "pending_callbacks": registry.pending_count(),
        }

    return app


def build_server() -> FastAPI:
    return create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(build_server(), host="0.0.0.0", port=default_settings.port)
