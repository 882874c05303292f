from __future__ import annotations

from typing import Any

import httpx
from pydantic import ValidationError

from cheap_asr.api_client import SpeechApiClient
from cheap_asr.callbacks import CallbackProvider
from cheap_asr.errors import ErrorKind, Failure
from cheap_asr.logs import jlog
from cheap_asr.normalize import attach_json
from cheap_asr.sample import build_sample_job
from cheap_asr.schemas import ErrorOutput, TranscriptionJob, TranscriptionRequest
from cheap_asr.validation import check_request


def _error_field(resp: httpx.Response) -> str | None:
    try:
        data = resp.json()
    except ValueError:
        return None
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return None


def _job_body(resp: httpx.Response) -> dict[str, Any] | None:
    try:
        data = resp.json()
    except ValueError:
        return None
    if not isinstance(data, dict) or not data.get("id"):
        return None
    return data


def submit(
    request: TranscriptionRequest,
    *,
    callbacks: CallbackProvider,
    client: SpeechApiClient,
    is_sample: bool = False,
) -> dict[str, Any] | Failure:
    failure = check_request(request)
    if failure is not None:
        jlog(event="submit_rejected", severity="WARNING", kind=failure.kind, message=failure.message)
        return failure

    payload = request.api_payload()

    if is_sample:
        jlog(event="sample_returned", input_url=request.input_url)
        return attach_json(build_sample_job(request), include_json=request.can_include_json)

    endpoint = callbacks.issue(request)
    payload["webhook_url"] = endpoint.url

    try:
        resp = client.create_job(token=request.token, payload=payload)
    except httpx.HTTPError as exc:
        callbacks.release(endpoint.token)
        message = str(exc) or "Failed to start a transcription job"
        jlog(event="submit_transport_error", severity="ERROR", error=message)
        return Failure(ErrorKind.TRANSCRIPTION, message, 400)

    if resp.status_code != 202:
        callbacks.release(endpoint.token)
        message = _error_field(resp) or f"API returned status {resp.status_code}"
        jlog(event="submit_refused", severity="WARNING", status_code=resp.status_code, error=message)
        return Failure(ErrorKind.TRANSCRIPTION, message, resp.status_code)

    job = _job_body(resp)
    if job is None:
        callbacks.release(endpoint.token)
        jlog(event="submit_missing_job_id", severity="ERROR")
        return Failure(
            ErrorKind.JOB_CREATION,
            "Transcription job initiated, but no job ID was returned.",
            500,
        )

    callbacks.bind(endpoint.token, str(job["id"]))
    jlog(event="job_submitted", job_id=job["id"], input_url=request.input_url)
    return job


def _strip_transport(payload: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in payload.items() if k != "querystring"}


def _malformed(detail: object) -> Failure:
    return Failure(
        ErrorKind.WEBHOOK, f"Received malformed job payload from webhook: {detail}", 400
    )


def check_delivery(payload: dict[str, Any]) -> Failure | None:
    """Reject callback bodies that cannot be resolved at all.

    Only the status is required up front; a COMPLETED job must also carry a
    well-formed record since that record becomes the caller's result.
    """
    record = _strip_transport(payload)
    status = record.get("status")
    if not isinstance(status, str) or not status:
        return _malformed("missing job status")
    if status == "COMPLETED":
        try:
            TranscriptionJob.model_validate(record)
        except ValidationError as exc:
            jlog(event="webhook_malformed", severity="WARNING", errors=exc.error_count())
            return _malformed(exc)
    return None


def _job_error(output: Any) -> str | None:
    try:
        return ErrorOutput.model_validate(output).error
    except ValidationError:
        return None


def resume(payload: dict[str, Any], request: TranscriptionRequest) -> dict[str, Any] | Failure:
    failure = check_delivery(payload)
    if failure is not None:
        return failure

    record = _strip_transport(payload)
    status = record["status"]
    jlog(event="callback_received", job_id=record.get("id"), status=status)

    if status == "COMPLETED":
        return attach_json(record, include_json=request.can_include_json)

    if status == "FAILED":
        message = _job_error(record.get("output")) or "Transcription job failed with an unknown error"
        return Failure(ErrorKind.TRANSCRIPTION, message, 400)

    if status == "CANCELED":
        return Failure(ErrorKind.TRANSCRIPTION, "Transcription job was canceled", 400)

    return Failure(
        ErrorKind.WEBHOOK, f"Received unexpected job status from webhook: {status}", 400
    )
