import json
import logging

from django.http import RawPostDataException

from core.models import RequestErrorLog

logger = logging.getLogger(__name__)

DEFAULT_REDACT_HEADERS = {"authorization", "cookie"}
DEFAULT_REDACT_FIELDS = {"password", "token", "access_token"}
# Uploaded document bodies are replaced wholesale instead of abbreviated.
OMIT_FIELDS = {"filecontent"}
MAX_LOG_BODY_CHARS = 10000


def _redact_secret(value: str) -> str:
    if not value:
        return value
    if len(value) <= 12:
        return "***"
    return f"{value[:6]}...{value[-4:]}"


def _scrub(value, redact_fields: set[str]):
    if isinstance(value, dict):
        scrubbed = {}
        for key, item in value.items():
            key_name = str(key).lower()
            if key_name in OMIT_FIELDS:
                scrubbed[key] = f"<omitted {len(str(item))} chars>"
            elif key_name in redact_fields and isinstance(item, str):
                scrubbed[key] = _redact_secret(item)
            else:
                scrubbed[key] = _scrub(item, redact_fields)
        return scrubbed
    if isinstance(value, list):
        return [_scrub(item, redact_fields) for item in value]
    return value


def _truncate_body(body: str) -> str:
    if len(body) <= MAX_LOG_BODY_CHARS:
        return body
    return f"{body[:MAX_LOG_BODY_CHARS]}\n...(truncated)"


def capture_request_body(request, *, redact_fields: set[str] | None = None) -> str:
    redact_fields = {field.lower() for field in (redact_fields or DEFAULT_REDACT_FIELDS)}
    content_type = request.content_type or ""

    try:
        body_bytes = request.body or b""
    except RawPostDataException:
        return ""
    if not body_bytes:
        return ""

    body_text = body_bytes.decode("utf-8", errors="replace")
    if "application/json" not in content_type:
        return _truncate_body(body_text)

    try:
        parsed = json.loads(body_text)
    except json.JSONDecodeError:
        return _truncate_body(body_text)
    return _truncate_body(json.dumps(_scrub(parsed, redact_fields), indent=2, sort_keys=True))


def capture_request_headers(request, *, redact_headers: set[str] | None = None) -> dict:
    redact_headers = {header.lower() for header in (redact_headers or DEFAULT_REDACT_HEADERS)}
    redacted = {}
    for key, value in dict(request.headers).items():
        if key.lower() in redact_headers and isinstance(value, str):
            redacted[key] = _redact_secret(value)
        else:
            redacted[key] = value
    return redacted


def extract_response_error(response) -> tuple[str, str]:
    content_type = response.get("Content-Type", "")
    body = ""
    if hasattr(response, "content"):
        body = response.content.decode("utf-8", errors="replace")
    if "application/json" in content_type and body:
        try:
            payload = json.loads(body)
        except json.JSONDecodeError:
            return "", body
        if isinstance(payload, dict):
            return str(payload.get("error") or ""), body
    if body and response.status_code >= 400:
        return body.strip(), body
    return "", body


def client_ip(request) -> str | None:
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR")


def log_request_error(source: str, request, response) -> None:
    """Persist a failed API exchange. Never raises."""
    if response.status_code < 400:
        return
    try:
        error, response_body = extract_response_error(response)
        RequestErrorLog.objects.create(
            source=source,
            method=request.method,
            path=request.path[:255],
            status_code=response.status_code,
            error=error,
            request_headers=capture_request_headers(request),
            request_query={key: request.GET.getlist(key) for key in request.GET.keys()},
            request_body=capture_request_body(request),
            response_body=response_body,
            remote_addr=client_ip(request),
            user_agent=request.META.get("HTTP_USER_AGENT", ""),
            content_type=request.content_type or "",
        )
    except Exception:
        logger.exception(
            "Request error log failed",
            extra={"api_path": request.path, "api_status": response.status_code},
        )
