import hashlib
import secrets
from datetime import timedelta

from django.conf import settings
from django.utils import timezone

from core.errors import Unauthorized

from .models import ApiToken


def hash_token(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def bearer_token(request) -> str:
    auth_header = request.META.get("HTTP_AUTHORIZATION", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip()
    return ""


def issue_token(user) -> str:
    """Create an API token for ``user`` and return the raw value.

    Only the SHA-256 hash is stored; the raw token is shown to the client once.
    """
    raw = secrets.token_urlsafe(32)
    ttl_days = getattr(settings, "LIFEHUB_TOKEN_TTL_DAYS", 30)
    expires_at = timezone.now() + timedelta(days=ttl_days) if ttl_days else None
    ApiToken.objects.create(token_hash=hash_token(raw), user=user, expires_at=expires_at)
    return raw


def revoke_token(raw: str) -> bool:
    if not raw:
        return False
    updated = ApiToken.objects.filter(token_hash=hash_token(raw), revoked_at__isnull=True).update(
        revoked_at=timezone.now()
    )
    return bool(updated)


def user_for_token(raw: str):
    token = ApiToken.objects.select_related("user").filter(token_hash=hash_token(raw)).first()
    if not token or token.revoked_at:
        return None
    now = timezone.now()
    if token.expires_at and token.expires_at <= now:
        return None
    if not token.user.is_active:
        return None
    ApiToken.objects.filter(pk=token.pk).update(last_used_at=now)
    return token.user


def authenticate_request(request, *, required: bool = True):
    """Resolve the calling user from a bearer token or the Django session."""
    raw = bearer_token(request)
    if raw:
        user = user_for_token(raw)
        if user is None and required:
            raise Unauthorized("Invalid or expired token")
        return user

    session_user = getattr(request, "user", None)
    if session_user is not None and session_user.is_authenticated:
        return session_user

    if required:
        raise Unauthorized("Authentication required")
    return None
