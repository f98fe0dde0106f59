import logging

from django.contrib.auth import authenticate, get_user_model, login, logout
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_email
from django.db import IntegrityError, transaction

from core.api import ApiView, json_response
from core.errors import Conflict, Unauthorized, ValidationError
from core.models import RequestErrorLog
from core.payloads import Field, json_object, parse_payload, text

from .auth import bearer_token, issue_token, revoke_token
from .models import Profile

logger = logging.getLogger(__name__)


def _username(value):
    return text(value, max_length=150)


def _password(value):
    if not isinstance(value, str):
        raise ValueError("must be a string")
    return value


def _email(value):
    value = text(value, max_length=254)
    if value:
        try:
            validate_email(value)
        except DjangoValidationError:
            raise ValueError("must be an email address")
    return value


REGISTER_FIELDS = {
    "username": Field("username", _username, required=True),
    "password": Field("password", _password, required=True),
    "email": Field("email", _email),
    "displayName": Field("display_name", lambda value: text(value, max_length=255)),
    "preferences": Field("preferences", json_object),
}


def user_json(user) -> dict:
    profile, _ = Profile.objects.get_or_create(user=user)
    return {
        "id": user.pk,
        "username": user.get_username(),
        "email": user.email,
        "displayName": profile.display_name,
        "preferences": profile.preferences,
    }


class RegisterView(ApiView):
    log_source = RequestErrorLog.SOURCE_AUTH
    anonymous_methods = ("post",)

    def post(self, request):
        data = parse_payload(self.payload(request), REGISTER_FIELDS)
        User = get_user_model()
        if User.objects.filter(username=data["username"]).exists():
            raise Conflict("Username already exists")
        candidate = User(username=data["username"], email=data.get("email") or "")
        try:
            validate_password(data["password"], user=candidate)
        except DjangoValidationError as exc:
            raise ValidationError("Invalid request data", fields={"password": " ".join(exc.messages)})
        try:
            with transaction.atomic():
                user = User.objects.create_user(
                    username=data["username"],
                    email=data.get("email") or "",
                    password=data["password"],
                )
                Profile.objects.filter(user=user).update(
                    display_name=data.get("display_name") or "",
                    preferences=data.get("preferences") or {},
                )
        except IntegrityError:
            raise Conflict("Username already exists")
        logger.info("Registered user %s", user.pk)
        return json_response(user_json(user), status=201)


class LoginView(ApiView):
    log_source = RequestErrorLog.SOURCE_AUTH
    anonymous_methods = ("post",)

    def post(self, request):
        data = self.payload(request)
        username = data.get("username")
        password = data.get("password")
        if not isinstance(username, str) or not isinstance(password, str) or not username or not password:
            raise ValidationError("Username and password are required")
        user = authenticate(request, username=username, password=password)
        if user is None:
            raise Unauthorized("Invalid credentials")
        login(request, user)
        payload = user_json(user)
        payload["token"] = issue_token(user)
        return json_response(payload)


class LogoutView(ApiView):
    log_source = RequestErrorLog.SOURCE_AUTH

    def post(self, request):
        revoked = revoke_token(bearer_token(request))
        logout(request)
        return json_response({"revoked": revoked})


class ProfileView(ApiView):
    def get(self, request):
        return json_response(user_json(request.api_user))


class PreferencesView(ApiView):
    def patch(self, request):
        preferences = self.payload(request).get("preferences")
        if preferences is None:
            raise ValidationError("Preferences are required")
        if not isinstance(preferences, dict):
            raise ValidationError("Invalid request data", fields={"preferences": "must be an object"})
        profile, _ = Profile.objects.get_or_create(user=request.api_user)
        profile.preferences = preferences
        profile.save(update_fields=["preferences"])
        return json_response(user_json(request.api_user))
