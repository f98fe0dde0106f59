import logging

from django.http import HttpResponse, JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from .errors import ApiError, Forbidden, NotFound
from .models import RequestErrorLog
from .payloads import parse_payload, read_json
from .request_logs import log_request_error

logger = logging.getLogger(__name__)


def json_response(data, status: int = 200) -> JsonResponse:
    return JsonResponse(data, status=status, safe=False)


def no_content() -> HttpResponse:
    return HttpResponse(status=204)


def error_response(exc: ApiError) -> JsonResponse:
    return JsonResponse(exc.as_payload(), status=exc.status)


@method_decorator(csrf_exempt, name="dispatch")
class ApiView(View):
    """JSON endpoint base: authenticates, maps ``ApiError`` to responses and
    records every failed exchange in the request error log."""

    log_source = RequestErrorLog.SOURCE_API
    # Lower-case HTTP method names that may be called without credentials.
    anonymous_methods: tuple[str, ...] = ()

    def dispatch(self, request, *args, **kwargs):
        from accounts.auth import authenticate_request

        try:
            if request.method.lower() in self.anonymous_methods:
                request.api_user = authenticate_request(request, required=False)
            else:
                request.api_user = authenticate_request(request)
            response = super().dispatch(request, *args, **kwargs)
        except ApiError as exc:
            if exc.status >= 500:
                logger.error("API failure on %s %s: %s", request.method, request.path, exc)
            response = error_response(exc)
        log_request_error(self.log_source, request, response)
        return response

    def payload(self, request) -> dict:
        if not hasattr(request, "_api_payload"):
            request._api_payload = read_json(request)
        return request._api_payload


class OwnedCollectionView(ApiView):
    """``GET`` lists the caller's records, ``POST`` creates one."""

    model = None
    fields: dict = {}
    ordering: tuple[str, ...] = ("id",)

    def serialize(self, obj) -> dict:
        raise NotImplementedError

    def get_queryset(self, request):
        return self.model.objects.filter(user=request.api_user).order_by(*self.ordering)

    def prepare(self, request, data: dict) -> dict:
        """Hook for server-assigned values on create."""
        return data

    def get(self, request):
        return json_response([self.serialize(obj) for obj in self.get_queryset(request)])

    def post(self, request):
        data = parse_payload(self.payload(request), self.fields)
        obj = self.model.objects.create(user=request.api_user, **self.prepare(request, data))
        logger.info("Created %s %s for user %s", self.model.__name__, obj.pk, request.api_user.pk)
        return json_response(self.serialize(obj), status=201)


class OwnedObjectView(ApiView):
    """``GET``/``PATCH``/``DELETE`` on one record owned by the caller."""

    model = None
    fields: dict = {}
    label = "Record"

    def serialize(self, obj) -> dict:
        raise NotImplementedError

    def get_object(self, request, pk: int):
        obj = self.model.objects.filter(pk=pk).first()
        if obj is None:
            raise NotFound(f"{self.label} not found")
        if obj.user_id != request.api_user.pk:
            raise Forbidden("Forbidden")
        return obj

    def get(self, request, pk):
        return json_response(self.serialize(self.get_object(request, pk)))

    def patch(self, request, pk):
        obj = self.get_object(request, pk)
        changes = parse_payload(self.payload(request), self.fields, partial=True)
        for attr, value in changes.items():
            setattr(obj, attr, value)
        if changes:
            obj.save(update_fields=list(changes))
        return json_response(self.serialize(obj))

    def delete(self, request, pk):
        obj = self.get_object(request, pk)
        self.perform_delete(obj)
        return no_content()

    def perform_delete(self, obj) -> None:
        obj.delete()
