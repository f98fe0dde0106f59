from core.api import ApiView, json_response, no_content
from core.errors import NotFound
from core.payloads import Field, non_negative_integer, parse_payload

from .layout import layout_store, widget_config_value, widget_type_value
from .models import Widget

CREATE_FIELDS = {
    "type": Field("widget_type", widget_type_value, required=True),
    "config": Field("config", widget_config_value),
}

UPDATE_FIELDS = {
    "type": Field("widget_type", widget_type_value, nullable=False),
    "config": Field("config", widget_config_value, nullable=False),
    "position": Field("position", non_negative_integer, nullable=False),
}


def _widget_json(widget: Widget) -> dict:
    return {
        "id": widget.pk,
        "userId": widget.user_id,
        "type": widget.widget_type,
        "position": widget.position,
        "config": widget.config,
    }


def _layout_json(widgets) -> list[dict]:
    return [_widget_json(widget) for widget in widgets]


class WidgetListView(ApiView):
    def get(self, request):
        return json_response(_layout_json(layout_store.list(request.api_user)))

    def post(self, request):
        data = parse_payload(self.payload(request), CREATE_FIELDS)
        widget = layout_store.create(request.api_user, data["widget_type"], data.get("config"))
        return json_response(_widget_json(widget), status=201)


class WidgetDetailView(ApiView):
    def get(self, request, pk):
        return json_response(_widget_json(layout_store.get(pk, request.api_user)))

    def patch(self, request, pk):
        changes = parse_payload(self.payload(request), UPDATE_FIELDS, partial=True)
        widget = layout_store.update(pk, request.api_user, changes)
        return json_response(_widget_json(widget))

    def delete(self, request, pk):
        layout_store.get(pk, request.api_user)
        if not layout_store.delete(pk, request.api_user):
            raise NotFound("Widget not found")
        return no_content()


class WidgetReorderView(ApiView):
    def post(self, request):
        widget_ids = self.payload(request).get("widgetIds")
        widgets = layout_store.reorder(request.api_user, widget_ids)
        return json_response(_layout_json(widgets))
