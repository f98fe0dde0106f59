from .api import ApiView, json_response
from .weather import current_weather


class WeatherView(ApiView):
    def get(self, request):
        location = request.GET.get("location", "").strip() or None
        return json_response(current_weather(location))
