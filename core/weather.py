from typing import Any, Optional

import requests
from django.conf import settings

REQUEST_TIMEOUT_SECONDS = 3

SAMPLE_CONDITIONS = {
    "temperature": 72,
    "condition": "Sunny",
    "humidity": 45,
    "windSpeed": 5,
}


def _fetch_conditions(url: str, location: str) -> Optional[dict[str, Any]]:
    try:
        response = requests.get(url, params={"location": location}, timeout=REQUEST_TIMEOUT_SECONDS)
        response.raise_for_status()
        data = response.json()
        return data if isinstance(data, dict) else None
    except (requests.RequestException, ValueError):
        return None


def current_weather(location: str | None = None) -> dict[str, Any]:
    """Conditions from the configured provider, or the built-in sample."""
    location = location or settings.LIFEHUB_WEATHER_LOCATION
    url = getattr(settings, "LIFEHUB_WEATHER_API_URL", "")
    data = _fetch_conditions(url, location) if url else None

    payload = {"location": location, "source": "provider" if data else "sample"}
    for key, fallback in SAMPLE_CONDITIONS.items():
        payload[key] = data.get(key, fallback) if data else fallback
    return payload
