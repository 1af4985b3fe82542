import requests

from civicbot.config import Settings
from civicbot.errors import TransientIOFailure
from civicbot.records import GeocodeMatch

GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
UNKNOWN_LOCATION = "Unknown Location"


class GeocodingService:
    def __init__(self, settings: Settings) -> None:
        self.api_key = settings.google_maps_api_key
        self.timeout = settings.http_timeout_seconds

    def _lookup(self, params: dict) -> list[dict]:
        try:
            response = requests.get(GEOCODE_URL, params={**params, "key": self.api_key}, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise TransientIOFailure(f"Geocoding request failed: {exc}") from exc

        status = payload.get("status", "OK")
        if status == "ZERO_RESULTS":
            return []
        if status != "OK":
            raise TransientIOFailure(f"Geocoding returned {status}: {payload.get('error_message', '')}")
        return payload.get("results") or []

    def forward(self, phrase: str) -> GeocodeMatch | None:
        results = self._lookup({"address": phrase})
        if not results:
            return None

        first = results[0]
        location = first["geometry"]["location"]
        return GeocodeMatch(
            address=first.get("formatted_address", phrase),
            latitude=float(location["lat"]),
            longitude=float(location["lng"]),
        )

    def reverse(self, latitude: float, longitude: float) -> str:
        results = self._lookup({"latlng": f"{latitude},{longitude}"})
        if not results:
            return UNKNOWN_LOCATION
        return results[0].get("formatted_address") or UNKNOWN_LOCATION
