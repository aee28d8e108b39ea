# ABOUTME: OpenWeatherMap client for current conditions and the 5-day/3-hour forecast
# ABOUTME: Failures surface as WeatherProviderError (status + message), never as half-parsed data

from typing import Any

import requests

from weather_models import (
    CurrentObservation,
    ForecastSeries,
    normalize_current,
    normalize_forecast,
)


VALID_UNITS = ('standard', 'metric', 'imperial')
DEFAULT_UNITS = 'metric'
HTTP_BAD_GATEWAY = 502
HTTP_SERVICE_UNAVAILABLE = 503


class WeatherProviderError(Exception):
    """Provider call failed; carries the HTTP status to relay and a message"""

    def __init__(self, status: int, message: str):
        super().__init__(message)
        self.status = status
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {'status': self.status, 'message': self.message}


class OpenWeatherProvider:
    """OpenWeatherMap provider - current weather and 3-hourly forecast by city name"""

    def __init__(
        self,
        api_key: str | None,
        base_url: str = 'https://api.openweathermap.org/data/2.5',
        timeout: int = 10,
    ):
        self.name = 'OpenWeatherMap'
        self.api_key = api_key
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout

    def _get(self, endpoint: str, city: str, units: str) -> dict[str, Any]:
        """GET an endpoint and return its JSON body, raising on any failure"""
        if not self.api_key:
            print('❌ OpenWeatherMap API key not configured')
            raise WeatherProviderError(
                HTTP_SERVICE_UNAVAILABLE, 'Weather API key not configured'
            )

        params = {'q': city, 'units': units, 'appid': self.api_key}
        try:
            response = requests.get(
                f'{self.base_url}/{endpoint}', params=params, timeout=self.timeout
            )
        except requests.RequestException as e:
            print(f'❌ OpenWeatherMap request error: {str(e)}')
            raise WeatherProviderError(HTTP_BAD_GATEWAY, str(e)) from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if not response.ok:
            message = 'Unknown error'
            if isinstance(body, dict) and body.get('message'):
                message = str(body['message'])
            print(
                f'❌ OpenWeatherMap {endpoint} error {response.status_code}: {message}'
            )
            raise WeatherProviderError(response.status_code, message)

        if not isinstance(body, dict):
            print(f'❌ OpenWeatherMap {endpoint} returned a non-object body')
            raise WeatherProviderError(
                HTTP_BAD_GATEWAY, 'Invalid response from provider'
            )

        return body

    def fetch_current(self, city: str, units: str = DEFAULT_UNITS) -> dict[str, Any]:
        """Raw /weather payload for a city"""
        print(f'🌤️  Fetching current weather for {city} ({units})')
        return self._get('weather', city, units)

    def fetch_forecast(self, city: str, units: str = DEFAULT_UNITS) -> dict[str, Any]:
        """Raw /forecast payload (3-hour samples) for a city"""
        print(f'📅 Fetching forecast for {city} ({units})')
        return self._get('forecast', city, units)

    def get_current_observation(
        self, city: str, units: str = DEFAULT_UNITS
    ) -> CurrentObservation | None:
        """Normalized current conditions; None when the payload has nothing usable"""
        return normalize_current(self.fetch_current(city, units))

    def get_forecast_series(
        self, city: str, units: str = DEFAULT_UNITS
    ) -> ForecastSeries:
        """Normalized forecast series"""
        return normalize_forecast(self.fetch_forecast(city, units))
