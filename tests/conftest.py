import os
import sys
from collections.abc import Callable, Generator
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
from flask import Flask
from flask.testing import FlaskClient


# Add the project root to the path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from main import app, forecast_cache, weather_provider
from weather_providers import OpenWeatherProvider


# 2024-01-01T00:00:00Z
DAY_ZERO = 1704067200
THREE_HOURS = 10800
LONDON_SUNRISE = 1704096300  # 2024-01-01T08:05:00Z
LONDON_SUNSET = 1704124680  # 2024-01-01T15:58:00Z


def make_forecast_entry(
    timestamp: int,
    temp: float = 5.0,
    condition: str = 'Clouds',
    icon: str = '04d',
) -> dict[str, Any]:
    """One entry of the /forecast ``list`` array"""
    return {
        'dt': timestamp,
        'main': {
            'temp': temp,
            'feels_like': temp - 2,
            'temp_min': temp - 1,
            'temp_max': temp + 1,
            'pressure': 1012,
            'humidity': 81,
        },
        'weather': [
            {
                'id': 804,
                'main': condition,
                'description': 'overcast clouds',
                'icon': icon,
            }
        ],
        'wind': {'speed': 4.1, 'deg': 240},
        'dt_txt': '',
    }


@pytest.fixture  # type: ignore[misc]
def flask_app() -> Flask:
    """Create a Flask app instance for testing"""
    app.config['TESTING'] = True
    return app


@pytest.fixture  # type: ignore[misc]
def client(flask_app: Flask) -> FlaskClient:
    """Create a test client for the Flask app"""
    return flask_app.test_client()


@pytest.fixture(autouse=True)  # type: ignore[misc]
def configured_provider() -> Generator[OpenWeatherProvider, None, None]:
    """Give the app's provider an API key and start every test with an empty cache"""
    forecast_cache.clear()
    with patch.object(weather_provider, 'api_key', 'test-api-key'):
        yield weather_provider
    forecast_cache.clear()


@pytest.fixture  # type: ignore[misc]
def mock_current_response() -> dict[str, Any]:
    """Mock OpenWeatherMap /weather response"""
    return {
        'coord': {'lon': -0.1257, 'lat': 51.5085},
        'weather': [
            {'id': 800, 'main': 'Clear', 'description': 'clear sky', 'icon': '01d'}
        ],
        'main': {
            'temp': 7.6,
            'feels_like': 5.2,
            'temp_min': 6.4,
            'temp_max': 8.5,
            'pressure': 1019,
            'humidity': 72,
        },
        'wind': {'speed': 3.6, 'deg': 250},
        'dt': LONDON_SUNRISE + 3600,
        'sys': {'country': 'GB', 'sunrise': LONDON_SUNRISE, 'sunset': LONDON_SUNSET},
        'timezone': 0,
        'name': 'London',
        'cod': 200,
    }


@pytest.fixture  # type: ignore[misc]
def mock_forecast_response() -> dict[str, Any]:
    """Mock OpenWeatherMap /forecast response: 8 samples on Jan 1, 2 on Jan 2 (UTC)"""
    entries = [
        make_forecast_entry(DAY_ZERO + i * THREE_HOURS, temp=float(i))
        for i in range(10)
    ]
    return {
        'cod': '200',
        'message': 0,
        'cnt': len(entries),
        'list': entries,
        'city': {
            'id': 2643743,
            'name': 'London',
            'country': 'GB',
            'timezone': 0,
            'sunrise': LONDON_SUNRISE,
            'sunset': LONDON_SUNSET,
        },
    }


@pytest.fixture  # type: ignore[misc]
def make_response() -> Callable[..., MagicMock]:
    """Build a fake requests.Response"""

    def _make(body: Any, status_code: int = 200) -> MagicMock:
        response = MagicMock()
        response.status_code = status_code
        response.ok = status_code < 400  # noqa: PLR2004
        response.json.return_value = body
        return response

    return _make


@pytest.fixture  # type: ignore[misc]
def mock_requests_get() -> Generator[MagicMock, None, None]:
    """Mock requests.get for testing API calls"""
    with patch('requests.get') as mock_get:
        yield mock_get
