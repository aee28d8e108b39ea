import os
import time
from datetime import timedelta, timezone, tzinfo
from typing import Any

from cachetools import TTLCache
from dotenv import load_dotenv
from flask import Flask, Response, jsonify, request
from flask_compress import Compress
from flask_socketio import SocketIO, emit

from weather_display import DEFAULT_FORECAST_DAYS, build_weather_summary
from weather_models import (
    MAX_UTC_OFFSET,
    CurrentObservation,
    ForecastSeries,
    normalize_forecast,
)
from weather_providers import (
    DEFAULT_UNITS,
    VALID_UNITS,
    OpenWeatherProvider,
    WeatherProviderError,
)


load_dotenv()

app = Flask(__name__)
secret_key = os.getenv('SECRET_KEY')
if not secret_key:
    import secrets

    secret_key = secrets.token_hex(16)
    print(
        'Warning: No SECRET_KEY environment variable set. '
        'Generated temporary key for this session.'
    )
app.config['SECRET_KEY'] = secret_key

# Enable gzip compression for all responses
Compress(app)

# Initialize SocketIO with secure CORS settings
cors_origins = os.getenv(
    'CORS_ALLOWED_ORIGINS', 'http://localhost:3000,http://127.0.0.1:3000'
).split(',')
socketio = SocketIO(app, cors_allowed_origins=cors_origins)

# Day span accepted by the forecast endpoints
MIN_FORECAST_DAYS = 1
MAX_FORECAST_DAYS = 7
HTTP_UNPROCESSABLE_ENTITY = 422
HTTP_INTERNAL_SERVER_ERROR = 500

# Forecast cache: 1 hour TTL by default, max 100 city/unit/day combinations
FORECAST_CACHE_TTL = int(os.getenv('FORECAST_CACHE_TTL', '3600'))
forecast_cache: TTLCache[str, Any] = TTLCache(maxsize=100, ttl=FORECAST_CACHE_TTL)

openweather_api_key = os.getenv('OPENWEATHER_API_KEY')
if openweather_api_key:
    print('🔑 OpenWeatherMap API key found')
else:
    print('⚠️  No OPENWEATHER_API_KEY set - weather requests will fail with 503')

weather_provider = OpenWeatherProvider(
    openweather_api_key,
    base_url=os.getenv(
        'OPENWEATHER_BASE_URL', 'https://api.openweathermap.org/data/2.5'
    ),
)


class ValidationFailed(Exception):
    """Request parameters did not pass validation"""


def validate_weather_args(args: Any, with_days: bool = False) -> dict[str, Any]:
    """Validate city/units/days query parameters the way the original API does"""
    city = str(args.get('city') or '').strip()
    if not city:
        msg = 'The city field is required.'
        raise ValidationFailed(msg)

    units = args.get('units') or DEFAULT_UNITS
    if units not in VALID_UNITS:
        msg = f'The units field must be one of: {", ".join(VALID_UNITS)}.'
        raise ValidationFailed(msg)

    validated: dict[str, Any] = {'city': city, 'units': units}
    if with_days:
        raw_days = args.get('days')
        if raw_days in (None, ''):
            days = DEFAULT_FORECAST_DAYS
        else:
            try:
                days = int(raw_days)
            except (TypeError, ValueError):
                msg = 'The days field must be an integer.'
                raise ValidationFailed(msg) from None
        if not MIN_FORECAST_DAYS <= days <= MAX_FORECAST_DAYS:
            msg = (
                f'The days field must be between {MIN_FORECAST_DAYS} '
                f'and {MAX_FORECAST_DAYS}.'
            )
            raise ValidationFailed(msg)
        validated['days'] = days
    return validated


def validation_error_response(error: ValidationFailed) -> Response:
    response = jsonify({'error': 'Validation failed', 'message': str(error)})
    response.status_code = HTTP_UNPROCESSABLE_ENTITY
    return response


def provider_error_response(error: WeatherProviderError, title: str) -> Response:
    response = jsonify({'error': title, 'message': error.message})
    response.status_code = error.status
    return response


def forecast_cache_key(city: str, units: str, days: int) -> str:
    return f'weather.forecast.{city.lower()}.{units}.{days}'


def get_forecast_payload(city: str, units: str, days: int) -> dict[str, Any]:
    """Raw forecast payload, served from the cache when fresh"""
    cache_key = forecast_cache_key(city, units, days)
    if cache_key in forecast_cache:
        print(f'📦 Returning cached forecast for {cache_key}')
        return forecast_cache[cache_key]  # type: ignore[no-any-return]

    payload = weather_provider.fetch_forecast(city, units)
    # Only successful payloads reach this point; failures raise above
    forecast_cache[cache_key] = payload
    print(f'💾 Cached forecast for {cache_key}')
    return payload


def resolve_display_timezone(zone: str | None, utc_offset: int | None) -> tzinfo | None:
    """Zone used to split the forecast into days.

    ``zone=location`` uses the provider's UTC offset for the city; anything
    else, or an offset a fixed zone cannot hold, means the server's local
    zone (None).
    """
    if zone != 'location' or utc_offset is None:
        return None
    if abs(utc_offset) >= MAX_UTC_OFFSET:
        print(f'⚠️  Ignoring out-of-range UTC offset: {utc_offset}')
        return None
    return timezone(timedelta(seconds=utc_offset))


def collect_weather_summary(
    city: str, units: str, days: int, zone: str | None = None
) -> dict[str, Any]:
    """Fetch current weather and forecast independently and summarize both"""
    errors: list[dict[str, Any]] = []

    current: CurrentObservation | None = None
    try:
        current = weather_provider.get_current_observation(city, units)
    except WeatherProviderError as e:
        errors.append({'source': 'current', **e.to_dict()})

    series: ForecastSeries | None = None
    try:
        series = normalize_forecast(get_forecast_payload(city, units, days))
    except WeatherProviderError as e:
        errors.append({'source': 'forecast', **e.to_dict()})

    utc_offset = None
    if series is not None and series.utc_offset is not None:
        utc_offset = series.utc_offset
    elif current is not None:
        utc_offset = current.utc_offset

    return build_weather_summary(
        current,
        series,
        now=int(time.time()),
        units=units,
        max_days=days,
        tz=resolve_display_timezone(zone, utc_offset),
        errors=errors,
    )


@app.route('/api/test')  # type: ignore[misc]
def api_test() -> Response:
    """Health check for the frontend"""
    return jsonify({'message': 'API is working!'})


@app.route('/api/weather/current')  # type: ignore[misc]
def current_weather_api() -> Response:
    """Current weather for a city, passed through from the provider"""
    try:
        params = validate_weather_args(request.args)
    except ValidationFailed as e:
        return validation_error_response(e)

    try:
        data = weather_provider.fetch_current(params['city'], params['units'])
    except WeatherProviderError as e:
        return provider_error_response(e, 'Weather data not available')
    except Exception as e:
        print(f'❌ Unexpected error fetching current weather: {str(e)}')
        response = jsonify({'error': 'Server error', 'message': str(e)})
        response.status_code = HTTP_INTERNAL_SERVER_ERROR
        return response

    return jsonify(data)


@app.route('/api/weather/forecast')  # type: ignore[misc]
def forecast_api() -> Response:
    """3-hourly forecast for a city, cached per city/units/days"""
    try:
        params = validate_weather_args(request.args, with_days=True)
    except ValidationFailed as e:
        return validation_error_response(e)

    try:
        data = get_forecast_payload(params['city'], params['units'], params['days'])
    except WeatherProviderError as e:
        return provider_error_response(e, 'Forecast data not available')

    response = jsonify(data)
    response.headers['Cache-Control'] = f'public, max-age={FORECAST_CACHE_TTL}'
    return response


@app.route('/api/weather/daily')  # type: ignore[misc]
def daily_summary_api() -> Response:
    """Current conditions plus per-day forecast summaries ready for display"""
    try:
        params = validate_weather_args(request.args, with_days=True)
    except ValidationFailed as e:
        return validation_error_response(e)

    summary = collect_weather_summary(
        params['city'], params['units'], params['days'], request.args.get('zone')
    )

    # Both upstream calls failed: relay the forecast failure
    if summary['current'] is None and len(summary['errors']) == 2:  # noqa: PLR2004
        failure = summary['errors'][-1]
        response = jsonify(
            {
                'error': 'Weather data not available',
                'message': failure['message'],
                'errors': summary['errors'],
            }
        )
        response.status_code = failure['status']
        return response

    return jsonify(summary)


@app.route('/api/cache/stats')  # type: ignore[misc]
def cache_stats() -> Response:
    """API endpoint for cache statistics"""
    return jsonify(
        {
            'cache_size': len(forecast_cache),
            'max_size': forecast_cache.maxsize,
            'ttl_seconds': forecast_cache.ttl,
            'cached_keys': list(forecast_cache.keys()),
        }
    )


# WebSocket event handlers
@socketio.on('connect')  # type: ignore[misc]
def handle_connect() -> None:
    """Handle client connection"""
    print(f'🔗 Client connected: {request.sid}')


@socketio.on('disconnect')  # type: ignore[misc]
def handle_disconnect() -> None:
    """Handle client disconnection"""
    print(f'📡 Client disconnected: {request.sid}')


@socketio.on('request_weather_update')  # type: ignore[misc]
def handle_weather_update_request(data: Any) -> None:
    """Push a fresh weather summary to the requesting client"""
    if data is None:
        data = {}
    if not isinstance(data, dict):
        emit(
            'weather_error',
            {'error': 'Validation failed', 'message': 'Expected a JSON object.'},
        )
        return

    try:
        params = validate_weather_args(data, with_days=True)
    except ValidationFailed as e:
        emit('weather_error', {'error': 'Validation failed', 'message': str(e)})
        return

    print(f'🌤️  Weather update requested for {params["city"]}')
    summary = collect_weather_summary(
        params['city'], params['units'], params['days'], data.get('zone')
    )
    if summary['current'] is None and not summary['days']:
        emit(
            'weather_error',
            {'error': 'Failed to fetch weather data', 'errors': summary['errors']},
        )
        return
    emit('weather_update', summary)


@socketio.on('ping')  # type: ignore[misc]
def handle_ping() -> None:
    """Handle ping from client to check connection"""
    emit('pong', {'timestamp': time.time()})


if __name__ == '__main__':
    port = int(os.getenv('PORT', '8000'))
    host = os.getenv('HOST', '127.0.0.1')  # Default to localhost, allow override
    socketio.run(app, debug=False, host=host, port=port, allow_unsafe_werkzeug=True)
