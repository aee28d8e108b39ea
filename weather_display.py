# ABOUTME: Render-ready weather summaries built from the forecast core
# ABOUTME: Lookup tables and neutral defaults for fields the provider left out

import math
from datetime import datetime, tzinfo
from types import MappingProxyType
from typing import Any

from weather_core import ForecastAggregator, TemporalStateCalculator
from weather_models import CurrentObservation, ForecastSeries, WeatherSample


DEFAULT_FORECAST_DAYS = 5
HOURLY_FORECAST_LIMIT = 8
DEFAULT_ICON = '01d'
UNKNOWN_TEXT = 'Unknown'
UNKNOWN_LOCATION = 'Unknown Location'
MISSING_TIME = '--:--'
MS_TO_KMH = 3.6
NO_FORECAST_MESSAGE = 'Forecast data is incomplete or in an unexpected format.'

# Condition -> background gradient (Tailwind classes used by the frontend)
DEFAULT_GRADIENT = 'from-blue-500 to-indigo-500'
CONDITION_GRADIENTS = MappingProxyType(
    {
        'Clear': 'from-blue-400 to-cyan-300',
        'Clouds': 'from-blue-300 to-gray-300',
        'Rain': 'from-blue-600 to-gray-500',
        'Drizzle': 'from-blue-500 to-gray-400',
        'Thunderstorm': 'from-indigo-900 to-gray-700',
        'Snow': 'from-blue-100 to-gray-200',
        'Mist': 'from-gray-300 to-gray-400',
        'Smoke': 'from-gray-500 to-gray-600',
        'Haze': 'from-yellow-200 to-gray-300',
        'Dust': 'from-yellow-300 to-gray-400',
        'Fog': 'from-gray-300 to-gray-400',
        'Sand': 'from-yellow-400 to-gray-400',
        'Ash': 'from-gray-500 to-gray-600',
        'Squall': 'from-blue-600 to-gray-500',
        'Tornado': 'from-red-700 to-gray-700',
    }
)
NIGHT_GRADIENT = 'from-slate-800 to-indigo-950'

# Condition -> (day animation, night animation); names are the frontend's
# Tailwind animation keys (animate-<name>)
DEFAULT_ANIMATION = ('pulse-slow', 'twinkle')
CONDITION_ANIMATIONS = MappingProxyType(
    {
        'Clear': ('pulse-slow', 'twinkle'),
        'Clouds': ('float', 'float-slow'),
        'Rain': ('rain', 'rain'),
        'Drizzle': ('rain', 'rain'),
        'Thunderstorm': ('lightning', 'lightning'),
        'Snow': ('snow', 'snow'),
        'Mist': ('float-slow', 'float-slow'),
        'Smoke': ('float-slow', 'float-slow'),
        'Haze': ('float-slow', 'float-slow'),
        'Dust': ('float-slow', 'float-slow'),
        'Fog': ('float-slow', 'float-slow'),
        'Sand': ('float-slow', 'float-slow'),
        'Ash': ('float-slow', 'float-slow'),
        'Squall': ('float', 'float'),
        'Tornado': ('float', 'float'),
    }
)

UNIT_SYMBOLS = MappingProxyType({'metric': '°C', 'imperial': '°F', 'standard': 'K'})
WIND_UNITS = MappingProxyType({'metric': 'km/h', 'imperial': 'mph', 'standard': 'km/h'})


def round_half_up(value: float | None) -> int:
    """Whole-number display rounding; absent values show as 0"""
    if value is None:
        return 0
    return math.floor(value + 0.5)


def wind_speed_display(speed: float | None, units: str) -> int:
    """Wind speed in the unit shown next to it (km/h, or mph for imperial)"""
    if speed is None:
        return 0
    if units == 'imperial':
        return round_half_up(speed)
    return round_half_up(speed * MS_TO_KMH)


def capitalize_description(description: str | None) -> str:
    if not description:
        return UNKNOWN_TEXT
    return description[0].upper() + description[1:]


def _local_moment(timestamp: int | None, tz: tzinfo | None) -> datetime | None:
    if not timestamp:
        return None
    try:
        return datetime.fromtimestamp(timestamp, tz=tz)
    except (ValueError, OverflowError, OSError):
        return None


def format_time(timestamp: int | None, tz: tzinfo | None = None) -> str:
    """HH:MM for a timestamp, placeholder when it is missing or unusable"""
    moment = _local_moment(timestamp, tz)
    if moment is None:
        return MISSING_TIME
    return moment.strftime('%H:%M')


def format_day_label(timestamp: int | None, tz: tzinfo | None = None) -> str:
    """Short label like 'Mon, Jan 1'"""
    moment = _local_moment(timestamp, tz)
    if moment is None:
        return UNKNOWN_TEXT
    return f'{moment:%a, %b} {moment.day}'


def condition_gradient(condition: str | None, is_daytime: bool = True) -> str:
    if not is_daytime and condition == 'Clear':
        return NIGHT_GRADIENT
    return CONDITION_GRADIENTS.get(condition or '', DEFAULT_GRADIENT)


def condition_animation(condition: str | None, is_daytime: bool = True) -> str:
    day_animation, night_animation = CONDITION_ANIMATIONS.get(
        condition or '', DEFAULT_ANIMATION
    )
    return day_animation if is_daytime else night_animation


def describe_sample(
    sample: WeatherSample, units: str = 'metric', tz: tzinfo | None = None
) -> dict[str, Any]:
    """Display fields for one sample with neutral defaults for anything missing"""
    condition = sample.condition.value if sample.condition else None
    return {
        'timestamp': sample.timestamp,
        'time': format_time(sample.timestamp, tz),
        'temperature': round_half_up(sample.temperature),
        'feels_like': round_half_up(sample.feels_like),
        'temp_min': round_half_up(sample.temp_min),
        'temp_max': round_half_up(sample.temp_max),
        'humidity': sample.humidity or 0,
        'pressure': sample.pressure or 0,
        'wind_speed': wind_speed_display(sample.wind_speed, units),
        'wind_unit': WIND_UNITS.get(units, 'km/h'),
        'wind_direction': sample.wind_direction or 0,
        'condition': condition or UNKNOWN_TEXT,
        'description': capitalize_description(sample.description),
        'icon': sample.icon or DEFAULT_ICON,
    }


def build_current_summary(
    observation: CurrentObservation,
    now: int,
    units: str = 'metric',
    tz: tzinfo | None = None,
    calculator: TemporalStateCalculator | None = None,
) -> dict[str, Any]:
    """Current conditions plus where "now" sits between sunrise and sunset"""
    calculator = calculator or TemporalStateCalculator()
    sun = observation.sys
    progress = calculator.day_progress(now, sun.sunrise, sun.sunset)
    details = describe_sample(observation.sample, units, tz)
    condition = observation.sample.condition
    condition_name = condition.value if condition else None

    details.update(
        {
            'location': observation.location_name or UNKNOWN_LOCATION,
            'country': observation.country_code or '',
            'sunrise': format_time(sun.sunrise, tz),
            'sunset': format_time(sun.sunset, tz),
            'is_daytime': progress.is_daytime,
            'day_progress': round(progress.progress_percent, 1),
            'icon_is_day': calculator.is_day(observation.sample.icon),
            'gradient': condition_gradient(condition_name, progress.is_daytime),
            'animation': condition_animation(condition_name, progress.is_daytime),
        }
    )
    return details


def build_daily_forecast(
    series: ForecastSeries,
    max_days: int = DEFAULT_FORECAST_DAYS,
    tz: tzinfo | None = None,
    units: str = 'metric',
    aggregator: ForecastAggregator | None = None,
    calculator: TemporalStateCalculator | None = None,
) -> list[dict[str, Any]]:
    """One entry per local day, summarized by the day's representative sample"""
    aggregator = aggregator or ForecastAggregator(tz)
    calculator = calculator or TemporalStateCalculator()

    days = []
    for bucket in aggregator.group(series, max_days=max_days):
        sample = aggregator.representative(bucket)
        # Representative timestamps are never None: group() drops those samples
        timestamp = sample.timestamp or 0
        sun = calculator.align_sun_state(series.sun, timestamp)
        progress = calculator.day_progress(timestamp, sun.sunrise, sun.sunset)
        # Without sun times the icon is the only day/night signal
        is_daytime = (
            progress.is_daytime if sun.is_known else calculator.is_day(sample.icon)
        )
        condition = sample.condition.value if sample.condition else None

        entry = describe_sample(sample, units, tz)
        entry.update(
            {
                'date': bucket.date_key,
                'label': format_day_label(timestamp, tz),
                'sample_count': len(bucket.samples),
                'is_daytime': is_daytime,
                'day_progress': round(progress.progress_percent, 1),
                'icon_is_day': calculator.is_day(sample.icon),
                'gradient': condition_gradient(condition, is_daytime),
                'animation': condition_animation(condition, is_daytime),
            }
        )
        days.append(entry)
    return days


def build_hourly_forecast(
    series: ForecastSeries,
    limit: int = HOURLY_FORECAST_LIMIT,
    units: str = 'metric',
    tz: tzinfo | None = None,
) -> list[dict[str, Any]]:
    """The next few 3-hour samples, skipping entries that cannot be placed in time"""
    hourly = []
    for sample in series.samples:
        if sample.timestamp is None or sample.condition is None:
            continue
        hourly.append(describe_sample(sample, units, tz))
        if len(hourly) >= limit:
            break
    return hourly


def build_weather_summary(
    current: CurrentObservation | None,
    series: ForecastSeries | None,
    now: int,
    units: str = 'metric',
    max_days: int = DEFAULT_FORECAST_DAYS,
    tz: tzinfo | None = None,
    errors: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Everything the dashboard needs for one city in a single payload"""
    errors = list(errors or [])
    location = None
    country = None
    if current is not None:
        location = current.location_name
        country = current.country_code
    if series is not None:
        location = location or series.city_name
        country = country or series.country_code

    days: list[dict[str, Any]] = []
    hourly: list[dict[str, Any]] = []
    message = None
    if series is not None:
        days = build_daily_forecast(series, max_days=max_days, tz=tz, units=units)
        hourly = build_hourly_forecast(series, units=units, tz=tz)
    if not days:
        message = NO_FORECAST_MESSAGE

    return {
        'location': location or UNKNOWN_LOCATION,
        'country': country or '',
        'units': units,
        'unit_symbol': UNIT_SYMBOLS.get(units, '°'),
        'current': (
            build_current_summary(current, now, units, tz)
            if current is not None
            else None
        ),
        'days': days,
        'hourly': hourly,
        'message': message,
        'errors': errors,
    }
