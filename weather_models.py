# ABOUTME: Validated weather data models and the OpenWeatherMap payload normalizer
# ABOUTME: All missing-field decisions are made here, once, before aggregation

from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError


# 9999-12-31T00:00:00Z; later values cannot be turned into a local date
MAX_TIMESTAMP = 253402214400
# datetime.timezone only accepts offsets strictly inside one day
MAX_UTC_OFFSET = 86400


class WeatherCondition(str, Enum):
    """Weather categories reported by the provider"""

    CLEAR = 'Clear'
    CLOUDS = 'Clouds'
    RAIN = 'Rain'
    DRIZZLE = 'Drizzle'
    THUNDERSTORM = 'Thunderstorm'
    SNOW = 'Snow'
    MIST = 'Mist'
    SMOKE = 'Smoke'
    HAZE = 'Haze'
    DUST = 'Dust'
    FOG = 'Fog'
    SAND = 'Sand'
    ASH = 'Ash'
    SQUALL = 'Squall'
    TORNADO = 'Tornado'


class FrozenModel(BaseModel):
    """Immutable base for everything built from a provider payload"""

    model_config = ConfigDict(frozen=True, extra='ignore')


class WeatherSample(FrozenModel):
    """One timestamped observation or prediction.

    Every field is optional: ``None`` means the provider did not send it.
    Nothing is defaulted here; display code decides what to show instead.
    """

    timestamp: int | None = Field(default=None, ge=0, le=MAX_TIMESTAMP)
    temperature: float | None = None
    feels_like: float | None = None
    temp_min: float | None = None
    temp_max: float | None = None
    humidity: int | None = Field(default=None, ge=0, le=100)
    pressure: float | None = None
    wind_speed: float | None = Field(default=None, ge=0)
    wind_direction: float | None = Field(default=None, ge=0, lt=360)
    condition: WeatherCondition | None = None
    description: str | None = None
    icon: str | None = None


class LocationSunState(FrozenModel):
    """Sunrise and sunset for one calendar day; 0 when unknown"""

    sunrise: int = Field(default=0, ge=0, le=MAX_TIMESTAMP)
    sunset: int = Field(default=0, ge=0, le=MAX_TIMESTAMP)

    @property
    def is_known(self) -> bool:
        """Both times present; one without the other is not usable"""
        return self.sunrise != 0 and self.sunset != 0


class CurrentObservation(FrozenModel):
    """The "now" snapshot for a location"""

    sample: WeatherSample
    location_name: str | None = None
    country_code: str | None = None
    sys: LocationSunState = Field(default_factory=LocationSunState)
    utc_offset: int | None = None


class ForecastSeries(FrozenModel):
    """Ordered samples from a single forecast call plus its location metadata"""

    samples: tuple[WeatherSample, ...] = ()
    city_name: str | None = None
    country_code: str | None = None
    sun: LocationSunState = Field(default_factory=LocationSunState)
    utc_offset: int | None = None


class DayBucket(FrozenModel):
    """Samples sharing one local calendar date, in input order"""

    date_key: str
    samples: tuple[WeatherSample, ...]


def _as_mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _first_condition(raw_weather: Any) -> Mapping[str, Any]:
    """OpenWeatherMap sends conditions as a list; the first one is primary"""
    if isinstance(raw_weather, list) and raw_weather:
        return _as_mapping(raw_weather[0])
    return {}


def _parse_condition(value: Any) -> WeatherCondition | None:
    try:
        return WeatherCondition(value)
    except ValueError:
        return None


def _normalize_degrees(value: Any) -> Any:
    # Some stations report 360 for due north
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value % 360
    return value


def _sun_state(raw: Mapping[str, Any]) -> LocationSunState:
    try:
        return LocationSunState(
            sunrise=raw.get('sunrise') or 0, sunset=raw.get('sunset') or 0
        )
    except ValidationError:
        print('⚠️  Ignoring malformed sunrise/sunset values')
        return LocationSunState()


def _utc_offset(value: Any) -> int | None:
    if not isinstance(value, int) or isinstance(value, bool):
        return None
    if abs(value) >= MAX_UTC_OFFSET:
        print(f'⚠️  Ignoring out-of-range UTC offset: {value}')
        return None
    return value


def normalize_sample(raw: Any) -> WeatherSample | None:
    """Convert one provider list entry into a WeatherSample.

    Returns None (and reports it) when the entry is not an object or one of
    its present fields is invalid. Absent fields stay None.
    """
    if not isinstance(raw, Mapping):
        print(f'⚠️  Skipping non-object weather sample: {raw!r}')
        return None

    main = _as_mapping(raw.get('main'))
    wind = _as_mapping(raw.get('wind'))
    weather = _first_condition(raw.get('weather'))

    fields = {
        'timestamp': raw.get('dt'),
        'temperature': main.get('temp'),
        'feels_like': main.get('feels_like'),
        'temp_min': main.get('temp_min'),
        'temp_max': main.get('temp_max'),
        'humidity': main.get('humidity'),
        'pressure': main.get('pressure'),
        'wind_speed': wind.get('speed'),
        'wind_direction': _normalize_degrees(wind.get('deg')),
        'condition': _parse_condition(weather.get('main')),
        'description': weather.get('description'),
        'icon': weather.get('icon'),
    }

    try:
        return WeatherSample.model_validate(fields)
    except ValidationError as e:
        print(
            f'⚠️  Skipping invalid weather sample (dt={raw.get("dt")!r}): '
            f'{e.error_count()} validation error(s)'
        )
        return None


def normalize_samples(raw_list: Iterable[Any]) -> tuple[WeatherSample, ...]:
    """Normalize a list of provider entries, keeping only the valid ones"""
    samples = []
    for raw in raw_list:
        sample = normalize_sample(raw)
        if sample is not None:
            samples.append(sample)
    return tuple(samples)


def normalize_forecast(raw_data: Any) -> ForecastSeries:
    """Convert a /forecast payload into a ForecastSeries.

    A payload without a usable ``list`` yields an empty series, which
    callers surface as a "no data" state.
    """
    data = _as_mapping(raw_data)
    raw_list = data.get('list')
    if not isinstance(raw_list, list):
        print('⚠️  Forecast payload has no sample list')
        raw_list = []

    city = _as_mapping(data.get('city'))
    return ForecastSeries(
        samples=normalize_samples(raw_list),
        city_name=city.get('name') if isinstance(city.get('name'), str) else None,
        country_code=(
            city.get('country') if isinstance(city.get('country'), str) else None
        ),
        sun=_sun_state(city),
        utc_offset=_utc_offset(city.get('timezone')),
    )


def normalize_current(raw_data: Any) -> CurrentObservation | None:
    """Convert a /weather payload into a CurrentObservation"""
    data = _as_mapping(raw_data)
    if not data:
        return None

    sample = normalize_sample(data)
    if sample is None:
        return None

    sys = _as_mapping(data.get('sys'))
    name = data.get('name')
    country = sys.get('country')
    return CurrentObservation(
        sample=sample,
        location_name=name if isinstance(name, str) and name else None,
        country_code=country if isinstance(country, str) and country else None,
        sys=_sun_state(sys),
        utc_offset=_utc_offset(data.get('timezone')),
    )
