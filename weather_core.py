# ABOUTME: Forecast aggregation (day bucketing, representative samples) and solar day progress
# ABOUTME: Pure functions over already-normalized models; no I/O, no shared state

from collections.abc import Iterable
from datetime import datetime, tzinfo

from pydantic import BaseModel, ConfigDict

from weather_models import DayBucket, ForecastSeries, LocationSunState, WeatherSample


SECONDS_PER_DAY = 86400
MAX_PROGRESS_PERCENT = 100.0
MIN_PROGRESS_PERCENT = 0.0


class DayProgress(BaseModel):
    """Day/night classification and position within the current day or night"""

    model_config = ConfigDict(frozen=True)

    is_daytime: bool
    progress_percent: float


class ForecastAggregator:
    """Groups a flat forecast series into local calendar days"""

    def __init__(self, tz: tzinfo | None = None) -> None:
        # None means the zone of the machine rendering the forecast
        self.tz = tz

    def day_key(self, timestamp: int) -> str:
        """Local calendar date (YYYY-MM-DD) of a UTC epoch timestamp"""
        return datetime.fromtimestamp(timestamp, tz=self.tz).strftime('%Y-%m-%d')

    def group(
        self,
        series: ForecastSeries | Iterable[WeatherSample],
        max_days: int | None = None,
    ) -> list[DayBucket]:
        """Bucket samples by local date.

        Buckets come out in order of first appearance and samples keep
        their input order inside each bucket, even if the input is not
        sorted. ``max_days`` truncates the result; by default every bucket
        is returned.
        """
        samples = series.samples if isinstance(series, ForecastSeries) else series

        buckets: dict[str, list[WeatherSample]] = {}
        skipped = 0
        for sample in samples:
            if sample.timestamp is None:
                skipped += 1
                continue
            try:
                key = self.day_key(sample.timestamp)
            except (ValueError, OverflowError, OSError):
                skipped += 1
                continue
            buckets.setdefault(key, []).append(sample)

        if skipped:
            print(
                f'⚠️  Skipped {skipped} forecast sample(s) '
                'without a usable timestamp'
            )

        grouped = [
            DayBucket(date_key=key, samples=tuple(day_samples))
            for key, day_samples in buckets.items()
        ]
        if max_days is not None:
            grouped = grouped[: max(max_days, 0)]
        return grouped

    @staticmethod
    def representative(bucket: DayBucket) -> WeatherSample:
        """Middle sample of the day, used as its "midday" summary.

        This is the middle element of the day's samples, not the one
        closest to local noon.
        """
        if not bucket.samples:
            msg = f'Day bucket {bucket.date_key!r} has no samples'
            raise ValueError(msg)
        return bucket.samples[len(bucket.samples) // 2]


class TemporalStateCalculator:
    """Day/night state derived from sunrise, sunset and a point in time"""

    @staticmethod
    def _clamp(percent: float) -> float:
        return min(MAX_PROGRESS_PERCENT, max(MIN_PROGRESS_PERCENT, percent))

    def day_progress(
        self, current: int, sunrise: int | None, sunset: int | None
    ) -> DayProgress:
        """Whether ``current`` is daytime and how far through the day or night it is.

        Night runs from sunset to the following sunrise (``sunrise + 86400``),
        so times before today's sunrise count from the previous sunset.
        Missing sun data, including only one of the two times, is treated
        as the start of the day.
        """
        sunrise = sunrise or 0
        sunset = sunset or 0

        if sunrise == 0 or sunset == 0:
            return DayProgress(is_daytime=True, progress_percent=0.0)

        if sunrise <= current < sunset:
            day_length = sunset - sunrise
            elapsed = current - sunrise
            return DayProgress(
                is_daytime=True,
                progress_percent=self._clamp(elapsed / day_length * 100),
            )

        night_length = (sunrise + SECONDS_PER_DAY) - sunset
        if night_length <= 0:
            return DayProgress(is_daytime=False, progress_percent=0.0)

        if current < sunrise:
            elapsed = (current + SECONDS_PER_DAY) - sunset
        else:
            elapsed = current - sunset
        return DayProgress(
            is_daytime=False,
            progress_percent=self._clamp(elapsed / night_length * 100),
        )

    @staticmethod
    def is_day(icon_code: str | None) -> bool:
        """True for day icon codes like '01d'; missing codes count as day"""
        if not icon_code:
            return True
        return icon_code.endswith('d')

    @staticmethod
    def align_sun_state(sun: LocationSunState, timestamp: int) -> LocationSunState:
        """Shift sun times by whole days to the solar day containing ``timestamp``"""
        if not sun.is_known:
            return sun
        days = (timestamp - sun.sunrise) // SECONDS_PER_DAY
        shift = days * SECONDS_PER_DAY
        return LocationSunState(sunrise=sun.sunrise + shift, sunset=sun.sunset + shift)
