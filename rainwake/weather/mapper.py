"""Map raw forecast responses to domain forecasts."""

from datetime import date, datetime

from rainwake.models.forecast import DailyForecast, HourlyForecast
from rainwake.weather.client import WeatherResponse


def _parse_local_time(value: str) -> datetime | None:
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def map_to_forecast(response: WeatherResponse, target_date: date, fetched_at: datetime) -> DailyForecast:
    """Build the forecast of one local calendar date.

    Hours of other dates and unparsable timestamps are dropped. A missing
    probability counts as 0; missing temperature and weather code stay None.

    Args:
        response: Raw forecast response
        target_date: Local date to keep
        fetched_at: Timestamp recorded on the result

    Returns:
        Forecast for target_date, possibly with no hours
    """
    hourly = response.hourly
    temperatures = hourly.temperature_2m or []
    codes = hourly.weather_code or []

    forecasts = []
    for index, raw_time in enumerate(hourly.time):
        moment = _parse_local_time(raw_time)
        if moment is None or moment.date() != target_date:
            continue

        pop = hourly.precipitation_probability[index] if index < len(hourly.precipitation_probability) else None
        forecasts.append(
            HourlyForecast(
                time=moment,
                precipitation_probability=pop or 0,
                temperature=temperatures[index] if index < len(temperatures) else None,
                weather_code=codes[index] if index < len(codes) else None,
            )
        )

    return DailyForecast(date=target_date, hourly_forecasts=forecasts, fetched_at=fetched_at)
