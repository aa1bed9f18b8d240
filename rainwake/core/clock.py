"""Wall clock abstraction shared by everything that compares against "now"."""

from datetime import date, datetime, time, timedelta, timezone, tzinfo


class Clock:
    """System clock bound to the reference timezone."""

    def __init__(self, tz: tzinfo):
        self._tz = tz

    @property
    def tz(self) -> tzinfo:
        return self._tz

    def now(self) -> datetime:
        """Current instant as an aware UTC datetime."""
        return datetime.now(timezone.utc)

    def now_ms(self) -> int:
        return to_millis(self.now())

    def local_now(self) -> datetime:
        return self.now().astimezone(self._tz)

    def today(self) -> date:
        return self.local_now().date()

    def tomorrow(self) -> date:
        return self.today() + timedelta(days=1)

    def today_string(self) -> str:
        """Today's date in the reference timezone as YYYY-MM-DD."""
        return self.today().isoformat()

    def next_occurrence_ms(self, time_of_day: time) -> int:
        """Epoch millis of the next occurrence of a local time of day.

        Today if it has not passed yet, otherwise tomorrow.
        """
        today = self.today()
        candidate = self.at_ms(today, time_of_day)
        if candidate <= self.now_ms():
            candidate = self.at_ms(today + timedelta(days=1), time_of_day)
        return candidate

    def at_ms(self, day: date, time_of_day: time) -> int:
        """Epoch millis of a local date and time of day."""
        return to_millis(datetime.combine(day, time_of_day, tzinfo=self._tz))

    def local_date_of(self, millis: int) -> date:
        return from_millis(millis).astimezone(self._tz).date()

    def format_ms(self, millis: int) -> str:
        """Format epoch millis as 'YYYY-MM-DD HH:MM' in the reference timezone."""
        return from_millis(millis).astimezone(self._tz).strftime("%Y-%m-%d %H:%M")


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def to_millis(moment: datetime) -> int:
    return (moment - _EPOCH) // timedelta(milliseconds=1)


def from_millis(millis: int) -> datetime:
    return _EPOCH + timedelta(milliseconds=millis)
