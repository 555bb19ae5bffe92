"""
Domain Service: Shard Key Resolver

Maps a memo timestamp to its month shard key in one fixed timezone, so
the same instant lands in the same shard wherever the code runs.
"""

import re
from datetime import datetime
from typing import Callable, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from gitmemo.domain.errors import ValidationError

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
ID_TIME_FORMAT = "%Y%m%d%H%M%S"
MONTH_KEY_FORMAT = "%Y%m"
MONTH_KEY_PATTERN = re.compile(r"^\d{6}$")

Timestamp = Union[str, datetime]


def is_month_key(value: Optional[str]) -> bool:
    """True for a 6-digit key naming a real calendar month."""
    if not value or not MONTH_KEY_PATTERN.match(value):
        return False
    try:
        datetime(int(value[:4]), int(value[4:]), 1)
    except ValueError:
        return False
    return True


class ShardKeyResolver:
    """
    Timezone-pinned clock and timestamp parser.

    Args:
        timezone: IANA zone name used for every shard key and timestamp
        clock: Returns "now"; injectable for tests
    """

    def __init__(
        self,
        timezone: str = "Asia/Shanghai",
        clock: Optional[Callable[[], datetime]] = None,
    ):
        try:
            self.tz = ZoneInfo(timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValidationError(f"Unknown timezone: {timezone}") from e
        self.timezone = timezone
        self._clock = clock

    def now(self) -> datetime:
        current = self._clock() if self._clock else datetime.now(self.tz)
        return self._localize(current)

    def format_time(self, value: Optional[Timestamp] = None) -> str:
        """Canonical memo timestamp, second precision."""
        moment = self.now() if value is None else self.parse(value)
        return moment.strftime(TIME_FORMAT)

    def format_time_for_id(self, value: Optional[Timestamp] = None) -> str:
        moment = self.now() if value is None else self.parse(value)
        return moment.strftime(ID_TIME_FORMAT)

    def parse(self, value: Timestamp) -> datetime:
        """
        Parse a timestamp into an aware datetime in the store timezone.

        Naive inputs are read as wall-clock time in the store timezone;
        aware inputs are converted.

        Raises:
            ValidationError: unparsable or unsupported input
        """
        if isinstance(value, datetime):
            return self._localize(value)
        if not isinstance(value, str) or not value.strip():
            raise ValidationError("Invalid memo createdTime", context={"timestamp": value})

        text = value.strip()
        try:
            parsed = datetime.strptime(text, TIME_FORMAT)
        except ValueError:
            try:
                parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
            except ValueError as e:
                raise ValidationError(
                    "Invalid memo createdTime", context={"timestamp": value}
                ) from e
        return self._localize(parsed)

    def month_key(self, value: Timestamp) -> str:
        return self.parse(value).strftime(MONTH_KEY_FORMAT)

    def _localize(self, moment: datetime) -> datetime:
        if moment.tzinfo is None:
            return moment.replace(tzinfo=self.tz)
        return moment.astimezone(self.tz)
