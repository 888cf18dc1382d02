"""Display formatting for resolved step times.

Converts stored instants into a short date and short time in one fixed civil
timezone (the platform's operating region, Hong Kong by default), whatever
the viewer's or server's local timezone. Formatting is deterministic for a
given instant and configuration.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from order_lifecycle.core.domain.timeline import UNKNOWN

if TYPE_CHECKING:
    from order_lifecycle.core.config.engine_config import EngineConfig
    from order_lifecycle.core.domain.timeline import StepTimeValue
    from order_lifecycle.core.ports.clock import Clock


_MONTHS_EN = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

_LABELS: dict[str, dict[str, str]] = {
    "zh-HK": {
        "unknown": "時間未知",
        "just_now": "剛剛",
        "minutes": "{n}分鐘前",
        "hours": "{n}小時前",
        "days": "{n}天前",
    },
    "en-HK": {
        "unknown": "Time unknown",
        "just_now": "Just now",
        "minutes": "{n} min ago",
        "hours": "{n} h ago",
        "days": "{n} days ago",
    },
}


@dataclass(frozen=True, slots=True)
class FormattedTime:
    date: str
    time: str
    known: bool = True

    def __str__(self) -> str:
        if not self.known:
            return self.date
        return f"{self.date} {self.time}"


class TimeFormatter:
    """Formats step times for one locale and civil timezone."""

    def __init__(self, config: EngineConfig) -> None:
        self._zone = config.zone
        self._locale = config.locale
        self._labels = _LABELS[config.locale]
        self._unknown = config.unknown_time_label or self._labels["unknown"]

    @property
    def unknown_label(self) -> str:
        return self._unknown

    def local(self, value: datetime) -> datetime:
        return value.astimezone(self._zone)

    def short_date(self, value: datetime) -> str:
        local = self.local(value)
        if self._locale == "zh-HK":
            return f"{local.month}月{local.day}日"
        return f"{local.day} {_MONTHS_EN[local.month - 1]}"

    def short_time(self, value: datetime) -> str:
        return self.local(value).strftime("%H:%M")

    def format(self, value: StepTimeValue) -> FormattedTime:
        """Format a resolved step time; UNKNOWN renders as the unknown marker."""
        if value == UNKNOWN or not isinstance(value, datetime):
            return FormattedTime(date=self._unknown, time="", known=False)
        return FormattedTime(date=self.short_date(value), time=self.short_time(value))

    def relative_label(self, value: StepTimeValue, clock: Clock) -> str:
        """Relative label ("3 h ago"); falls back to the short date after a week."""
        if value == UNKNOWN or not isinstance(value, datetime):
            return self._unknown

        elapsed = clock.now() - value
        minutes = int(elapsed.total_seconds() // 60)

        if minutes < 1:
            return self._labels["just_now"]
        if minutes < 60:
            return self._labels["minutes"].format(n=minutes)
        hours = minutes // 60
        if hours < 24:
            return self._labels["hours"].format(n=hours)
        days = hours // 24
        if days < 7:
            return self._labels["days"].format(n=days)
        return self.short_date(value)
