"""Engine configuration model.

Covers presentation (civil timezone, locale) and the write-path policies
(admin recipient, delivery reminder cadence). The resolution pipeline itself
has no configuration: step, timestamp and action rules are fixed tables.
"""

from __future__ import annotations

import json
from datetime import timedelta
from pathlib import Path
from typing import Any, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

Locale = Literal["zh-HK", "en-HK"]


class ReminderPolicy(BaseModel):
    """Delivery-confirmation reminders for shipped orders."""

    enabled: bool = True
    # First buyer reminder after shipment, then one per interval.
    interval_hours: float = Field(default=1.0, gt=0)
    # Notify the admin once when the buyer has not confirmed after this long.
    admin_escalation_hours: float = Field(default=6.0, gt=0)

    model_config = ConfigDict(extra="forbid")

    @property
    def interval(self) -> timedelta:
        return timedelta(hours=self.interval_hours)

    @property
    def admin_escalation_after(self) -> timedelta:
        return timedelta(hours=self.admin_escalation_hours)


class EngineConfig(BaseModel):
    """Structured engine configuration."""

    timezone: str = Field(default="Asia/Hong_Kong", min_length=1)
    locale: Locale = "zh-HK"

    # Overrides the locale's "time unknown" marker when set.
    unknown_time_label: str | None = Field(default=None, min_length=1)

    admin_recipient_id: str = Field(default="admin", min_length=1)

    reminders: ReminderPolicy = Field(default_factory=ReminderPolicy)

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def from_json_obj(cls, obj: dict[str, Any]) -> EngineConfig:
        """Create an EngineConfig instance from a JSON-compatible object."""
        return cls.model_validate(obj)

    @classmethod
    def from_json_file(cls, path: str | Path) -> EngineConfig:
        return cls.from_json_obj(json.loads(Path(path).read_text(encoding="utf-8")))

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown timezone: {value}") from exc
        return value

    @model_validator(mode="after")
    def validate_consistency(self) -> EngineConfig:
        """Escalation must not fire before the first buyer reminder."""
        if self.reminders.admin_escalation_hours < self.reminders.interval_hours:
            raise ValueError("reminders.admin_escalation_hours must be >= reminders.interval_hours")
        return self

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)
