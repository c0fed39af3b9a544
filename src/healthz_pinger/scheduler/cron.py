from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import FrozenSet, Tuple

ALIASES = {
    "@hourly": "0 * * * *",
    "@daily": "0 0 * * *",
    "@midnight": "0 0 * * *",
    "@weekly": "0 0 * * 0",
    "@monthly": "0 0 1 * *",
    "@yearly": "0 0 1 1 *",
    "@annually": "0 0 1 1 *",
}

# (name, lowest, highest) per field, in expression order
FIELDS: Tuple[Tuple[str, int, int], ...] = (
    ("minute", 0, 59),
    ("hour", 0, 23),
    ("day of month", 1, 31),
    ("month", 1, 12),
    ("day of week", 0, 7),
)

# Five years covers every satisfiable calendar combination (leap days included).
SEARCH_HORIZON = timedelta(days=5 * 366)


class CronError(ValueError):
    """Raised for malformed or unsatisfiable cadence expressions."""


def _is_number(text: str) -> bool:
    # str.isdigit alone accepts superscripts and other non-ASCII digits
    return text.isascii() and text.isdigit()


def _parse_field(text: str, name: str, low: int, high: int) -> FrozenSet[int]:
    values = set()
    for part in text.split(","):
        if not part:
            raise CronError(f"Empty entry in {name} field: {text!r}")

        step = 1
        if "/" in part:
            part, step_text = part.split("/", 1)
            if not _is_number(step_text) or int(step_text) == 0:
                raise CronError(f"Invalid step in {name} field: {text!r}")
            step = int(step_text)

        if part == "*":
            start, end = low, high
        elif "-" in part:
            start_text, end_text = part.split("-", 1)
            if not (_is_number(start_text) and _is_number(end_text)):
                raise CronError(f"Invalid range in {name} field: {text!r}")
            start, end = int(start_text), int(end_text)
        elif _is_number(part):
            start = int(part)
            # "N/S" means "from N to the end, every S"
            end = high if step > 1 else start
        else:
            raise CronError(f"Invalid value in {name} field: {text!r}")

        if start < low or end > high or start > end:
            raise CronError(f"{name} field out of range {low}-{high}: {text!r}")

        values.update(range(start, end + 1, step))
    return frozenset(values)


@dataclass(frozen=True)
class CronSchedule:
    """
    Five-field cron cadence: minute, hour, day of month, month, day of week.

    Day of week uses 0-7 with both 0 and 7 meaning Sunday. When both day
    fields are restricted a day matches if either one does, as in classic cron;
    a field starting with "*" (including "*/N") counts as unrestricted.
    """

    expression: str
    minutes: FrozenSet[int]
    hours: FrozenSet[int]
    days: FrozenSet[int]
    months: FrozenSet[int]
    weekdays: FrozenSet[int]
    days_restricted: bool
    weekdays_restricted: bool

    @classmethod
    def parse(cls, expression: str) -> "CronSchedule":
        text = ALIASES.get(expression.strip().lower(), expression.strip())
        parts = text.split()
        if len(parts) != len(FIELDS):
            raise CronError(f"Expected {len(FIELDS)} fields, got {len(parts)}: {expression!r}")

        minutes, hours, days, months, weekdays = (
            _parse_field(part, *field) for part, field in zip(parts, FIELDS)
        )
        # 7 is an alias for Sunday
        weekdays = frozenset(0 if d == 7 else d for d in weekdays)

        return cls(
            expression=expression,
            minutes=minutes,
            hours=hours,
            days=days,
            months=months,
            weekdays=weekdays,
            days_restricted=not parts[2].startswith("*"),
            weekdays_restricted=not parts[4].startswith("*"),
        )

    def _day_matches(self, moment: datetime) -> bool:
        in_days = moment.day in self.days
        # datetime.weekday() is Monday=0, cron is Sunday=0
        in_weekdays = (moment.weekday() + 1) % 7 in self.weekdays
        if self.days_restricted and self.weekdays_restricted:
            return in_days or in_weekdays
        return in_days and in_weekdays

    def matches(self, moment: datetime) -> bool:
        return (
            moment.minute in self.minutes
            and moment.hour in self.hours
            and moment.month in self.months
            and self._day_matches(moment)
        )

    def next_after(self, moment: datetime) -> datetime:
        """Return the first matching minute strictly after `moment`."""
        candidate = moment.replace(second=0, microsecond=0) + timedelta(minutes=1)
        limit = candidate + SEARCH_HORIZON

        while candidate <= limit:
            if candidate.month not in self.months:
                if candidate.month == 12:
                    candidate = candidate.replace(year=candidate.year + 1, month=1, day=1, hour=0, minute=0)
                else:
                    candidate = candidate.replace(month=candidate.month + 1, day=1, hour=0, minute=0)
                continue
            if not self._day_matches(candidate):
                candidate = candidate.replace(hour=0, minute=0) + timedelta(days=1)
                continue
            if candidate.hour not in self.hours:
                candidate = candidate.replace(minute=0) + timedelta(hours=1)
                continue
            if candidate.minute not in self.minutes:
                candidate += timedelta(minutes=1)
                continue
            return candidate

        raise CronError(f"Cadence never fires: {self.expression!r}")
