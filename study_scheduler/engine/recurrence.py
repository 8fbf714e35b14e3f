"""Recurrence rule parsing and expansion."""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, List, Optional, Tuple

from dateutil import rrule as du_rrule

from ..errors import ValidationError
from ..models.task import TaskTemplate
from ..utils.datetime_utils import end_of_day, parse_timestamp, start_of_day

FREQUENCIES = {
    'DAILY': du_rrule.DAILY,
    'WEEKLY': du_rrule.WEEKLY,
    'MONTHLY': du_rrule.MONTHLY,
}

WEEKDAYS = {
    'MO': du_rrule.MO,
    'TU': du_rrule.TU,
    'WE': du_rrule.WE,
    'TH': du_rrule.TH,
    'FR': du_rrule.FR,
    'SA': du_rrule.SA,
    'SU': du_rrule.SU,
}

KNOWN_FIELDS = {'FREQ', 'INTERVAL', 'COUNT', 'UNTIL', 'BYDAY', 'BYMONTHDAY', 'WKST'}


@dataclass(frozen=True)
class RecurrenceRule:
    """A validated recurrence rule bound to its anchor instant."""

    frequency: str
    anchor: datetime
    interval: int = 1
    count: Optional[int] = None
    until: Optional[datetime] = None
    by_day: Tuple[str, ...] = ()
    by_month_day: Tuple[int, ...] = ()
    week_start: str = 'MO'

    def to_rrule(self) -> du_rrule.rrule:
        """Build the dateutil rule this recurrence describes."""
        return du_rrule.rrule(
            FREQUENCIES[self.frequency],
            dtstart=self.anchor,
            interval=self.interval,
            count=self.count,
            until=self.until,
            byweekday=[WEEKDAYS[day] for day in self.by_day] or None,
            bymonthday=list(self.by_month_day) or None,
            wkst=WEEKDAYS[self.week_start],
        )

    def between(self, window_start: datetime, window_end: datetime) -> List[datetime]:
        """Get every instant within [window_start, window_end], inclusive."""
        if self.until is not None and self.until < window_start:
            return []
        if self.anchor > window_end:
            return []
        return sorted(set(self.to_rrule().between(window_start, window_end, inc=True)))


def _positive_int(value: str, field: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise ValidationError(field, f"expected an integer, got {value!r}") from None
    if number <= 0:
        raise ValidationError(field, f"must be positive, got {number}")
    return number


def _parse_ical_datetime(value: str, field: str, date_only_end: bool = False) -> datetime:
    """Parse YYYYMMDD, YYYYMMDDTHHMMSS[Z] or ISO-8601 values."""
    text = value.strip()
    if len(text) == 8 and text.isdigit():
        try:
            day = date(int(text[:4]), int(text[4:6]), int(text[6:]))
        except ValueError:
            raise ValidationError(field, f"invalid date {value!r}") from None
        return end_of_day(day) if date_only_end else start_of_day(day)
    try:
        return datetime.strptime(text.rstrip('Z'), '%Y%m%dT%H%M%S')
    except ValueError:
        parsed = parse_timestamp(text, field)
    if parsed is None:
        raise ValidationError(field, "empty value")
    return parsed


def _parse_by_day(value: str) -> Tuple[str, ...]:
    days = []
    for token in value.split(','):
        day = token.strip().upper()
        if day not in WEEKDAYS:
            raise ValidationError('BYDAY', f"unknown weekday {token!r}")
        if day not in days:
            days.append(day)
    return tuple(days)


def _parse_by_month_day(value: str) -> Tuple[int, ...]:
    days = []
    for token in value.split(','):
        try:
            day = int(token)
        except ValueError:
            raise ValidationError('BYMONTHDAY', f"expected a day number, got {token!r}") from None
        if day == 0 or not -31 <= day <= 31:
            raise ValidationError('BYMONTHDAY', f"day out of range: {day}")
        days.append(day)
    return tuple(sorted(set(days)))


def _split_rule_text(text: str) -> Tuple[Optional[str], str]:
    """Separate an optional DTSTART line from the RRULE body."""
    dtstart = None
    body = None
    for raw_line in text.replace('\r\n', '\n').split('\n'):
        line = raw_line.strip()
        if not line:
            continue
        upper = line.upper()
        if upper.startswith('DTSTART'):
            _, _, dtstart = line.partition(':')
        elif upper.startswith('RRULE:'):
            body = line[len('RRULE:'):]
        elif body is None:
            body = line
        else:
            raise ValidationError('RRULE', f"unexpected line {line!r}")
    if not body:
        raise ValidationError('RRULE', "rule has no body")
    return dtstart, body


def parse_rule(text: str, anchor: Optional[datetime] = None) -> RecurrenceRule:
    """Parse an iCalendar-style RRULE string.

    The anchor comes from a DTSTART line when present, otherwise from the
    template's due instant. The whole rule is validated before anything is
    expanded.
    """
    dtstart_text, body = _split_rule_text(text)
    if dtstart_text:
        anchor = _parse_ical_datetime(dtstart_text, 'DTSTART')
    if anchor is None:
        raise ValidationError('DTSTART', "recurring task needs an anchor (due date or DTSTART)")

    parts: Dict[str, str] = {}
    for chunk in body.strip().strip(';').split(';'):
        name, sep, value = chunk.partition('=')
        name = name.strip().upper()
        if not sep or not name:
            raise ValidationError('RRULE', f"malformed rule part {chunk!r}")
        if name not in KNOWN_FIELDS:
            raise ValidationError(name, "unsupported rule field")
        if name in parts:
            raise ValidationError(name, "field given more than once")
        parts[name] = value.strip()

    frequency = parts.get('FREQ', '').upper()
    if not frequency:
        raise ValidationError('FREQ', "rule has no frequency")
    if frequency not in FREQUENCIES:
        raise ValidationError('FREQ', f"unsupported frequency {frequency!r}")

    if 'COUNT' in parts and 'UNTIL' in parts:
        raise ValidationError('UNTIL', "COUNT and UNTIL cannot both be set")

    week_start = parts.get('WKST', 'MO').upper()
    if week_start not in WEEKDAYS:
        raise ValidationError('WKST', f"unknown weekday {week_start!r}")

    return RecurrenceRule(
        frequency=frequency,
        anchor=anchor,
        interval=_positive_int(parts['INTERVAL'], 'INTERVAL') if 'INTERVAL' in parts else 1,
        count=_positive_int(parts['COUNT'], 'COUNT') if 'COUNT' in parts else None,
        until=_parse_ical_datetime(parts['UNTIL'], 'UNTIL', date_only_end=True) if 'UNTIL' in parts else None,
        by_day=_parse_by_day(parts['BYDAY']) if 'BYDAY' in parts else (),
        by_month_day=_parse_by_month_day(parts['BYMONTHDAY']) if 'BYMONTHDAY' in parts else (),
        week_start=week_start,
    )


def expand(template: TaskTemplate, window_start: datetime, window_end: datetime) -> List[datetime]:
    """Get the template's due instants within [window_start, window_end].

    Pure function of its inputs. A one-off template yields its due instant
    when it falls in the window.
    """
    if window_start > window_end:
        raise ValidationError('window', "window start is after window end")

    if not template.is_recurring:
        due = template.due_at
        if due is not None and window_start <= due <= window_end:
            return [due]
        return []

    rule = parse_rule(template.rrule, template.due_at)
    return rule.between(window_start, window_end)


def expand_day(template: TaskTemplate, day: date) -> List[datetime]:
    """Get the template's due instants on one calendar day."""
    return expand(template, start_of_day(day), end_of_day(day))
