from datetime import date, datetime, timedelta

import pytest

from conftest import MONDAY_9AM, make_template
from study_scheduler.engine.recurrence import expand, expand_day, parse_rule
from study_scheduler.errors import ValidationError
from study_scheduler.utils.datetime_utils import end_of_day, start_of_day


class TestOneOffTemplates:

    def test_due_inside_window_yields_due_instant(self):
        template = make_template(due_at=datetime(2024, 3, 4, 9, 0))

        result = expand(template, datetime(2024, 3, 4), datetime(2024, 3, 4, 23, 59))

        assert result == [datetime(2024, 3, 4, 9, 0)]

    def test_due_outside_window_yields_nothing(self):
        template = make_template(due_at=datetime(2024, 3, 5, 9, 0))

        assert expand(template, datetime(2024, 3, 4), datetime(2024, 3, 4, 23, 59)) == []

    def test_window_bounds_are_inclusive(self):
        template = make_template(due_at=datetime(2024, 3, 4, 0, 0))

        assert expand(template, datetime(2024, 3, 4), datetime(2024, 3, 4)) == [datetime(2024, 3, 4)]

    def test_undated_template_yields_nothing(self):
        template = make_template(due_at=None)

        assert expand(template, datetime(2024, 3, 1), datetime(2024, 3, 31)) == []


class TestRecurringTemplates:

    def test_weekly_rule_over_three_weeks(self):
        template = make_template(rrule='FREQ=WEEKLY', due_at=MONDAY_9AM)

        result = expand(template, start_of_day(date(2024, 3, 1)), end_of_day(date(2024, 3, 21)))

        assert result == [
            datetime(2024, 3, 4, 9, 0),
            datetime(2024, 3, 11, 9, 0),
            datetime(2024, 3, 18, 9, 0),
        ]

    @pytest.mark.parametrize("offset", range(7))
    def test_weekly_rule_gives_two_mondays_in_any_fourteen_day_window(self, offset):
        template = make_template(rrule='RRULE:FREQ=WEEKLY', due_at=MONDAY_9AM)
        first_day = date(2024, 3, 4) + timedelta(days=offset)

        result = expand(template, start_of_day(first_day), end_of_day(first_day + timedelta(days=13)))

        assert len(result) == 2
        assert result[1] - result[0] == timedelta(days=7)
        assert all(instant.weekday() == 0 for instant in result)

    def test_count_limits_occurrences(self):
        template = make_template(rrule='FREQ=DAILY;COUNT=3')

        result = expand(template, datetime(2024, 3, 1), datetime(2024, 3, 31))

        assert [d.day for d in result] == [4, 5, 6]

    def test_until_before_window_yields_nothing(self):
        template = make_template(rrule='FREQ=DAILY;UNTIL=20240301', due_at=datetime(2024, 2, 25, 9, 0))

        assert expand(template, datetime(2024, 3, 10), datetime(2024, 3, 20)) == []

    def test_until_date_includes_that_day(self):
        template = make_template(rrule='FREQ=DAILY;UNTIL=20240306')

        result = expand(template, datetime(2024, 3, 1), datetime(2024, 3, 31))

        assert [d.day for d in result] == [4, 5, 6]

    def test_anchor_after_window_yields_nothing(self):
        template = make_template(rrule='FREQ=DAILY', due_at=datetime(2024, 4, 1, 9, 0))

        assert expand(template, datetime(2024, 3, 1), datetime(2024, 3, 31)) == []

    def test_byday_selects_weekdays(self):
        template = make_template(rrule='FREQ=WEEKLY;BYDAY=MO,WE,FR')

        result = expand(template, start_of_day(date(2024, 3, 4)), end_of_day(date(2024, 3, 10)))

        assert [d.date() for d in result] == [date(2024, 3, 4), date(2024, 3, 6), date(2024, 3, 8)]

    def test_interval_skips_weeks(self):
        template = make_template(rrule='FREQ=WEEKLY;INTERVAL=2')

        result = expand(template, datetime(2024, 3, 1), datetime(2024, 3, 31))

        assert [d.day for d in result] == [4, 18]

    def test_monthly_rule(self):
        template = make_template(rrule='FREQ=MONTHLY', due_at=datetime(2024, 1, 15, 10, 0))

        result = expand(template, datetime(2024, 1, 1), end_of_day(date(2024, 4, 30)))

        assert [d.month for d in result] == [1, 2, 3, 4]
        assert all(d.day == 15 for d in result)

    def test_dtstart_line_anchors_undated_template(self):
        template = make_template(rrule='DTSTART:20240304T090000\nRRULE:FREQ=DAILY;COUNT=2', due_at=None)

        result = expand(template, datetime(2024, 3, 1), datetime(2024, 3, 31))

        assert result == [datetime(2024, 3, 4, 9, 0), datetime(2024, 3, 5, 9, 0)]

    def test_expand_day(self):
        template = make_template(rrule='FREQ=DAILY')

        assert expand_day(template, date(2024, 3, 7)) == [datetime(2024, 3, 7, 9, 0)]

    def test_expansion_is_restartable(self):
        template = make_template(rrule='FREQ=DAILY')
        window = (datetime(2024, 3, 1), datetime(2024, 3, 10))

        assert expand(template, *window) == expand(template, *window)


class TestMalformedRules:

    @pytest.mark.parametrize("rule, field", [
        ('FREQ=YEARLY', 'FREQ'),
        ('INTERVAL=2', 'FREQ'),
        ('FREQ=WEEKLY;BYDAY=XX', 'BYDAY'),
        ('FREQ=DAILY;COUNT=abc', 'COUNT'),
        ('FREQ=DAILY;COUNT=0', 'COUNT'),
        ('FREQ=DAILY;INTERVAL=-1', 'INTERVAL'),
        ('FREQ=DAILY;UNTIL=2024-13-45', 'UNTIL'),
        ('FREQ=DAILY;COUNT=2;UNTIL=20240310', 'UNTIL'),
        ('FREQ=DAILY;BYHOUR=9', 'BYHOUR'),
        ('FREQ=DAILY;FREQ=WEEKLY', 'FREQ'),
        ('FREQ=MONTHLY;BYMONTHDAY=40', 'BYMONTHDAY'),
        ('FREQ', 'RRULE'),
    ])
    def test_malformed_rule_names_the_field(self, rule, field):
        template = make_template(rrule=rule)

        with pytest.raises(ValidationError) as exc_info:
            expand(template, datetime(2024, 3, 1), datetime(2024, 3, 31))

        assert exc_info.value.field == field

    def test_recurring_template_without_anchor(self):
        template = make_template(rrule='FREQ=DAILY', due_at=None)

        with pytest.raises(ValidationError) as exc_info:
            expand(template, datetime(2024, 3, 1), datetime(2024, 3, 31))

        assert exc_info.value.field == 'DTSTART'

    def test_reversed_window_is_rejected(self):
        template = make_template()

        with pytest.raises(ValidationError) as exc_info:
            expand(template, datetime(2024, 3, 31), datetime(2024, 3, 1))

        assert exc_info.value.field == 'window'

    def test_bad_rule_is_rejected_even_when_window_is_empty(self):
        # Validation happens before any expansion shortcut
        with pytest.raises(ValidationError):
            parse_rule('FREQ=DAILY;UNTIL=20240101;BYDAY=ZZ', MONDAY_9AM)
