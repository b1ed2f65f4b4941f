import logging
from datetime import (
    date,
    datetime,
    time,
)
from typing import Optional
from zoneinfo import (
    ZoneInfo,
    ZoneInfoNotFoundError,
)

from django.utils import dateformat
from django.utils.dateparse import (
    parse_date,
    parse_datetime,
)
from tri_declarative import Refinable

from admin_panel._web_compat import (
    request_has,
    request_input,
)
from admin_panel.base import data_set
from admin_panel.field import Field

log = logging.getLogger(__name__)


# `date` filter tokens that strptime can read back
strptime_directives = {
    'd': '%d',
    'j': '%d',
    'D': '%a',
    'l': '%A',
    'm': '%m',
    'n': '%m',
    'F': '%B',
    'M': '%b',
    'Y': '%Y',
    'y': '%y',
    'H': '%H',
    'G': '%H',
    'h': '%I',
    'g': '%I',
    'i': '%M',
    's': '%S',
    'A': '%p',
    'a': '%p',
}


def format_date(value, format_string):
    """
    Render a `date` or `datetime` with the tokens of Django's `date` filter, like `'Y-m-d H:i:s'`.
    A backslash escapes the next character. Dates are rendered as midnight.
    """
    if not isinstance(value, datetime):
        value = datetime.combine(value, time())
    return dateformat.format(value, format_string)


def to_strptime_format(format_string):
    result = []
    escaped = False
    for c in format_string:
        if escaped:
            result.append('%%' if c == '%' else c)
            escaped = False
        elif c == '\\':
            escaped = True
        elif c in strptime_directives:
            result.append(strptime_directives[c])
        elif c == '%':
            result.append('%%')
        else:
            result.append(c)
    return ''.join(result)


def parse_with_formats(string_value, format_strings):
    for format_string in format_strings:
        if not format_string:
            continue
        try:
            return datetime.strptime(string_value, to_strptime_format(format_string))
        except ValueError:
            pass
    return None


def get_zone(name):
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        log.debug('Unknown timezone %r, keeping the parsed offset', name)
        return None


class Date(Field):
    """
    A calendar date. Values are stored as strings in `storage_format` and shown in the picker using
    `display_format`. Both use the tokens of Django's `date` filter (`Y`, `m`, `d`, `F`, `j`).

    .. code:: python

        Date('Birth Date', display_format='d/m/Y', max_date='2023-12-31')
    """

    display_format: str = Refinable()
    storage_format: str = Refinable()
    min_date: Optional[str] = Refinable()
    max_date: Optional[str] = Refinable()
    show_picker: bool = Refinable()
    picker_format: Optional[str] = Refinable()
    picker_display_format: Optional[str] = Refinable()
    first_day_of_week: int = Refinable()

    class Meta:
        display_format = 'Y-m-d'
        storage_format = 'Y-m-d'
        show_picker = True
        first_day_of_week = 0

    def parse(self, value) -> Optional[date]:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if not isinstance(value, str):
            return None
        value = value.strip()
        try:
            result = parse_date(value)
        except ValueError:
            result = None
        if result is None:
            try:
                parsed = parse_datetime(value)
            except ValueError:
                parsed = None
            if parsed is not None:
                result = parsed.date()
        if result is None:
            parsed = parse_with_formats(value, [self.storage_format, self.display_format, self.picker_format])
            if parsed is not None:
                result = parsed.date()
        return result

    def resolve_attribute(self, resource, attribute):
        value = super().resolve_attribute(resource, attribute)
        if isinstance(value, (date, datetime)):
            return format_date(value, 'Y-m-d')
        return value

    def fill_attribute_from_request(self, request, request_attribute, model, attribute):
        if not request_has(request, request_attribute):
            return
        value = request_input(request, request_attribute)
        if value is None or value == '':
            data_set(model, attribute, None)
            return

        parsed = self.parse(value)
        if parsed is None:
            log.debug('Could not parse %r as a date for %s, storing it unchanged', value, attribute)
            data_set(model, attribute, value)
            return
        data_set(model, attribute, format_date(parsed, self.storage_format))

    def meta(self):
        return {
            **super().meta(),
            'displayFormat': self.display_format,
            'storageFormat': self.storage_format,
            'minDate': self.min_date,
            'maxDate': self.max_date,
            'showPicker': self.show_picker,
            'pickerFormat': self.picker_format,
            'pickerDisplayFormat': self.picker_display_format,
            'firstDayOfWeek': self.first_day_of_week,
        }


class DateTime(Field):
    """
    A date with a time of day. When `timezone` is set, aware input is converted to that zone before it
    is stored in `storage_format`.
    """

    storage_format: str = Refinable()
    display_format: str = Refinable()
    timezone: Optional[str] = Refinable()
    step: Optional[int] = Refinable()
    min_date_time: Optional[str] = Refinable()
    max_date_time: Optional[str] = Refinable()
    show_picker: bool = Refinable()

    class Meta:
        storage_format = 'Y-m-d H:i:s'
        display_format = 'Y-m-d H:i:s'
        show_picker = True

    def parse(self, value) -> Optional[datetime]:
        if isinstance(value, datetime):
            return value
        if isinstance(value, date):
            return datetime.combine(value, datetime.min.time())
        if not isinstance(value, str):
            return None
        value = value.strip()
        try:
            result = parse_datetime(value)
        except ValueError:
            result = None
        if result is None:
            result = parse_with_formats(value, [self.storage_format, self.display_format])
        return result

    def localize(self, value: datetime) -> datetime:
        if self.timezone and value.tzinfo is not None:
            zone = get_zone(self.timezone)
            if zone is not None:
                return value.astimezone(zone)
        return value

    def resolve_attribute(self, resource, attribute):
        value = super().resolve_attribute(resource, attribute)
        if isinstance(value, datetime):
            return format_date(self.localize(value), self.storage_format)
        return value

    def fill_attribute_from_request(self, request, request_attribute, model, attribute):
        if not request_has(request, request_attribute):
            return
        value = request_input(request, request_attribute)
        if value is None or value == '':
            data_set(model, attribute, None)
            return

        parsed = self.parse(value)
        if parsed is None:
            log.debug('Could not parse %r as a date time for %s, storing it unchanged', value, attribute)
            data_set(model, attribute, value)
            return
        data_set(model, attribute, format_date(self.localize(parsed), self.storage_format))

    def meta(self):
        return {
            **super().meta(),
            'storageFormat': self.storage_format,
            'displayFormat': self.display_format,
            'timezone': self.timezone,
            'step': self.step,
            'minDateTime': self.min_date_time,
            'maxDateTime': self.max_date_time,
            'showPicker': self.show_picker,
        }
