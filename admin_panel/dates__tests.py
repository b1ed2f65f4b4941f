from datetime import (
    date,
    datetime,
    timezone,
)

import pytest
from tri_struct import Struct

from admin_panel.dates import (
    Date,
    DateTime,
    format_date,
    to_strptime_format,
)
from tests.helpers import (
    json_req,
    req,
)


@pytest.mark.parametrize('format_string, expected', [
    ('Y-m-d', '2023-03-05'),
    ('d/m/Y', '05/03/2023'),
    ('j F Y', '5 March 2023'),
    ('M j, y', 'Mar 5, 23'),
    ('Y-m-d H:i:s', '2023-03-05 14:07:09'),
    ('g:i A', '2:07 PM'),
    (r'\Y Y', 'Y 2023'),
])
def test_format_date(format_string, expected):
    assert format_date(datetime(2023, 3, 5, 14, 7, 9), format_string) == expected


def test_format_date_on_a_date_has_midnight_time():
    assert format_date(date(2023, 3, 5), 'Y-m-d H:i') == '2023-03-05 00:00'


def test_to_strptime_format():
    assert to_strptime_format('d/m/Y H:i') == '%d/%m/%Y %H:%M'
    assert to_strptime_format('100%') == '100%%'


def test_date_defaults():
    field = Date('Birth Date')
    assert field.attribute == 'birth_date'
    assert field.component == 'DateField'
    assert field.display_format == 'Y-m-d'
    assert field.storage_format == 'Y-m-d'
    assert field.min_date is None
    assert field.max_date is None
    assert field.show_picker is True
    assert field.first_day_of_week == 0


def test_date_meta():
    field = Date(
        'Event Date',
        display_format='d/m/Y',
        min_date='2020-01-01',
        max_date='2030-12-31',
        picker_format='d-m-Y',
        picker_display_format='DD-MM-YYYY',
        first_day_of_week=1,
    )
    assert field.meta() == {
        'displayFormat': 'd/m/Y',
        'storageFormat': 'Y-m-d',
        'minDate': '2020-01-01',
        'maxDate': '2030-12-31',
        'showPicker': True,
        'pickerFormat': 'd-m-Y',
        'pickerDisplayFormat': 'DD-MM-YYYY',
        'firstDayOfWeek': 1,
    }

    data = Date('Event Date').required().refine(help_text='Select event date').json_serialize()
    assert data['storageFormat'] == 'Y-m-d'
    assert data['helpText'] == 'Select event date'
    assert 'required' in data['rules']


@pytest.mark.parametrize('value, expected', [
    ('1990-05-15', '1990-05-15'),
    ('2024-02-29', '2024-02-29'),
    ('2023-12-25T10:30:00', '2023-12-25'),
    ('', None),
    ('not-a-date', 'not-a-date'),
    ('2023-02-30', '2023-02-30'),
])
def test_date_fill(value, expected):
    model = Struct()
    Date('Birth Date').fill(req('post', birth_date=value), model)
    assert model.birth_date == expected


def test_date_fill_in_storage_format():
    model = Struct()
    Date('Event Date', storage_format='Y/m/d').fill(req('post', event_date='2023-12-25'), model)
    assert model.event_date == '2023/12/25'


def test_date_fill_in_display_format():
    model = Struct()
    Date('Event Date', display_format='d/m/Y').fill(req('post', event_date='25/12/2023'), model)
    assert model.event_date == '2023-12-25'


def test_date_fill_null():
    model = Struct(birth_date='1990-05-15')
    Date('Birth Date').fill(json_req(birth_date=None), model)
    assert model.birth_date is None


def test_date_fill_callback():
    def fill(model, attribute, **_):
        model[attribute] = '2000-01-01'

    model = Struct()
    Date('Birth Date').fill_using(fill).fill(req('post', birth_date='1990-05-15'), model)
    assert model.birth_date == '2000-01-01'


def test_date_resolve():
    field = Date('Birth Date', display_format='d/m/Y')
    assert field.resolve(Struct(birth_date=date(1990, 5, 15))) == '1990-05-15'
    assert field.resolve(Struct(birth_date=datetime(1990, 5, 15, 8, 0))) == '1990-05-15'
    assert field.resolve(Struct(birth_date='1990-05-15')) == '1990-05-15'
    assert field.resolve(Struct(birth_date='invalid-date')) == 'invalid-date'
    assert field.resolve(Struct(birth_date=None)) is None


def test_date_time_defaults():
    field = DateTime('Published At')
    assert field.component == 'DateTimeField'
    assert field.meta() == {
        'storageFormat': 'Y-m-d H:i:s',
        'displayFormat': 'Y-m-d H:i:s',
        'timezone': None,
        'step': None,
        'minDateTime': None,
        'maxDateTime': None,
        'showPicker': True,
    }


@pytest.mark.parametrize('value, expected', [
    ('2023-01-15 14:30:00', '2023-01-15 14:30:00'),
    ('2023-01-15T14:30', '2023-01-15 14:30:00'),
    ('', None),
    ('whenever', 'whenever'),
])
def test_date_time_fill(value, expected):
    model = Struct()
    DateTime('Published At').fill(req('post', published_at=value), model)
    assert model.published_at == expected


def test_date_time_fill_converts_to_timezone():
    model = Struct()
    DateTime('Published At', timezone='UTC').fill(req('post', published_at='2023-06-15T14:30:00Z'), model)
    assert model.published_at == '2023-06-15 14:30:00'

    DateTime('Published At', timezone='Europe/Stockholm').fill(req('post', published_at='2023-06-15T14:30:00Z'), model)
    assert model.published_at == '2023-06-15 16:30:00'


def test_date_time_fill_unknown_timezone_keeps_offset():
    model = Struct()
    DateTime('Published At', timezone='Mars/Olympus').fill(req('post', published_at='2023-06-15T14:30:00+02:00'), model)
    assert model.published_at == '2023-06-15 14:30:00'


def test_date_time_fill_null():
    model = Struct(published_at='2023-01-15 14:30:00')
    DateTime('Published At').fill(json_req(published_at=None), model)
    assert model.published_at is None


def test_date_time_resolve():
    field = DateTime('Published At')
    assert field.resolve(Struct(published_at=datetime(2023, 1, 15, 14, 30))) == '2023-01-15 14:30:00'
    assert field.resolve(Struct(published_at='2023-01-15 14:30:00')) == '2023-01-15 14:30:00'

    field = DateTime('Published At', timezone='America/New_York')
    assert field.resolve(Struct(published_at=datetime(2023, 1, 15, 14, 30, tzinfo=timezone.utc))) == '2023-01-15 09:30:00'
