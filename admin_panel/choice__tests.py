from enum import Enum

import pytest
from django.db.models import TextChoices
from tri_struct import Struct

from admin_panel.choice import (
    Badge,
    Boolean,
    BooleanGroup,
    KeyValue,
    MultiSelect,
    Select,
    Status,
    Timezone,
)
from tests.helpers import (
    json_req,
    req,
)


class Color(Enum):
    RED = 'red'
    GREEN = 'green'


class PostStatus(TextChoices):
    DRAFT = 'draft', 'Draft post'
    PUBLISHED = 'published', 'Published post'


def test_boolean_defaults():
    field = Boolean('Active')
    assert field.component == 'BooleanField'
    assert field.true_value is True
    assert field.false_value is False
    assert field.meta() == {'trueValue': True, 'falseValue': False}


@pytest.mark.parametrize('value, expected', [
    ('1', True),
    ('true', True),
    ('on', True),
    ('yes', True),
    ('0', False),
    ('false', False),
    ('', False),
])
def test_boolean_fill(value, expected):
    model = Struct()
    Boolean('Active').fill(req('post', active=value), model)
    assert model.active is expected


def test_boolean_custom_values():
    field = Boolean('Status', true_value='active', false_value='inactive')
    model = Struct()
    field.fill(req('post', status='1'), model)
    assert model.status == 'active'
    assert field.resolve(model) is True

    field.fill(req('post', status='0'), model)
    assert model.status == 'inactive'
    assert field.resolve(model) is False

    assert Boolean('Other', true_value='On').false_value is False


def test_boolean_resolve():
    assert Boolean('Active').resolve(Struct(active=1)) is True
    assert Boolean('Active').resolve(Struct(active=0)) is False
    assert Boolean('Active').resolve(Struct(active=None)) is None


def test_boolean_group_defaults():
    field = BooleanGroup('Permissions')
    assert field.component == 'BooleanGroupField'
    assert field.options == {}
    assert field.meta() == {
        'options': {},
        'hideFalseValues': False,
        'hideTrueValues': False,
        'noValueText': 'No Data',
    }


def test_boolean_group_resolve():
    field = BooleanGroup('Permissions')
    assert field.resolve(Struct(permissions={'create': True})) == {'create': True}
    assert field.resolve(Struct(permissions='{"read": false}')) == {'read': False}
    assert field.resolve(Struct(permissions=None)) == {}


def test_boolean_group_fill():
    field = BooleanGroup('Permissions', options={'create': 'Create', 'read': 'Read', 'delete': 'Delete'})

    model = Struct()
    field.fill(req('post', permissions=['create', 'read']), model)
    assert model.permissions == {'create': True, 'read': True, 'delete': False}

    field.fill(json_req(permissions={'delete': True}), model)
    assert model.permissions == {'create': False, 'read': False, 'delete': True}


def test_boolean_group_fill_single_value():
    field = BooleanGroup('Permissions', options={'1': 'Read', '2': 'Write'})

    model = Struct()
    field.fill(req('post', permissions='1'), model)
    assert model.permissions == {'1': True, '2': False}

    field.fill(json_req(permissions=2), model)
    assert model.permissions == {'1': False, '2': True}

    field.fill(json_req(permissions=[1, 2]), model)
    assert model.permissions == {'1': True, '2': True}

    BooleanGroup('Flags').fill(req('post', flags='true'), model)
    assert model.flags == {'true': True}


def test_select():
    field = Select('Status', options={'draft': 'Draft', 'published': 'Published'})
    assert field.component == 'SelectField'
    assert field.searchable is False
    assert field.display_using_labels is True

    model = Struct()
    field.fill(req('post', status='published'), model)
    assert model.status == 'published'

    field.fill(req('post', status='bogus'), model)
    assert model.status is None

    field.fill(req('post', status=''), model)
    assert model.status == ''


def test_select_resolve_with_labels():
    field = Select('Status', options={'draft': 'Draft', 'published': 'Published'})
    assert field.resolve(Struct(status='draft')) == {'value': 'draft', 'label': 'Draft'}
    assert field.resolve(Struct(status='archived')) == {'value': 'archived', 'label': 'archived'}
    assert field.resolve(Struct(status=None)) is None

    field.refine(display_using_labels=False)
    assert field.resolve(Struct(status='published')) == 'published'

    assert Select('Status').resolve(Struct(status='published')) == 'published'


def test_select_integer_options():
    field = Select('Priority', options={1: 'Low', 2: 'High'})
    model = Struct()
    field.fill(req('post', priority='2'), model)
    assert model.priority == 2
    assert field.resolve(model) == {'value': 2, 'label': 'High'}


def test_select_enum():
    assert Select('Color').enum(Color).options == {'red': 'RED', 'green': 'GREEN'}
    assert Select('Status').enum(PostStatus).options == {'draft': 'Draft post', 'published': 'Published post'}
    assert Select('Color').enum('admin_panel.choice__tests.Color').options == {'red': 'RED', 'green': 'GREEN'}


def test_select_enum_invalid():
    with pytest.raises(ValueError) as e:
        Select('Status').enum(Struct)
    assert str(e.value) == 'Class Struct is not an enum.'

    with pytest.raises(ValueError) as e:
        Select('Status').enum('NonExistentEnum')
    assert str(e.value) == 'Class NonExistentEnum is not an enum.'


def test_select_meta():
    field = Select('Status', options={'a': 'A'}, searchable=True, display_using_labels=False)
    assert field.meta() == {'options': {'a': 'A'}, 'searchable': True, 'displayUsingLabels': False}


def test_multi_select_defaults():
    field = MultiSelect('Tags')
    assert field.options == {}
    assert field.searchable is False
    assert field.taggable is False
    assert field.max_selections is None


def test_multi_select_fill():
    model = Struct()
    MultiSelect('Tags').fill(req('post', tags='single-value'), model)
    assert model.tags == ['single-value']

    MultiSelect('Tags').fill(req('post', tags=['tag1', 'tag2', 'tag3']), model)
    assert model.tags == ['tag1', 'tag2', 'tag3']

    MultiSelect('Tags').fill(json_req(tags=None), model)
    assert model.tags == []

    MultiSelect('Tags', max_selections=2).fill(req('post', tags=['tag1', 'tag2', 'tag3']), model)
    assert model.tags == ['tag1', 'tag2']


def test_multi_select_fill_filters_unknown_options():
    options = {'python': 'Python', 'django': 'Django'}
    model = Struct()
    MultiSelect('Skills', options=options).fill(req('post', skills=['python', 'django', 'custom-tag']), model)
    assert model.skills == ['python', 'django']

    MultiSelect('Skills', options=options, taggable=True).fill(req('post', skills=['python', 'django', 'custom-tag']), model)
    assert model.skills == ['python', 'django', 'custom-tag']


@pytest.mark.parametrize('stored, expected', [
    (['tag1', 'tag2'], ['tag1', 'tag2']),
    ('["tag1", "tag2", "tag3"]', ['tag1', 'tag2', 'tag3']),
    ('tag1, tag2 ,, tag3', ['tag1', 'tag2', 'tag3']),
    ('single-tag', ['single-tag']),
    ('{"invalid": json}', ['{"invalid": json}']),
    (None, []),
    ('', []),
])
def test_multi_select_resolve(stored, expected):
    assert MultiSelect('Tags').resolve(Struct(tags=stored)) == expected


def test_multi_select_enum_and_meta():
    field = MultiSelect('Colors', searchable=True, taggable=True, max_selections=3).enum(Color)
    assert field.meta() == {
        'options': {'red': 'RED', 'green': 'GREEN'},
        'searchable': True,
        'taggable': True,
        'maxSelections': 3,
    }


def test_badge_defaults():
    field = Badge('Status')
    assert field.component == 'BadgeField'
    assert field.value_map == {}
    assert field.custom_types == {}
    assert field.with_icons is False


def test_badge_types():
    field = Badge('Status').map({'draft': 'danger', 'published': 'success', 'archived': 'warning'})
    assert field.resolve_badge_type('draft') == 'danger'
    assert field.resolve_badge_type('archived') == 'warning'
    assert field.resolve_badge_type('unknown') == 'info'

    assert field.resolve_badge_classes('danger') == 'bg-red-50 text-red-700 ring-red-600/20'
    field.types({'danger': 'bg-red-50 text-red-700'}).add_types({'warning': 'bg-yellow-50 text-yellow-700'})
    assert field.custom_types == {'danger': 'bg-red-50 text-red-700', 'warning': 'bg-yellow-50 text-yellow-700'}
    assert field.resolve_badge_classes('danger') == 'bg-red-50 text-red-700'
    assert field.resolve_badge_classes('success') == 'bg-green-50 text-green-700 ring-green-600/20'
    assert field.resolve_badge_classes('nonsense') == 'bg-blue-50 text-blue-700 ring-blue-600/20'


def test_badge_icons():
    field = Badge('Status').icons({'danger': 'exclamation-triangle'})
    assert field.with_icons is True
    assert field.resolve_icon('danger') == 'exclamation-triangle'
    assert field.resolve_icon('success') == 'check-circle'
    assert field.resolve_icon('unknown') is None


def test_badge_labels():
    field = Badge('Status').labels({'draft': 'Draft Post'})
    assert field.resolve_label('draft') == 'Draft Post'
    assert field.resolve_label('unknown') == 'unknown'

    field.label(lambda value, **_: f'{value} status'.upper())
    assert field.resolve_label('draft') == 'DRAFT STATUS'


def test_badge_meta():
    field = Badge('Status', help_text='Select the post status').map({'draft': 'danger'}).labels({'draft': 'Draft Post'})
    data = field.json_serialize()
    assert data['helpText'] == 'Select the post status'
    assert data['valueMap'] == {'draft': 'danger'}
    assert data['labelMap'] == {'draft': 'Draft Post'}
    assert data['withIcons'] is False
    assert set(data['builtInTypes']) == {'info', 'success', 'danger', 'warning'}


def test_status_defaults():
    field = Status('Status')
    assert field.loading_when == []
    assert field.failed_when == []
    assert field.success_when == []
    assert field.custom_types == {}
    assert field.custom_icons == {}
    assert field.with_icons is True
    assert field.label_callback is None
    assert field.label_map == {}
    assert set(field.built_in_types) == {'loading', 'failed', 'success', 'default'}


def test_status_resolution():
    field = Status('Status', loading_when=['waiting', 'running'], failed_when=['failed', 'error'], success_when=['completed', 'done'])
    assert field.resolve_status_type('waiting') == 'loading'
    assert field.resolve_status_type('error') == 'failed'
    assert field.resolve_status_type('done') == 'success'
    assert field.resolve_status_type('unknown') == 'default'

    assert field.resolve_status_classes('failed') == 'bg-red-100 text-red-800 dark:bg-red-900 dark:text-red-200'
    field.types({'loading': 'bg-blue-50 text-blue-700'})
    assert field.resolve_status_classes('loading') == 'bg-blue-50 text-blue-700'
    assert field.resolve_status_classes('success') == Status.built_in_types['success']


def test_status_icons():
    field = Status('Status')
    assert field.resolve_icon('loading') == 'spinner'
    assert field.resolve_icon('failed') == 'exclamation-circle'
    assert field.resolve_icon('success') == 'check-circle'
    assert field.resolve_icon('default') == 'information-circle'

    field.icons({'loading': 'clock'})
    assert field.resolve_icon('loading') == 'clock'

    field.refine(with_icons=False)
    assert field.resolve_icon('loading') is None


def test_status_labels():
    field = Status('Status')
    assert field.resolve_label('waiting') == 'Waiting'
    assert field.resolve_label('in_progress') == 'In progress'
    assert field.resolve_label('multi-word-status') == 'Multi word status'

    field.labels({'waiting': 'Waiting for Processing'})
    assert field.resolve_label('waiting') == 'Waiting for Processing'
    assert field.resolve_label('unknown_status') == 'Unknown status'

    field.label(lambda value, **_: value.upper())
    assert field.resolve_label('completed') == 'COMPLETED'


def test_status_meta():
    meta = Status('Status', loading_when=['waiting'], with_icons=False).meta()
    assert meta['loadingWhen'] == ['waiting']
    assert meta['withIcons'] is False
    assert 'builtInTypes' in meta
    assert 'builtInIcons' in meta


def test_timezone_defaults():
    field = Timezone('Timezone')
    assert field.searchable is True
    assert field.group_by_region is False
    assert field.only_common is False


def test_timezones():
    timezones = Timezone('Timezone').get_timezones()
    assert 'America/New_York' in timezones
    assert 'Asia/Tokyo' in timezones
    assert 'New York' in timezones['America/New_York']
    assert 'America' in timezones['America/New_York']
    assert 'London' in timezones['Europe/London']
    assert timezones['UTC'] == '(UTC+00:00) UTC'

    common = Timezone('Timezone', only_common=True).get_timezones()
    assert 'UTC' in common
    assert 'Europe/London' in common
    assert len(common) < len(timezones)


def test_timezones_grouped():
    grouped = Timezone('Timezone', only_common=True).get_timezones_grouped()
    assert list(grouped) == sorted(grouped)
    assert 'America/Los_Angeles' in grouped['America']
    assert 'Europe/Paris' in grouped['Europe']
    assert 'Asia' in grouped


def test_timezone_meta_and_fill():
    meta = Timezone('Timezone', searchable=False, group_by_region=True, only_common=True).meta()
    assert meta['searchable'] is False
    assert meta['groupByRegion'] is True
    assert 'Europe' in meta['timezones']

    model = Struct()
    Timezone('Timezone').fill(req('post', timezone='America/New_York'), model)
    assert model.timezone == 'America/New_York'


def test_key_value_defaults():
    field = KeyValue('Meta')
    assert field.component == 'KeyValueField'
    assert field.meta() == {'keyLabel': 'Key', 'valueLabel': 'Value', 'actionText': 'Add row'}


def test_key_value_resolve():
    field = KeyValue('Meta')
    assert field.resolve(Struct(meta={'a': '1'})) == {'a': '1'}
    assert field.resolve(Struct(meta='{"a": "1"}')) == {'a': '1'}
    assert field.resolve(Struct(meta=None)) == {}
    assert not field.has_display_values()


def test_key_value_fill():
    field = KeyValue('Meta')
    model = Struct()

    field.fill(json_req(meta=[{'key': 'color', 'value': 'red'}, {'key': ' ', 'value': 'x'}]), model)
    assert model.meta == {'color': 'red'}

    field.fill(json_req(meta={'size': 'L'}), model)
    assert model.meta == {'size': 'L'}

    field.fill(json_req(meta={'': 'x', ' ': 'y', 'a': '1'}), model)
    assert model.meta == {'a': '1'}

    field.fill(req('post', meta='{"a": "b"}'), model)
    assert model.meta == {'a': 'b'}

    field.fill(json_req(meta=None), model)
    assert model.meta == {}

    field.fill_attribute_from_request(json_req(meta={'x': 1}), 'meta', model, 'other')
    assert model.other == {'x': 1}


def test_key_value_display_value():
    field = KeyValue('Meta')
    field.resolve(Struct(meta={'color': 'red', 'size': 'L'}))
    assert field.has_display_values()
    assert field.get_display_value() == [{'key': 'color', 'value': 'red'}, {'key': 'size', 'value': 'L'}]
