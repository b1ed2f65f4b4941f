import json
import logging
from datetime import datetime
from enum import Enum
from typing import (
    Any,
    Callable,
    Dict,
    List,
    Optional,
)
from zoneinfo import (
    available_timezones,
    ZoneInfo,
)

from tri_declarative import Refinable

from admin_panel._web_compat import (
    import_string,
    request_has,
    request_input,
)
from admin_panel.base import (
    data_set,
    human_readable,
    items,
)
from admin_panel.field import Field

log = logging.getLogger(__name__)

TRUTHY_INPUT = {'1', 'true', 'on', 'yes'}


def is_truthy_input(value):
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY_INPUT
    return bool(value)


def decode_json(value, default):
    if isinstance(value, str):
        try:
            return json.loads(value)
        except ValueError:
            log.debug('Could not decode %r as JSON', value)
    return default


class Boolean(Field):
    true_value: Any = Refinable()
    false_value: Any = Refinable()

    class Meta:
        true_value = True
        false_value = False

    def resolve_attribute(self, resource, attribute):
        value = super().resolve_attribute(resource, attribute)
        if value is None:
            return None
        if value == self.true_value:
            return True
        if value == self.false_value:
            return False
        return bool(value)

    def fill_attribute_from_request(self, request, request_attribute, model, attribute):
        if request_has(request, request_attribute):
            value = request_input(request, request_attribute)
            data_set(model, attribute, self.true_value if is_truthy_input(value) else self.false_value)

    def meta(self):
        return {
            **super().meta(),
            'trueValue': self.true_value,
            'falseValue': self.false_value,
        }


class BooleanGroup(Field):
    options: Dict[str, str] = Refinable()
    hide_false_values: bool = Refinable()
    hide_true_values: bool = Refinable()
    no_value_text: str = Refinable()

    class Meta:
        hide_false_values = False
        hide_true_values = False
        no_value_text = 'No Data'

    def on_refine(self, refined):
        super().on_refine(refined)
        if self.options is None:
            self.options = {}

    def resolve_attribute(self, resource, attribute):
        value = super().resolve_attribute(resource, attribute)
        if isinstance(value, str):
            value = decode_json(value, {})
        return dict(value) if isinstance(value, dict) else {}

    def fill_attribute_from_request(self, request, request_attribute, model, attribute):
        if not request_has(request, request_attribute):
            return
        value = request_input(request, request_attribute)
        if isinstance(value, str):
            decoded = decode_json(value, value)
            if isinstance(decoded, (dict, list)):
                value = decoded
        if value is None:
            value = {}
        elif not isinstance(value, (dict, list, tuple)):
            value = [value]
        if not isinstance(value, dict):
            value = {str(k): True for k in value}

        keys = list(self.options) or list(value)
        data_set(model, attribute, {k: is_truthy_input(value.get(k, False)) for k in keys})

    def meta(self):
        return {
            **super().meta(),
            'options': self.options,
            'hideFalseValues': self.hide_false_values,
            'hideTrueValues': self.hide_true_values,
            'noValueText': self.no_value_text,
        }


def options_from_enum(enum_class):
    if isinstance(enum_class, str):
        try:
            enum_class = import_string(enum_class)
        except ImportError:
            raise ValueError(f'Class {enum_class} is not an enum.')
    if not (isinstance(enum_class, type) and issubclass(enum_class, Enum)):
        raise ValueError(f'Class {getattr(enum_class, "__name__", enum_class)} is not an enum.')

    # Django's Choices carry a human label
    return {member.value: getattr(member, 'label', member.name) for member in enum_class}


class Select(Field):
    options: Dict[Any, str] = Refinable()
    display_using_labels: bool = Refinable()

    class Meta:
        display_using_labels = True

    def on_refine(self, refined):
        super().on_refine(refined)
        if self.options is None:
            self.options = {}

    def enum(self, enum_class):
        self.options = options_from_enum(enum_class)
        return self

    def option_for(self, value):
        for key in self.options:
            if key == value or str(key) == str(value):
                return key
        return None

    def resolve_attribute(self, resource, attribute):
        value = super().resolve_attribute(resource, attribute)
        if value is None or not self.display_using_labels or not self.options:
            return value
        key = self.option_for(value)
        return {
            'value': value,
            'label': self.options[key] if key is not None else value,
        }

    def fill_attribute_from_request(self, request, request_attribute, model, attribute):
        if not request_has(request, request_attribute):
            return
        value = request_input(request, request_attribute)
        if value not in (None, '') and self.options:
            value = self.option_for(value)
        data_set(model, attribute, value)

    def meta(self):
        return {
            **super().meta(),
            'options': self.options,
            'searchable': self.searchable,
            'displayUsingLabels': self.display_using_labels,
        }


class MultiSelect(Field):
    options: Dict[Any, str] = Refinable()
    taggable: bool = Refinable()
    max_selections: Optional[int] = Refinable()

    class Meta:
        taggable = False

    def on_refine(self, refined):
        super().on_refine(refined)
        if self.options is None:
            self.options = {}

    def enum(self, enum_class):
        self.options = options_from_enum(enum_class)
        return self

    def resolve_attribute(self, resource, attribute):
        value = super().resolve_attribute(resource, attribute)
        if value is None or value == '':
            return []
        if isinstance(value, (list, tuple)):
            return list(value)
        if isinstance(value, str):
            if value.startswith('['):
                decoded = decode_json(value, None)
                if isinstance(decoded, list):
                    return decoded
            return [v.strip() for v in value.split(',') if v.strip()]
        return [value]

    def fill_attribute_from_request(self, request, request_attribute, model, attribute):
        if not request_has(request, request_attribute):
            return
        value = request_input(request, request_attribute)
        if value is None or value == '':
            values = []
        elif isinstance(value, (list, tuple)):
            values = list(value)
        else:
            values = [value]

        if self.options and not self.taggable:
            known = {str(k) for k in self.options}
            values = [v for v in values if str(v) in known]

        if self.max_selections is not None:
            values = values[:self.max_selections]

        data_set(model, attribute, values)

    def meta(self):
        return {
            **super().meta(),
            'options': self.options,
            'searchable': self.searchable,
            'taggable': self.taggable,
            'maxSelections': self.max_selections,
        }


class Badge(Field):
    built_in_types = {
        'info': 'bg-blue-50 text-blue-700 ring-blue-600/20',
        'success': 'bg-green-50 text-green-700 ring-green-600/20',
        'danger': 'bg-red-50 text-red-700 ring-red-600/20',
        'warning': 'bg-yellow-50 text-yellow-700 ring-yellow-600/20',
    }

    built_in_icons = {
        'info': 'information-circle',
        'success': 'check-circle',
        'danger': 'x-circle',
        'warning': 'exclamation-circle',
    }

    value_map: Dict[Any, str] = Refinable()
    custom_types: Dict[str, str] = Refinable()
    with_icons: bool = Refinable()
    icon_map: Dict[str, str] = Refinable()
    label_callback: Optional[Callable] = Refinable()
    label_map: Dict[Any, str] = Refinable()

    class Meta:
        with_icons = False

    def on_refine(self, refined):
        super().on_refine(refined)
        for k in ('value_map', 'custom_types', 'icon_map', 'label_map'):
            if getattr(self, k) is None:
                setattr(self, k, {})

    def map(self, value_map):
        self.value_map = dict(value_map)
        return self

    def types(self, types):
        self.custom_types = dict(types)
        return self

    def add_types(self, types):
        self.custom_types.update(types)
        return self

    def icons(self, icon_map):
        self.icon_map = dict(icon_map)
        self.with_icons = True
        return self

    def label(self, callback):
        self.label_callback = callback
        return self

    def labels(self, label_map):
        self.label_map = dict(label_map)
        return self

    def resolve_badge_type(self, value):
        return self.value_map.get(value, 'info')

    def resolve_badge_classes(self, badge_type):
        return self.custom_types.get(badge_type) or self.built_in_types.get(badge_type) or self.built_in_types['info']

    def resolve_icon(self, badge_type):
        return self.icon_map.get(badge_type) or self.built_in_icons.get(badge_type)

    def resolve_label(self, value):
        if self.label_callback is not None:
            return self.invoke(self.label_callback, value=value)
        return self.label_map.get(value, value)

    def meta(self):
        return {
            **super().meta(),
            'valueMap': self.value_map,
            'customTypes': self.custom_types,
            'withIcons': self.with_icons,
            'iconMap': self.icon_map,
            'labelMap': self.label_map,
            'builtInTypes': self.built_in_types,
        }


class Status(Field):
    built_in_types = {
        'loading': 'bg-yellow-100 text-yellow-800 dark:bg-yellow-900 dark:text-yellow-200',
        'failed': 'bg-red-100 text-red-800 dark:bg-red-900 dark:text-red-200',
        'success': 'bg-green-100 text-green-800 dark:bg-green-900 dark:text-green-200',
        'default': 'bg-gray-100 text-gray-800 dark:bg-gray-900 dark:text-gray-200',
    }

    built_in_icons = {
        'loading': 'spinner',
        'failed': 'exclamation-circle',
        'success': 'check-circle',
        'default': 'information-circle',
    }

    loading_when: List[Any] = Refinable()
    failed_when: List[Any] = Refinable()
    success_when: List[Any] = Refinable()
    custom_types: Dict[str, str] = Refinable()
    custom_icons: Dict[str, str] = Refinable()
    with_icons: bool = Refinable()
    label_callback: Optional[Callable] = Refinable()
    label_map: Dict[Any, str] = Refinable()

    class Meta:
        with_icons = True

    def on_refine(self, refined):
        super().on_refine(refined)
        for k in ('loading_when', 'failed_when', 'success_when'):
            setattr(self, k, list(getattr(self, k) or []))
        for k in ('custom_types', 'custom_icons', 'label_map'):
            if getattr(self, k) is None:
                setattr(self, k, {})

    def types(self, types):
        self.custom_types = dict(types)
        return self

    def icons(self, icons):
        self.custom_icons = dict(icons)
        return self

    def label(self, callback):
        self.label_callback = callback
        return self

    def labels(self, label_map):
        self.label_map = dict(label_map)
        return self

    def resolve_status_type(self, value):
        if value in self.loading_when:
            return 'loading'
        if value in self.failed_when:
            return 'failed'
        if value in self.success_when:
            return 'success'
        return 'default'

    def resolve_status_classes(self, status_type):
        return self.custom_types.get(status_type) or self.built_in_types.get(status_type, self.built_in_types['default'])

    def resolve_icon(self, status_type):
        if not self.with_icons:
            return None
        return self.custom_icons.get(status_type) or self.built_in_icons.get(status_type, self.built_in_icons['default'])

    def resolve_label(self, value):
        if self.label_callback is not None:
            return self.invoke(self.label_callback, value=value)
        if value in self.label_map:
            return self.label_map[value]
        return human_readable(value)

    def meta(self):
        return {
            **super().meta(),
            'loadingWhen': self.loading_when,
            'failedWhen': self.failed_when,
            'successWhen': self.success_when,
            'customTypes': self.custom_types,
            'customIcons': self.custom_icons,
            'withIcons': self.with_icons,
            'labelMap': self.label_map,
            'builtInTypes': self.built_in_types,
            'builtInIcons': self.built_in_icons,
        }


TIMEZONE_REGIONS = {'Africa', 'America', 'Antarctica', 'Arctic', 'Asia', 'Atlantic', 'Australia', 'Europe', 'Indian', 'Pacific'}

COMMON_TIMEZONES = [
    'UTC',
    'America/New_York',
    'America/Chicago',
    'America/Denver',
    'America/Los_Angeles',
    'America/Anchorage',
    'America/Toronto',
    'America/Mexico_City',
    'America/Sao_Paulo',
    'America/Argentina/Buenos_Aires',
    'Europe/London',
    'Europe/Paris',
    'Europe/Berlin',
    'Europe/Madrid',
    'Europe/Rome',
    'Europe/Amsterdam',
    'Europe/Stockholm',
    'Europe/Moscow',
    'Africa/Cairo',
    'Africa/Johannesburg',
    'Africa/Lagos',
    'Asia/Dubai',
    'Asia/Kolkata',
    'Asia/Shanghai',
    'Asia/Hong_Kong',
    'Asia/Singapore',
    'Asia/Tokyo',
    'Asia/Seoul',
    'Australia/Sydney',
    'Australia/Melbourne',
    'Pacific/Auckland',
    'Pacific/Honolulu',
]


def timezone_region(identifier):
    region, sep, _ = identifier.partition('/')
    return region if sep else identifier


def timezone_label(identifier):
    offset = datetime.now(ZoneInfo(identifier)).utcoffset()
    total_minutes = int(offset.total_seconds() // 60)
    sign = '+' if total_minutes >= 0 else '-'
    hours, minutes = divmod(abs(total_minutes), 60)

    region, sep, city = identifier.partition('/')
    name = f'{region} - {city.replace("/", " - ").replace("_", " ")}' if sep else identifier
    return f'(UTC{sign}{hours:02d}:{minutes:02d}) {name}'


class Timezone(Field):
    group_by_region: bool = Refinable()
    only_common: bool = Refinable()

    class Meta:
        searchable = True
        group_by_region = False
        only_common = False

    def get_identifiers(self):
        if self.only_common:
            return list(COMMON_TIMEZONES)
        identifiers = [tz for tz in available_timezones() if timezone_region(tz) in TIMEZONE_REGIONS]
        return ['UTC'] + sorted(identifiers)

    def get_timezones(self):
        return {identifier: timezone_label(identifier) for identifier in self.get_identifiers()}

    def get_timezones_grouped(self):
        grouped = {}
        for identifier, label in items(self.get_timezones()):
            grouped.setdefault(timezone_region(identifier), {})[identifier] = label
        return {region: grouped[region] for region in sorted(grouped)}

    def meta(self):
        return {
            **super().meta(),
            'searchable': self.searchable,
            'groupByRegion': self.group_by_region,
            'onlyCommon': self.only_common,
            'timezones': self.get_timezones_grouped() if self.group_by_region else self.get_timezones(),
        }


class KeyValue(Field):
    key_label: str = Refinable()
    value_label: str = Refinable()
    action_text: str = Refinable()

    class Meta:
        key_label = 'Key'
        value_label = 'Value'
        action_text = 'Add row'

    @staticmethod
    def to_dict(value):
        if value is None or value == '':
            return {}
        if isinstance(value, str):
            value = decode_json(value, {})
        if isinstance(value, dict):
            return {k: v for k, v in value.items() if str(k).strip()}
        if isinstance(value, list):
            result = {}
            for row in value:
                if isinstance(row, dict):
                    key = str(row.get('key') or '').strip()
                    if key:
                        result[key] = row.get('value')
            return result
        return {}

    def resolve_attribute(self, resource, attribute):
        return self.to_dict(super().resolve_attribute(resource, attribute))

    def fill_attribute_from_request(self, request, request_attribute, model, attribute):
        if request_has(request, request_attribute):
            data_set(model, attribute, self.to_dict(request_input(request, request_attribute)))

    def get_display_value(self):
        return [{'key': k, 'value': v} for k, v in items(self.value or {})]

    def has_display_values(self):
        return bool(self.value)

    def meta(self):
        return {
            **super().meta(),
            'keyLabel': self.key_label,
            'valueLabel': self.value_label,
            'actionText': self.action_text,
        }
