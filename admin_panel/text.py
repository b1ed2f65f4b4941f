import json
import logging
import re
from decimal import (
    Decimal,
    InvalidOperation,
)
from typing import (
    Dict,
    List,
    Optional,
)

from django.contrib.auth.hashers import make_password
from django.utils.text import slugify
from tri_declarative import Refinable

from admin_panel._web_compat import (
    request_has,
    request_input,
)
from admin_panel.base import (
    ascii_fold,
    data_set,
)
from admin_panel.field import Field

log = logging.getLogger(__name__)


class Text(Field):
    suggestions: Optional[List[str]] = Refinable()
    maxlength: Optional[int] = Refinable()
    enforce_maxlength: bool = Refinable()
    as_html: bool = Refinable()

    class Meta:
        enforce_maxlength = False
        as_html = False

    def fill_attribute_from_request(self, request, request_attribute, model, attribute):
        if not request_has(request, request_attribute):
            return
        value = request_input(request, request_attribute)
        if isinstance(value, str):
            value = value.strip()
        if value == '' and self.nullable:
            value = None
        data_set(model, attribute, value)

    def meta(self):
        return {
            **super().meta(),
            'suggestions': self.suggestions,
            'maxlength': self.maxlength,
            'enforceMaxlength': self.enforce_maxlength,
            'asHtml': self.as_html,
        }


class Textarea(Field):
    rows: int = Refinable()
    maxlength: Optional[int] = Refinable()
    enforce_maxlength: bool = Refinable()
    always_show: bool = Refinable()

    class Meta:
        rows = 4
        enforce_maxlength = False
        always_show = False
        show_on_index = False

    def meta(self):
        return {
            **super().meta(),
            'rows': self.rows,
            'maxlength': self.maxlength,
            'enforceMaxlength': self.enforce_maxlength,
            'alwaysShow': self.always_show,
        }


class Markdown(Field):
    show_toolbar: bool = Refinable()
    enable_slash_commands: bool = Refinable()
    height: Optional[int] = Refinable()
    auto_resize: bool = Refinable()

    class Meta:
        show_toolbar = True
        enable_slash_commands = True
        auto_resize = True

    def on_refine(self, refined):
        super().on_refine(refined)
        if refined.get('height') is not None:
            self.auto_resize = False

    def with_toolbar(self, show=True):
        self.show_toolbar = show
        return self

    def without_toolbar(self):
        return self.with_toolbar(False)

    def with_slash_commands(self, enable=True):
        self.enable_slash_commands = enable
        return self

    def without_slash_commands(self):
        return self.with_slash_commands(False)

    def maxlength(self, length):
        self.rules.append(f'max:{length}')
        return self

    def fill_attribute_from_request(self, request, request_attribute, model, attribute):
        if not request_has(request, request_attribute):
            return
        value = request_input(request, request_attribute)
        if isinstance(value, str):
            value = value.replace('\r\n', '\n').replace('\r', '\n').strip()
        data_set(model, attribute, value)

    def meta(self):
        return {
            **super().meta(),
            'showToolbar': self.show_toolbar,
            'enableSlashCommands': self.enable_slash_commands,
            'height': self.height,
            'autoResize': self.auto_resize,
        }


class Password(Field):
    """
    Input is hashed with the configured Django password hasher before it reaches
    the model. The stored hash is never sent back out.
    """

    class Meta:
        show_on_index = False
        show_on_detail = False

    def resolve(self, resource, attribute=None):
        self.value = None
        return None

    def fill_attribute_from_request(self, request, request_attribute, model, attribute):
        value = request_input(request, request_attribute)
        if value:
            data_set(model, attribute, make_password(value))


class PasswordConfirmation(Field):
    min_length: Optional[int] = Refinable()
    show_strength_indicator: bool = Refinable()

    class Meta:
        show_on_index = False
        show_on_detail = False
        show_strength_indicator = False

    def on_refine(self, refined):
        super().on_refine(refined)
        if refined.get('min_length') is not None:
            self.rules = [r for r in self.rules if not r.startswith('min:')] + [f'min:{self.min_length}']

    def resolve(self, resource, attribute=None):
        self.value = None
        return None

    def fill_attribute_from_request(self, request, request_attribute, model, attribute):
        pass

    def meta(self):
        return {
            **super().meta(),
            'minLength': self.min_length,
            'showStrengthIndicator': self.show_strength_indicator,
        }


class Email(Field):
    class Meta:
        rules = ['email']

    def fill_attribute_from_request(self, request, request_attribute, model, attribute):
        if not request_has(request, request_attribute):
            return
        value = request_input(request, request_attribute)
        if isinstance(value, str):
            value = value.strip().lower()
        if value == '' and self.nullable:
            value = None
        data_set(model, attribute, value)


class URL(Field):
    display_text: Optional[str] = Refinable()

    class Meta:
        rules = ['url']

    def meta(self):
        return {
            **super().meta(),
            'displayText': self.display_text,
        }


class Slug(Field):
    from_attribute: Optional[str] = Refinable()
    separator: str = Refinable()
    max_length: Optional[int] = Refinable()
    lowercase: bool = Refinable()
    unique_table: Optional[str] = Refinable()
    unique_column: Optional[str] = Refinable()

    class Meta:
        separator = '-'
        lowercase = True

    def unique(self, table, column='slug'):
        self.unique_table = table
        self.unique_column = column
        rule = f'unique:{table},{column}'
        if rule not in self.rules:
            self.rules.append(rule)
        return self

    def generate_slug(self, text):
        text = str(text).replace('@', ' at ')
        if self.lowercase:
            slug = slugify(text)
        else:
            slug = re.sub(r'[^\w\s-]', '', ascii_fold(text))
        slug = re.sub(r'[-_\s]+', self.separator, slug).strip(self.separator)

        if self.max_length is not None and len(slug) > self.max_length:
            slug = slug[:self.max_length].rstrip(self.separator)

        return slug

    def fill_attribute_from_request(self, request, request_attribute, model, attribute):
        value = request_input(request, request_attribute)
        if value:
            data_set(model, attribute, self.generate_slug(value))
        elif self.from_attribute and request_input(request, self.from_attribute):
            data_set(model, attribute, self.generate_slug(request_input(request, self.from_attribute)))
        elif request_has(request, request_attribute):
            data_set(model, attribute, '')

    def meta(self):
        return {
            **super().meta(),
            'fromAttribute': self.from_attribute,
            'separator': self.separator,
            'maxLength': self.max_length,
            'lowercase': self.lowercase,
            'uniqueTable': self.unique_table,
            'uniqueColumn': self.unique_column,
        }


class Hidden(Field):
    class Meta:
        show_on_index = False
        show_on_detail = False

    def meta(self):
        return {
            **super().meta(),
            'hidden': True,
        }


class ID(Field):
    as_big_int: bool = Refinable()

    class Meta:
        sortable = True
        show_on_creation = False
        as_big_int = False

    def __init__(self, name='ID', attribute='id', resolve_callback=None, **kwargs):
        super(ID, self).__init__(name, attribute or 'id', resolve_callback, **kwargs)

    def meta(self):
        return {
            **super().meta(),
            'asBigInt': self.as_big_int,
        }


def parse_number(value):
    if value is None or value == '':
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    s = str(value).strip()
    try:
        if re.fullmatch(r'[-+]?\d+', s):
            return int(s)
        return float(s)
    except ValueError:
        log.debug('Could not parse %r as a number', value)
        return value


class Number(Field):
    min: Optional[float] = Refinable()
    max: Optional[float] = Refinable()
    step: Optional[float] = Refinable()

    def fill_attribute_from_request(self, request, request_attribute, model, attribute):
        if request_has(request, request_attribute):
            data_set(model, attribute, parse_number(request_input(request, request_attribute)))

    def meta(self):
        return {
            **super().meta(),
            'min': self.min,
            'max': self.max,
            'step': self.step,
        }


CURRENCY_SYMBOLS = {
    'USD': '$',
    'EUR': '€',
    'GBP': '£',
    'JPY': '¥',
    'CNY': '¥',
    'INR': '₹',
    'KRW': '₩',
    'RUB': '₽',
    'BRL': 'R$',
    'CAD': 'C$',
    'AUD': 'A$',
    'CHF': 'CHF',
    'SEK': 'kr',
    'NOK': 'kr',
    'DKK': 'kr',
}


class Currency(Field):
    # language=rst
    """
    A money amount. With `as_minor_units=True` the model stores integer cents
    while the form shows the major unit.
    """

    locale: str = Refinable()
    currency: str = Refinable()
    symbol: Optional[str] = Refinable()
    precision: int = Refinable()
    min_value: Optional[float] = Refinable()
    max_value: Optional[float] = Refinable()
    display_format: str = Refinable()
    step: float = Refinable()
    as_minor_units: bool = Refinable()

    class Meta:
        locale = 'en_US'
        currency = 'USD'
        precision = 2
        display_format = 'symbol'
        step = 0.01
        as_minor_units = False

    def on_refine(self, refined):
        super().on_refine(refined)
        if refined.get('as_minor_units') and self.step == 0.01:
            self.step = 1

    def minor_units(self, enabled=True):
        return self.refine(as_minor_units=enabled, step=1 if enabled else 0.01)

    def major_units(self):
        return self.minor_units(False)

    def get_symbol(self):
        if self.symbol is not None:
            return self.symbol
        return CURRENCY_SYMBOLS.get(self.currency, self.currency)

    def parse(self, value):
        if value is None:
            return None
        cleaned = re.sub(r'[^\d.\-]', '', str(value))
        try:
            amount = Decimal(cleaned)
        except InvalidOperation:
            return None
        if self.as_minor_units:
            return int((amount * 100).to_integral_value())
        return float(amount)

    def resolve_attribute(self, resource, attribute):
        value = super().resolve_attribute(resource, attribute)
        if value is not None and self.as_minor_units:
            return round(value / 100, self.precision)
        return value

    def fill_attribute_from_request(self, request, request_attribute, model, attribute):
        if request_has(request, request_attribute):
            data_set(model, attribute, self.parse(request_input(request, request_attribute)))

    def meta(self):
        return {
            **super().meta(),
            'locale': self.locale,
            'currency': self.currency,
            'symbol': self.get_symbol(),
            'precision': self.precision,
            'minValue': self.min_value,
            'maxValue': self.max_value,
            'displayFormat': self.display_format,
            'step': self.step,
            'asMinorUnits': self.as_minor_units,
        }


HEX_COLOR = re.compile(r'^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$')
RGB_COLOR = re.compile(r'^rgba?\(\s*(\d{1,3})\s*,\s*(\d{1,3})\s*,\s*(\d{1,3})\s*(?:,\s*([\d.]+)\s*)?\)$')


class Color(Field):
    format: str = Refinable()
    with_alpha: bool = Refinable()
    palette: List[str] = Refinable()
    show_preview: bool = Refinable()
    swatches: Dict[str, str] = Refinable()

    class Meta:
        format = 'hex'
        with_alpha = False
        show_preview = True

    def on_refine(self, refined):
        super().on_refine(refined)
        self.palette = list(self.palette or [])
        if self.swatches is None:
            self.swatches = {}

    @staticmethod
    def is_valid_hex_color(value):
        return isinstance(value, str) and value.startswith('#') and bool(HEX_COLOR.match(value))

    @staticmethod
    def is_valid_rgb_color(value):
        m = RGB_COLOR.match(value or '')
        if not m:
            return False
        if value.startswith('rgba') != (m.group(4) is not None):
            return False
        if any(int(c) > 255 for c in m.group(1, 2, 3)):
            return False
        return m.group(4) is None or 0 <= float(m.group(4)) <= 1

    @staticmethod
    def hex_to_rgb(value):
        m = HEX_COLOR.match(value or '')
        if not m:
            return 'rgb(0, 0, 0)'
        digits = m.group(1)
        if len(digits) == 3:
            digits = ''.join(c * 2 for c in digits)
        r, g, b = (int(digits[i:i + 2], 16) for i in (0, 2, 4))
        return f'rgb({r}, {g}, {b})'

    @staticmethod
    def rgb_to_hex(value):
        m = RGB_COLOR.match(value or '')
        if not m:
            return '#000000'
        return '#' + ''.join(f'{int(c):02x}' for c in m.group(1, 2, 3))

    def meta(self):
        return {
            **super().meta(),
            'format': self.format,
            'withAlpha': self.with_alpha,
            'palette': self.palette,
            'showPreview': self.show_preview,
            'swatches': self.swatches,
        }


SUPPORTED_LANGUAGES = [
    'apl', 'asciiarmor', 'clike', 'clojure', 'cmake', 'cobol', 'coffeescript', 'commonlisp', 'css',
    'dart', 'django', 'dockerfile', 'elm', 'erlang', 'fortran', 'go', 'groovy', 'haskell', 'htmlmixed',
    'http', 'javascript', 'jinja2', 'julia', 'lua', 'markdown', 'nginx', 'perl', 'php', 'powershell',
    'python', 'r', 'ruby', 'rust', 'sass', 'shell', 'sql', 'swift', 'toml', 'twig', 'vue', 'xml', 'yaml',
]


class Code(Field):
    language: str = Refinable()
    is_json: bool = Refinable()

    class Meta:
        language = 'htmlmixed'
        is_json = False

    def on_refine(self, refined):
        super().on_refine(refined)
        if self.is_json:
            # JSON is highlighted as javascript
            self.language = 'javascript'

    @staticmethod
    def get_supported_languages():
        return list(SUPPORTED_LANGUAGES)

    def json(self):
        return self.refine(is_json=True)

    def resolve_attribute(self, resource, attribute):
        value = super().resolve_attribute(resource, attribute)
        if self.is_json and isinstance(value, str):
            try:
                return json.loads(value)
            except ValueError:
                log.debug('Value of %s is not valid JSON', attribute)
        return value

    def fill_attribute_from_request(self, request, request_attribute, model, attribute):
        if not request_has(request, request_attribute):
            return
        value = request_input(request, request_attribute)
        if value is None:
            value = ''
        if self.is_json and isinstance(value, str) and value:
            try:
                value = json.loads(value)
            except ValueError:
                log.debug('Input for %s is not valid JSON, storing it as given', attribute)
        data_set(model, attribute, value)

    def meta(self):
        return {
            **super().meta(),
            'language': self.language,
            'isJson': self.is_json,
        }

