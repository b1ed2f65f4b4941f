from typing import (
    Any,
    Callable,
    Dict,
    List,
    Optional,
)

from tri_declarative import (
    evaluate_strict,
    Refinable,
    RefinableObject,
    with_meta,
)
from tri_declarative.evaluate import get_signature

from admin_panel._web_compat import (
    request_has,
    request_input,
)
from admin_panel.base import (
    attribute_from_name,
    data_get,
    data_set,
    items,
)


@with_meta
class Field(RefinableObject):
    # language=rst
    """
    Describes how one attribute of a model is displayed, validated and filled.

    Configuration is given as keyword arguments, or later via `refine`:

    .. code-block:: python

        Text('Title').refine(sortable=True, help_text='The headline').required()

    The life cycle of the value is:

        1. `resolve(resource)`: read the value from the model (or the resolve callback) into `value`
        2. `resolve_for_display(resource)`: like `resolve`, then pass `value` through the display callback
        3. `fill(request, model)`: write the submitted input back to the model

    Callbacks are called with keyword arguments and must accept the names they use plus `**_`
    (a plain `lambda **_: ...` gets them all):

        - `resolve_callback`: `resource`, `attribute`, `field`
        - `fill_callback`: `request`, `model`, `attribute`, `field`
        - `display_callback`: `value`, `resource`, `attribute`, `field`
        - `see_callback`/`update_callback`: `request`, `field`
    """

    component: str = Refinable()
    name: str = Refinable()
    attribute: str = Refinable()
    value: Any = Refinable()
    default: Any = Refinable()

    rules: List[str] = Refinable()
    creation_rules: List[str] = Refinable()
    update_rules: List[str] = Refinable()

    show_on_index: bool = Refinable()
    show_on_detail: bool = Refinable()
    show_on_creation: bool = Refinable()
    show_on_update: bool = Refinable()

    sortable: bool = Refinable()
    searchable: bool = Refinable()
    nullable: bool = Refinable()
    readonly: bool = Refinable()
    copyable: bool = Refinable()
    help_text: Optional[str] = Refinable()
    placeholder: Optional[str] = Refinable()
    extra_meta: Dict[str, Any] = Refinable()

    resolve_callback: Optional[Callable] = Refinable()
    fill_callback: Optional[Callable] = Refinable()
    display_callback: Optional[Callable] = Refinable()
    see_callback: Optional[Callable] = Refinable()
    update_callback: Optional[Callable] = Refinable()

    class Meta:
        show_on_index = True
        show_on_detail = True
        show_on_creation = True
        show_on_update = True
        sortable = False
        searchable = False
        nullable = False
        readonly = False
        copyable = False

    def __init__(self, name=None, attribute=None, resolve_callback=None, **kwargs):
        super(Field, self).__init__(name=name, attribute=attribute, resolve_callback=resolve_callback, **kwargs)

        if self.component is None:
            class_name = type(self).__name__
            self.component = class_name if class_name.endswith('Field') else f'{class_name}Field'
        if self.attribute is None and self.name is not None:
            self.attribute = attribute_from_name(self.name)

        self.on_refine(dict(kwargs, name=name, attribute=attribute, resolve_callback=resolve_callback))

    def __repr__(self):
        return f'<{type(self).__name__} {self.attribute}>'

    def refine(self, **kwargs):
        declared = self.get_declared('refinable_members')
        unknown = sorted(k for k in kwargs if k not in declared)
        if unknown:
            available_keys = '\n    '.join(sorted(declared.keys()))
            raise TypeError(f"""'{type(self).__name__}' object has no refinable attribute(s): {', '.join(unknown)}.
Available attributes:
    {available_keys}""")

        for k, v in items(kwargs):
            setattr(self, k, v)
        self.on_refine(kwargs)
        return self

    def on_refine(self, refined):
        """
        Called after construction and after each `refine` with the attributes
        that were just set. Subclasses keep their invariants here.
        """
        for k in ('rules', 'creation_rules', 'update_rules'):
            setattr(self, k, list(getattr(self, k) or []))
        if self.extra_meta is None:
            self.extra_meta = {}

    def invoke(self, callback, **kwargs):
        kwargs['field'] = self
        # `lambda **_: ...` takes any arguments
        if callable(callback) and get_signature(callback) == '||*':
            return callback(**kwargs)
        return evaluate_strict(callback, **kwargs)

    # Validation

    def required(self, required=True):
        if required:
            if 'required' not in self.rules:
                self.rules.append('required')
        else:
            self.rules = [rule for rule in self.rules if rule != 'required']
        return self

    def get_creation_rules(self):
        return self.rules + self.creation_rules

    def get_update_rules(self):
        return self.rules + self.update_rules

    def get_rules(self, request, creating):
        return self.get_creation_rules() if creating else self.get_update_rules()

    # Visibility

    def hide_from_index(self, hide=True):
        self.show_on_index = not hide
        return self

    def hide_from_detail(self, hide=True):
        self.show_on_detail = not hide
        return self

    def hide_when_creating(self, hide=True):
        self.show_on_creation = not hide
        return self

    def hide_when_updating(self, hide=True):
        self.show_on_update = not hide
        return self

    def show_on_creating(self, show=True):
        self.show_on_creation = show
        return self

    def show_on_updating(self, show=True):
        self.show_on_update = show
        return self

    def _only(self, index=False, detail=False, creation=False, update=False):
        self.show_on_index = index
        self.show_on_detail = detail
        self.show_on_creation = creation
        self.show_on_update = update
        return self

    def only_on_index(self):
        return self._only(index=True)

    def only_on_detail(self):
        return self._only(detail=True)

    def only_on_forms(self):
        return self._only(creation=True, update=True)

    def except_on_forms(self):
        return self._only(index=True, detail=True)

    def is_shown_on_index(self):
        return self.show_on_index

    def is_shown_on_detail(self):
        return self.show_on_detail

    def is_shown_on_forms(self):
        return self.show_on_creation or self.show_on_update

    # Callbacks

    def resolve_using(self, callback):
        self.resolve_callback = callback
        return self

    def fill_using(self, callback):
        self.fill_callback = callback
        return self

    def display_using(self, callback):
        self.display_callback = callback
        return self

    def can_see(self, callback):
        self.see_callback = callback
        return self

    def can_update(self, callback):
        self.update_callback = callback
        return self

    # Authorization

    def authorized_to_see(self, request):
        if self.see_callback is None:
            return True
        return bool(self.invoke(self.see_callback, request=request))

    def authorized_to_update(self, request):
        if self.update_callback is None:
            return True
        return bool(self.invoke(self.update_callback, request=request))

    def authorize(self, request):
        return self.authorized_to_see(request)

    # Life cycle

    def resolve_attribute(self, resource, attribute):
        return data_get(resource, attribute)

    def resolve(self, resource, attribute=None):
        attribute = attribute or self.attribute

        if self.resolve_callback is not None:
            self.value = self.invoke(self.resolve_callback, resource=resource, attribute=attribute)
        else:
            self.value = self.resolve_attribute(resource, attribute)
        return self.value

    def display(self, value, resource, attribute=None):
        if self.display_callback is None:
            return value
        return self.invoke(self.display_callback, value=value, resource=resource, attribute=attribute or self.attribute)

    def resolve_for_display(self, resource, attribute=None):
        self.resolve(resource, attribute)
        self.value = self.display(self.value, resource, attribute)
        return self.value

    def resolve_value(self, resource):
        self.resolve(resource)
        value = self.default if self.value is None else self.value
        return self.display(value, resource)

    def fill(self, request, model):
        if self.fill_callback is not None:
            self.invoke(self.fill_callback, request=request, model=model, attribute=self.attribute)
        else:
            self.fill_attribute_from_request(request, self.attribute, model, self.attribute)

    def fill_attribute_from_request(self, request, request_attribute, model, attribute):
        if request_has(request, request_attribute):
            data_set(model, attribute, request_input(request, request_attribute))

    # Serialization

    def with_meta(self, meta):
        self.extra_meta.update(meta)
        return self

    def meta(self):
        return dict(self.extra_meta)

    def json_serialize(self):
        return {
            'component': self.component,
            'name': self.name,
            'attribute': self.attribute,
            'value': self.value,
            'sortable': self.sortable,
            'searchable': self.searchable,
            'nullable': self.nullable,
            'readonly': self.readonly,
            'copyable': self.copyable,
            'helpText': self.help_text,
            'placeholder': self.placeholder,
            'default': self.default,
            'rules': self.rules,
            'creationRules': self.creation_rules,
            'updateRules': self.update_rules,
            'showOnIndex': self.show_on_index,
            'showOnDetail': self.show_on_detail,
            'showOnCreation': self.show_on_creation,
            'showOnUpdate': self.show_on_update,
            **self.meta(),
        }
