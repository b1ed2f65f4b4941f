from typing import (
    List,
    Optional,
)

from tri_declarative import Refinable

from admin_panel.field import Field


class Heading(Field):
    """
    A label that splits a form into sections. It is not backed by an attribute: the value is the
    name itself, and filling never touches the model. Set `as_html` to render the name as markup.
    """

    as_html: bool = Refinable()

    class Meta:
        show_on_index = False
        nullable = True
        readonly = True
        as_html = False

    def resolve(self, resource, attribute=None):
        self.value = self.name
        return self.value

    def fill(self, request, model):
        pass

    def meta(self):
        return {
            **super().meta(),
            'asHtml': self.as_html,
            'isHeading': True,
        }


class Line(Field):
    """
    One line of text inside a `Stack`. Only one of `as_small`, `as_heading` and `as_sub_text` is
    set at a time; setting one clears the others.
    """

    as_small: bool = Refinable()
    as_heading: bool = Refinable()
    as_sub_text: bool = Refinable()
    as_html: bool = Refinable()

    class Meta:
        readonly = True
        as_small = False
        as_heading = False
        as_sub_text = False
        as_html = False

    styles = ('as_small', 'as_heading', 'as_sub_text')

    def on_refine(self, refined):
        super().on_refine(refined)
        chosen = [k for k in self.styles if refined.get(k)]
        if chosen:
            for k in self.styles:
                setattr(self, k, k == chosen[-1])

    def fill(self, request, model):
        pass

    def meta(self):
        return {
            **super().meta(),
            'asSmall': self.as_small,
            'asHeading': self.as_heading,
            'asSubText': self.as_sub_text,
            'asHtml': self.as_html,
            'isLine': True,
        }


class Stack(Field):
    """
    Shows several fields in one cell:

    .. code:: python

        Stack('User Info', fields=[
            Text('Name'),
            Line('Email').refine(as_small=True),
        ])

    The children are resolved against the same resource. The stack itself has no value and is never
    filled.
    """

    fields: List[Field] = Refinable()

    class Meta:
        readonly = True
        nullable = True

    def on_refine(self, refined):
        super().on_refine(refined)
        self.fields = list(self.fields or [])

    def add_field(self, field):
        self.fields.append(field)
        return self

    def line(self, name, resolve_callback=None):
        return self.add_field(Line(name, resolve_callback=resolve_callback))

    def get_fields(self):
        return self.fields

    def resolve(self, resource, attribute=None):
        for field in self.fields:
            field.resolve(resource)
        self.value = None
        return None

    def resolve_for_display(self, resource, attribute=None):
        for field in self.fields:
            field.resolve_for_display(resource)
        self.value = None
        return None

    def fill(self, request, model):
        pass

    def meta(self):
        return {
            **super().meta(),
            'isStack': True,
            'fields': [field.json_serialize() for field in self.fields],
        }


__all__ = [
    'Heading',
    'Line',
    'Stack',
]
