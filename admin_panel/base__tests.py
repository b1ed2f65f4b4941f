import pytest
from django.test import override_settings
from tri_struct import Struct

from admin_panel.base import (
    MISSING,
    UnknownMissingValueException,
    ascii_fold,
    attribute_from_name,
    capitalize,
    data_get,
    data_set,
    human_readable,
    setting,
    studly,
)


def test_missing():
    assert str(MISSING) == 'MISSING'
    assert repr(MISSING) == 'MISSING'
    with pytest.raises(UnknownMissingValueException):
        bool(MISSING)


@override_settings(ADMIN_PANEL_DEFAULT_DISK='s3')
def test_setting():
    assert setting('DEFAULT_DISK', 'public') == 's3'
    assert setting('NOT_SET', 'fallback') == 'fallback'


@pytest.mark.parametrize('name, attribute, studly_name', [
    ('Title', 'title', 'Title'),
    ('Blog Category', 'blog_category', 'BlogCategory'),
    ('blog_posts', 'blog_posts', 'BlogPosts'),
    ('blog-posts', 'blog-posts', 'BlogPosts'),
])
def test_names(name, attribute, studly_name):
    assert attribute_from_name(name) == attribute
    assert studly(name) == studly_name


def test_text_helpers():
    assert capitalize('') == ''
    assert capitalize('foo bar') == 'Foo bar'
    assert human_readable('in_progress') == 'In progress'
    assert human_readable('on-hold') == 'On hold'
    assert ascii_fold('Crème brûlée') == 'Creme brulee'


def test_data_get():
    target = Struct(author=dict(name='Ada', profile=None), title='Hello')

    assert data_get(target, 'title') == 'Hello'
    assert data_get(target, 'author.name') == 'Ada'
    assert data_get(target, 'author.profile.bio', default='-') == '-'
    assert data_get(target, 'editor.name') is None
    assert data_get(None, 'title', default='x') == 'x'
    assert data_get(target, None) is None


def test_data_set():
    target = Struct(author=Struct(name='Ada'))

    data_set(target, 'title', 'Hello')
    data_set(target, 'author.name', 'Grace')
    assert target == Struct(title='Hello', author=Struct(name='Grace'))

    with pytest.raises(AssertionError) as e:
        data_set(target, 'editor.name', 'Linus')

    assert str(e.value) == 'Cannot set editor.name: editor is missing'
