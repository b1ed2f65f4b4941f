import re
import unicodedata
from collections.abc import Mapping

from django.conf import settings


class UnknownMissingValueException(Exception):
    pass


class Missing:
    def __bool__(self):
        raise UnknownMissingValueException('MISSING is neither True nor False, is is unknown')

    def __str__(self):
        return 'MISSING'

    def __repr__(self):
        return str(self)


MISSING = Missing()


def setting(name, default=None):
    return getattr(settings, f'ADMIN_PANEL_{name}', default)


def capitalize(s):
    return s[0].upper() + s[1:] if s else s


def items(container):
    return type(container).items(container)


def attribute_from_name(name):
    return str(name).lower().replace(' ', '_')


def studly(value):
    """
    Turn `blog_posts`, `blog-posts` or `Blog Posts` into `BlogPosts`.
    """
    words = re.split(r'[\s_\-]+', str(value))
    return ''.join(capitalize(w) for w in words if w)


def human_readable(value):
    """
    `in_progress` -> `In progress`
    """
    return capitalize(str(value).replace('_', ' ').replace('-', ' '))


def ascii_fold(value):
    return unicodedata.normalize('NFKD', str(value)).encode('ascii', 'ignore').decode('ascii')


def _get_one(target, key):
    if isinstance(target, Mapping):
        return target.get(key, MISSING)
    return getattr(target, key, MISSING)


def data_get(target, path, default=None):
    """
    Look up a dotted path (`author.profile.name`) across mappings and objects.
    Returns `default` as soon as a step of the path is missing or `None`.
    """
    if target is None or path is None:
        return default

    for key in str(path).split('.'):
        if target is None:
            return default
        target = _get_one(target, key)
        if target is MISSING:
            return default

    return target


def data_set(target, path, value):
    *parents, last = str(path).split('.')
    for key in parents:
        target = _get_one(target, key)
        assert target is not MISSING and target is not None, f'Cannot set {path}: {key} is missing'
    if isinstance(target, dict):
        target[last] = value
    else:
        setattr(target, last, value)
