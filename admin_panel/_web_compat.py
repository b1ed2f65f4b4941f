import json

from django.core.exceptions import ImproperlyConfigured  # noqa: F401
from django.core.files.storage import storages  # noqa: F401
from django.core.files.uploadedfile import UploadedFile
from django.http import (
    FileResponse,  # noqa: F401
    HttpResponseRedirect,  # noqa: F401
    QueryDict,
)
from django.utils.module_loading import import_string  # noqa: F401


def _flatten_query_dict(query_dict: QueryDict):
    result = {}
    for key in query_dict.keys():
        values = query_dict.getlist(key)
        if key.endswith('[]'):
            result[key[:-2]] = values
        elif len(values) > 1:
            result[key] = values
        else:
            result[key] = values[0] if values else None
    return result


def request_data(request):
    """
    The submitted input of a request as a plain dict.

    A JSON body wins over form data. For form data, GET and POST are merged with
    POST taking precedence. Keys ending in `[]`, and keys given more than once,
    become lists.
    """
    if request is None:
        return {}

    try:
        return request.admin_panel_data
    except AttributeError:
        pass

    if getattr(request, 'content_type', None) == 'application/json' and request.body:
        data = json.loads(request.body)
        if not isinstance(data, dict):
            data = {}
    else:
        data = _flatten_query_dict(request.GET)
        data.update(_flatten_query_dict(request.POST))

    request.admin_panel_data = data
    return data


def request_file(request, key):
    if request is None:
        return None
    files = request.FILES
    if key in files:
        return files[key]
    if f'{key}[]' in files:
        return files.getlist(f'{key}[]')
    return None


def request_has(request, key):
    return key in request_data(request) or request_file(request, key) is not None


def request_input(request, key, default=None):
    return request_data(request).get(key, default)


def is_uploaded_file(value):
    return isinstance(value, UploadedFile)
