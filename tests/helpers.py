import json

from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import RequestFactory
from tri_struct import Struct


def no_auth_req(method, url='/', **data):
    return getattr(RequestFactory(HTTP_REFERER='/'), method.lower())(url, data=data)


def req(method, url='/', **data):
    request = no_auth_req(method, url=url, **data)
    request.user = Struct(is_staff=False, is_authenticated=False, is_superuser=False)
    return request


def staff_req(method, **data):
    request = req(method, **data)
    request.user = Struct(is_staff=True, is_authenticated=True, is_superuser=True)
    return request


def json_req(url='/', **data):
    request = RequestFactory().post(url, data=json.dumps(data), content_type='application/json')
    request.user = Struct(is_staff=False, is_authenticated=False, is_superuser=False)
    return request


def uploaded_file(name='report.pdf', content=b'%PDF-1.4 test', content_type='application/pdf'):
    return SimpleUploadedFile(name, content, content_type=content_type)
