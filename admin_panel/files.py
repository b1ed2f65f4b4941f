import hashlib
import logging
import os
import time
from collections.abc import Mapping
from typing import (
    Callable,
    Optional,
)
from urllib.parse import urlencode

from tri_declarative import Refinable

from admin_panel._web_compat import (
    FileResponse,
    is_uploaded_file,
    request_file,
    request_has,
    request_input,
    storages,
)
from admin_panel.base import (
    data_get,
    data_set,
    items,
    setting,
)
from admin_panel.field import Field

log = logging.getLogger(__name__)


def assign(model, values):
    if isinstance(values, Mapping):
        for key, value in items(values):
            data_set(model, key, value)


class File(Field):
    """
    An uploaded file kept on a Django storage. The attribute holds the stored path, relative to the
    storage root.

    .. code:: python

        File('Contract', disk='private', path='contracts', accepted_types='.pdf').refine(
            original_name_column='contract_name',
            size_column='contract_size',
        )

    Callbacks are called with keyword arguments:

        - `store_callback`: `request`, `model`, `attribute`, `disk`, `path`, returns a mapping of model attributes
        - `store_as_callback`: `request`, `model`, `file`, returns the file name to store as
        - `delete_callback`: `request`, `model`, `disk`, `path`, returns a mapping of model attributes
        - `download_callback`: `request`, `model`, `disk`, `path`
        - `preview_callback`/`thumbnail_callback`: `value`, `disk`
    """

    disk: str = Refinable()
    path: str = Refinable()
    accepted_types: Optional[str] = Refinable()
    max_size: Optional[int] = Refinable()
    multiple: bool = Refinable()

    download_callback: Optional[Callable] = Refinable()
    store_callback: Optional[Callable] = Refinable()
    store_as_callback: Optional[Callable] = Refinable()
    delete_callback: Optional[Callable] = Refinable()
    preview_callback: Optional[Callable] = Refinable()
    thumbnail_callback: Optional[Callable] = Refinable()

    original_name_column: Optional[str] = Refinable()
    size_column: Optional[str] = Refinable()
    deletable: bool = Refinable()
    prunable: bool = Refinable()
    downloads_disabled: bool = Refinable()

    class Meta:
        path = 'files'
        multiple = False
        deletable = True
        prunable = False
        downloads_disabled = False

    def on_refine(self, refined):
        super().on_refine(refined)
        if self.disk is None:
            self.disk = setting('DEFAULT_DISK', 'public')

    @property
    def storage(self):
        return storages[self.disk]

    def disable_download(self):
        self.downloads_disabled = True
        return self

    def store_original_name(self, column):
        return self.refine(original_name_column=column)

    def store_size(self, column):
        return self.refine(size_column=column)

    # URLs

    def get_url(self, path=None):
        path = self.value if path is None else path
        if not path:
            return None
        return self.storage.url(path)

    def get_preview_url(self):
        if self.preview_callback is not None:
            return self.invoke(self.preview_callback, value=self.value, disk=self.disk)
        return self.get_url()

    def get_thumbnail_url(self):
        if self.thumbnail_callback is not None:
            return self.invoke(self.thumbnail_callback, value=self.value, disk=self.disk)
        return self.get_url()

    def get_download_response(self, request, model):
        if self.downloads_disabled:
            return None

        path = data_get(model, self.attribute)
        if self.download_callback is not None:
            return self.invoke(self.download_callback, request=request, model=model, disk=self.disk, path=path)

        if not path:
            return None
        filename = None
        if self.original_name_column:
            filename = data_get(model, self.original_name_column)
        return FileResponse(self.storage.open(path, 'rb'), as_attachment=True, filename=filename or os.path.basename(path))

    # Storing

    def upload_name(self, request, model, uploaded_file):
        if self.store_as_callback is not None:
            name = self.invoke(self.store_as_callback, request=request, model=model, file=uploaded_file)
        else:
            stem, ext = os.path.splitext(os.path.basename(uploaded_file.name))
            name = f'{stem}_{int(time.time())}{ext}'
        return f'{self.path}/{name}' if self.path else name

    def store(self, request, model, uploaded_file):
        stored_path = self.storage.save(self.upload_name(request, model, uploaded_file), uploaded_file)
        log.debug('Stored %s on %s as %s', uploaded_file.name, self.disk, stored_path)
        return stored_path

    def delete(self, request, model, attribute):
        current = data_get(model, attribute)
        if self.delete_callback is not None:
            assign(model, self.invoke(self.delete_callback, request=request, model=model, disk=self.disk, path=current))
            return

        if not self.deletable:
            return

        if current:
            self.storage.delete(current)
            log.debug('Deleted %s from %s', current, self.disk)
        data_set(model, attribute, None)
        for column in (self.original_name_column, self.size_column):
            if column:
                data_set(model, column, None)

    def fill_attribute_from_request(self, request, request_attribute, model, attribute):
        if self.store_callback is not None:
            if request_has(request, request_attribute):
                assign(model, self.invoke(self.store_callback, request=request, model=model, attribute=attribute, disk=self.disk, path=self.path))
            return

        uploaded = request_file(request, request_attribute)
        if uploaded is not None:
            uploads = uploaded if isinstance(uploaded, list) else [uploaded]
            uploads = [x for x in uploads if is_uploaded_file(x)]
            stored = [self.store(request, model, x) for x in uploads]
            if self.multiple:
                data_set(model, attribute, stored)
            elif stored:
                data_set(model, attribute, stored[0])
            if uploads and not self.multiple:
                if self.original_name_column:
                    data_set(model, self.original_name_column, uploads[0].name)
                if self.size_column:
                    data_set(model, self.size_column, uploads[0].size)
            return

        if request_has(request, request_attribute) and request_input(request, request_attribute) in (None, ''):
            self.delete(request, model, attribute)

    def meta(self):
        return {
            **super().meta(),
            'disk': self.disk,
            'path': self.path,
            'acceptedTypes': self.accepted_types,
            'maxSize': self.max_size,
            'multiple': self.multiple,
            'deletable': self.deletable,
            'prunable': self.prunable,
            'downloadsDisabled': self.downloads_disabled,
            'originalNameColumn': self.original_name_column,
            'sizeColumn': self.size_column,
            'previewUrl': self.get_preview_url(),
            'thumbnailUrl': self.get_thumbnail_url(),
        }


class Image(File):
    squared: bool = Refinable()
    rounded: bool = Refinable()

    class Meta:
        squared = False
        rounded = False

    def meta(self):
        return {
            **super().meta(),
            'squared': self.squared,
            'rounded': self.rounded,
        }


class Avatar(Image):
    class Meta:
        rounded = True
        show_on_index = True


class Gravatar(Field):
    """
    An avatar looked up on Gravatar from an email attribute. Nothing is ever stored.
    """

    email_attribute: Optional[str] = Refinable()
    size: int = Refinable()
    default_fallback: str = Refinable()
    rating: str = Refinable()
    squared: bool = Refinable()
    rounded: bool = Refinable()

    class Meta:
        size = 80
        default_fallback = 'mp'
        rating = 'g'
        squared = False
        rounded = True

    def on_refine(self, refined):
        super().on_refine(refined)
        self.size = max(1, min(2048, int(self.size)))
        if refined.get('squared'):
            self.rounded = False
        elif refined.get('rounded'):
            self.squared = False

    def from_email(self, attribute):
        return self.refine(email_attribute=attribute)

    def generate_gravatar_url(self, email):
        digest = hashlib.md5(str(email).strip().lower().encode()).hexdigest()
        query = urlencode(dict(s=self.size, d=self.default_fallback, r=self.rating))
        return f'{setting("GRAVATAR_URL", "https://www.gravatar.com/avatar/")}{digest}?{query}'

    def resolve_attribute(self, resource, attribute):
        if self.email_attribute is None:
            return super().resolve_attribute(resource, attribute)
        email = data_get(resource, self.email_attribute)
        if email is None or email == '':
            return email
        return self.generate_gravatar_url(email)

    def fill_attribute_from_request(self, request, request_attribute, model, attribute):
        pass

    def meta(self):
        return {
            **super().meta(),
            'emailAttribute': self.email_attribute or 'email',
            'size': self.size,
            'defaultFallback': self.default_fallback,
            'rating': self.rating,
            'squared': self.squared,
            'rounded': self.rounded,
        }


PRELOAD_NONE = 'none'
PRELOAD_METADATA = 'metadata'
PRELOAD_AUTO = 'auto'


class Audio(File):
    PRELOAD_NONE = PRELOAD_NONE
    PRELOAD_METADATA = PRELOAD_METADATA
    PRELOAD_AUTO = PRELOAD_AUTO

    preload: str = Refinable()

    class Meta:
        preload = PRELOAD_METADATA
        accepted_types = '.mp3,.wav,.ogg,.m4a,.aac,.flac'

    def on_refine(self, refined):
        super().on_refine(refined)
        if self.preload not in (PRELOAD_NONE, PRELOAD_METADATA, PRELOAD_AUTO):
            raise ValueError(f'Invalid preload value "{self.preload}". Use one of "none", "metadata" or "auto".')

    def meta(self):
        return {
            **super().meta(),
            'preload': self.preload,
        }
