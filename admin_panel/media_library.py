import logging
from typing import (
    Callable,
    Dict,
    List,
    Optional,
)

from tri_declarative import Refinable

from admin_panel._web_compat import (
    HttpResponseRedirect,
    is_uploaded_file,
    request_file,
)
from admin_panel.base import (
    data_get,
    setting,
)
from admin_panel.field import Field

log = logging.getLogger(__name__)

PRELOAD_NONE = 'none'
PRELOAD_METADATA = 'metadata'
PRELOAD_AUTO = 'auto'

DEFAULT_MIME_TYPES = {
    'file': [
        'application/pdf',
        'application/msword',
        'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
        'text/plain',
        'text/csv',
        'application/zip',
        'application/x-zip-compressed',
    ],
    'image': ['image/jpeg', 'image/jpg', 'image/png', 'image/webp', 'image/gif', 'image/svg+xml'],
    'avatar': ['image/jpeg', 'image/jpg', 'image/png', 'image/webp'],
    'audio': ['audio/mpeg', 'audio/wav', 'audio/ogg', 'audio/mp4', 'audio/aac', 'audio/flac', 'audio/x-wav', 'audio/x-m4a'],
}

DEFAULT_SIZE_LIMITS = {
    'file': 10240,
    'image': 5120,
    'audio': 51200,
}

MIME_TYPES_BY_EXTENSION = {
    'pdf': ['application/pdf'],
    'doc': ['application/msword'],
    'docx': ['application/vnd.openxmlformats-officedocument.wordprocessingml.document'],
    'txt': ['text/plain'],
    'csv': ['text/csv'],
    'zip': ['application/zip', 'application/x-zip-compressed'],
    'jpg': ['image/jpeg'],
    'jpeg': ['image/jpeg'],
    'png': ['image/png'],
    'gif': ['image/gif'],
    'svg': ['image/svg+xml'],
    'mp4': ['video/mp4'],
    'avi': ['video/x-msvideo'],
    'mov': ['video/quicktime'],
    'mp3': ['audio/mpeg'],
    'wav': ['audio/wav'],
    'ogg': ['audio/ogg'],
}


def media_library_setting(key, kind=None, default=None):
    """
    Read `ADMIN_PANEL_MEDIA_LIBRARY[key]`, or `ADMIN_PANEL_MEDIA_LIBRARY[key][kind]` when `kind` is given.
    """
    value = (setting('MEDIA_LIBRARY') or {}).get(key)
    if kind is not None:
        value = (value or {}).get(kind)
    return default if value is None else value


def human_readable_size(size):
    """
    `1536` -> `'1.5 KB'`
    """
    size = int(size or 0)
    if size <= 0:
        return '0 B'
    units = ['B', 'KB', 'MB', 'GB', 'TB']
    power = 0
    while size >= 1024 ** (power + 1) and power < len(units) - 1:
        power += 1
    return f'{round(size / 1024 ** power, 2):g} {units[power]}'


def human_readable_duration(seconds):
    """
    `150` -> `'2:30'`, `5445` -> `'1:30:45'`
    """
    seconds = int(seconds or 0)
    hours, rest = divmod(seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    if hours:
        return f'{hours}:{minutes:02}:{seconds:02}'
    return f'{minutes}:{seconds:02}'


def media_metadata(media, default_mime_type='application/octet-stream'):
    if media is None:
        return {}
    size = data_get(media, 'size') or 0
    return {
        'name': data_get(media, 'name') or data_get(media, 'file_name') or 'Unknown',
        'size': size,
        'mime_type': data_get(media, 'mime_type') or default_mime_type,
        'created_at': data_get(media, 'created_at'),
        'human_readable_size': human_readable_size(size),
    }


def has_url(media):
    return media is not None and callable(getattr(media, 'get_url', None))


class MediaLibraryField(Field):
    """
    Files kept in a media library collection on the model rather than in a column. The model is
    expected to provide `get_media(collection)`, `add_media(file, collection=..., disk=...)` and
    `clear_media_collection(collection)`. Each media item has `get_url(conversion='')`.

    .. code:: python

        MediaLibraryField('Gallery', collection='photos', multiple=True).accepts_mime_types(['image/jpeg'])
    """

    collection: str = Refinable()
    disk: str = Refinable()
    accepted_mime_types: List[str] = Refinable()
    max_file_size: Optional[int] = Refinable()
    multiple: bool = Refinable()
    single_file: bool = Refinable()
    conversions: Dict[str, dict] = Refinable()
    responsive_images: bool = Refinable()
    enable_cropping: bool = Refinable()
    crop_aspect_ratio: Optional[str] = Refinable()
    show_image_dimensions: bool = Refinable()
    fallback_url: Optional[str] = Refinable()
    fallback_path: Optional[str] = Refinable()

    class Meta:
        collection = 'default'
        multiple = False
        responsive_images = False
        enable_cropping = False
        show_image_dimensions = False

    def on_refine(self, refined):
        super().on_refine(refined)
        if self.disk is None:
            self.disk = media_library_setting('default_disk', default='public')
        if self.accepted_mime_types is None:
            self.accepted_mime_types = []
        if self.conversions is None:
            self.conversions = {}
        if refined.get('single_file') is not None:
            self.multiple = not self.single_file
        if self.single_file is None:
            self.single_file = False

    def accepts_mime_types(self, mime_types):
        return self.refine(accepted_mime_types=list(mime_types))

    def get_media(self, resource):
        get_media = getattr(resource, 'get_media', None)
        if not callable(get_media):
            return None
        return list(get_media(self.collection))

    def resolve_attribute(self, resource, attribute):
        media = self.get_media(resource)
        if media is None:
            return super().resolve_attribute(resource, attribute)
        if self.single_file:
            return media[0] if media else None
        return media

    def fill_attribute_from_request(self, request, request_attribute, model, attribute):
        uploaded = request_file(request, request_attribute)
        if uploaded is None:
            return
        uploads = [x for x in (uploaded if isinstance(uploaded, list) else [uploaded]) if is_uploaded_file(x)]
        if not uploads:
            return

        if self.single_file:
            model.clear_media_collection(self.collection)
            uploads = uploads[:1]
        for upload in uploads:
            model.add_media(upload, collection=self.collection, disk=self.disk)
            log.debug('Added %s to the %s media collection on %s', upload.name, self.collection, self.disk)

    def get_media_url(self, media=None, conversion=''):
        media = self.value if media is None else media
        if not has_url(media):
            return None
        return media.get_url(conversion)

    def meta(self):
        return {
            **super().meta(),
            'collection': self.collection,
            'disk': self.disk,
            'acceptedMimeTypes': self.accepted_mime_types,
            'maxFileSize': self.max_file_size,
            'multiple': self.multiple,
            'singleFile': self.single_file,
            'conversions': self.conversions,
            'responsiveImages': self.responsive_images,
            'enableCropping': self.enable_cropping,
            'cropAspectRatio': self.crop_aspect_ratio,
            'showImageDimensions': self.show_image_dimensions,
            'fallbackUrl': self.fallback_url,
            'fallbackPath': self.fallback_path,
        }


class MediaLibraryFile(MediaLibraryField):
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
        collection = 'files'
        deletable = True
        prunable = False
        downloads_disabled = False

    def on_refine(self, refined):
        if 'accepted_mime_types' not in refined and not self.accepted_mime_types:
            self.accepted_mime_types = media_library_setting('accepted_mime_types', 'file', DEFAULT_MIME_TYPES['file'])
        if 'max_file_size' not in refined and self.max_file_size is None:
            self.max_file_size = media_library_setting('file_size_limits', 'file', DEFAULT_SIZE_LIMITS['file'])
        super().on_refine(refined)

    def accepted_types(self, extensions):
        """
        `'.pdf, .docx'` -> the matching MIME types
        """
        mime_types = []
        for extension in extensions.replace(' ', '').split(','):
            for mime_type in MIME_TYPES_BY_EXTENSION.get(extension.lstrip('.').lower(), ['application/octet-stream']):
                if mime_type not in mime_types:
                    mime_types.append(mime_type)
        return self.accepts_mime_types(mime_types)

    def disable_download(self):
        self.downloads_disabled = True
        return self

    def get_download_url(self, media=None):
        return self.get_media_url(media)

    def get_url(self, media=None):
        return self.get_download_url(media)

    def get_preview_url(self, media=None):
        if self.preview_callback is not None:
            return self.invoke(self.preview_callback, value=self.value if media is None else media, disk=self.disk)
        return self.get_download_url(media)

    def get_thumbnail_url(self, media=None):
        if self.thumbnail_callback is not None:
            return self.invoke(self.thumbnail_callback, value=self.value if media is None else media, disk=self.disk)
        return self.get_download_url(media)

    def get_download_response(self, request, model):
        if self.downloads_disabled:
            return None
        if self.download_callback is not None:
            return self.invoke(self.download_callback, request=request, model=model, disk=self.disk, path=self.value)
        url = self.get_download_url()
        if url is None:
            return None
        return HttpResponseRedirect(url)

    def get_file_metadata(self, media=None):
        return media_metadata(self.value if media is None else media)

    def meta(self):
        return {
            **super().meta(),
            'originalNameColumn': self.original_name_column,
            'sizeColumn': self.size_column,
            'deletable': self.deletable,
            'prunable': self.prunable,
            'downloadsDisabled': self.downloads_disabled,
            'downloadUrl': self.get_download_url(),
            'previewUrl': self.get_preview_url(),
            'thumbnailUrl': self.get_thumbnail_url(),
            'fileMetadata': self.get_file_metadata(),
        }


class MediaLibraryImage(MediaLibraryField):
    class Meta:
        collection = 'images'
        responsive_images = True
        enable_cropping = True
        show_image_dimensions = True

    def on_refine(self, refined):
        if 'accepted_mime_types' not in refined and not self.accepted_mime_types:
            self.accepted_mime_types = media_library_setting('accepted_mime_types', 'image', DEFAULT_MIME_TYPES['image'])
        if 'max_file_size' not in refined and self.max_file_size is None:
            self.max_file_size = media_library_setting('file_size_limits', 'image', DEFAULT_SIZE_LIMITS['image'])
        if 'conversions' not in refined and not self.conversions:
            self.conversions = {
                'thumb': {'width': 150, 'height': 150, 'fit': 'crop'},
                'medium': {'width': 500, 'height': 500, 'fit': 'contain'},
                'large': {'width': 1200, 'height': 1200, 'quality': 90},
            }
        super().on_refine(refined)

    def get_image_url(self, media=None, conversion=''):
        return self.get_media_url(media, conversion) or self.fallback_url

    def get_thumbnail_url(self, media=None, conversion='thumb'):
        return self.get_media_url(media, conversion)

    def get_preview_url(self, media=None, conversion='medium'):
        return self.get_media_url(media, conversion)

    def get_responsive_image_urls(self, media=None):
        """
        `{width: url}` for each conversion that has a width.
        """
        media = self.value if media is None else media
        if not has_url(media):
            return {}
        return {
            conversion['width']: media.get_url(name)
            for name, conversion in self.conversions.items()
            if 'width' in conversion
        }

    def get_srcset(self, media=None):
        return ', '.join(f'{url} {width}w' for width, url in self.get_responsive_image_urls(media).items())

    def get_file_metadata(self, media=None):
        media = self.value if media is None else media
        result = media_metadata(media, default_mime_type='image/jpeg')
        if result:
            custom_properties = data_get(media, 'custom_properties') or {}
            result['width'] = custom_properties.get('width')
            result['height'] = custom_properties.get('height')
        return result

    def meta(self):
        return {
            **super().meta(),
            'thumbnailUrl': self.get_thumbnail_url(),
            'previewUrl': self.get_preview_url(),
            'srcset': self.get_srcset(),
        }


class MediaLibraryAvatar(MediaLibraryImage):
    class Meta:
        collection = 'avatars'
        single_file = True
        enable_cropping = True
        crop_aspect_ratio = '1:1'
        fallback_url = '/images/default-avatar.png'

    def on_refine(self, refined):
        if 'accepted_mime_types' not in refined and not self.accepted_mime_types:
            self.accepted_mime_types = media_library_setting('accepted_mime_types', 'avatar', DEFAULT_MIME_TYPES['avatar'])
        if 'conversions' not in refined and not self.conversions:
            self.conversions = {
                'thumb': {'width': 64, 'height': 64, 'fit': 'crop'},
                'medium': {'width': 150, 'height': 150, 'fit': 'crop'},
                'large': {'width': 400, 'height': 400, 'fit': 'crop'},
            }
        super().on_refine(refined)

    def get_avatar_url(self, media=None, conversion='medium'):
        return self.get_image_url(media, conversion)

    def has_avatar(self, media=None):
        return has_url(self.value if media is None else media)

    def get_avatar_sizes(self, media=None):
        return {
            name: {
                'width': conversion.get('width'),
                'height': conversion.get('height'),
                'url': self.get_avatar_url(media, name),
            }
            for name, conversion in self.conversions.items()
        }

    def get_avatar_metadata(self, media=None):
        media = self.value if media is None else media
        urls = {name: self.get_avatar_url(media, name) for name in self.conversions}
        if not has_url(media):
            return {
                'has_avatar': False,
                'fallback_url': self.fallback_url,
                'urls': urls,
            }
        return {
            'has_avatar': True,
            **self.get_file_metadata(media),
            'urls': urls,
        }

    def meta(self):
        return {
            **super().meta(),
            'avatarUrl': self.get_avatar_url(),
            'hasAvatar': self.has_avatar(),
        }


class MediaLibraryAudio(MediaLibraryField):
    PRELOAD_NONE = PRELOAD_NONE
    PRELOAD_METADATA = PRELOAD_METADATA
    PRELOAD_AUTO = PRELOAD_AUTO

    preload_attribute: str = Refinable()
    downloads_disabled: bool = Refinable()

    class Meta:
        collection = 'audio'
        single_file = True
        preload_attribute = PRELOAD_METADATA
        downloads_disabled = False

    def on_refine(self, refined):
        if 'accepted_mime_types' not in refined and not self.accepted_mime_types:
            self.accepted_mime_types = media_library_setting('accepted_mime_types', 'audio', DEFAULT_MIME_TYPES['audio'])
        if 'max_file_size' not in refined and self.max_file_size is None:
            self.max_file_size = media_library_setting('file_size_limits', 'audio', DEFAULT_SIZE_LIMITS['audio'])
        super().on_refine(refined)
        if self.preload_attribute not in (PRELOAD_NONE, PRELOAD_METADATA, PRELOAD_AUTO):
            raise ValueError(f'Invalid preload value "{self.preload_attribute}". Use one of "none", "metadata" or "auto".')

    def preload(self, preload):
        return self.refine(preload_attribute=preload)

    def get_preload_attribute(self):
        return self.preload_attribute

    def disable_downloads(self):
        self.downloads_disabled = True
        return self

    def downloads_are_disabled(self):
        return self.downloads_disabled

    def get_audio_url(self, media=None):
        return self.get_media_url(media)

    def get_audio_metadata(self, media=None):
        media = self.value if media is None else media
        result = media_metadata(media, default_mime_type='audio/mpeg')
        if result:
            custom_properties = data_get(media, 'custom_properties') or {}
            duration = custom_properties.get('duration')
            if duration is not None:
                result['duration'] = duration
                result['formatted_duration'] = human_readable_duration(duration)
            for key in ('bitrate', 'sample_rate'):
                if key in custom_properties:
                    result[key] = custom_properties[key]
        return result

    def meta(self):
        return {
            **super().meta(),
            'preload': self.preload_attribute,
            'downloadsDisabled': self.downloads_disabled,
            'audioUrl': self.get_audio_url(),
            'audioMetadata': self.get_audio_metadata(),
        }
