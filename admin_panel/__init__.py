__version__ = '1.0.0'

from django.core.exceptions import ImproperlyConfigured

from admin_panel.base import MISSING
from admin_panel.choice import (
    Badge,
    Boolean,
    BooleanGroup,
    KeyValue,
    MultiSelect,
    Select,
    Status,
    Timezone,
)
from admin_panel.dates import (
    Date,
    DateTime,
)
from admin_panel.field import Field
from admin_panel.files import (
    Audio,
    Avatar,
    File,
    Gravatar,
    Image,
)
from admin_panel.layout import (
    Heading,
    Line,
    Stack,
)
from admin_panel.media_library import (
    MediaLibraryAudio,
    MediaLibraryAvatar,
    MediaLibraryField,
    MediaLibraryFile,
    MediaLibraryImage,
)
from admin_panel.relations import (
    BelongsTo,
    BelongsToMany,
    HasMany,
    HasManyThrough,
    HasOne,
    HasOneThrough,
    ManyToMany,
    MorphMany,
    MorphOne,
    MorphTo,
    MorphToMany,
    Tag,
)
from admin_panel.resource import Resource
from admin_panel.text import (
    ID,
    URL,
    Code,
    Color,
    Currency,
    Email,
    Hidden,
    Markdown,
    Number,
    Password,
    PasswordConfirmation,
    Slug,
    Text,
    Textarea,
)

__all__ = [
    'Audio',
    'Avatar',
    'Badge',
    'BelongsTo',
    'BelongsToMany',
    'Boolean',
    'BooleanGroup',
    'Code',
    'Color',
    'Currency',
    'Date',
    'DateTime',
    'Email',
    'Field',
    'File',
    'Gravatar',
    'HasMany',
    'HasManyThrough',
    'HasOne',
    'HasOneThrough',
    'Heading',
    'Hidden',
    'ID',
    'Image',
    'KeyValue',
    'Line',
    'Markdown',
    'MediaLibraryAudio',
    'MediaLibraryAvatar',
    'MediaLibraryField',
    'MediaLibraryFile',
    'MediaLibraryImage',
    'MISSING',
    'ManyToMany',
    'MorphMany',
    'MorphOne',
    'MorphTo',
    'MorphToMany',
    'MultiSelect',
    'Number',
    'Password',
    'PasswordConfirmation',
    'Resource',
    'Select',
    'Slug',
    'Stack',
    'Status',
    'Tag',
    'Text',
    'Textarea',
    'Timezone',
    'URL',
]


try:
    from django.conf import settings

    if 'admin_panel' not in settings.INSTALLED_APPS:
        raise Exception("You must add 'admin_panel' to INSTALLED_APPS")
except ImproperlyConfigured:
    pass
