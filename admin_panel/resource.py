import logging
from typing import (
    List,
    Type,
)

from django.db.models import (
    Model,
    Q,
)
from django.utils.text import slugify

from admin_panel._web_compat import (
    ImproperlyConfigured,
    import_string,
)
from admin_panel.base import (
    capitalize,
    data_get,
    human_readable,
)
from admin_panel.field import Field

log = logging.getLogger(__name__)


class Resource:
    """
    Wraps a model class for the admin panel: how instances are titled and searched, and which fields
    are shown. Subclass it and override `fields`:

    .. code:: python

        class Post(Resource):
            model = models.Post
            title_attribute = 'title'
            search = ('title', 'body')

            def fields(self, request):
                return [
                    ID(),
                    Text('Title').required(),
                    BelongsTo('Category'),
                ]
    """

    model: Type[Model] = None
    title_attribute = 'id'
    subtitle_attribute = None
    search = ()
    per_page_via_relationship = 5

    def __init__(self, instance=None):
        self.instance = instance

    def __repr__(self):
        return f'<{type(self).__name__} {self.get_key()}>'

    @classmethod
    def label(cls):
        if cls.model is not None:
            return capitalize(str(cls.model._meta.verbose_name_plural))
        return f'{human_readable(cls.__name__)}s'

    @classmethod
    def singular_label(cls):
        if cls.model is not None:
            return capitalize(str(cls.model._meta.verbose_name))
        return human_readable(cls.__name__)

    @classmethod
    def uri_key(cls):
        return slugify(cls.label())

    def title(self):
        return str(data_get(self.instance, self.title_attribute))

    def subtitle(self):
        if self.subtitle_attribute is None:
            return None
        value = data_get(self.instance, self.subtitle_attribute)
        return None if value is None else str(value)

    def get_key(self):
        return getattr(self.instance, 'pk', None)

    # Fields

    def fields(self, request) -> List[Field]:
        return []

    def available_fields(self, request):
        return [field for field in self.fields(request) if field.authorized_to_see(request)]

    def index_fields(self, request):
        return [field for field in self.available_fields(request) if field.is_shown_on_index()]

    def detail_fields(self, request):
        return [field for field in self.available_fields(request) if field.is_shown_on_detail()]

    def creation_fields(self, request):
        return [field for field in self.available_fields(request) if field.show_on_creation]

    def update_fields(self, request):
        return [field for field in self.available_fields(request) if field.show_on_update]

    def resolve_fields(self, request):
        fields = self.available_fields(request)
        for field in fields:
            field.resolve(self.instance)
        return fields

    def resolve_fields_for_display(self, instance, request):
        result = []
        for field in self.available_fields(request):
            field.resolve_for_display(instance)
            result.append(field.json_serialize())
        return result

    def fill(self, request, instance):
        """
        Fill `instance` from the request with the update fields when it is saved already, else with the
        creation fields. Readonly fields and fields the user may not update are skipped.
        """
        fields = self.update_fields(request) if getattr(instance, 'pk', None) is not None else self.creation_fields(request)
        for field in fields:
            if field.readonly or not field.authorized_to_update(request):
                continue
            field.fill(request, instance)
        return instance

    # Querying

    @classmethod
    def searchable_columns(cls):
        return list(cls.search)

    @classmethod
    def search_query(cls, queryset, search):
        if not search:
            return queryset
        columns = cls.searchable_columns()
        if not columns:
            return queryset
        q = Q()
        for column in columns:
            q |= Q(**{f'{column}__icontains': search})
        return queryset.filter(q)

    @classmethod
    def new_query(cls):
        if cls.model is None:
            raise ImproperlyConfigured(f'{cls.__name__} has no model')
        return cls.model._default_manager.all()

    @classmethod
    def relatable_query(cls, request, queryset):
        return queryset


def resource_class_path(resource_class):
    if resource_class is None or isinstance(resource_class, str):
        return resource_class
    return f'{resource_class.__module__}.{resource_class.__qualname__}'


def get_resource_class(resource_class):
    """
    Resolve a resource class given as a class or as a dotted path.
    """
    if not isinstance(resource_class, str):
        return resource_class
    try:
        return import_string(resource_class)
    except ImportError as e:
        log.warning('Could not import resource class %s', resource_class)
        raise ImproperlyConfigured(f'Could not import resource class "{resource_class}"') from e
