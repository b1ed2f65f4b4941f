import logging
from typing import (
    Any,
    Callable,
    List,
    Optional,
    Union,
)

from django.core.paginator import Paginator
from django.db.models import Model
from django.db.models.signals import post_save
from tri_declarative import Refinable

from admin_panel._web_compat import (
    request_has,
    request_input,
)
from admin_panel.base import (
    data_get,
    data_set,
    setting,
    studly,
)
from admin_panel.field import Field
from admin_panel.resource import (
    get_resource_class,
    resource_class_path,
)

log = logging.getLogger(__name__)


def guess_resource_class(name):
    return f'{setting("RESOURCE_MODULE", "admin_panel_resources")}.{name}'


def single(related):
    """
    A related object, or the first object of a related manager or queryset.
    """
    if related is None or isinstance(related, Model):
        return related
    first = getattr(related, 'first', None)
    if callable(first):
        return first()
    return related


def count(related):
    if related is None:
        return 0
    if hasattr(related, 'count') and not isinstance(related, (list, tuple)):
        return related.count()
    return len(related)


def paginate(queryset, request, per_page):
    if hasattr(queryset, 'ordered') and not queryset.ordered:
        queryset = queryset.order_by('pk')
    paginator = Paginator(queryset, request_input(request, 'perPage') or per_page)
    page = paginator.get_page(request_input(request, 'page') or 1)
    return {
        'data': list(page.object_list),
        'meta': {
            'current_page': page.number,
            'last_page': paginator.num_pages,
            'per_page': paginator.per_page,
            'total': paginator.count,
        },
    }


class Relation(Field):
    """
    Base for the relationship fields. `resource_class` is a resource class or a dotted path to one.
    When it is not given it is guessed from the attribute: `BelongsTo('Blog Category')` looks for
    `<ADMIN_PANEL_RESOURCE_MODULE>.BlogCategory`.
    """

    resource_class: Union[type, str] = Refinable()
    relationship_name: str = Refinable()
    query_callback: Optional[Callable] = Refinable()

    def on_refine(self, refined):
        super().on_refine(refined)
        if self.resource_class is None:
            self.resource_class = self.guess_resource_class()
        if self.relationship_name is None:
            self.relationship_name = self.attribute
        for k in ('searchable', 'show_create_relation_button', 'peekable'):
            if callable(refined.get(k)):
                setattr(self, k, bool(self.invoke(refined[k])))

    def guess_resource_class(self):
        return guess_resource_class(studly(self.attribute))

    def resource(self, resource_class):
        return self.refine(resource_class=resource_class)

    def relationship(self, relationship_name):
        return self.refine(relationship_name=relationship_name)

    def get_resource_class(self):
        return get_resource_class(self.resource_class)

    def get_resource_class_path(self):
        return resource_class_path(self.resource_class)

    def title_for(self, related):
        return self.get_resource_class()(related).title()

    def related(self, resource):
        return data_get(resource, self.relationship_name)

    def related_queryset(self, request, parent):
        queryset = self.related(parent).all()
        if self.query_callback is not None:
            queryset = self.invoke(self.query_callback, request=request, queryset=queryset)
        return queryset

    def search(self, request, queryset):
        return self.get_resource_class().search_query(queryset, request_input(request, 'search'))

    def fill_attribute_from_request(self, request, request_attribute, model, attribute):
        pass

    def meta(self):
        return {
            **super().meta(),
            'resourceClass': self.get_resource_class_path(),
            'relationshipName': self.relationship_name,
        }


class BelongsTo(Relation):
    """
    A foreign key. The value is the related object's title, from the `display_callback` when given
    (called with `value` set to the related object), else from its resource.
    """

    foreign_key: Optional[str] = Refinable()
    owner_key: Optional[str] = Refinable()
    show_create_button: bool = Refinable()

    class Meta:
        searchable = True
        show_create_button = False

    def resolve_attribute(self, resource, attribute):
        related = self.related(resource)
        if related is None:
            return None
        if self.display_callback is not None:
            return self.invoke(self.display_callback, value=related, resource=resource, attribute=attribute)
        return self.title_for(related)

    def display(self, value, resource, attribute=None):
        return value

    def fill_attribute_from_request(self, request, request_attribute, model, attribute):
        if not request_has(request, request_attribute):
            return
        value = request_input(request, request_attribute)
        data_set(model, self.foreign_key or f'{attribute}_id', None if value == '' else value)

    def get_options(self, request):
        resource_class = self.get_resource_class()
        queryset = resource_class.relatable_query(request, resource_class.new_query())
        if self.query_callback is not None:
            queryset = self.invoke(self.query_callback, request=request, queryset=queryset)
        if self.searchable:
            queryset = self.search(request, queryset)
        return [
            {
                'value': data_get(instance, self.owner_key or 'pk'),
                'label': resource_class(instance).title(),
            }
            for instance in queryset
        ]

    def meta(self):
        return {
            **super().meta(),
            'foreignKey': self.foreign_key,
            'ownerKey': self.owner_key,
            'searchable': self.searchable,
            'showCreateButton': self.show_create_button,
        }


class HasOne(Relation):
    foreign_key: Optional[str] = Refinable()
    local_key: Optional[str] = Refinable()
    is_of_many: bool = Refinable()
    of_many_relationship: Optional[str] = Refinable()
    of_many_resource_class: Union[type, str, None] = Refinable()

    class Meta:
        is_of_many = False

    def of_many(self, relationship, resource_class):
        return self.refine(is_of_many=True, of_many_relationship=relationship, of_many_resource_class=resource_class)

    def resolve_attribute(self, resource, attribute):
        if self.is_of_many:
            related = single(data_get(resource, self.of_many_relationship))
            resource_class = self.of_many_resource_class or self.resource_class
        else:
            related = single(self.related(resource))
            resource_class = self.resource_class

        if related is None:
            return {
                'id': None,
                'title': None,
                'resource_class': resource_class_path(resource_class),
                'exists': False,
            }
        return {
            'id': related.pk,
            'title': get_resource_class(resource_class)(related).title(),
            'resource_class': resource_class_path(resource_class),
            'exists': True,
        }

    def meta(self):
        return {
            **super().meta(),
            'foreignKey': self.foreign_key,
            'localKey': self.local_key,
            'isOfMany': self.is_of_many,
            'ofManyRelationship': self.of_many_relationship,
            'ofManyResourceClass': resource_class_path(self.of_many_resource_class),
        }


class HasOneThrough(HasOne):
    through: Optional[str] = Refinable()
    first_key: Optional[str] = Refinable()
    second_key: Optional[str] = Refinable()
    second_local_key: Optional[str] = Refinable()

    def meta(self):
        return {
            **super().meta(),
            'through': self.through,
            'firstKey': self.first_key,
            'secondKey': self.second_key,
            'secondLocalKey': self.second_local_key,
        }


class MorphOne(HasOne):
    morph_type: Optional[str] = Refinable()
    morph_id: Optional[str] = Refinable()

    def meta(self):
        return {
            **super().meta(),
            'morphType': self.morph_type,
            'morphId': self.morph_id,
        }


class CollectionRelation(Relation):
    """
    Base for relationships to many objects. These are shown on the detail view only. Setting
    `collapsed_by_default` also makes the field `collapsable`.
    """

    with_subtitles: bool = Refinable()
    collapsable: bool = Refinable()
    collapsed_by_default: bool = Refinable()
    show_create_relation_button: bool = Refinable()
    modal_size: Optional[str] = Refinable()
    per_page: int = Refinable()

    class Meta:
        show_on_index = False
        show_on_creation = False
        show_on_update = False
        with_subtitles = False
        collapsable = False
        collapsed_by_default = False
        show_create_relation_button = False
        per_page = 15

    def on_refine(self, refined):
        super().on_refine(refined)
        if self.collapsed_by_default:
            self.collapsable = True

    def hide_create_relation_button(self):
        return self.refine(show_create_relation_button=False)

    def resolve_attribute(self, resource, attribute):
        return {
            'count': count(self.related(resource)),
            'resource_id': getattr(resource, 'pk', None),
            'resource_class': self.get_resource_class_path(),
        }

    def get_related_models(self, request, parent):
        queryset = self.related_queryset(request, parent)
        if self.searchable and request_input(request, 'search'):
            queryset = self.search(request, queryset)
        return paginate(queryset, request, self.per_page)

    def meta(self):
        return {
            **super().meta(),
            'searchable': self.searchable,
            'withSubtitles': self.with_subtitles,
            'collapsable': self.collapsable,
            'collapsedByDefault': self.collapsed_by_default,
            'showCreateRelationButton': self.show_create_relation_button,
            'modalSize': self.modal_size,
            'perPage': self.per_page,
        }


class HasMany(CollectionRelation):
    foreign_key: Optional[str] = Refinable()
    local_key: Optional[str] = Refinable()
    show_create_button: bool = Refinable()
    show_attach_button: bool = Refinable()
    display_fields: List[str] = Refinable()

    class Meta:
        searchable = True
        show_create_button = True
        show_attach_button = False
        per_page = 10

    def on_refine(self, refined):
        super().on_refine(refined)
        if self.display_fields is None:
            self.display_fields = []

    def meta(self):
        return {
            **super().meta(),
            'foreignKey': self.foreign_key,
            'localKey': self.local_key,
            'showCreateButton': self.show_create_button,
            'showAttachButton': self.show_attach_button,
            'displayFields': self.display_fields,
        }


class HasManyThrough(CollectionRelation):
    through: Optional[str] = Refinable()
    first_key: Optional[str] = Refinable()
    second_key: Optional[str] = Refinable()
    local_key: Optional[str] = Refinable()
    second_local_key: Optional[str] = Refinable()

    def resolve_attribute(self, resource, attribute):
        return {
            **super().resolve_attribute(resource, attribute),
            'through': self.through,
        }

    def meta(self):
        return {
            **super().meta(),
            'through': self.through,
            'firstKey': self.first_key,
            'secondKey': self.second_key,
            'localKey': self.local_key,
            'secondLocalKey': self.second_local_key,
        }


class MorphMany(HasMany):
    morph_type: Optional[str] = Refinable()
    morph_id: Optional[str] = Refinable()

    def meta(self):
        return {
            **super().meta(),
            'morphType': self.morph_type,
            'morphId': self.morph_id,
        }


class BelongsToMany(CollectionRelation):
    """
    A many to many relationship, with optional extra columns on the through model (the pivot).

    `attach_models` and `detach_models` go through the related manager. When
    `allow_duplicate_relations` is set, rows are created on the through model directly so the same
    object can be attached more than once.
    """

    table: Optional[str] = Refinable()
    foreign_pivot_key: Optional[str] = Refinable()
    related_pivot_key: Optional[str] = Refinable()
    parent_key: Optional[str] = Refinable()
    related_key: Optional[str] = Refinable()
    pivot_fields: List[Any] = Refinable()
    pivot_computed_fields: List[Any] = Refinable()
    pivot_actions: List[Any] = Refinable()
    allow_duplicate_relations: bool = Refinable()
    reorder_attachables: bool = Refinable()

    class Meta:
        allow_duplicate_relations = False
        reorder_attachables = True

    def on_refine(self, refined):
        super().on_refine(refined)
        for k in ('pivot_fields', 'pivot_computed_fields', 'pivot_actions'):
            if getattr(self, k) is None:
                setattr(self, k, [])

    def dont_reorder_attachables(self):
        return self.refine(reorder_attachables=False)

    def resolve_attribute(self, resource, attribute):
        return {
            **super().resolve_attribute(resource, attribute),
            'pivot_fields': self.pivot_fields,
            'pivot_computed_fields': self.pivot_computed_fields,
            'pivot_actions': self.pivot_actions,
        }

    def manager(self, parent):
        return getattr(parent, self.relationship_name)

    def attachable_queryset(self, request, parent):
        manager = self.manager(parent)
        queryset = manager.model._default_manager.all()
        if self.query_callback is not None:
            queryset = self.invoke(self.query_callback, request=request, queryset=queryset)
        if not self.allow_duplicate_relations:
            queryset = queryset.exclude(pk__in=manager.values('pk'))
        if request_input(request, 'search'):
            queryset = self.search(request, queryset)
        return queryset

    def get_attachable_models(self, request, parent):
        return paginate(self.attachable_queryset(request, parent), request, self.per_page)

    def attach_models(self, request, parent, model_ids, pivot_data=None):
        manager = self.manager(parent)
        pivot_data = pivot_data or {}
        if self.allow_duplicate_relations:
            for model_id in model_ids:
                manager.through._default_manager.create(**{
                    manager.source_field_name: parent,
                    f'{manager.target_field_name}_id': model_id,
                    **pivot_data,
                })
        else:
            manager.add(*model_ids, through_defaults=pivot_data)
        log.debug('Attached %s to %s via %s', list(model_ids), parent, self.relationship_name)

    def detach_models(self, request, parent, model_ids):
        self.manager(parent).remove(*model_ids)
        log.debug('Detached %s from %s via %s', list(model_ids), parent, self.relationship_name)

    def update_pivot(self, request, parent, related_id, pivot_data):
        manager = self.manager(parent)
        return manager.through._default_manager.filter(**{
            manager.source_field_name: parent,
            manager.target_field_name: related_id,
        }).update(**pivot_data)

    def meta(self):
        return {
            **super().meta(),
            'table': self.table,
            'foreignPivotKey': self.foreign_pivot_key,
            'relatedPivotKey': self.related_pivot_key,
            'parentKey': self.parent_key,
            'relatedKey': self.related_key,
            'reorderAttachables': self.reorder_attachables,
            'allowDuplicateRelations': self.allow_duplicate_relations,
            'pivotFields': self.pivot_fields,
            'pivotComputedFields': self.pivot_computed_fields,
            'pivotActions': self.pivot_actions,
        }


class ManyToMany(BelongsToMany):
    pivot_table: Optional[str] = Refinable()
    show_attach_button: bool = Refinable()
    show_detach_button: bool = Refinable()

    class Meta:
        searchable = True
        show_attach_button = True
        show_detach_button = True

    def get_attachable_options(self, request, parent):
        resource_class = self.get_resource_class()
        return [
            {
                'value': instance.pk,
                'label': (
                    self.invoke(self.display_callback, value=instance, resource=parent, attribute=self.attribute)
                    if self.display_callback is not None
                    else resource_class(instance).title()
                ),
            }
            for instance in self.attachable_queryset(request, parent)
        ]

    def meta(self):
        return {
            **super().meta(),
            'pivotTable': self.pivot_table,
            'showAttachButton': self.show_attach_button,
            'showDetachButton': self.show_detach_button,
        }


class MorphToMany(BelongsToMany):
    morph_type: Optional[str] = Refinable()
    morph_id: Optional[str] = Refinable()
    local_key: Optional[str] = Refinable()
    pivot_table: Optional[str] = Refinable()

    def meta(self):
        return {
            **super().meta(),
            'morphType': self.morph_type,
            'morphId': self.morph_id,
            'localKey': self.local_key,
            'pivotTable': self.pivot_table,
        }


class MorphTo(Relation):
    """
    The owning side of a generic relation. `types` lists the resource classes the related object can
    be; the one whose `model` matches is used for the title.
    """

    types: List[Union[type, str]] = Refinable()
    morph_type: Optional[str] = Refinable()
    morph_id: Optional[str] = Refinable()
    peekable: bool = Refinable()
    default_value: Any = Refinable()
    default_resource_class: Union[type, str, None] = Refinable()
    with_subtitles: bool = Refinable()
    show_create_relation_button: bool = Refinable()
    modal_size: Optional[str] = Refinable()

    class Meta:
        peekable = True
        with_subtitles = False
        show_create_relation_button = False

    def on_refine(self, refined):
        super().on_refine(refined)
        if self.types is None:
            self.types = []

    def no_peeking(self):
        return self.refine(peekable=False)

    def hide_create_relation_button(self):
        return self.refine(show_create_relation_button=False)

    def resource_class_for(self, instance):
        for resource_class in self.types:
            resource_class = get_resource_class(resource_class)
            if resource_class.model is type(instance):
                return resource_class
        return None

    def resolve_attribute(self, resource, attribute):
        related = self.related(resource)
        if related is None:
            return {
                'id': self.default_value,
                'title': None,
                'resource_class': resource_class_path(self.default_resource_class),
                'morph_type': None,
                'exists': False,
            }

        resource_class = self.resource_class_for(related)
        return {
            'id': related.pk,
            'title': resource_class(related).title() if resource_class is not None else f'#{related.pk}',
            'resource_class': resource_class_path(resource_class),
            'morph_type': related._meta.label_lower,
            'exists': True,
        }

    def meta(self):
        return {
            **super().meta(),
            'morphType': self.morph_type,
            'morphId': self.morph_id,
            'types': [resource_class_path(x) for x in self.types],
            'nullable': self.nullable,
            'peekable': self.peekable,
            'defaultValue': self.default_value,
            'defaultResourceClass': resource_class_path(self.default_resource_class),
            'searchable': self.searchable,
            'withSubtitles': self.with_subtitles,
            'showCreateRelationButton': self.show_create_relation_button,
            'modalSize': self.modal_size,
        }


class Tag(Relation):
    """
    Related objects shown as a list of tags. The resource class is guessed from the singular of the
    name: `Tag('Tags')` looks for `<ADMIN_PANEL_RESOURCE_MODULE>.Tag`.
    """

    with_preview: bool = Refinable()
    display_as_list: bool = Refinable()
    show_create_relation_button: bool = Refinable()
    modal_size: str = Refinable()
    preload: bool = Refinable()

    class Meta:
        with_preview = False
        display_as_list = False
        show_create_relation_button = False
        modal_size = 'md'
        preload = False
        searchable = True

    title_attributes = ('title', 'name', 'label')
    subtitle_attributes = ('subtitle', 'description', 'summary')
    image_attributes = ('image', 'avatar', 'photo', 'thumbnail')

    def guess_resource_class(self):
        name = studly(self.name)
        return guess_resource_class(name[:-1] if name.endswith('s') else name)

    @staticmethod
    def first_value(instance, attributes):
        for attribute in attributes:
            value = getattr(instance, attribute, None)
            if value is not None and value != '':
                return str(value)
        return None

    def get_display_value(self, instance):
        return self.first_value(instance, self.title_attributes) or f'Tag #{instance.pk}'

    def tag(self, instance):
        return {
            'id': instance.pk,
            'title': self.get_display_value(instance),
            'subtitle': self.first_value(instance, self.subtitle_attributes),
            'image': self.first_value(instance, self.image_attributes),
        }

    def resolve_attribute(self, resource, attribute):
        related = self.related(resource)
        tags = [] if related is None else [self.tag(x) for x in related.all()]
        return {
            'tags': tags,
            'count': len(tags),
            'resource_id': getattr(resource, 'pk', None),
            'resource_class': self.get_resource_class_path(),
        }

    def fill_attribute_from_request(self, request, request_attribute, model, attribute):
        value = request_input(request, request_attribute)
        if not isinstance(value, (list, tuple)):
            return
        if getattr(model, 'pk', None) is None:
            self.sync_tags_after_save(request, model, list(value))
        else:
            self.sync_tags(request, model, value)

    def get_available_tags(self, request, parent=None):
        resource_class = self.get_resource_class()
        queryset = resource_class.relatable_query(request, resource_class.new_query())
        if self.query_callback is not None:
            queryset = self.invoke(self.query_callback, request=request, queryset=queryset)
        if self.searchable:
            queryset = self.search(request, queryset)
        return [self.tag(x) for x in queryset[:50]]

    def attach_tags(self, request, parent, tag_ids):
        getattr(parent, self.relationship_name).add(*tag_ids)

    def detach_tags(self, request, parent, tag_ids):
        getattr(parent, self.relationship_name).remove(*tag_ids)

    def sync_tags(self, request, parent, tag_ids):
        getattr(parent, self.relationship_name).set(tag_ids)
        log.debug('Synced %s tags on %s to %s', self.relationship_name, parent, list(tag_ids))

    def sync_tags_after_save(self, request, parent, tag_ids):
        """
        A new model has no primary key to relate tags to yet, so the sync runs once it is saved.
        """

        def sync(sender, instance, **_):
            if instance is parent:
                post_save.disconnect(sync, sender=sender)
                self.sync_tags(request, instance, tag_ids)

        post_save.connect(sync, sender=type(parent), weak=False)

    def meta(self):
        return {
            **super().meta(),
            'withPreview': self.with_preview,
            'displayAsList': self.display_as_list,
            'showCreateRelationButton': self.show_create_relation_button,
            'modalSize': self.modal_size,
            'preload': self.preload,
            'searchable': self.searchable,
        }


__all__ = [
    'BelongsTo',
    'BelongsToMany',
    'HasMany',
    'HasManyThrough',
    'HasOne',
    'HasOneThrough',
    'ManyToMany',
    'MorphMany',
    'MorphOne',
    'MorphTo',
    'MorphToMany',
    'Tag',
]
