import datetime
import json
import re
from collections import OrderedDict

import aniso8601

from .builder import RequestBuilder
from .config import config, service_config, make_schema
from .relations import Relation, HasOne, HasMany, BelongsTo
from .routes import RouteCollection
from .schema import schema_class_for
from .signals import before_create, after_create, before_update, after_update, before_delete, after_delete
from .transport import RequestsTransport
from .utils import AttributeDict, snake_case, json_default

_STANDARD_DATE = re.compile(r'^(\d{4})-(\d{1,2})-(\d{1,2})$')


class Collection(list):
    """
    An ordered list of models.
    """

    def first(self, default=None):
        return self[0] if self else default

    def keys(self):
        return [model.get_key() for model in self]

    def pluck(self, key):
        return [model.get_attribute(key) for model in self]

    def to_list(self):
        return [model.to_dict() for model in self]

    def __repr__(self):
        return '{}({})'.format(self.__class__.__name__, list.__repr__(self))


class ModelMeta(type):

    def __new__(mcs, name, bases, members):
        class_ = super(ModelMeta, mcs).__new__(mcs, name, bases, members)
        class_.meta = meta = AttributeDict()

        for base in reversed(bases):
            meta.update(getattr(base, 'meta', None) or {})

        if 'Meta' in members:
            for k, v in members['Meta'].__dict__.items():
                if not k.startswith('__'):
                    meta[k] = v

        class_.routes = class_.register_routes(RouteCollection())
        return class_


class _builder_method(object):
    """
    Forwards calls to a new request builder, from a model instance or from the model class.
    """

    def __init__(self, name):
        self.name = name

    def __get__(self, obj, owner):
        def method(*args, **kwargs):
            instance = obj if obj is not None else owner()
            return getattr(instance.new_request(), self.name)(*args, **kwargs)

        method.__name__ = self.name
        return method


class _route_method(object):

    def __init__(self, action):
        self.action = action

    def __get__(self, obj, owner):
        def method(request_options=None):
            instance = obj if obj is not None else owner()
            return instance.new_request().request(self.action, request_options)

        method.__name__ = self.action
        return method


class Model(object, metaclass=ModelMeta):
    """
    A model backed by a resource of a remote service.

    Models are configured using the ``Meta`` attribute:

    =====================  ==============================  ==============================================================================
    Attribute name         Default                         Description
    =====================  ==============================  ==============================================================================
    service                ``None``                        Name of the service in ``REMOTE_MODELS_SERVICES``
    base_uri               ``None``                        Base URI of the service; overrides the configured ``base_uri``
    path                   ``'/'``                         Path of the resource within the service
    primary_key            ``'id'``                        Name of the primary key attribute
    dates                  ``()``                          Attributes returned as :class:`datetime.datetime` instances
    fillable               ``()``                          If set, :meth:`fill` only sets these attributes
    routes                 ``{}``                          Additional routes as ``{name: (method, path)}``
    exclude_routes         ``()``                          Names of default routes to omit
    schema                 ``None``                        Schema options overriding the service configuration
    pagination             ``None``                        Name or class of the pagination; overrides the schema options
    =====================  ==============================  ==============================================================================

    The default routes are ``find``, ``list``, ``create``, ``update`` and ``delete``.

    Usage example:

    .. code-block:: python

        class Widget(Model):
            class Meta:
                service = 'inventory'
                path = '/widgets'
                dates = ('created_at',)
                routes = {'archive': ('POST', '/widgets/{id}/archive')}

        widget = Widget.find(7)
        widgets = Widget.where('color', 'blue').invoke('list')

    Attributes can be read and written as instance attributes or items. Methods and attributes of the
    class take precedence, so attributes sharing a name with one of them (e.g. ``path`` or ``body``) need to
    be accessed as items.
    """
    meta = None
    routes = None

    exists = False

    _default_transport = None

    class Meta:
        service = None
        base_uri = None
        path = '/'
        primary_key = 'id'
        dates = ()
        fillable = ()
        routes = {}
        exclude_routes = ()
        schema = None
        pagination = None

    def __init__(self, attributes=None, **kwargs):
        object.__setattr__(self, '_attributes', OrderedDict())
        object.__setattr__(self, '_relations', {})
        object.__setattr__(self, '_transport', None)

        self.fill(attributes or {})
        self.fill(kwargs)

    @classmethod
    def register_routes(cls, routes):
        """
        Registers the routes of the model. Override to change the default routes.

        :param routes.RouteCollection routes: an empty route collection
        :return: the route collection
        """
        path = cls.meta.path or '/'
        key_path = '{}/{{{}}}'.format(path.rstrip('/'), cls.meta.primary_key)

        defaults = (
            ('find', 'GET', key_path),
            ('list', 'GET', path),
            ('create', 'POST', path),
            ('update', 'PATCH', key_path),
            ('delete', 'DELETE', key_path),
        )

        for name, method, rule in defaults:
            if name not in cls.meta.exclude_routes:
                routes.add(name, method, rule)

        for name, (method, rule) in (cls.meta.routes or {}).items():
            routes.add(name, method, rule)
        return routes

    # attributes

    def get_attribute(self, key):
        """
        Returns the value of an attribute, casting dates, or the results of the relation named ``key``.
        """
        if key in self._attributes:
            value = self._attributes[key]
            if value is not None and key in self.meta.dates:
                return self.as_datetime(value)
            return value

        if key in self._relations:
            return self._relations[key]

        # methods of the model base class are not relations
        if hasattr(Model, key):
            return None

        method = getattr(self.__class__, key, None)
        if callable(method):
            relation = method(self)
            if isinstance(relation, Relation):
                self._relations[key] = result = relation.get_results()
                return result
        return None

    def set_attribute(self, key, value):
        self._attributes[key] = value
        return self

    def get_attributes(self):
        return OrderedDict(self._attributes)

    def fill(self, attributes):
        fillable = self.meta.fillable
        for key, value in attributes.items():
            if not fillable or key in fillable:
                self.set_attribute(key, value)
        return self

    def force_fill(self, attributes):
        for key, value in attributes.items():
            self.set_attribute(key, value)
        return self

    def set_relation(self, key, value):
        self._relations[key] = value
        return self

    def get_relations(self):
        return dict(self._relations)

    def as_datetime(self, value):
        if isinstance(value, datetime.datetime):
            return value

        if isinstance(value, datetime.date):
            return datetime.datetime.combine(value, datetime.time())

        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return datetime.datetime.fromtimestamp(value, datetime.timezone.utc)

        value = str(value)
        if value.isdigit():
            return datetime.datetime.fromtimestamp(int(value), datetime.timezone.utc)

        if _STANDARD_DATE.match(value):
            return datetime.datetime.combine(aniso8601.parse_date(value), datetime.time())

        return aniso8601.parse_datetime(value, delimiter='T' if 'T' in value else ' ')

    def to_dict(self):
        dct = OrderedDict()
        for key in self._attributes:
            dct[key] = self.get_attribute(key)

        for key, value in self._relations.items():
            if isinstance(value, Model):
                dct[key] = value.to_dict()
            elif isinstance(value, Collection):
                dct[key] = value.to_list()
            elif value is None:
                dct[key] = None
        return dct

    def to_json(self, **kwargs):
        return json.dumps(self.to_dict(), default=json_default, **kwargs)

    def __getattr__(self, name):
        if name.startswith('_'):
            raise AttributeError(name)
        try:
            attributes = object.__getattribute__(self, '_attributes')
        except AttributeError:
            raise AttributeError(name)

        if name in attributes:
            return self.get_attribute(name)
        raise AttributeError("'{}' object has no attribute '{}'".format(self.__class__.__name__, name))

    def __setattr__(self, name, value):
        if name.startswith('_') or name == 'exists':
            object.__setattr__(self, name, value)
        else:
            self.set_attribute(name, value)

    def __delattr__(self, name):
        if name in self._attributes:
            del self._attributes[name]
        else:
            object.__delattr__(self, name)

    def __getitem__(self, key):
        return self.get_attribute(key)

    def __setitem__(self, key, value):
        self.set_attribute(key, value)

    def __contains__(self, key):
        return key in self._attributes

    def __eq__(self, other):
        return type(self) is type(other) and self._attributes == other._attributes

    def __ne__(self, other):
        return not self == other

    __hash__ = object.__hash__

    def __repr__(self):
        return '<{} {}>'.format(self.__class__.__name__, dict(self._attributes))

    # keys

    def get_key_name(self):
        return self.meta.primary_key

    def get_key(self):
        return self.get_attribute(self.get_key_name())

    def get_foreign_key(self):
        return '{}_{}'.format(snake_case(self.__class__.__name__), self.get_key_name())

    # service

    def get_base_uri(self):
        if self.meta.base_uri is not None:
            return self.meta.base_uri
        return service_config(self.meta.service)['base_uri']

    def default_request_options(self):
        if self.meta.service is None:
            return {}
        return dict(service_config(self.meta.service).get('request_options') or {})

    @classmethod
    def set_default_transport(cls, transport):
        cls._default_transport = transport

    def set_transport(self, transport):
        self._transport = transport
        return self

    def get_transport(self):
        if self._transport is not None:
            return self._transport

        transport = self.__class__._default_transport
        if transport is None:
            if Model._default_transport is None:
                Model._default_transport = RequestsTransport(max_workers=config['REMOTE_MODELS_MAX_WORKERS'])
            transport = Model._default_transport
        return transport

    def new_schema(self):
        options = self.meta.schema
        if options is not None and not isinstance(options, dict):
            options = {'class': options}

        if self.meta.pagination is not None:
            options = dict(options or {}, pagination=self.meta.pagination)

        if self.meta.service is None:
            options = dict(options or {})
            schema_class = schema_class_for(options.pop('class', None) or config['REMOTE_MODELS_DEFAULT_SCHEMA'])
            return schema_class(options)
        return make_schema(self.meta.service, options)

    def new_request(self):
        """
        Returns a new :class:`builder.RequestBuilder` bound to this model, with a new schema.
        """
        return RequestBuilder(self.get_transport(), self.routes, self.new_schema(), self)

    # instances

    def new_instance(self, attributes=None):
        instance = self.__class__(attributes)
        if self._transport is not None:
            instance.set_transport(self._transport)
        return instance

    def new_from_builder(self, attributes=None):
        """
        Returns an instance representing an existing remote resource.
        """
        instance = self.new_instance()
        instance.force_fill(attributes or {})
        instance.exists = True
        return instance

    def new_collection(self, models=()):
        return Collection(models)

    @classmethod
    def hydrate(cls, items):
        return cls().hydrate_from_list(items)

    def hydrate_from_list(self, items):
        return self.new_collection(self.new_from_builder(item) for item in items)

    # relations

    def _related_instance(self, related):
        instance = related()
        if self._transport is not None:
            instance.set_transport(self._transport)
        return instance

    def has_one(self, related, foreign_key=None, local_key=None, action='list'):
        return HasOne(self._related_instance(related).new_request(),
                      self,
                      foreign_key or self.get_foreign_key(),
                      local_key or self.get_key_name(),
                      action)

    def has_many(self, related, foreign_key=None, local_key=None, action='list'):
        return HasMany(self._related_instance(related).new_request(),
                       self,
                       foreign_key or self.get_foreign_key(),
                       local_key or self.get_key_name(),
                       action)

    def belongs_to(self, related, foreign_key=None, owner_key=None, action='find'):
        instance = self._related_instance(related)
        return BelongsTo(instance.new_request(),
                         self,
                         foreign_key or instance.get_foreign_key(),
                         owner_key or instance.get_key_name(),
                         action)

    # persistence

    def save(self, request_options=None):
        """
        Creates the resource if it has no key, otherwise updates it.

        :return: a new instance with the data returned by the remote service
        """
        creating = self.get_key() is None

        if creating:
            before_create.send(self)
            saved = self.new_request().request('create', request_options)
            # services may answer a create without a body
            if isinstance(saved, self.__class__):
                self.set_attribute(self.get_key_name(), saved.get_key())
                self.exists = True
            after_create.send(self, result=saved)
        else:
            before_update.send(self)
            saved = self.new_request().request('update', request_options)
            after_update.send(self, result=saved)
        return saved

    def delete(self, request_options=None):
        before_delete.send(self)
        result = self.new_request().request('delete', request_options)
        after_delete.send(self, result=result)
        return result

    find = _builder_method('find')
    where = _builder_method('where')
    path = _builder_method('path')
    query = _builder_method('query')
    headers = _builder_method('headers')
    body = _builder_method('body')
    raw_body = _builder_method('raw_body')
    asynchronous = _builder_method('asynchronous')
    request = _builder_method('request')
    invoke = _builder_method('invoke')
    list = _route_method('list')
