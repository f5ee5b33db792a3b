import re
from collections import OrderedDict
from urllib.parse import quote

from .exceptions import DuplicateRouteError, MissingPathArgumentError

HTTP_METHODS = ('GET', 'HEAD', 'OPTIONS', 'PUT', 'POST', 'PATCH', 'DELETE')

_PLACEHOLDER = re.compile(r'\{(\w+)\}')


def url_rule_to_uri_pattern(rule):
    return re.sub(r'<(\w+:)?([^>]+)>', r'{\2}', rule)


class Route(object):
    """
    A named URL template and the HTTP method used to request it.

    Placeholders are written as ``{name}``; Werkzeug-style rules such as ``<int:id>`` are converted on
    creation.

    :param str name: name of the action, e.g. ``"find"``
    :param str method: HTTP method; defaults to ``GET``
    :param str path: URL path template relative to the base URI of a service
    """

    def __init__(self, name, method=None, path='/'):
        method = (method or 'GET').upper()
        if method not in HTTP_METHODS:
            raise ValueError('Unsupported HTTP method "{}" for route "{}"'.format(method, name))

        self._name = name
        self._method = method
        self._path = url_rule_to_uri_pattern(path)

    @property
    def name(self):
        return self._name

    @property
    def method(self):
        return self._method

    @property
    def path(self):
        return self._path

    @property
    def placeholders(self):
        """
        Placeholder names in the order they are declared in the template.
        """
        return tuple(OrderedDict.fromkeys(_PLACEHOLDER.findall(self._path)))

    def targets_key(self, key_name):
        return key_name in self.placeholders

    def generate(self, arguments):
        """
        Fills every placeholder with the matching value from ``arguments``.

        :param dict arguments:
        :raises MissingPathArgumentError: if any placeholder has no value
        """
        missing = [name for name in self.placeholders if arguments.get(name) is None]
        if missing:
            raise MissingPathArgumentError(self, missing)

        return _PLACEHOLDER.sub(lambda match: quote(str(arguments[match.group(1)]), safe=''), self._path)

    def __eq__(self, other):
        return isinstance(other, Route) and (self.name, self.method, self.path) == (other.name, other.method, other.path)

    def __hash__(self):
        return hash((self.name, self.method, self.path))

    def __repr__(self):
        return '{}({}, {}, {})'.format(self.__class__.__name__, repr(self.name), repr(self.method), repr(self.path))


class RouteCollection(object):
    """
    A table of :class:`Route` objects keyed by their unique name.
    """

    def __init__(self, routes=None):
        self._routes = OrderedDict()
        for route in routes or ():
            self.add_route(route)

    def add(self, name, method=None, path='/'):
        return self.add_route(Route(name, method, path))

    def add_route(self, route):
        if route.name in self._routes:
            raise DuplicateRouteError(route.name)
        self._routes[route.name] = route
        return route

    def remove(self, name):
        return self._routes.pop(name, None)

    def get(self, name):
        return self._routes.get(name)

    def names(self):
        return list(self._routes.keys())

    def copy(self):
        return RouteCollection(self._routes.values())

    def __contains__(self, name):
        return name in self._routes

    def __iter__(self):
        return iter(self._routes.values())

    def __len__(self):
        return len(self._routes)

    def __repr__(self):
        return '{}({})'.format(self.__class__.__name__, self.names())
