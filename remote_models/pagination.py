import inspect
from math import ceil
from urllib.parse import urlsplit, parse_qs

from requests.utils import parse_header_links

from .exceptions import ConfigurationError
from .utils import get_value


class PaginatedData(object):
    """
    A common interface for data that was paginated by a remote service.

    .. attribute:: items

        List of raw records on the current page

    .. attribute:: current_page
    .. attribute:: last_page
    .. attribute:: total

        Total number of records or ``None`` if unknown

    .. attribute:: count
    .. attribute:: per_page
    """
    items = None
    current_page = None
    last_page = None
    total = None
    count = None
    per_page = None

    def is_paginated(self):
        return self.per_page is not None and self.current_page is not None


class PaginatedArray(PaginatedData):
    """
    Reads pagination data from a decoded response body using :attr:`key_map`.

    :attr:`key_map` maps each of ``items``, ``current_page``, ``last_page``, ``total``, ``count`` and
    ``per_page`` to its location within the data in dot notation. Keys mapped to ``None`` are read from the
    top level of the data using their own name.

    :param data: the decoded response body
    :param headers: response headers
    """
    key_map = {
        'items': None,
        'current_page': None,
        'last_page': None,
        'total': None,
        'count': None,
        'per_page': None,
    }

    def __init__(self, data, headers=None):
        self.data = data
        self.headers = headers or {}

    def get_data_key(self, key):
        return self.key_map.get(key) or key

    def get_value_for_key(self, key, default=None):
        return get_value(self.get_data_key(key), self.data, default)

    @property
    def items(self):
        return self.get_value_for_key('items')

    @property
    def current_page(self):
        return self.get_value_for_key('current_page')

    @property
    def last_page(self):
        return self.get_value_for_key('last_page')

    @property
    def total(self):
        return self.get_value_for_key('total')

    @property
    def count(self):
        return self.get_value_for_key('count')

    @property
    def per_page(self):
        return self.get_value_for_key('per_page')


class LaravelPaginatedData(PaginatedArray):
    key_map = {
        'items': 'data',
        'current_page': None,
        'last_page': None,
        'total': None,
        'count': 'to',
        'per_page': None,
    }


class FractalPaginatedData(PaginatedArray):
    key_map = {
        'items': 'data',
        'current_page': 'meta.pagination.current_page',
        'last_page': 'meta.pagination.total_pages',
        'total': 'meta.pagination.total',
        'count': 'meta.pagination.count',
        'per_page': 'meta.pagination.per_page',
    }


class LinkHeaderPaginatedData(PaginatedData):
    """
    Reads pagination data from ``Link`` and ``X-Total-Count`` headers, e.g.::

        Link: </book?page=2&per_page=20>; rel="self",</book?page=5&per_page=20>; rel="last"
        X-Total-Count: 97

    The response body is expected to be the list of items on the page.
    """
    total_count_header = 'X-Total-Count'

    def __init__(self, data, headers=None):
        self.data = data
        self.headers = headers or {}

        self.links = {}
        for link in parse_header_links(self.headers.get('Link', '')):
            if 'rel' in link:
                self.links[link['rel']] = link['url']

    def _link_argument(self, rel, name):
        if rel not in self.links:
            return None
        values = parse_qs(urlsplit(self.links[rel]).query).get(name)
        if not values:
            return None
        return int(values[0])

    @property
    def items(self):
        return self.data if isinstance(self.data, list) else []

    @property
    def current_page(self):
        return self._link_argument('self', 'page')

    @property
    def last_page(self):
        return self._link_argument('last', 'page')

    @property
    def per_page(self):
        return self._link_argument('self', 'per_page')

    @property
    def total(self):
        total = self.headers.get(self.total_count_header)
        if total is None:
            return None
        return int(total)

    @property
    def count(self):
        return len(self.items)


class Paginator(object):
    """
    A page of models where the total number of records is not known. Supports moving to the next and previous
    pages only.

    :param items: a :class:`model.Collection`
    :param int per_page:
    :param int current_page:
    """

    def __init__(self, items, per_page, current_page):
        self.items = items
        self.per_page = int(per_page)
        self.current_page = int(current_page)

    @property
    def has_more(self):
        return self.per_page > 0 and len(self.items) >= self.per_page

    @property
    def has_prev(self):
        return self.current_page > 1

    @property
    def on_first_page(self):
        return self.current_page <= 1

    @property
    def next_page(self):
        return self.current_page + 1 if self.has_more else None

    @property
    def previous_page(self):
        return self.current_page - 1 if self.has_prev else None

    def __iter__(self):
        return iter(self.items)

    def __len__(self):
        return len(self.items)

    def __getitem__(self, item):
        return self.items[item]

    def __repr__(self):
        return '<{} page={} per_page={} items={}>'.format(self.__class__.__name__,
                                                          self.current_page,
                                                          self.per_page,
                                                          len(self.items))


class LengthAwarePaginator(Paginator):
    """
    A page of models where the total number of records is known.

    :param items: a :class:`model.Collection`
    :param int total:
    :param int per_page:
    :param int current_page:
    """

    def __init__(self, items, total, per_page, current_page):
        super(LengthAwarePaginator, self).__init__(items, per_page, current_page)
        self.total = int(total)

    @property
    def last_page(self):
        if self.per_page <= 0:
            return 1
        return max(1, int(ceil(self.total / self.per_page)))

    @property
    def has_more(self):
        return self.current_page < self.last_page


PAGINATIONS = {
    'laravel': LaravelPaginatedData,
    'fractal': FractalPaginatedData,
    'link-header': LinkHeaderPaginatedData,
}


def register_pagination(name, pagination_class):
    PAGINATIONS[name] = pagination_class
    return pagination_class


def pagination_class_for(value):
    """
    Resolves a pagination class from a registered name or returns ``value`` if it is a class already.
    """
    if value is None or inspect.isclass(value):
        return value
    try:
        return PAGINATIONS[value]
    except KeyError:
        raise ConfigurationError('No pagination named "{}" is registered'.format(value))
