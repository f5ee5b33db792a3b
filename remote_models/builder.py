import logging
from concurrent.futures import Future

from .exceptions import UnknownRouteError, ArityError, AuthorizationError, ServiceValidationError, \
    TransportError, ClientError
from .pagination import LengthAwarePaginator, Paginator
from .signals import request_started, request_finished
from .transport import Request
from .utils import set_property

log = logging.getLogger(__name__)


class RequestBuilder(object):
    """
    Builds requests for the routes of a model and converts responses into models.

    Parameters can be given to the builder in several ways:

    - :meth:`path` sets URL path arguments explicitly
    - :meth:`query` sets query string arguments explicitly
    - :meth:`where` sets general parameters that land in the path, query string or body, whichever is most
      appropriate for the route and request method. A ``where`` value used for a path argument is not sent
      again in the query string or body.

    A missing path argument is taken from :meth:`path`, then :meth:`where`, then the model attribute of the
    same name.

    :param transport.Transport transport: transport used to send requests
    :param routes.RouteCollection routes: routes of the model
    :param schema.Schema schema: schema of the remote service; not to be shared between builders
    :param model.Model model: model the builder is bound to
    """

    def __init__(self, transport, routes, schema, model=None):
        self.transport = transport
        self.routes = routes
        self.schema = schema
        self.model = model

        self.is_async = False
        self.wheres = {}
        self.path_args = {}
        self.query_params = {}
        self.header_values = {}
        self.request_body = None
        self.response = None

    def set_model(self, model):
        self.model = model
        return self

    def get_model(self):
        return self.model

    def copy(self):
        """
        Returns an independent builder with a copy of the parameters set on this builder.
        """
        builder = self.__class__(self.transport, self.routes, self.schema.__class__(self.schema.config), self.model)
        builder.is_async = self.is_async
        builder.wheres = dict(self.wheres)
        builder.path_args = dict(self.path_args)
        builder.query_params = dict(self.query_params)
        builder.header_values = dict(self.header_values)
        builder.request_body = self.request_body
        return builder

    def find(self, id, request_options=None):
        return self.where(self.model.get_key_name(), id).request('find', request_options)

    def where(self, key, value=None):
        """
        Sets a general parameter, or several if ``key`` is a dictionary.
        """
        self.wheres = set_property(self.wheres, key, value)
        return self

    def path(self, key, value=None):
        self.path_args = set_property(self.path_args, key, value)
        return self

    def query(self, key, value=None):
        self.query_params = set_property(self.query_params, key, value)
        return self

    def headers(self, key, value=None):
        self.header_values = set_property(self.header_values, key, value)
        return self

    def body(self, body):
        """
        Sets the body of the request. The body is encoded using the schema.

        :param dict body:
        """
        self.request_body = self.schema.make_payload(body)
        return self

    def raw_body(self, body):
        """
        Sets the body of the request as-is.
        """
        self.request_body = body
        return self

    def asynchronous(self, is_async=True):
        """
        When enabled, :meth:`request` returns a :class:`concurrent.futures.Future`.
        """
        self.is_async = is_async
        return self

    def get_route(self, name):
        route = self.routes.get(name)
        if route is None:
            raise UnknownRouteError(name)
        return route

    def get_last_response(self):
        return self.response

    def invoke(self, action, *args):
        """
        Makes a request to the route named ``action``, taking optional request options as its only argument.

        :raises ArityError: if more than one argument is given
        :raises UnknownRouteError: if no route named ``action`` exists
        """
        if len(args) > 1:
            raise ArityError(action, len(args))
        if action not in self.routes:
            raise UnknownRouteError(action)
        return self.request(action, args[0] if args else None)

    def request(self, action, request_options=None):
        """
        Makes a request to the remote service for a route.

        :param str action: route name
        :param dict request_options: options passed to the transport; take precedence over the default
            request options of the model
        :return: a model, :class:`model.Collection`, :class:`pagination.Paginator` or ``None``; or a
            :class:`concurrent.futures.Future` resolving to one of these if the builder is asynchronous
        """
        route = self.get_route(action)
        request = self.to_request(action)

        options = dict(self.model.default_request_options())
        options.update(request_options or {})

        request_started.send(self.model, request=request)

        if self.is_async:
            return self._async_request(request, options, route)
        return self._sync_request(request, options, route)

    def to_request(self, name):
        """
        Converts a named route into a :class:`transport.Request` for the model without sending it.

        :raises UnknownRouteError: if no route named ``name`` exists
        """
        route = self.get_route(name)
        method = route.method

        path = route.generate(self._get_path_arguments(route))

        body = None
        if self.schema.request_method_allows_body(method):
            body = self._build_request_body()

        uri = '/'.join((self.model.get_base_uri().rstrip('/'), path.lstrip('/')))

        query_params = self._build_query_parameters()
        if query_params:
            uri = '?'.join((uri, self.schema.build_query_string(query_params)))

        headers = self.schema.get_default_headers()
        headers.update(self.header_values)

        return Request(method, uri, headers, body)

    def _get_path_arguments(self, route):
        path_args = dict(self.path_args)

        for name in route.placeholders:
            if name in path_args:
                continue
            if name in self.wheres:
                path_args[name] = self._use_where(name)
            else:
                path_args[name] = self.model.get_attribute(name)
        return path_args

    def _build_request_body(self):
        if self.request_body is not None:
            return self.request_body

        attributes = self.model.get_attributes()
        if attributes:
            to_body = getattr(self.model, 'to_body', None)
            if callable(to_body):
                return to_body()
            return self.schema.make_payload(attributes)

        return self.schema.make_payload(self._use_wheres())

    def _build_query_parameters(self):
        query_params = self._use_wheres()
        query_params.update(self.query_params)
        return query_params

    def _use_where(self, key):
        # each where is used once per request
        return self.wheres.pop(key)

    def _use_wheres(self):
        wheres, self.wheres = self.wheres, {}
        return wheres

    def _sync_request(self, request, options, route):
        try:
            self.response = self.transport.send(request, options)
        except TransportError as e:
            return self._handle_request_exception(e, request, route)

        self.schema.set_response(self.response)
        return self.response_to_result(route, self.response)

    def _async_request(self, request, options, route):
        future = self.transport.send_async(request, options)
        result = Future()

        def resolve(f):
            if f.cancelled():
                result.cancel()
                return
            # refused once the caller cancelled the result
            if not result.set_running_or_notify_cancel():
                return
            try:
                exception = f.exception()
                if exception is None:
                    self.response = f.result()
                    self.schema.set_response(self.response)
                    value = self.response_to_result(route, self.response)
                else:
                    value = self._handle_request_exception(exception, request, route)
            except BaseException as e:
                result.set_exception(e)
            else:
                result.set_result(value)

        def cancel(f):
            if f.cancelled():
                future.cancel()

        result.add_done_callback(cancel)
        future.add_done_callback(resolve)
        return result

    def response_to_result(self, route, response):
        """
        Converts a successful response into a model, a collection, a paginator or ``None``.
        """
        result = None

        if response.content:
            if self._is_single_resource(route):
                payload = self.schema.get_payload()
                if isinstance(payload, dict) and payload:
                    result = self.model.new_from_builder(payload)

            elif self.schema.is_paginated():
                result = self._paginated_to_paginator(self.schema.get_paginated())

            else:
                payload = self.schema.get_payload()
                if isinstance(payload, list):
                    result = self.model.hydrate_from_list(payload)

        log.debug('%s %s -> %r', route.method, route.name, result)
        request_finished.send(self.model, response=response, result=result)
        return result

    def _paginated_to_paginator(self, paginated):
        items = self.model.hydrate_from_list(paginated.items or [])

        if paginated.total is not None:
            return LengthAwarePaginator(items, paginated.total, paginated.per_page, paginated.current_page)
        return Paginator(items, paginated.per_page, paginated.current_page)

    def _is_single_resource(self, route):
        if self._is_single_resource_route(route):
            return True

        # responses to routes without the key in the path (e.g. create) may still hold a single resource
        payload = self.schema.get_payload()
        return isinstance(payload, dict) and payload.get(self.model.get_key_name()) is not None

    def _is_single_resource_route(self, route):
        return route.targets_key(self.model.get_key_name())

    def _handle_request_exception(self, exception, request, route):
        response = getattr(exception, 'response', None)
        if isinstance(exception, TransportError) and response is not None:
            self.response = response
            self.schema.set_response(response)

        try:
            result = self._exception_to_result(exception, request, route)
        except Exception as e:
            request_finished.send(self.model, response=response, exception=e)
            raise

        request_finished.send(self.model, response=response, result=result)
        return result

    def _exception_to_result(self, exception, request, route):
        if isinstance(exception, ClientError) and self.schema.has_valid_error_structure():
            if exception.status_code == 403:
                raise AuthorizationError(self.schema.get_client_error_message() or None) from exception

            # a missing single resource is not an error
            if exception.status_code == 404 \
                    and request.method == 'GET' \
                    and self._is_single_resource_route(route):
                log.debug('%s %s returned 404, treating as missing resource', request.method, request.uri)
                return None

            if self.schema.has_validation_error():
                raise ServiceValidationError(self.schema.get_validation_error_messages(), exception)

        raise exception
