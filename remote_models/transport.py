import logging
from collections import namedtuple
from concurrent.futures import ThreadPoolExecutor

import requests
from requests.structures import CaseInsensitiveDict
from werkzeug.http import HTTP_STATUS_CODES
from werkzeug.test import Client

from .exceptions import TransportError, ClientError, ServerError

log = logging.getLogger(__name__)


class Request(namedtuple('Request', ('method', 'uri', 'headers', 'body'))):
    """
    A fully resolved outbound request. Never modified once built.
    """
    __slots__ = ()

    def __new__(cls, method, uri, headers=None, body=None):
        return super(Request, cls).__new__(cls, method.upper(), uri, CaseInsensitiveDict(headers or {}), body)

    def __eq__(self, other):
        return isinstance(other, Request) and \
               (self.method, self.uri, dict(self.headers.lower_items()), self.body) == \
               (other.method, other.uri, dict(other.headers.lower_items()), other.body)

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash((self.method, self.uri, self.body))


class Response(object):
    """
    A response received from a remote service.

    :param int status_code:
    :param headers: a dictionary or list of header tuples
    :param content: response body as ``bytes`` or ``str``
    """

    def __init__(self, status_code=200, headers=None, content=b''):
        if isinstance(content, str):
            content = content.encode('utf-8')
        self.status_code = status_code
        self.headers = CaseInsensitiveDict(headers or {})
        self.content = content or b''

    @property
    def text(self):
        return self.content.decode('utf-8')

    @property
    def reason(self):
        return HTTP_STATUS_CODES.get(self.status_code, '')

    @property
    def is_client_error(self):
        return 400 <= self.status_code < 500

    @property
    def is_server_error(self):
        return 500 <= self.status_code < 600

    def __repr__(self):
        return '<{} [{}]>'.format(self.__class__.__name__, self.status_code)


def raise_for_status(request, response):
    if response.is_client_error:
        error_class = ClientError
    elif response.is_server_error:
        error_class = ServerError
    else:
        return

    message = '{} {} resulted in a `{} {}` response'.format(request.method,
                                                            request.uri,
                                                            response.status_code,
                                                            response.reason)
    raise error_class(message, request=request, response=response)


class Transport(object):
    """
    Sends :class:`Request` objects to a remote service.

    Implementations need to implement :meth:`_send`. Requests that result in a 4xx or 5xx response raise
    :class:`ClientError` and :class:`ServerError` respectively unless ``http_errors`` is ``False`` in the
    request options.

    :param int max_workers: number of threads used by :meth:`send_async`
    """

    def __init__(self, max_workers=4):
        self.max_workers = max_workers
        self._executor = None

    @property
    def executor(self):
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=self.max_workers)
        return self._executor

    def _send(self, request, options):
        raise NotImplementedError()

    def send(self, request, options=None):
        """
        :param Request request:
        :param dict options: transport specific request options
        :return: a :class:`Response`
        :raises TransportError:
        """
        options = dict(options or {})
        http_errors = options.pop('http_errors', True)

        log.debug('%s %s', request.method, request.uri)
        response = self._send(request, options)
        log.debug('%s %s -> %s', request.method, request.uri, response.status_code)

        if http_errors:
            raise_for_status(request, response)
        return response

    def send_async(self, request, options=None):
        """
        :return: a :class:`concurrent.futures.Future` resolving to a :class:`Response`
        """
        return self.executor.submit(self.send, request, options)

    def close(self):
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class RequestsTransport(Transport):
    """
    Sends requests over HTTP using a :class:`requests.Session`.

    :param requests.Session session: an optional session, e.g. with authentication preconfigured
    """
    REQUEST_OPTIONS = ('timeout', 'verify', 'cert', 'proxies', 'allow_redirects', 'auth', 'stream')

    def __init__(self, session=None, max_workers=4):
        super(RequestsTransport, self).__init__(max_workers=max_workers)
        self.session = session or requests.Session()

    def _send(self, request, options):
        kwargs = {key: value for key, value in options.items() if key in self.REQUEST_OPTIONS}

        try:
            response = self.session.request(request.method,
                                            request.uri,
                                            headers=dict(request.headers),
                                            data=request.body,
                                            **kwargs)
        except requests.RequestException as e:
            raise TransportError(str(e), request=request) from e

        return Response(response.status_code, response.headers, response.content)

    def close(self):
        super(RequestsTransport, self).close()
        self.session.close()


class WSGITransport(Transport):
    """
    Dispatches requests directly into a WSGI application, such as a :class:`flask.Flask` app, without a
    network round trip.

    :param app: a WSGI application
    """

    def __init__(self, app, max_workers=4):
        super(WSGITransport, self).__init__(max_workers=max_workers)
        self.app = app

    def _send(self, request, options):
        client = Client(self.app)
        content_type = request.headers.get('Content-Type')
        headers = [(key, value) for key, value in request.headers.items() if key.lower() != 'content-type']

        body = request.body
        if isinstance(body, str):
            body = body.encode('utf-8')

        response = client.open(request.uri,
                               method=request.method,
                               headers=headers,
                               content_type=content_type,
                               data=body)
        try:
            return Response(response.status_code, list(response.headers.items()), response.get_data())
        finally:
            response.close()
