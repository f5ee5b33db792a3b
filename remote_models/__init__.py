from .builder import RequestBuilder
from .config import config, configure
from .exceptions import RemoteModelsError, ServiceValidationError, ValidationError, AuthorizationError
from .model import Model, Collection
from .routes import Route, RouteCollection
from .transport import Request, Response, RequestsTransport, WSGITransport

__all__ = (
    'Model',
    'Collection',
    'RequestBuilder',
    'Route',
    'RouteCollection',
    'Request',
    'Response',
    'RequestsTransport',
    'WSGITransport',
    'config',
    'configure',
    'RemoteModelsError',
    'ServiceValidationError',
    'ValidationError',
    'AuthorizationError',
    'builder',
    'exceptions',
    'model',
    'pagination',
    'relations',
    'routes',
    'schema',
    'signals',
    'transport',
)
