import datetime
import inspect
import json
from urllib.parse import quote

from jsonschema import Draft4Validator, FormatChecker
from werkzeug.utils import cached_property

from .exceptions import MalformedResponseError, ConfigurationError
from .pagination import pagination_class_for
from .utils import get_value, json_default


def _flatten_parameter(key, value):
    if value is None:
        return
    if isinstance(value, dict):
        for k, v in value.items():
            for item in _flatten_parameter('{}[{}]'.format(key, k), v):
                yield item
    elif isinstance(value, (list, tuple)):
        for i, v in enumerate(value):
            for item in _flatten_parameter('{}[{}]'.format(key, i), v):
                yield item
    elif isinstance(value, bool):
        yield key, 'true' if value else 'false'
    elif isinstance(value, (datetime.date, datetime.datetime)):
        yield key, value.isoformat()
    else:
        yield key, value


def encode_parameters(parameters):
    """
    Encodes a dictionary as ``application/x-www-form-urlencoded`` text. Every key and value is
    percent-encoded; nested lists and dictionaries use ``key[0]`` and ``key[sub]`` notation.
    """
    return '&'.join('{}={}'.format(quote(str(key), safe=''), quote(str(value), safe=''))
                    for name, parameter in parameters.items()
                    for key, value in _flatten_parameter(name, parameter))


class Schema(object):
    """
    Base class for the conventions of a remote service: how request bodies are encoded and how responses,
    pagination and errors are read.

    The schema is bound to one response at a time using :meth:`set_response`. The decoded body and the
    paginated data are computed at most once per bound response.

    Implementations need to implement :meth:`make_payload`, :meth:`decode`, :meth:`get_payload` and
    :meth:`get_validation_error_messages`.

    :param dict config: service-specific options, e.g. ``pagination`` and ``validation_status``
    """
    default_headers = {}
    validation_status = 422

    def __init__(self, config=None):
        self.config = dict(config or {})
        self.response = None

    def get_default_headers(self):
        return dict(self.default_headers)

    def request_method_allows_body(self, method):
        return method.upper() in ('POST', 'PUT', 'PATCH')

    def make_payload(self, data):
        """
        Encodes a dictionary into a request body.
        """
        raise NotImplementedError()

    def build_query_string(self, parameters):
        # keys and values must always be encoded
        return encode_parameters(parameters)

    def set_response(self, response):
        self.response = response
        self.__dict__.pop('data', None)
        self.__dict__.pop('paginated', None)

    def decode(self, content):
        raise NotImplementedError()

    @cached_property
    def data(self):
        if self.response is None or not self.response.content:
            return None
        return self.decode(self.response.content)

    def get_payload(self):
        raise NotImplementedError()

    def make_paginated(self):
        pagination_class = pagination_class_for(self.config.get('pagination'))
        if pagination_class is None:
            return None
        return pagination_class(self.data, self.response.headers)

    @cached_property
    def paginated(self):
        return self.make_paginated()

    def get_paginated(self):
        return self.paginated

    def is_paginated(self):
        paginated = self.get_paginated()
        return paginated is not None and paginated.is_paginated()

    def has_valid_error_structure(self):
        return True

    def has_validation_error(self):
        return self.response.status_code == self.config.get('validation_status', self.validation_status)

    def get_validation_error_messages(self):
        raise NotImplementedError()

    def get_client_error_message(self):
        return ''


class JsonSchema(Schema):
    """
    A schema for services that speak JSON.

    Recognized ``config`` options:

    =====================  ==============================================================================
    Option                 Description
    =====================  ==============================================================================
    payload_key            Location of the model data within the response body, in dot notation
    errors_key             Location of validation messages within an error body; defaults to the payload
    message_key            Location of the error message within an error body; default ``message``
    error_schema           A JSON-schema that error bodies must match to be considered valid errors
    pagination             Name of a registered pagination class, or the class itself
    validation_status      Status code of validation errors; default 422
    =====================  ==============================================================================
    """
    default_headers = {
        'Accept': 'application/json',
        'Content-Type': 'application/json'
    }

    def make_payload(self, data):
        return json.dumps(data, default=json_default)

    def decode(self, content):
        try:
            return json.loads(content.decode('utf-8'))
        except ValueError as e:
            message = '{}: {}'.format(e, content[:200].decode('utf-8', 'replace'))
            raise MalformedResponseError(message, response=self.response) from e

    def get_payload(self):
        data = self.data
        if not isinstance(data, (dict, list)):
            return None
        return get_value(self.config.get('payload_key'), data)

    @cached_property
    def _error_validator(self):
        error_schema = self.config['error_schema']
        Draft4Validator.check_schema(error_schema)
        return Draft4Validator(error_schema, format_checker=FormatChecker())

    def has_valid_error_structure(self):
        try:
            data = self.data
        except MalformedResponseError:
            return False

        if self.config.get('error_schema') is None:
            return True
        return self._error_validator.is_valid(data)

    def get_validation_error_messages(self):
        errors_key = self.config.get('errors_key')
        if errors_key is None:
            errors = self.get_payload()
        else:
            errors = get_value(errors_key, self.data)

        messages = {}
        if isinstance(errors, dict):
            for field, value in errors.items():
                if isinstance(value, (list, tuple)):
                    messages[field] = [str(message) for message in value]
                else:
                    messages[field] = [str(value)]
        return messages

    def get_client_error_message(self):
        try:
            data = self.data
        except MalformedResponseError:
            return ''

        message = get_value(self.config.get('message_key', 'message'), data) if isinstance(data, dict) else None
        return str(message) if message is not None else ''


class FormSchema(JsonSchema):
    """
    Sends form-encoded request bodies and reads JSON responses.
    """
    default_headers = {
        'Accept': 'application/json',
        'Content-Type': 'application/x-www-form-urlencoded'
    }

    def make_payload(self, data):
        return encode_parameters(data)


SCHEMAS = {
    'json': JsonSchema,
    'form': FormSchema,
}


def register_schema(name, schema_class):
    SCHEMAS[name] = schema_class
    return schema_class


def schema_class_for(value):
    """
    Resolves a schema class from a registered name or returns ``value`` if it is a class already.
    """
    if inspect.isclass(value):
        return value
    try:
        return SCHEMAS[value]
    except KeyError:
        raise ConfigurationError('No schema named "{}" is registered'.format(value))
