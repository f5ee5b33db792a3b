from werkzeug.http import HTTP_STATUS_CODES


class RemoteModelsError(Exception):
    status_code = None

    def __init__(self, message=None):
        if message is None:
            message = HTTP_STATUS_CODES.get(self.status_code, '')
        super(RemoteModelsError, self).__init__(message)
        self.message = message

    def as_dict(self):
        return {
            'status': self.status_code,
            'message': self.message
        }


class ConfigurationError(RemoteModelsError):
    pass


class UnknownRouteError(RemoteModelsError, LookupError):

    def __init__(self, name):
        super(UnknownRouteError, self).__init__("No resource route with the name '{}' found.".format(name))
        self.name = name


class DuplicateRouteError(RemoteModelsError):

    def __init__(self, name):
        super(DuplicateRouteError, self).__init__("A route named '{}' is already registered.".format(name))
        self.name = name


class MissingPathArgumentError(RemoteModelsError, ValueError):

    def __init__(self, route, missing):
        super(MissingPathArgumentError, self).__init__(
            'Some mandatory path arguments are missing ("{}") to generate a URL for route "{}".'.format(
                '", "'.join(missing), route.name))
        self.route = route
        self.missing = tuple(missing)


class ArityError(RemoteModelsError, TypeError):

    def __init__(self, name, count):
        super(ArityError, self).__init__("Method '{}' only supports 1 argument, {} given".format(name, count))
        self.name = name
        self.count = count


class MalformedResponseError(RemoteModelsError, ValueError):

    def __init__(self, message, response=None):
        super(MalformedResponseError, self).__init__(message)
        self.response = response


class TransportError(RemoteModelsError):
    """
    Raised by a transport when a request could not be completed.

    :param str message:
    :param request: the :class:`transport.Request` that was sent
    :param response: the :class:`transport.Response` received, if any
    """

    def __init__(self, message=None, request=None, response=None):
        super(TransportError, self).__init__(message)
        self.request = request
        self.response = response

    @property
    def status_code(self):
        if self.response is not None:
            return self.response.status_code
        return None


class BadResponseError(TransportError):
    pass


class ClientError(BadResponseError):
    pass


class ServerError(BadResponseError):
    pass


class AuthorizationError(RemoteModelsError):
    status_code = 403


class ValidationError(RemoteModelsError):
    """
    A local validation error, safe to show to end users.

    :param dict messages: a dictionary mapping field names to lists of messages
    """
    status_code = 422

    def __init__(self, messages, message='The given data was invalid.'):
        super(ValidationError, self).__init__(message)
        self.messages = messages

    def errors(self):
        return dict(self.messages)

    def as_dict(self):
        dct = super(ValidationError, self).as_dict()
        dct['errors'] = self.errors()
        return dct


class ServiceValidationError(RemoteModelsError):
    """
    Raised when a remote service rejected a request with validation errors.

    :param dict messages: a dictionary mapping field names to lists of messages
    :param TransportError cause: the original transport error
    """

    def __init__(self, messages, cause):
        super(ServiceValidationError, self).__init__('A validation error was received from a remote service.')
        self.messages = messages
        self.cause = cause
        self.__cause__ = cause

    @property
    def status_code(self):
        return self.cause.status_code

    def keys(self):
        return list(self.messages.keys())

    def to_validation_error(self, keys=None):
        """
        Converts this exception into a local :class:`ValidationError`.

        :param keys: optional list of field names the error is restricted to
        """
        messages = self.messages

        if keys is not None:
            messages = {key: value for key, value in messages.items() if key in keys}

        return ValidationError(dict(messages))

    def errors_are_only_for(self, allowed_keys):
        return set(self.messages.keys()) <= set(allowed_keys)

    def handle_end_user_errors(self, allowed_keys):
        """
        Returns a :class:`ValidationError` when every error belongs to one of ``allowed_keys``, otherwise
        returns this exception.
        """
        if self.errors_are_only_for(allowed_keys):
            return self.to_validation_error()
        return self
