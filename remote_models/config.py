"""
Service configuration.

Services are configured under ``REMOTE_MODELS_SERVICES``, keyed by the name models refer to in their
``Meta.service`` attribute::

    config.from_mapping(REMOTE_MODELS_SERVICES={
        'billing': {
            'base_uri': 'https://billing.example.com/api',
            'schema': {
                'class': 'json',
                'pagination': 'laravel',
                'payload_key': 'data'
            },
            'request_options': {'timeout': 10}
        }
    })
"""
import os

from flask import Config

from .exceptions import ConfigurationError
from .schema import schema_class_for

config = Config(os.getcwd(), defaults={
    'REMOTE_MODELS_SERVICES': {},
    'REMOTE_MODELS_DEFAULT_SCHEMA': 'json',
    'REMOTE_MODELS_MAX_WORKERS': 4,
})


def configure(mapping=None, **kwargs):
    return config.from_mapping(mapping, **kwargs)


def load_from_envvar(variable_name='REMOTE_MODELS_SETTINGS', silent=True):
    return config.from_envvar(variable_name, silent=silent)


def service_config(name):
    """
    :param str name: service name
    :return: the configuration dictionary of the service
    :raises ConfigurationError: if the service is not configured
    """
    services = config['REMOTE_MODELS_SERVICES']
    if name not in services:
        raise ConfigurationError('Service "{}" is not configured in REMOTE_MODELS_SERVICES'.format(name))
    return services[name]


def make_schema(name, overrides=None):
    """
    Builds a new schema instance for a service. The ``schema`` entry of the service configuration is either
    the name (or class) of a schema or a dictionary with a ``class`` key and schema options.

    :param str name: service name
    :param dict overrides: schema options taking precedence over the service configuration
    """
    options = service_config(name).get('schema') or {}
    if not isinstance(options, dict):
        options = {'class': options}

    options = dict(options)
    options.update(overrides or {})

    schema_class = schema_class_for(options.pop('class', None) or config['REMOTE_MODELS_DEFAULT_SCHEMA'])
    return schema_class(options)
