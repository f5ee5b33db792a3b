import datetime
import decimal
import re

_MISSING = object()


def get_value(key, obj, default=None):
    """
    Looks up ``key`` in a nested structure of dictionaries and lists. ``key`` may use dot notation
    (``"meta.pagination.total"``); a ``None`` key returns ``obj`` itself.
    """
    if key is None:
        return obj

    if isinstance(obj, dict) and key in obj:
        return obj[key]

    for segment in key.split('.'):
        if isinstance(obj, dict):
            obj = obj.get(segment, _MISSING)
        elif isinstance(obj, (list, tuple)):
            try:
                obj = obj[int(segment)]
            except (IndexError, ValueError):
                obj = _MISSING
        else:
            obj = _MISSING

        if obj is _MISSING:
            return default
    return obj


def set_property(property, key, value=None):
    """
    Returns a copy of ``property`` updated with either a single key and value or a dictionary of values.
    """
    property = dict(property)
    if isinstance(key, dict):
        property.update(key)
    else:
        property[key] = value
    return property


def snake_case(s):
    s = re.sub(r'(.)([A-Z][a-z]+)', r'\1_\2', s)
    return re.sub(r'([a-z0-9])([A-Z])', r'\1_\2', s).lower()


class AttributeDict(dict):
    __getattr__ = dict.__getitem__
    __setattr__ = dict.__setitem__


def json_default(value):
    if isinstance(value, (datetime.date, datetime.datetime, datetime.time)):
        return value.isoformat()
    if isinstance(value, decimal.Decimal):
        return str(value)
    raise TypeError('Object of type {} is not JSON serializable'.format(value.__class__.__name__))
