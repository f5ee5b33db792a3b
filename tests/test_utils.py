import datetime
import decimal
import json

from remote_models.utils import get_value, set_property, snake_case, json_default
from tests import BaseTestCase


class UtilsTestCase(BaseTestCase):

    def test_get_value(self):
        data = {'meta': {'pagination': {'total': 5}}, 'data': [{'id': 1}], 'a.b': 'dotted'}

        self.assertIs(data, get_value(None, data))
        self.assertEqual(5, get_value('meta.pagination.total', data))
        self.assertEqual(1, get_value('data.0.id', data))
        self.assertEqual('dotted', get_value('a.b', data))
        self.assertIsNone(get_value('meta.missing', data))
        self.assertEqual('x', get_value('data.3', data, 'x'))

    def test_set_property(self):
        original = {'a': 1}

        self.assertEqual({'a': 1, 'b': 2}, set_property(original, 'b', 2))
        self.assertEqual({'a': 3, 'c': 4}, set_property(original, {'a': 3, 'c': 4}))
        self.assertEqual({'a': 1}, original)

    def test_snake_case(self):
        self.assertEqual('book', snake_case('Book'))
        self.assertEqual('book_author', snake_case('BookAuthor'))
        self.assertEqual('http_response', snake_case('HTTPResponse'))

    def test_json_default(self):
        self.assertEqual('{"d": "2017-01-02", "n": "1.50"}',
                         json.dumps({'d': datetime.date(2017, 1, 2), 'n': decimal.Decimal('1.50')},
                                    default=json_default))

        with self.assertRaises(TypeError):
            json.dumps({'s': {1, 2}}, default=json_default)
