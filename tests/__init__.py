import json
import unittest
from collections import deque

from flask import Flask

from remote_models.config import config
from remote_models.transport import Transport, Response


class MockTransport(Transport):
    """
    Records sent requests and replies with queued responses.
    """

    def __init__(self, *responses):
        super(MockTransport, self).__init__(max_workers=2)
        self.responses = deque(responses)
        self.requests = []
        self.options = []

    def append(self, status_code=200, data=None, headers=None):
        content = b'' if data is None else json.dumps(data)
        self.responses.append(Response(status_code, headers, content))
        return self

    def _send(self, request, options):
        self.requests.append(request)
        self.options.append(options)
        return self.responses.popleft()

    @property
    def last_request(self):
        return self.requests[-1]


class BaseTestCase(unittest.TestCase):

    def setUp(self):
        self._config = dict(config)
        config['REMOTE_MODELS_SERVICES'] = {
            'api': {
                'base_uri': 'http://api.example.com/v1/'
            }
        }
        self.app = self.create_app()

    def tearDown(self):
        config.clear()
        config.update(self._config)

    def assertJSONEqual(self, first, second, msg=None):
        if isinstance(first, (bytes, str)):
            first = json.loads(first)
        if isinstance(second, (bytes, str)):
            second = json.loads(second)
        self.assertEqual(first, second, msg)

    def create_app(self):
        app = Flask(__name__)
        app.debug = True
        return app
