from blinker import Namespace

_signals = Namespace()

before_create = _signals.signal('before-create')

after_create = _signals.signal('after-create')

before_update = _signals.signal('before-update')

after_update = _signals.signal('after-update')

before_delete = _signals.signal('before-delete')

after_delete = _signals.signal('after-delete')

request_started = _signals.signal('request-started')

request_finished = _signals.signal('request-finished')
