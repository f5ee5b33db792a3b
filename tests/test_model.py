import datetime

from flask import jsonify, request, abort

from remote_models import signals
from remote_models.config import config
from remote_models.exceptions import ConfigurationError, MissingPathArgumentError, ServerError, ClientError, \
    ServiceValidationError
from remote_models.model import Model, Collection
from remote_models.pagination import LengthAwarePaginator
from remote_models.transport import WSGITransport
from tests import BaseTestCase, MockTransport


class Book(Model):
    class Meta:
        service = 'library'
        path = '/book'
        dates = ('published_at', 'created_at')


class ModelTestCase(BaseTestCase):

    def setUp(self):
        super(ModelTestCase, self).setUp()
        config['REMOTE_MODELS_SERVICES']['library'] = {
            'base_uri': 'http://localhost/v1/',
            'schema': {
                'class': 'json',
                'errors_key': 'errors'
            }
        }
        self.transport = WSGITransport(self.app)
        Book.set_default_transport(self.transport)

    def tearDown(self):
        Book.set_default_transport(None)
        self.transport.close()
        super(ModelTestCase, self).tearDown()

    def create_app(self):
        app = super(ModelTestCase, self).create_app()
        app.books = books = {
            1: {'id': 1, 'title': 'Dune', 'published_at': '1965-08-01'},
            2: {'id': 2, 'title': 'Solaris', 'published_at': '1961-06-01'},
        }

        @app.route('/v1/book', methods=['GET'])
        def list_books():
            items = sorted(books.values(), key=lambda book: book['id'])
            if 'title' in request.args:
                items = [book for book in items if book['title'] == request.args['title']]
            return jsonify(items)

        @app.route('/v1/book', methods=['POST'])
        def create_book():
            data = request.get_json()
            if not data.get('title'):
                return jsonify({'message': 'Invalid', 'errors': {'title': ['The title is required.']}}), 422
            book = dict(data, id=max(books) + 1)
            books[book['id']] = book
            return jsonify(book), 201

        @app.route('/v1/book/<int:id>', methods=['GET'])
        def read_book(id):
            if id not in books:
                return jsonify({'message': 'Not found'}), 404
            return jsonify(books[id])

        @app.route('/v1/book/<int:id>', methods=['PATCH'])
        def update_book(id):
            if id not in books:
                abort(404)
            books[id].update(request.get_json())
            return jsonify(books[id])

        @app.route('/v1/book/<int:id>', methods=['DELETE'])
        def delete_book(id):
            books.pop(id)
            return '', 204

        @app.route('/v1/broken', methods=['GET'])
        def broken():
            return jsonify({'message': 'Oops'}), 500

        return app

    def test_default_routes(self):
        self.assertEqual(['find', 'list', 'create', 'update', 'delete'], Book.routes.names())
        self.assertEqual('/book/{id}', Book.routes.get('find').path)
        self.assertEqual('PATCH', Book.routes.get('update').method)

    def test_meta_inheritance_and_custom_routes(self):
        class Article(Model):
            class Meta:
                service = 'library'
                path = '/article/'
                primary_key = 'slug'
                routes = {'publish': ('POST', '/article/{slug}/publish')}
                exclude_routes = ('delete',)

        class DraftArticle(Article):
            class Meta:
                path = '/draft'

        self.assertEqual(['find', 'list', 'create', 'update', 'publish'], Article.routes.names())
        self.assertEqual('/article/{slug}', Article.routes.get('find').path)
        self.assertEqual('slug', DraftArticle.meta.primary_key)
        self.assertEqual('/draft/{slug}', DraftArticle.routes.get('find').path)

    def test_get_key(self):
        book = Book(id=3, title='Foo')
        self.assertEqual(3, book.get_key())
        self.assertEqual('id', book.get_key_name())
        self.assertEqual('book_id', book.get_foreign_key())

    def test_get_base_uri(self):
        self.assertEqual('http://localhost/v1/', Book().get_base_uri())

        class Orphan(Model):
            class Meta:
                service = 'unknown'

        with self.assertRaises(ConfigurationError):
            Orphan().get_base_uri()

        class Pinned(Model):
            class Meta:
                base_uri = 'http://pinned.example.com'

        self.assertEqual('http://pinned.example.com', Pinned().get_base_uri())

    def test_attributes(self):
        book = Book({'title': 'Dune'})
        book.pages = 412
        book['isbn'] = '0441172717'

        self.assertEqual('Dune', book.title)
        self.assertEqual(412, book['pages'])
        self.assertIn('isbn', book)
        self.assertEqual({'title': 'Dune', 'pages': 412, 'isbn': '0441172717'}, book.to_dict())
        self.assertFalse(book.exists)

        with self.assertRaises(AttributeError):
            book.author

    def test_fillable(self):
        class Account(Model):
            class Meta:
                service = 'library'
                fillable = ('name',)

        account = Account({'name': 'Foo', 'is_admin': True})
        self.assertEqual({'name': 'Foo'}, account.to_dict())

        account.force_fill({'is_admin': True})
        self.assertTrue(account.is_admin)

    def test_find(self):
        book = Book.find(1)

        self.assertIsInstance(book, Book)
        self.assertTrue(book.exists)
        self.assertEqual('Dune', book.title)

    def test_find_from_instance(self):
        book = Book().find(2)
        self.assertEqual('Solaris', book.title)

    def test_find_missing(self):
        self.assertIsNone(Book.find(99))

    def test_list(self):
        books = Book.list()

        self.assertIsInstance(books, Collection)
        self.assertEqual(['Dune', 'Solaris'], books.pluck('title'))

    def test_list_with_where(self):
        books = Book.where('title', 'Solaris').invoke('list')
        self.assertEqual([2], books.keys())

    def test_list_404(self):
        class Missing(Model):
            class Meta:
                service = 'library'
                path = '/missing'

        Missing.set_default_transport(self.transport)

        with self.assertRaises(ClientError) as cx:
            Missing.list()

        self.assertEqual(404, cx.exception.status_code)

    def test_server_error(self):
        class Broken(Model):
            class Meta:
                service = 'library'
                path = '/broken'

        Broken.set_default_transport(self.transport)

        with self.assertRaises(ServerError):
            Broken.list()

    def test_create(self):
        book = Book({'title': 'Hyperion'})
        saved = book.save()

        self.assertIsNot(book, saved)
        self.assertIsInstance(saved, Book)
        self.assertTrue(saved.exists)
        self.assertEqual(3, saved.id)
        self.assertEqual('Hyperion', saved.title)
        self.assertEqual(3, book.id)
        self.assertTrue(book.exists)
        self.assertEqual('Hyperion', self.app.books[3]['title'])

    def test_create_validation_error(self):
        with self.assertRaises(ServiceValidationError) as cx:
            Book({'title': ''}).save()

        self.assertEqual({'title': ['The title is required.']}, cx.exception.messages)
        self.assertEqual(422, cx.exception.status_code)

    def test_update(self):
        book = Book.find(1)
        book.title = 'Dune Messiah'
        saved = book.save()

        self.assertEqual('Dune Messiah', saved.title)
        self.assertEqual('Dune Messiah', self.app.books[1]['title'])

    def test_delete(self):
        self.assertIsNone(Book.find(2).delete())
        self.assertNotIn(2, self.app.books)

    def test_delete_without_key(self):
        with self.assertRaises(MissingPathArgumentError):
            Book().delete()

    def test_dates(self):
        book = Book.find(1)
        self.assertEqual(datetime.datetime(1965, 8, 1), book.published_at)

        book = Book(created_at='1991-02-08 12:00:00')
        self.assertEqual(datetime.datetime(1991, 2, 8, 12, 0), book.created_at)

        book = Book(created_at='1991-02-08T12:00:00')
        self.assertEqual(datetime.datetime(1991, 2, 8, 12, 0), book.created_at)

        book = Book(created_at=datetime.date(1991, 2, 8))
        self.assertEqual(datetime.datetime(1991, 2, 8), book.created_at)

        book = Book(created_at=0)
        self.assertEqual(datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc), book.created_at)

    def test_to_json(self):
        book = Book(id=1, created_at='1991-02-08')
        self.assertJSONEqual({'id': 1, 'created_at': '1991-02-08T00:00:00'}, book.to_json())

    def test_hydrate(self):
        books = Book.hydrate([{'id': 1}, {'id': 2}])

        self.assertIsInstance(books, Collection)
        self.assertEqual([1, 2], books.keys())
        self.assertTrue(books.first().exists)

    def test_signals(self):
        received = []

        def listener(sender, **kwargs):
            received.append((sender.__class__.__name__, sorted(kwargs)))

        with signals.before_create.connected_to(listener), \
                signals.after_create.connected_to(listener), \
                signals.request_started.connected_to(listener), \
                signals.request_finished.connected_to(listener):
            Book(title='Hyperion').save()

        self.assertEqual([
            ('Book', []),
            ('Book', ['request']),
            ('Book', ['response', 'result']),
            ('Book', ['result']),
        ], received)

    def test_equality(self):
        self.assertEqual(Book(id=1), Book(id=1))
        self.assertNotEqual(Book(id=1), Book(id=2))


class ModelPaginationTestCase(BaseTestCase):

    def setUp(self):
        super(ModelPaginationTestCase, self).setUp()
        config['REMOTE_MODELS_SERVICES']['library'] = {
            'base_uri': 'http://library.example.com',
            'schema': {
                'pagination': 'fractal'
            },
            'request_options': {'timeout': 5}
        }
        self.transport = MockTransport()
        Book.set_default_transport(self.transport)

    def tearDown(self):
        Book.set_default_transport(None)
        super(ModelPaginationTestCase, self).tearDown()

    def test_fractal_pagination(self):
        self.transport.append(200, {
            'data': [{'id': 1}, {'id': 2}],
            'meta': {
                'pagination': {
                    'total': 4,
                    'count': 2,
                    'per_page': 2,
                    'current_page': 1,
                    'total_pages': 2
                }
            }
        })

        page = Book.query('page', 1).invoke('list')

        self.assertIsInstance(page, LengthAwarePaginator)
        self.assertEqual([1, 2], [book.id for book in page])
        self.assertEqual(2, page.next_page)
        self.assertEqual('http://library.example.com/book?page=1', self.transport.last_request.uri)
        self.assertEqual({'timeout': 5}, self.transport.options[-1])
