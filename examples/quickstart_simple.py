from flask import Flask, jsonify, request

from remote_models import Model, WSGITransport, configure

app = Flask(__name__)
books = {1: {'id': 1, 'title': 'Dune', 'year_published': 1965}}


@app.route('/book', methods=['GET'])
def list_books():
    return jsonify(list(books.values()))


@app.route('/book', methods=['POST'])
def create_book():
    book = dict(request.get_json(), id=max(books) + 1)
    books[book['id']] = book
    return jsonify(book), 201


@app.route('/book/<int:id>', methods=['GET'])
def read_book(id):
    if id not in books:
        return jsonify({'message': 'Not found'}), 404
    return jsonify(books[id])


configure(REMOTE_MODELS_SERVICES={
    'library': {
        'base_uri': 'http://localhost/'
    }
})


class Book(Model):
    class Meta:
        service = 'library'
        path = '/book'


Book.set_default_transport(WSGITransport(app))

if __name__ == '__main__':
    print(Book.find(1))
    print(Book({'title': 'Solaris', 'year_published': 1961}).save())
    print(Book.list())
