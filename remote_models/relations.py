from contextlib import contextmanager


class Relation(object):
    """
    Base class for relations between models. A relation owns a request builder for the related model and adds
    its constraint to the builder as a ``where`` parameter.

    Builder methods can be called on the relation directly; fluent builder methods return the relation.

    :param builder.RequestBuilder request: builder bound to an instance of the related model
    :param model.Model parent: the model the relation is defined on
    :param str action: name of the route requested for the results
    """
    constraints = True

    def __init__(self, request, parent, action):
        self.request = request
        self.parent = parent
        self.related = request.get_model()
        self.action = action

        self.add_constraints()

    @classmethod
    @contextmanager
    def no_constraints(cls):
        previous = Relation.constraints
        Relation.constraints = False
        try:
            yield
        finally:
            Relation.constraints = previous

    def add_constraints(self):
        raise NotImplementedError()

    def get_results(self, request_options=None):
        raise NotImplementedError()

    def send_request(self, request_options=None):
        return self.request.request(self.action, request_options)

    def get_request(self):
        return self.request

    def get_parent(self):
        return self.parent

    def get_related(self):
        return self.related

    def copy(self):
        relation = object.__new__(self.__class__)
        relation.__dict__.update(self.__dict__)
        relation.request = self.request.copy()
        return relation

    def __getattr__(self, name):
        if name.startswith('_') or name == 'request':
            raise AttributeError(name)

        attribute = getattr(self.request, name)
        if not callable(attribute):
            return attribute

        def forward(*args, **kwargs):
            result = attribute(*args, **kwargs)
            if result is self.request:
                return self
            return result

        forward.__name__ = name
        return forward

    def __repr__(self):
        return '<{} {} -> {}>'.format(self.__class__.__name__,
                                      self.parent.__class__.__name__,
                                      self.related.__class__.__name__)


class HasOneOrMany(Relation):
    """
    :param str foreign_key: attribute of the related model referring to the parent
    :param str local_key: attribute of the parent holding the referred value
    """

    def __init__(self, request, parent, foreign_key, local_key, action):
        self.foreign_key = foreign_key
        self.local_key = local_key
        super(HasOneOrMany, self).__init__(request, parent, action)

    def add_constraints(self):
        if Relation.constraints:
            self.request.where(self.foreign_key, self.get_parent_key())

    def make(self, attributes=None):
        """
        Returns a new, unsaved instance of the related model with the foreign key set.
        """
        instance = self.related.new_instance(attributes)
        self._set_foreign_attributes_for_create(instance)
        return instance

    def save(self, model, request_options=None):
        self._set_foreign_attributes_for_create(model)
        return model.save(request_options)

    def save_many(self, models, request_options=None):
        return [self.save(model, request_options) for model in models]

    def _set_foreign_attributes_for_create(self, model):
        model.set_attribute(self.foreign_key, self.get_parent_key())

    def get_parent_key(self):
        return self.parent.get_attribute(self.local_key)

    def get_foreign_key_name(self):
        return self.foreign_key

    def get_local_key_name(self):
        return self.local_key


class HasOne(HasOneOrMany):

    def get_results(self, request_options=None):
        if self.get_parent_key() is None:
            return None
        return self.send_request(request_options)


class HasMany(HasOneOrMany):

    def get_results(self, request_options=None):
        if self.get_parent_key() is None:
            return self.related.new_collection()
        return self.send_request(request_options)


class BelongsTo(Relation):
    """
    :param str foreign_key: attribute of the child holding the referred value
    :param str owner_key: attribute of the related (owner) model being referred to
    """

    def __init__(self, request, child, foreign_key, owner_key, action):
        self.foreign_key = foreign_key
        self.owner_key = owner_key
        self.child = child
        super(BelongsTo, self).__init__(request, child, action)

    def add_constraints(self):
        if Relation.constraints:
            self.request.where(self.owner_key, self.child.get_attribute(self.foreign_key))

    def get_results(self, request_options=None):
        if self.child.get_attribute(self.foreign_key) is None:
            return None
        return self.send_request(request_options)

    def get_child(self):
        return self.child

    def get_foreign_key_name(self):
        return self.foreign_key

    def get_owner_key_name(self):
        return self.owner_key
