from __future__ import annotations

from contextlib import contextmanager


class SqlRepositoryBase:
    """Runs statements on the engine, or on a bound connection inside a transaction."""

    def __init__(self, engine, *, connection=None):
        self._engine = engine
        self._connection = connection

    def execute_in_transaction(self, fn):
        if self._connection is not None:
            return fn(self)
        with self._engine.begin() as conn:
            return fn(type(self)(self._engine, connection=conn))

    @contextmanager
    def _reader(self):
        if self._connection is not None:
            yield self._connection
            return
        with self._engine.connect() as conn:
            yield conn

    @contextmanager
    def _writer(self):
        if self._connection is not None:
            yield self._connection
            return
        with self._engine.begin() as conn:
            yield conn
