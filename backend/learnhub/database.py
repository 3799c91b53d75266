"""In-memory database and helpers.

This module provides the process-local store that backs the API. Each
entity kind lives in its own `Table`, keyed by an auto-increment integer
id. Nothing is written to disk: a store lives as long as the application
that built it, and a restart starts every id counter again at 1.

The store is constructed explicitly and handed to the FastAPI app (see
`main.create_app`); endpoints receive it through the `get_database`
dependency rather than importing a global.
"""

import itertools
import threading
from typing import Callable, Dict, Generic, List, Optional, TypeVar
from fastapi import Request
from . import models

T = TypeVar("T")


class KeyConflict(ValueError):
    """An insert would duplicate a natural key."""
    def __init__(self, table: str, field: str, value):
        super().__init__(f"{table}.{field} {value!r} already exists")
        self.table = table
        self.field = field
        self.value = value


class Table(Generic[T]):
    """A keyed collection emulating one relational table.

    Rows are kept in insertion order. Ids come from a monotonic counter
    and are never reused.
    """
    def __init__(self, name: str):
        self.name = name
        self._rows: Dict[int, T] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def insert(self, row: T, unique_on: Optional[str] = None) -> T:
        """Assign the next id to `row`, store it and return it.

        With `unique_on`, the insert is refused with `KeyConflict` when a
        stored row already has the same value for that attribute. The
        check and the insert happen under one lock, and a refused row
        does not consume an id.
        """
        with self._lock:
            if unique_on is not None:
                value = getattr(row, unique_on)
                if any(getattr(r, unique_on) == value for r in self._rows.values()):
                    raise KeyConflict(self.name, unique_on, value)
            row.id = next(self._ids)
            self._rows[row.id] = row
        return row

    def get(self, row_id: int) -> Optional[T]:
        return self._rows.get(row_id)

    def all(self) -> List[T]:
        # snapshot so scans never see a concurrent insert mid-iteration
        with self._lock:
            return list(self._rows.values())

    def filter(self, predicate: Callable[[T], bool]) -> List[T]:
        """Linear scan returning every row matching `predicate`."""
        return [r for r in self.all() if predicate(r)]

    def first(self, predicate: Callable[[T], bool]) -> Optional[T]:
        """Linear scan returning the first row matching `predicate`."""
        return next((r for r in self.all() if predicate(r)), None)

    def __len__(self) -> int:
        return len(self._rows)


class InMemoryDatabase:
    """The six entity tables of the content hub."""
    def __init__(self):
        self.users: Table[models.User] = Table("users")
        self.concepts: Table[models.Concept] = Table("concepts")
        self.theory: Table[models.TheoryContent] = Table("theory_content")
        self.code: Table[models.CodeImplementation] = Table("code_implementations")
        self.experiments: Table[models.Experiment] = Table("experiments")
        self.papers: Table[models.Paper] = Table("papers")


def get_database(request: Request) -> InMemoryDatabase:
    """Return the store attached to the running application.

    Used as a FastAPI dependency; tests swap the store by building an app
    around their own `InMemoryDatabase`.
    """
    return request.app.state.db
