import pytest
from fastapi.testclient import TestClient

from learnhub.database import InMemoryDatabase
from learnhub.main import create_app
from learnhub.seed import load_seed_data


@pytest.fixture()
def db():
    """A freshly seeded store, isolated from every other test."""
    database = InMemoryDatabase()
    load_seed_data(database)
    return database


@pytest.fixture()
def client(db):
    return TestClient(create_app(db=db))
