import os

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("STORAGE_BACKEND", "memory")

import pytest

from app.repositories.memory_store import InMemoryCatalogStore, InMemoryUserStore


@pytest.fixture
def catalog():
    return InMemoryCatalogStore()


@pytest.fixture
def users():
    return InMemoryUserStore()
