"""Pytest fixtures for the Task Manager API tests."""

from collections.abc import Iterator
from datetime import UTC, datetime

import pytest
from fastapi.testclient import TestClient

from tasks_api.config import Settings
from tasks_api.main import create_app
from tasks_api.repository import TaskRepository
from tasks_api.service import TaskService
from tasks_api.store import InMemoryTaskStore

from .fakes import FakeClock


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2025, 1, 15, 14, 30, 45, tzinfo=UTC))


@pytest.fixture
def store(clock: FakeClock) -> InMemoryTaskStore:
    return InMemoryTaskStore(clock=clock)


@pytest.fixture
def service(store: InMemoryTaskStore) -> TaskService:
    return TaskService(TaskRepository(store))


@pytest.fixture
def settings() -> Settings:
    return Settings(store="memory")


@pytest.fixture
def client(settings: Settings, store: InMemoryTaskStore) -> Iterator[TestClient]:
    """Create a test client for the API."""
    with TestClient(create_app(settings, store=store)) as test_client:
        yield test_client
