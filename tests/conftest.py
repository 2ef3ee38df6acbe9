import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from hanna_code.snippet import SnippetRepository


class FakeClock:
    def __init__(self, now: int = 1_700_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int = 60) -> int:
        self.now += seconds
        return self.now


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield engine
    engine.dispose()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def repository(engine, clock):
    repository = SnippetRepository(
        engine,
        is_reserved=lambda name: name in {"page", "pages", "config"},
        clock=clock,
    )
    repository.install()
    return repository
