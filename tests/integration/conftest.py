import pytest
from sqlmodel import SQLModel

from giftledger.depends import Container, create_db_engine


@pytest.fixture(scope="function")
def engine():
    """In-memory SQLite engine with all tables created"""
    engine = create_db_engine("sqlite://")
    SQLModel.metadata.create_all(engine)

    yield engine

    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def container(engine):
    """Container wired to the test engine"""
    return Container(engine=engine)


@pytest.fixture
def restarted(engine):
    """
    A second Container on the same database

    Models a process restart: nothing is shared with `container` but the
    stored rows.
    """

    def factory():
        return Container(engine=engine)

    return factory
