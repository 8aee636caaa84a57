import pytest

from tests.fakes import InMemoryMarkerStore, InMemoryOrderRepository, InMemoryVinylRepository


@pytest.fixture
def order_repo():
    return InMemoryOrderRepository()


@pytest.fixture
def vinyl_repo():
    return InMemoryVinylRepository()


@pytest.fixture
def marker_store():
    return InMemoryMarkerStore()
