import pytest

from askcii.llm.registry import clear_api_providers
from askcii.storage.database import Database


@pytest.fixture
async def db():
    """Create an in-memory database for testing."""
    database = Database(":memory:")
    await database.connect()
    yield database
    await database.close()


@pytest.fixture(autouse=True)
def _reset_api_providers():
    yield
    clear_api_providers()
