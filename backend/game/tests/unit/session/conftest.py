import pytest

from game.session.manager import SessionManager


@pytest.fixture
async def manager(timing):
    manager = SessionManager(timing=timing)
    yield manager
    await manager.shutdown()
