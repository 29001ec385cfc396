import pytest

from game.messaging.router import MessageRouter
from game.server.app import create_app
from game.server.settings import GameServerSettings
from game.session.manager import SessionManager
from game.session.orchestrator import OrchestratorTiming
from game.tests.mocks import MockConnection

# Fast enough that a full round finishes in well under a second.
FAST_TIMING = OrchestratorTiming(
    announcement_delay_seconds=0.01,
    tick_seconds=0.01,
    all_submitted_delay_seconds=0.01,
    leaderboard_display_seconds=0.01,
    next_round_countdown=1,
)


@pytest.fixture
def timing():
    return FAST_TIMING


@pytest.fixture
def session_manager(timing):
    return SessionManager(timing=timing)


@pytest.fixture
def message_router(session_manager):
    return MessageRouter(session_manager)


@pytest.fixture
def mock_connection():
    return MockConnection()


@pytest.fixture
def app(session_manager, message_router):
    return create_app(
        settings=GameServerSettings(cors_origins=["http://localhost:5173"]),
        session_manager=session_manager,
        message_router=message_router,
    )
