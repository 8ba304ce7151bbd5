import pytest

from trivia.logic.service import TriviaGameService
from trivia.messaging.router import MessageRouter
from trivia.session.manager import SessionManager
from trivia.tests.helpers.questions import make_bank, slow_settings
from trivia.tests.mocks import MockConnection


@pytest.fixture
def question_bank():
    return make_bank()


@pytest.fixture
def game_settings():
    return slow_settings()


@pytest.fixture
def game_service(question_bank, game_settings):
    return TriviaGameService(question_bank, game_settings)


@pytest.fixture
async def session_manager(game_service):
    manager = SessionManager(game_service)
    yield manager
    await manager.shutdown()


@pytest.fixture
def message_router(session_manager):
    return MessageRouter(session_manager)


@pytest.fixture
def mock_connection():
    return MockConnection()
