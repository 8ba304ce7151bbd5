"""MessageRouter dispatch, tested against a real SessionManager with in-memory connections."""

from trivia.logic.enums import Phase
from trivia.messaging.types import SessionErrorCode
from trivia.tests.mocks import MockConnection


async def connect(router, connection_id=None):
    connection = MockConnection(connection_id)
    await router.handle_connect(connection)
    return connection


async def open_room(router):
    host = await connect(router)
    await router.handle_message(host, {"type": "create-room"})
    return host, host.last_of_type("room-created")["code"]


class TestMessageRouter:
    async def test_invalid_message_is_dropped(self, message_router):
        connection = await connect(message_router)
        await message_router.handle_message(connection, {"type": "dance"})
        await message_router.handle_message(connection, {"nothing": "here"})
        assert connection.sent_messages == []
        assert connection.is_open

    async def test_create_and_join(self, message_router, session_manager):
        host, code = await open_room(message_router)
        ann = await connect(message_router)
        await message_router.handle_message(ann, {"type": "join-room", "code": code.lower(), "name": " Ann "})

        assert ann.last_of_type("joined")["name"] == "Ann"
        assert host.last_of_type("player-list")["players"][0]["name"] == "Ann"
        assert session_manager.connection_count == 2

    async def test_join_unknown_room(self, message_router):
        ann = await connect(message_router)
        await message_router.handle_message(ann, {"type": "join-room", "code": "QQQQ", "name": "Ann"})
        assert ann.last_of_type("error")["code"] == SessionErrorCode.ROOM_NOT_FOUND

    async def test_host_join(self, message_router):
        _, code = await open_room(message_router)
        display = await connect(message_router)
        await message_router.handle_message(display, {"type": "host-join", "code": code})
        assert display.last_of_type("host-joined")["code"] == code

    async def test_game_actions_reach_the_room(self, message_router, session_manager):
        host, code = await open_room(message_router)
        players = []
        for name in ("Ann", "Bo"):
            connection = await connect(message_router)
            await message_router.handle_message(connection, {"type": "join-room", "code": code, "name": name})
            players.append(connection)
        await message_router.handle_message(host, {"type": "start-game"})

        room = session_manager.get_room(code)
        assert room.phase == Phase.CATEGORY_SELECT
        category = room.categories[0]
        await message_router.handle_message(players[0], {"type": "vote-category", "category": category})
        assert room.category_votes == {"Ann": category}

    async def test_play_again(self, message_router, session_manager):
        host, code = await open_room(message_router)
        await message_router.handle_message(host, {"type": "play-again"})
        assert host.last_of_type("back-to-lobby") == {"type": "back-to-lobby", "players": []}

    async def test_failing_action_is_contained(self, message_router, session_manager, monkeypatch):
        connection = await connect(message_router)

        async def explode(**_kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(session_manager, "handle_game_action", explode)
        await message_router.handle_message(connection, {"type": "submit-vote", "answerId": 1})
        assert connection.is_open

    async def test_disconnect_unregisters(self, message_router, session_manager):
        connection = await connect(message_router)
        assert session_manager.connection_count == 1
        await message_router.handle_disconnect(connection)
        assert session_manager.connection_count == 0
