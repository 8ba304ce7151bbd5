import logging

from trivia.logic.enums import RoomState
from trivia.messaging.types import SessionErrorCode
from trivia.session.manager import SessionManager
from trivia.session.registry import ROOM_CODE_ALPHABET
from trivia.tests.mocks import MockConnection

from .helpers import create_room, create_started_room, join


class TestCreateRoom:
    async def test_room_created_reply(self, session_manager):
        host, code = await create_room(session_manager)

        assert len(code) == 4
        assert set(code) <= set(ROOM_CODE_ALPHABET)
        room = session_manager.get_room(code)
        assert room.host_connection is host
        assert room.state == RoomState.LOBBY
        assert session_manager.get_binding(host.connection_id).is_host

    async def test_room_limit(self, game_service):
        manager = SessionManager(game_service, max_rooms=1)
        await create_room(manager)
        second = MockConnection("second-host")
        await manager.create_room(second)

        error = second.last_of_type("error")
        assert error["code"] == SessionErrorCode.SERVER_FULL
        assert manager.registry.room_count == 1
        await manager.shutdown()


class TestJoinRoom:
    async def test_joined_reply_and_player_list(self, session_manager):
        host, code = await create_room(session_manager)
        ann = await join(session_manager, code, "Ann")

        assert ann.last_of_type("joined") == {
            "type": "joined",
            "code": code,
            "name": "Ann",
            "score": 0,
            "phase": "lobby",
        }
        expected = [{"name": "Ann", "score": 0, "connected": True}]
        assert host.last_of_type("player-list")["players"] == expected
        assert ann.last_of_type("player-list")["players"] == expected

    async def test_player_list_keeps_join_order(self, session_manager):
        host, code = await create_room(session_manager)
        for name in ("Cy", "Ann", "Bo"):
            await join(session_manager, code, name)
        assert [p["name"] for p in host.last_of_type("player-list")["players"]] == ["Cy", "Ann", "Bo"]

    async def test_unknown_room(self, session_manager):
        conn = await join(session_manager, "ZZZZ", "Ann")
        assert conn.last_of_type("error")["code"] == SessionErrorCode.ROOM_NOT_FOUND

    async def test_blank_name(self, session_manager):
        _, code = await create_room(session_manager)
        conn = await join(session_manager, code, "   ")
        assert conn.last_of_type("error") == {
            "type": "error",
            "code": SessionErrorCode.NAME_REQUIRED,
            "message": "Name required",
        }
        assert session_manager.get_room(code).player_count == 0

    async def test_long_name_is_truncated(self, session_manager):
        _, code = await create_room(session_manager)
        conn = await join(session_manager, code, "A" * 40)
        assert conn.last_of_type("joined")["name"] == "A" * 16

    async def test_name_taken_by_connected_player(self, session_manager):
        _, code = await create_room(session_manager)
        await join(session_manager, code, "Ann")
        impostor = await join(session_manager, code, "Ann")

        error = impostor.last_of_type("error")
        assert error["code"] == SessionErrorCode.NAME_TAKEN
        assert error["message"] == "Name already taken! Pick another."

    async def test_reserved_decoy_name_refused(self, session_manager):
        _, code = await create_room(session_manager)
        conn = await join(session_manager, code, "__GAME__")
        assert conn.last_of_type("error")["code"] == SessionErrorCode.NAME_TAKEN

    async def test_room_full(self, session_manager):
        _, code = await create_room(session_manager)
        for i in range(8):
            await join(session_manager, code, f"p{i}")
        late = await join(session_manager, code, "late")

        error = late.last_of_type("error")
        assert error["code"] == SessionErrorCode.ROOM_FULL
        assert error["message"] == "Room is full (max 8)"

    async def test_new_name_refused_during_game(self, session_manager):
        _, code, _ = await create_started_room(session_manager)
        late = await join(session_manager, code, "late")
        assert late.last_of_type("error")["code"] == SessionErrorCode.GAME_IN_PROGRESS

    async def test_same_connection_can_repeat_join(self, session_manager):
        _, code = await create_room(session_manager)
        ann = await join(session_manager, code, "Ann")
        await session_manager.join_room(ann, code, "Ann")

        assert len(ann.messages_of_type("joined")) == 2
        assert ann.messages_of_type("error") == []
        assert session_manager.get_room(code).player_count == 1


class TestRejoin:
    async def test_rejoin_after_disconnect_keeps_score(self, session_manager):
        _, code = await create_room(session_manager)
        ann = await join(session_manager, code, "Ann")
        session_manager.get_room(code).players["Ann"].score = 1500

        await session_manager.handle_disconnect(ann)
        assert session_manager.get_room(code).players["Ann"].connection is None

        again = await join(session_manager, code, "Ann")
        assert again.last_of_type("joined")["score"] == 1500
        assert session_manager.get_room(code).players["Ann"].connection is again

    async def test_rejoin_over_dead_channel(self, session_manager):
        """A channel that vanished without a close no longer holds the name."""
        _, code = await create_room(session_manager)
        ann = await join(session_manager, code, "Ann")
        ann.drop()

        again = await join(session_manager, code, "Ann")
        assert again.last_of_type("joined")["name"] == "Ann"

    async def test_disconnect_marks_player_offline(self, session_manager):
        host, code = await create_room(session_manager)
        ann = await join(session_manager, code, "Ann")
        await join(session_manager, code, "Bo")
        host.clear()

        await session_manager.handle_disconnect(ann)
        players = host.last_of_type("player-list")["players"]
        assert players[0] == {"name": "Ann", "score": 0, "connected": False}
        assert session_manager.get_binding(ann.connection_id) is None

    async def test_switching_rooms_detaches_from_old_room(self, session_manager):
        _, first = await create_room(session_manager)
        _, second = await create_room(session_manager)
        ann = await join(session_manager, first, "Ann")
        await session_manager.join_room(ann, second, "Ann")

        assert session_manager.get_room(first).players["Ann"].connection is None
        assert session_manager.get_binding(ann.connection_id).room_code == second

    async def test_refused_rename_keeps_current_seat(self, session_manager):
        _, code = await create_room(session_manager)
        ann = await join(session_manager, code, "Ann")
        await join(session_manager, code, "Bo")

        await session_manager.join_room(ann, code, "Bo")

        assert ann.last_of_type("error")["code"] == SessionErrorCode.NAME_TAKEN
        assert session_manager.get_room(code).players["Ann"].connection is ann
        assert session_manager.get_binding(ann.connection_id).player_name == "Ann"

    async def test_refused_move_keeps_old_room(self, session_manager):
        _, first = await create_room(session_manager)
        ann = await join(session_manager, first, "Ann")

        await session_manager.join_room(ann, "0000", "Ann")

        assert ann.last_of_type("error")["code"] == SessionErrorCode.ROOM_NOT_FOUND
        assert session_manager.get_room(first).players["Ann"].connection is ann
        assert session_manager.get_binding(ann.connection_id).room_code == first


class TestHostJoin:
    async def test_unknown_room(self, session_manager):
        display = MockConnection("display")
        await session_manager.host_join(display, "ZZZZ")
        assert display.last_of_type("error")["code"] == SessionErrorCode.ROOM_NOT_FOUND

    async def test_reattach_gets_snapshot(self, session_manager):
        host, code, _ = await create_started_room(session_manager)
        await session_manager.handle_disconnect(host)
        assert session_manager.get_room(code).host_connection is None

        display = MockConnection("display")
        await session_manager.host_join(display, code)
        snapshot = display.last_of_type("host-joined")

        assert snapshot["code"] == code
        assert snapshot["phase"] == "category-select"
        assert snapshot["state"] == "playing"
        assert [p["name"] for p in snapshot["players"]] == ["p1", "p2", "p3"]
        assert session_manager.get_room(code).host_connection is display

    async def test_reattach_logs_pending_timer(self, session_manager, caplog):
        host, code, _ = await create_started_room(session_manager)
        await session_manager.handle_disconnect(host)

        with caplog.at_level(logging.INFO, logger="trivia.session.manager"):
            await session_manager.host_join(MockConnection("display"), code)

        assert "host attached" in caplog.text
        assert "'pending_timer': 'select-category'" in caplog.text
