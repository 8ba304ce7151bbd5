import pytest
from pydantic import ValidationError

from trivia.messaging.types import (
    CreateRoomMessage,
    HostJoinMessage,
    JoinRoomMessage,
    PlayAgainMessage,
    SubmitLieMessage,
    SubmitVoteMessage,
    VoteCategoryMessage,
    parse_client_message,
)


class TestParseClientMessage:
    def test_create_room(self):
        assert isinstance(parse_client_message({"type": "create-room"}), CreateRoomMessage)

    def test_join_room_normalizes_code_and_name(self):
        message = parse_client_message({"type": "join-room", "code": " abcd ", "name": "  Ann "})
        assert isinstance(message, JoinRoomMessage)
        assert message.code == "ABCD"
        assert message.name == "Ann"

    def test_join_room_keeps_long_fields_for_the_session(self):
        message = parse_client_message({"type": "join-room", "code": "x" * 20, "name": "n" * 300})
        assert message.code == "X" * 20
        assert message.name == "n" * 300

    def test_join_room_defaults_to_blank_fields(self):
        message = parse_client_message({"type": "join-room"})
        assert (message.code, message.name) == ("", "")

    def test_host_join(self):
        message = parse_client_message({"type": "host-join", "code": "wxyz"})
        assert isinstance(message, HostJoinMessage)
        assert message.code == "WXYZ"

    def test_vote_category(self):
        message = parse_client_message({"type": "vote-category", "category": "Food"})
        assert isinstance(message, VoteCategoryMessage)
        assert message.category == "Food"

    def test_submit_lie_defaults_to_empty(self):
        message = parse_client_message({"type": "submit-lie"})
        assert isinstance(message, SubmitLieMessage)
        assert message.lie == ""

    def test_submit_vote_uses_camel_case_key(self):
        message = parse_client_message({"type": "submit-vote", "answerId": 3})
        assert isinstance(message, SubmitVoteMessage)
        assert message.answer_id == 3

    def test_submit_vote_accepts_numeric_string(self):
        assert parse_client_message({"type": "submit-vote", "answerId": "2"}).answer_id == 2

    def test_play_again(self):
        assert isinstance(parse_client_message({"type": "play-again"}), PlayAgainMessage)

    @pytest.mark.parametrize(
        "data",
        [
            {},
            {"type": "dance"},
            {"type": "vote-category"},
            {"type": "submit-vote"},
            {"type": "submit-vote", "answerId": "first"},
        ],
    )
    def test_invalid_messages_raise(self, data):
        with pytest.raises(ValidationError):
            parse_client_message(data)
