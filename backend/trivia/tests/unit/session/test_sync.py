from trivia.logic import phases
from trivia.logic.enums import TimerAction
from trivia.logic.events import EventType, PlayerTarget
from trivia.session.sync import REVEAL_WAIT_MESSAGE, resync_events
from trivia.tests.helpers.questions import make_bank, slow_settings
from trivia.tests.helpers.rooms import make_room


def started_room(settings):
    room = make_room()
    phases.start_game(room, make_bank(), settings)
    return room


def advance(room, settings, *actions):
    for action in actions:
        phases.run_timer_action(room, action, settings)


class TestResyncEvents:
    def test_lobby_needs_nothing(self):
        assert resync_events(make_room(), "p1", slow_settings()) == []

    def test_category_select(self):
        settings = slow_settings()
        room = started_room(settings)
        (event,) = resync_events(room, "p1", settings)

        assert event.target == PlayerTarget(name="p1")
        assert event.event == EventType.CATEGORY_SELECT
        assert event.data.time_ms == 5000
        assert event.data.categories == room.categories

    def test_show_question_sends_lie_prompt(self):
        settings = slow_settings()
        room = started_room(settings)
        advance(room, settings, TimerAction.SELECT_CATEGORY)
        (event,) = resync_events(room, "p1", settings)

        assert event.event == EventType.LIE_PHASE
        assert event.data.question == room.current_question.question
        assert event.data.time_ms == 15000

    def test_vote_sends_personal_choices(self):
        settings = slow_settings()
        room = started_room(settings)
        advance(room, settings, TimerAction.SELECT_CATEGORY, TimerAction.START_LIE)
        phases.submit_lie(room, "p2", "walrus", settings)
        advance(room, settings, TimerAction.START_VOTE)

        (event,) = resync_events(room, "p2", settings)
        assert event.event == EventType.YOUR_CHOICES
        assert "walrus" not in [a.text for a in event.data.answers]
        assert len(event.data.answers) == len(room.answer_list) - 1

    def test_reveal_sends_wait(self):
        settings = slow_settings()
        room = started_room(settings)
        advance(
            room,
            settings,
            TimerAction.SELECT_CATEGORY,
            TimerAction.START_LIE,
            TimerAction.START_VOTE,
            TimerAction.REVEAL,
        )
        (event,) = resync_events(room, "p3", settings)
        assert event.event == EventType.WAIT
        assert event.data.message == REVEAL_WAIT_MESSAGE

    def test_scoreboard_is_ranked(self):
        settings = slow_settings()
        room = started_room(settings)
        advance(
            room,
            settings,
            TimerAction.SELECT_CATEGORY,
            TimerAction.START_LIE,
            TimerAction.START_VOTE,
            TimerAction.REVEAL,
            TimerAction.SCOREBOARD,
        )
        room.players["p3"].score = 900
        (event,) = resync_events(room, "p1", settings)
        assert event.event == EventType.SCOREBOARD
        assert event.data.players[0].name == "p3"
        assert event.data.round == 1

    def test_ended_game_sends_final_standings(self):
        settings = slow_settings()
        room = started_room(settings)
        room.players["p2"].score = 3000
        phases.end_game(room)
        (event,) = resync_events(room, "p1", settings)
        assert event.event == EventType.GAME_OVER
        assert [p.name for p in event.data.players] == ["p2", "p1", "p3"]
