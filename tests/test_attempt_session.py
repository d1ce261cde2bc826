from datetime import timedelta

import pytest

from classes.attempt_session import AttemptSession
from classes.attempt_store import AttemptStore
from classes.errors import (
    AlreadySubmitted, AttemptNotFound, DeadlinePassed, InvalidOption, QuizClosed, QuizNotOpen, QuizNotFound,
)
from classes.quiz_catalog import QuizCatalog
from models.quiz_attempts import AttemptState
from tests.conftest import T0


@pytest.fixture
def session(app, clock):
    return AttemptSession(clock=clock)


@pytest.fixture
def quiz(make_quiz):
    return make_quiz()


def _question_ids(quiz):
    return [q.id for q in quiz.questions]


def test_begin_returns_an_active_view_with_remaining_time(session, quiz, participant, clock):
    clock.advance(minutes=5)
    view = session.begin(quiz.id, participant.id)

    assert view.lifecycle_state is AttemptState.ACTIVE
    assert view.remaining_seconds == 20 * 60
    assert view.already_submitted is False
    assert view.score is None
    assert len(view.questions) == 2
    assert "answer" not in view.questions[0]


def test_begin_twice_resumes_with_shrunk_time(session, quiz, participant, clock):
    session.begin(quiz.id, participant.id)
    clock.advance(minutes=7, seconds=30)

    view = session.begin(quiz.id, participant.id)

    assert view.remaining_seconds == 12 * 60 + 30
    assert view.started_at == T0


def test_begin_before_opening_creates_nothing(session, quiz, participant, clock):
    clock.set(T0 - timedelta(minutes=1))

    with pytest.raises(QuizNotOpen):
        session.begin(quiz.id, participant.id)
    with pytest.raises(AttemptNotFound):
        AttemptStore.load(quiz.id, participant.id)


def test_begin_after_close_without_record_fails(session, quiz, participant, clock):
    clock.set(T0 + timedelta(minutes=60))
    with pytest.raises(QuizClosed):
        session.begin(quiz.id, participant.id)


def test_begin_unknown_quiz(session, participant):
    with pytest.raises(QuizNotFound):
        session.begin(12345, participant.id)


def test_window_truncates_the_deadline(session, quiz, participant, clock):
    clock.set(T0 + timedelta(minutes=50))
    view = session.begin(quiz.id, participant.id)

    assert view.deadline == T0 + timedelta(minutes=60)
    assert view.remaining_seconds == 10 * 60


def test_deadline_survives_catalog_edits(session, quiz, participant, creator, clock):
    session.begin(quiz.id, participant.id)
    QuizCatalog.update_quiz(quiz.id, creator.id, {
        "time_limit_minutes": 90,
        "ends_on": (T0 + timedelta(hours=3)).isoformat(),
    })
    clock.advance(minutes=1)

    view = session.poll(quiz.id, participant.id)

    assert view.deadline == T0 + timedelta(minutes=20)
    assert view.remaining_seconds == 19 * 60


def test_record_answer_validates_the_option(session, quiz, participant):
    session.begin(quiz.id, participant.id)
    q1, _ = _question_ids(quiz)

    with pytest.raises(InvalidOption):
        session.record_answer(quiz.id, participant.id, q1, 5)
    with pytest.raises(InvalidOption):
        session.record_answer(quiz.id, participant.id, q1, 0)
    with pytest.raises(InvalidOption):
        session.record_answer(quiz.id, participant.id, 999, 1)


def test_record_answer_without_begin(session, quiz, participant):
    with pytest.raises(AttemptNotFound):
        session.record_answer(quiz.id, participant.id, _question_ids(quiz)[0], 1)


def test_sibling_answers_are_not_clobbered(session, quiz, participant):
    session.begin(quiz.id, participant.id)
    q1, q2 = _question_ids(quiz)

    # both tabs save through the record as it was loaded before either write
    stale = AttemptStore.load(quiz.id, participant.id)
    assert AttemptStore.compare_and_swap_answer(stale, q1, 3, T0)
    assert AttemptStore.compare_and_swap_answer(stale, q2, 1, T0)

    view = session.begin(quiz.id, participant.id)
    assert view.responses == {q1: 3, q2: 1}


def test_answer_after_deadline_is_rejected_and_ends_the_attempt(session, quiz, participant, clock):
    session.begin(quiz.id, participant.id)
    q1, _ = _question_ids(quiz)
    clock.advance(minutes=20)

    with pytest.raises(DeadlinePassed) as excinfo:
        session.record_answer(quiz.id, participant.id, q1, 2)

    assert excinfo.value.view.lifecycle_state is AttemptState.ENDED
    attempt = AttemptStore.load(quiz.id, participant.id)
    assert attempt.lifecycle_state is AttemptState.ENDED
    assert attempt.answer_map() == {}

    view = session.poll(quiz.id, participant.id)
    assert view.lifecycle_state is AttemptState.ENDED
    assert view.quiz_ended is True
    assert view.remaining_seconds == 0


def test_answer_after_submit_reports_already_submitted(session, quiz, participant):
    session.begin(quiz.id, participant.id)
    session.finalize(quiz.id, participant.id, "manual")

    with pytest.raises(AlreadySubmitted) as excinfo:
        session.record_answer(quiz.id, participant.id, _question_ids(quiz)[0], 2)
    assert excinfo.value.view.already_submitted is True


def test_poll_after_deadline_auto_finalizes(session, quiz, participant, clock):
    session.begin(quiz.id, participant.id)
    q1, _ = _question_ids(quiz)
    session.record_answer(quiz.id, participant.id, q1, 2)
    clock.advance(minutes=25)

    view = session.poll(quiz.id, participant.id)

    assert view.lifecycle_state is AttemptState.SUBMITTED
    assert view.already_submitted is True
    assert view.score == 1
    attempt = AttemptStore.load(quiz.id, participant.id)
    assert attempt.submit_reason == "status-detected-end"
    assert attempt.ended_reason == "deadline"


def test_two_question_scenario(session, make_quiz, participant, clock):
    quiz = make_quiz(questions=[
        {"question_title": "A", "option1": "1", "option2": "2", "option3": "3", "option4": "4", "answer": 1, "weight": 1},
        {"question_title": "B", "option1": "1", "option2": "2", "option3": "3", "option4": "4", "answer": 2, "weight": 1},
    ])
    q1, _ = _question_ids(quiz)
    session.begin(quiz.id, participant.id)
    session.record_answer(quiz.id, participant.id, q1, 1)
    clock.advance(minutes=21)

    view = session.poll(quiz.id, participant.id)

    assert view.score == 1
    assert view.lifecycle_state is AttemptState.SUBMITTED


def test_poll_before_begin_is_not_started(session, quiz, participant, clock):
    clock.set(T0 - timedelta(minutes=10))
    view = session.poll(quiz.id, participant.id)

    assert view.lifecycle_state is AttemptState.NOT_STARTED
    assert view.quiz_ended is False


def test_poll_while_active_is_read_only(session, quiz, participant, clock):
    session.begin(quiz.id, participant.id)
    version = AttemptStore.load(quiz.id, participant.id).version
    clock.advance(minutes=3)

    view = session.poll(quiz.id, participant.id)

    assert view.lifecycle_state is AttemptState.ACTIVE
    assert view.remaining_seconds == 17 * 60
    assert AttemptStore.load(quiz.id, participant.id).version == version


def test_finalize_twice_returns_the_same_result(session, quiz, participant, clock):
    session.begin(quiz.id, participant.id)
    session.record_answer(quiz.id, participant.id, _question_ids(quiz)[1], 1)

    first = session.finalize(quiz.id, participant.id, "manual")
    clock.advance(seconds=2)
    second = session.finalize(quiz.id, participant.id, "timeout")

    assert first.score == second.score == 1
    assert first.submitted_at == second.submitted_at == T0
    assert AttemptStore.load(quiz.id, participant.id).submit_reason == "manual"


def test_racing_finalize_loser_sees_the_winner(session, quiz, participant, clock):
    session.begin(quiz.id, participant.id)
    # the loser read the record before the winner committed
    loser_record = AttemptStore.load(quiz.id, participant.id)
    session.finalize(quiz.id, participant.id, "manual")
    clock.advance(seconds=1)

    loser = AttemptStore.transition_to_submitted(
        loser_record, lambda answers: 99.0, clock.now(), "timeout"
    )

    assert loser.score == 0
    assert loser.submitted_at == T0
    assert loser.submit_reason == "manual"


def test_finalize_rejects_unknown_reason(session, quiz, participant):
    session.begin(quiz.id, participant.id)
    with pytest.raises(ValueError):
        session.finalize(quiz.id, participant.id, "because")


def test_begin_after_deadline_finalizes_eagerly(session, quiz, participant, clock):
    session.begin(quiz.id, participant.id)
    session.record_answer(quiz.id, participant.id, _question_ids(quiz)[0], 2)
    clock.advance(hours=2)

    view = session.begin(quiz.id, participant.id)

    assert view.already_submitted is True
    assert view.score == 1
    assert view.questions is None


def test_begin_on_ended_attempt_finalizes(session, quiz, participant, clock):
    session.begin(quiz.id, participant.id)
    clock.advance(minutes=30)
    with pytest.raises(DeadlinePassed):
        session.record_answer(quiz.id, participant.id, _question_ids(quiz)[0], 2)

    view = session.begin(quiz.id, participant.id)

    assert view.lifecycle_state is AttemptState.SUBMITTED
    assert view.score == 0
    assert AttemptStore.load(quiz.id, participant.id).submit_reason == "timeout"


def test_force_stop_ends_running_attempts(session, quiz, participant, creator, clock):
    session.begin(quiz.id, participant.id)
    session.record_answer(quiz.id, participant.id, _question_ids(quiz)[0], 2)
    clock.advance(minutes=2)

    assert session.force_stop(quiz.id, creator.id) == 1

    attempt = AttemptStore.load(quiz.id, participant.id)
    assert attempt.lifecycle_state is AttemptState.ENDED
    assert attempt.ended_reason == "admin-stop"
    assert attempt.deadline == T0 + timedelta(minutes=20)

    view = session.finalize(quiz.id, participant.id, "status-detected-end")
    assert view.score == 1


def test_stopped_quiz_refuses_new_attempts(session, quiz, participant, creator):
    session.force_stop(quiz.id, creator.id)
    with pytest.raises(QuizClosed):
        session.begin(quiz.id, participant.id)


def test_info_reports_window_and_submission(session, quiz, participant, clock):
    clock.set(T0 - timedelta(minutes=5))
    info = session.info(quiz.id, participant.id)
    assert info["started"] is False
    assert info["already_submitted"] is False
    assert info["duration_minutes"] == 20

    clock.set(T0)
    session.begin(quiz.id, participant.id)
    session.finalize(quiz.id, participant.id)
    info = session.info(quiz.id, participant.id)
    assert info["started"] is True
    assert info["already_submitted"] is True
