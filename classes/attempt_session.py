"""
Timed attempt session.

Decides, from the attempt record and the server clock, whether a participant
may answer, how much time remains and when the attempt is finalized. There is
no background timer: every begin / record_answer / poll / finalize call
re-checks the deadline before doing anything else.

    not_started --begin (window open)--> active
    active      --deadline or stop-----> ended
    active      --finalize-------------> submitted
    ended       --finalize-------------> submitted
    submitted   --anything-------------> submitted
"""

from __future__ import annotations

from functools import partial
import logging

from flask import current_app

from classes import scoring
from classes.attempt_store import AttemptStore
from classes.clock import get_clock
from classes.errors import AlreadySubmitted, DeadlinePassed, InvalidOption
from classes.quiz_catalog import QuizCatalog
from classes.session_view import SessionView
from models.quiz_attempts import AttemptState
from utils.helpers import isoformat

logger = logging.getLogger(__name__)

REASON_MANUAL = "manual"
REASON_TIMEOUT = "timeout"
REASON_ADMIN_STOP = "admin-stop"
REASON_STATUS_END = "status-detected-end"
REASON_DEADLINE = "deadline"

FINALIZE_REASONS = (REASON_MANUAL, REASON_TIMEOUT, REASON_ADMIN_STOP, REASON_STATUS_END)


class AttemptSession:
    def __init__(self, clock=None, catalog=QuizCatalog, store=AttemptStore, poll_interval=None):
        self.clock = clock or get_clock()
        self.catalog = catalog
        self.store = store
        if poll_interval is None:
            poll_interval = current_app.config.get("POLL_INTERVAL_SECONDS", 4)
        self.poll_interval = poll_interval

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    def begin(self, quiz_id, participant_id) -> SessionView:
        """Start or resume the participant's attempt."""
        now = self.clock.now()
        quiz_def = self.catalog.get_quiz_definition(quiz_id)
        attempt, _created = self.store.get_or_create(quiz_id, participant_id, quiz_def, now)

        if attempt.lifecycle_state is AttemptState.ACTIVE:
            self._enforce_deadline(attempt, quiz_def, now)

        if attempt.lifecycle_state is AttemptState.ENDED:
            attempt = self._submit(attempt, quiz_def, now, _finalize_reason_for(attempt))

        return self._view(attempt, quiz_def, now, include_questions=attempt.lifecycle_state is AttemptState.ACTIVE)

    def record_answer(self, quiz_id, participant_id, question_id, option) -> SessionView:
        now = self.clock.now()
        quiz_def = self.catalog.get_quiz_definition(quiz_id)

        question = quiz_def.question(question_id)
        if question is None:
            raise InvalidOption("Question does not belong to this quiz.")
        if not question.is_valid_option(option):
            raise InvalidOption(f"Option must be one of 1-{len(question.options)}.")

        attempt = self.store.load(quiz_id, participant_id)

        if attempt.lifecycle_state is AttemptState.ACTIVE and self._enforce_deadline(attempt, quiz_def, now):
            logger.info(
                "Answer rejected after deadline: attempt=%s question=%s", attempt.id, question_id
            )

        if attempt.lifecycle_state is AttemptState.ACTIVE:
            if self.store.compare_and_swap_answer(attempt, question_id, option, now):
                return self._view(attempt, quiz_def, now)
            # Lost to a concurrent end/submit; report what happened instead.
            attempt = self.store.load(quiz_id, participant_id)

        view = self._view(attempt, quiz_def, now)
        if attempt.lifecycle_state is AttemptState.SUBMITTED:
            raise AlreadySubmitted(view=view)
        raise DeadlinePassed(view=view)

    def poll(self, quiz_id, participant_id) -> SessionView:
        """
        Status check used for resume and periodic reconciliation. Read-only,
        except that a deadline crossing or force-stop noticed here ends and
        finalizes the attempt on the spot.
        """
        now = self.clock.now()
        quiz_def = self.catalog.get_quiz_definition(quiz_id)
        attempt = self.store.find(quiz_id, participant_id)
        if attempt is None:
            return SessionView.not_started(quiz_def, now, self.poll_interval)

        if attempt.lifecycle_state is AttemptState.ACTIVE and self._time_is_up(attempt, quiz_def, now):
            self._enforce_deadline(attempt, quiz_def, now)
            reason = REASON_ADMIN_STOP if quiz_def.is_stopped else REASON_STATUS_END
            attempt = self._submit(attempt, quiz_def, now, reason)

        return self._view(attempt, quiz_def, now)

    def finalize(self, quiz_id, participant_id, reason=REASON_MANUAL) -> SessionView:
        if reason not in FINALIZE_REASONS:
            raise ValueError(f"Unknown submit reason: {reason}")

        now = self.clock.now()
        quiz_def = self.catalog.get_quiz_definition(quiz_id)
        attempt = self.store.load(quiz_id, participant_id)

        if attempt.lifecycle_state is AttemptState.SUBMITTED:
            logger.info("Duplicate finalize (%s) for attempt %s ignored", reason, attempt.id)
            return self._view(attempt, quiz_def, now)

        if attempt.lifecycle_state is AttemptState.ACTIVE:
            self._enforce_deadline(attempt, quiz_def, now)

        attempt = self._submit(attempt, quiz_def, now, reason)
        return self._view(attempt, quiz_def, now)

    # ------------------------------------------------------------------
    # Administration and read helpers
    # ------------------------------------------------------------------
    def force_stop(self, quiz_id, actor_id) -> int:
        """
        End the quiz for everyone. Running attempts move to ended and are
        finalized on the participant's next call. Returns how many were ended.
        """
        now = self.clock.now()
        self.catalog.mark_stopped(quiz_id, actor_id, now)
        ended = 0
        for attempt in self.store.active_attempts(quiz_id):
            if self.store.transition_to_ended(attempt, REASON_ADMIN_STOP):
                ended += 1
        logger.info("Quiz %s stopped: %d running attempts ended", quiz_id, ended)
        return ended

    def info(self, quiz_id, participant_id) -> dict:
        """Data for the instructions page shown before an attempt starts."""
        now = self.clock.now()
        quiz_def = self.catalog.get_quiz_definition(quiz_id)
        attempt = self.store.find(quiz_id, participant_id)
        return {
            "quiz_id": quiz_def.id,
            "quiz_title": quiz_def.title,
            "initiates_on": isoformat(quiz_def.opens_at),
            "ends_on": isoformat(quiz_def.closes_at),
            "duration_minutes": int(quiz_def.duration_limit.total_seconds()) // 60,
            "total_questions": len(quiz_def.questions),
            "max_score": quiz_def.max_score,
            "started": quiz_def.has_started(now),
            "ended": quiz_def.has_ended(now),
            "already_submitted": attempt is not None and attempt.lifecycle_state is AttemptState.SUBMITTED,
            "attempt_state": attempt.state if attempt is not None else AttemptState.NOT_STARTED.value,
            "now": isoformat(now),
        }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _time_is_up(self, attempt, quiz_def, now) -> bool:
        return now >= attempt.deadline or quiz_def.is_stopped

    def _enforce_deadline(self, attempt, quiz_def, now) -> bool:
        """Move an active attempt to ended if its time is up. Returns True if it did."""
        if not self._time_is_up(attempt, quiz_def, now):
            return False
        reason = REASON_ADMIN_STOP if quiz_def.is_stopped and now < attempt.deadline else REASON_DEADLINE
        return self.store.transition_to_ended(attempt, reason)

    def _submit(self, attempt, quiz_def, now, reason):
        return self.store.transition_to_submitted(
            attempt, partial(scoring.score, quiz_def=quiz_def), now, reason
        )

    def _view(self, attempt, quiz_def, now, include_questions=False) -> SessionView:
        return SessionView.for_attempt(
            attempt, quiz_def, now, self.poll_interval, include_questions=include_questions
        )


def _finalize_reason_for(attempt) -> str:
    if attempt.ended_reason == REASON_ADMIN_STOP:
        return REASON_ADMIN_STOP
    return REASON_TIMEOUT
