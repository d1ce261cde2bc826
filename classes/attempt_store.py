"""
Attempt record store.

The only writer of quiz_attempts and quiz_attempt_answers. Every guarded write
opens with a conditional version bump on the attempt row:

    UPDATE quiz_attempts SET version = version + 1
    WHERE id = :id AND state IN (:allowed)

A rowcount of 1 proves the state precondition and holds the row's write lock
until commit, so answer upserts and finalization for one attempt are
linearized. A rowcount of 0 means the precondition failed and nothing is
written.
"""

from __future__ import annotations

from datetime import datetime
import logging
from typing import Callable, Iterable

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from classes.errors import AttemptNotFound, QuizClosed, QuizNotOpen, StoreUnavailable
from models import db
from models.quiz_attempts import AttemptState, QuizAttempt
from models.quiz_attempts_answers import QuizAttemptAnswer

logger = logging.getLogger(__name__)

# An insert that loses a race on (attempt_id, question_id) is retried once as an update.
_ANSWER_WRITE_ATTEMPTS = 2


class AttemptStore:
    @staticmethod
    def find(quiz_id, participant_id) -> QuizAttempt | None:
        return QuizAttempt.query.filter_by(quiz_id=quiz_id, user_id=participant_id).first()

    @staticmethod
    def load(quiz_id, participant_id) -> QuizAttempt:
        attempt = AttemptStore.find(quiz_id, participant_id)
        if attempt is None:
            raise AttemptNotFound()
        return attempt

    @staticmethod
    def get_or_create(quiz_id, participant_id, quiz_def, now: datetime) -> tuple[QuizAttempt, bool]:
        attempt = AttemptStore.find(quiz_id, participant_id)
        if attempt is not None:
            return attempt, False

        if now < quiz_def.opens_at:
            raise QuizNotOpen()
        if quiz_def.has_ended(now):
            raise QuizClosed()

        attempt = QuizAttempt(
            quiz_id=quiz_id,
            user_id=participant_id,
            started_at=now,
            deadline=quiz_def.deadline_for(now),
            state=AttemptState.ACTIVE.value,
            version=0,
        )
        try:
            db.session.add(attempt)
            db.session.commit()
        except IntegrityError:
            # Another request for the same participant created the row first.
            db.session.rollback()
            existing = AttemptStore.find(quiz_id, participant_id)
            if existing is None:
                logger.exception("Attempt insert failed for quiz %s user %s", quiz_id, participant_id)
                raise StoreUnavailable()
            return existing, False
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("Attempt insert failed for quiz %s user %s", quiz_id, participant_id)
            raise StoreUnavailable()

        logger.info(
            "Attempt %s started: quiz=%s user=%s deadline=%s",
            attempt.id, quiz_id, participant_id, attempt.deadline.isoformat(),
        )
        return attempt, True

    @staticmethod
    def compare_and_swap_answer(attempt: QuizAttempt, question_id, option, now: datetime) -> bool:
        """
        Upsert a single answer while the attempt is active. Returns False,
        writing nothing, if the attempt is no longer active.
        """
        attempt_id = attempt.id
        for remaining in range(_ANSWER_WRITE_ATTEMPTS, 0, -1):
            try:
                if not _claim(attempt_id, (AttemptState.ACTIVE,)):
                    db.session.rollback()
                    return False

                updated = db.session.execute(
                    update(QuizAttemptAnswer)
                    .where(
                        QuizAttemptAnswer.attempt_id == attempt_id,
                        QuizAttemptAnswer.question_id == question_id,
                    )
                    .values(selected_option=option, updated_at=now)
                    .execution_options(synchronize_session=False)
                ).rowcount
                if not updated:
                    db.session.add(QuizAttemptAnswer(
                        attempt_id=attempt_id,
                        question_id=question_id,
                        selected_option=option,
                        updated_at=now,
                    ))
                    db.session.flush()
                db.session.commit()
                return True
            except IntegrityError:
                db.session.rollback()
                if remaining == 1:
                    logger.exception("Answer write for attempt %s kept conflicting", attempt_id)
                    raise StoreUnavailable()
            except SQLAlchemyError:
                db.session.rollback()
                logger.exception("Answer write failed for attempt %s", attempt_id)
                raise StoreUnavailable()
        return False

    @staticmethod
    def transition_to_ended(attempt: QuizAttempt, reason: str) -> bool:
        attempt_id = attempt.id
        try:
            result = db.session.execute(
                update(QuizAttempt)
                .where(
                    QuizAttempt.id == attempt_id,
                    QuizAttempt.state == AttemptState.ACTIVE.value,
                )
                .values(
                    state=AttemptState.ENDED.value,
                    ended_reason=reason,
                    version=QuizAttempt.version + 1,
                )
                .execution_options(synchronize_session=False)
            )
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("Ending attempt %s failed", attempt_id)
            raise StoreUnavailable()

        ended = result.rowcount == 1
        if ended:
            logger.info("Attempt %s ended (%s)", attempt_id, reason)
        _refresh(attempt)
        return ended

    @staticmethod
    def transition_to_submitted(
        attempt: QuizAttempt,
        score_answers: Callable[[dict], float],
        now: datetime,
        reason: str,
    ) -> QuizAttempt:
        """
        Freeze the attempt: score the stored answers and stamp score and
        submitted_at. If another request already submitted, the stored record
        is returned unchanged and score_answers is never called.
        """
        attempt_id = attempt.id
        try:
            if not _claim(attempt_id, (AttemptState.ACTIVE, AttemptState.ENDED)):
                db.session.rollback()
                logger.info("Attempt %s already submitted; finalize (%s) is a no-op", attempt_id, reason)
                return _refresh(attempt)

            answers = dict(db.session.execute(_answers_query(attempt_id)).all())
            final_score = score_answers(answers)

            db.session.execute(
                update(QuizAttempt)
                .where(
                    QuizAttempt.id == attempt_id,
                    QuizAttempt.state.in_([AttemptState.ACTIVE.value, AttemptState.ENDED.value]),
                )
                .values(
                    state=AttemptState.SUBMITTED.value,
                    score=final_score,
                    submitted_at=now,
                    submit_reason=reason,
                )
                .execution_options(synchronize_session=False)
            )
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("Submitting attempt %s failed", attempt_id)
            raise StoreUnavailable()

        logger.info("Attempt %s submitted (%s): score=%s", attempt_id, reason, final_score)
        return _refresh(attempt)

    @staticmethod
    def active_attempts(quiz_id) -> list[QuizAttempt]:
        return QuizAttempt.query.filter_by(quiz_id=quiz_id, state=AttemptState.ACTIVE.value).all()

    @staticmethod
    def submitted_for_quiz(quiz_id) -> list[QuizAttempt]:
        return (
            QuizAttempt.query
            .filter_by(quiz_id=quiz_id, state=AttemptState.SUBMITTED.value)
            .order_by(QuizAttempt.submitted_at.asc())
            .all()
        )

    @staticmethod
    def submitted_for_user(participant_id) -> list[QuizAttempt]:
        return (
            QuizAttempt.query
            .filter_by(user_id=participant_id, state=AttemptState.SUBMITTED.value)
            .order_by(QuizAttempt.submitted_at.desc())
            .all()
        )

    @staticmethod
    def count_for_quiz(quiz_id) -> int:
        return QuizAttempt.query.filter_by(quiz_id=quiz_id).count()


def _claim(attempt_id, allowed: Iterable[AttemptState]) -> bool:
    result = db.session.execute(
        update(QuizAttempt)
        .where(
            QuizAttempt.id == attempt_id,
            QuizAttempt.state.in_([state.value for state in allowed]),
        )
        .values(version=QuizAttempt.version + 1)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def _answers_query(attempt_id):
    # Locking read, so answers committed while the claim waited are visible
    # under REPEATABLE READ.
    return (
        select(QuizAttemptAnswer.question_id, QuizAttemptAnswer.selected_option)
        .where(QuizAttemptAnswer.attempt_id == attempt_id)
        .with_for_update()
    )


def _refresh(attempt: QuizAttempt) -> QuizAttempt:
    db.session.refresh(attempt)
    return attempt
