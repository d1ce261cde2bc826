"""
Submitted-attempt results.

The caller's role picks the variant: the quiz creator gets every submitted
attempt (AttemptsList), anyone else gets only their own (OwnAttempt).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from classes import scoring
from classes.attempt_store import AttemptStore
from classes.errors import AttemptNotFound
from classes.quiz_catalog import QuizCatalog
from models.quiz_attempts import AttemptState
from utils.helpers import isoformat


@dataclass(frozen=True)
class OwnAttempt:
    attempt: dict

    kind = "own_attempt"

    def to_dict(self):
        return {"kind": self.kind, "attempt": self.attempt}


@dataclass(frozen=True)
class AttemptsList:
    attempts: list

    kind = "attempts_list"

    def to_dict(self):
        return {"kind": self.kind, "attempts": self.attempts}


AttemptResult = Union[OwnAttempt, AttemptsList]


def resolve_attempt_result(quiz_id, caller_id, catalog=QuizCatalog, store=AttemptStore) -> AttemptResult:
    quiz_def = catalog.get_quiz_definition(quiz_id)

    if quiz_def.creator_id == caller_id:
        return AttemptsList([
            attempt_summary(attempt, quiz_def) for attempt in store.submitted_for_quiz(quiz_id)
        ])

    attempt = store.find(quiz_id, caller_id)
    if attempt is None or attempt.lifecycle_state is not AttemptState.SUBMITTED:
        raise AttemptNotFound("No submitted attempt for this quiz.")
    return OwnAttempt(attempt_summary(attempt, quiz_def))


def attempted_quizzes(participant_id, catalog=QuizCatalog, store=AttemptStore) -> list:
    quizzes = []
    for attempt in store.submitted_for_user(participant_id):
        quiz_def = catalog.get_quiz_definition(attempt.quiz_id)
        quizzes.append({
            "quiz_id": quiz_def.id,
            "quiz_title": quiz_def.title,
            "score": attempt.score,
            "max_score": quiz_def.max_score,
            "submitted_at": isoformat(attempt.submitted_at),
        })
    return quizzes


def attempt_summary(attempt, quiz_def) -> dict:
    user = attempt.user
    return {
        "attempt_id": attempt.id,
        "user_id": attempt.user_id,
        "username": user.username if user else None,
        "full_name": user.full_name if user else None,
        "score": attempt.score,
        "max_score": quiz_def.max_score,
        "started_at": isoformat(attempt.started_at),
        "deadline": isoformat(attempt.deadline),
        "submitted_at": isoformat(attempt.submitted_at),
        "submit_reason": attempt.submit_reason,
        "responses": scoring.grade(attempt.answer_map(), quiz_def),
    }
