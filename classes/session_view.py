"""What the attempt page sees: lifecycle state, server time and time remaining."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from models.quiz_attempts import AttemptState
from utils.helpers import isoformat


@dataclass
class SessionView:
    quiz_id: int
    lifecycle_state: AttemptState
    remaining_seconds: int
    now: datetime
    opens_at: datetime
    closes_at: datetime
    duration_limit_seconds: int
    poll_interval_seconds: int
    quiz_ended: bool = False
    score: float | None = None
    max_score: float | None = None
    started_at: datetime | None = None
    deadline: datetime | None = None
    submitted_at: datetime | None = None
    questions: list | None = None
    responses: dict | None = field(default=None)

    @property
    def already_submitted(self) -> bool:
        return self.lifecycle_state is AttemptState.SUBMITTED

    @property
    def is_active(self) -> bool:
        return self.lifecycle_state is AttemptState.ACTIVE

    @classmethod
    def for_attempt(cls, attempt, quiz_def, now, poll_interval, include_questions=False):
        state = attempt.lifecycle_state
        remaining = 0
        if state is AttemptState.ACTIVE:
            remaining = max(0, int((attempt.deadline - now).total_seconds()))

        view = cls(
            quiz_id=quiz_def.id,
            lifecycle_state=state,
            remaining_seconds=remaining,
            now=now,
            opens_at=quiz_def.opens_at,
            closes_at=quiz_def.closes_at,
            duration_limit_seconds=int(quiz_def.duration_limit.total_seconds()),
            poll_interval_seconds=poll_interval,
            quiz_ended=state is not AttemptState.ACTIVE or quiz_def.has_ended(now),
            started_at=attempt.started_at,
            deadline=attempt.deadline,
        )
        if state is AttemptState.SUBMITTED:
            view.score = attempt.score
            view.max_score = quiz_def.max_score
            view.submitted_at = attempt.submitted_at
        if include_questions:
            view.questions = [_public_question(q) for q in quiz_def.questions]
            view.responses = attempt.answer_map()
        return view

    @classmethod
    def not_started(cls, quiz_def, now, poll_interval):
        return cls(
            quiz_id=quiz_def.id,
            lifecycle_state=AttemptState.NOT_STARTED,
            remaining_seconds=0,
            now=now,
            opens_at=quiz_def.opens_at,
            closes_at=quiz_def.closes_at,
            duration_limit_seconds=int(quiz_def.duration_limit.total_seconds()),
            poll_interval_seconds=poll_interval,
            quiz_ended=quiz_def.has_ended(now),
        )

    def to_dict(self):
        data = {
            "quiz_id": self.quiz_id,
            "lifecycle_state": self.lifecycle_state.value,
            "remaining_seconds": self.remaining_seconds,
            "already_submitted": self.already_submitted,
            "is_active": self.is_active,
            "quiz_ended": self.quiz_ended,
            "now": isoformat(self.now),
            "initiates_on": isoformat(self.opens_at),
            "ends_on": isoformat(self.closes_at),
            "time_limit_minutes": self.duration_limit_seconds // 60,
            "started_at": isoformat(self.started_at),
            "deadline": isoformat(self.deadline),
            "poll_interval_seconds": self.poll_interval_seconds,
        }
        if self.already_submitted:
            data["score"] = self.score
            data["max_score"] = self.max_score
            data["submitted_at"] = isoformat(self.submitted_at)
        if self.questions is not None:
            data["questions"] = self.questions
            data["responses"] = {str(qid): option for qid, option in (self.responses or {}).items()}
        return data


def _public_question(question):
    # correct option stays server-side
    return {
        "question_id": question.id,
        "question_title": question.prompt,
        "option1": question.options[0],
        "option2": question.options[1],
        "option3": question.options[2],
        "option4": question.options[3],
        "weight": question.weight,
    }
