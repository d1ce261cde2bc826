"""Quiz catalog: authoring-side storage and the read-only snapshot the attempt session consumes."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
import logging

from sqlalchemy.exc import SQLAlchemyError

from classes.errors import Forbidden, QuizHasAttempts, QuizNotFound, StoreUnavailable
from models import db
from models.quiz_attempts import QuizAttempt
from models.quiz_questions import QuizQuestion
from models.quizzes import Quiz
from utils.helpers import parse_datetime, parse_option, validate_questions

logger = logging.getLogger(__name__)

VALID_OPTIONS = (1, 2, 3, 4)


@dataclass(frozen=True)
class QuestionDefinition:
    id: int
    prompt: str
    options: tuple[str, str, str, str]
    correct_option: int
    weight: float = 1.0

    def is_valid_option(self, option: int) -> bool:
        return option in VALID_OPTIONS


@dataclass(frozen=True)
class QuizDefinition:
    id: int
    title: str
    creator_id: int
    questions: tuple[QuestionDefinition, ...]
    opens_at: datetime
    closes_at: datetime
    duration_limit: timedelta
    is_active: bool = True
    stopped_at: datetime | None = None

    @classmethod
    def from_model(cls, quiz: Quiz) -> "QuizDefinition":
        return cls(
            id=quiz.id,
            title=quiz.quiz_title,
            creator_id=quiz.creator_id,
            questions=tuple(
                QuestionDefinition(
                    id=q.id,
                    prompt=q.question_title,
                    options=tuple(q.options),
                    correct_option=q.answer,
                    weight=q.weight if q.weight is not None else 1.0,
                )
                for q in quiz.questions
            ),
            opens_at=quiz.initiates_on,
            closes_at=quiz.ends_on,
            duration_limit=timedelta(minutes=quiz.time_limit_minutes),
            is_active=quiz.is_active,
            stopped_at=quiz.stopped_at,
        )

    @property
    def is_stopped(self) -> bool:
        return not self.is_active

    @property
    def max_score(self) -> float:
        return sum(q.weight for q in self.questions)

    def question(self, question_id: int) -> QuestionDefinition | None:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None

    def deadline_for(self, started_at: datetime) -> datetime:
        """Personal deadline: the time limit, truncated by the quiz window."""
        return min(started_at + self.duration_limit, self.closes_at)

    def has_started(self, now: datetime) -> bool:
        return now >= self.opens_at

    def has_ended(self, now: datetime) -> bool:
        return self.is_stopped or now >= self.closes_at


class QuizCatalog:
    @staticmethod
    def get_quiz_definition(quiz_id) -> QuizDefinition:
        quiz = db.session.get(Quiz, quiz_id)
        if not quiz:
            raise QuizNotFound()
        return QuizDefinition.from_model(quiz)

    @staticmethod
    def get_owned_quiz(quiz_id, user_id) -> Quiz:
        quiz = db.session.get(Quiz, quiz_id)
        if not quiz:
            raise QuizNotFound()
        if quiz.creator_id != user_id:
            raise Forbidden()
        return quiz

    @staticmethod
    def list_created(creator_id) -> list[Quiz]:
        return (
            Quiz.query.filter_by(creator_id=creator_id)
            .order_by(Quiz.initiates_on.desc())
            .all()
        )

    @staticmethod
    def create_quiz(creator_id, data) -> Quiz:
        """
        Validate a creation payload and persist the quiz with its questions.
        Raises ValueError with a user-facing message on bad input.
        """
        title = (data.get("quiz_title") or "").strip()
        if not title:
            raise ValueError("Quiz title is required.")

        initiates_on = parse_datetime(data.get("initiates_on"))
        ends_on = parse_datetime(data.get("ends_on"))
        if ends_on <= initiates_on:
            raise ValueError("End time must be after start time.")

        time_limit = _parse_time_limit(data.get("time_limit_minutes"))

        questions = data.get("questions")
        validate_questions(questions)

        quiz = Quiz(
            quiz_title=title,
            initiates_on=initiates_on,
            ends_on=ends_on,
            time_limit_minutes=time_limit,
            is_active=bool(data.get("is_active", True)),
            creator_id=creator_id,
        )
        for position, question in enumerate(questions):
            quiz.questions.append(
                QuizQuestion(
                    position=position,
                    question_title=question["question_title"] or "Untitled Question",
                    option1=question["option1"],
                    option2=question["option2"],
                    option3=question["option3"],
                    option4=question["option4"],
                    answer=parse_option(question["answer"]),
                    weight=float(question.get("weight", 1)),
                )
            )

        _commit(quiz)
        logger.info("Quiz %s created by user %s with %d questions", quiz.id, creator_id, len(questions))
        return quiz

    @staticmethod
    def update_quiz(quiz_id, user_id, data) -> Quiz:
        """
        Edit title, window or time limit. Attempts already started keep the
        deadline they were given.
        """
        quiz = QuizCatalog.get_owned_quiz(quiz_id, user_id)

        changes = {}
        if "quiz_title" in data:
            changes["quiz_title"] = (data.get("quiz_title") or "").strip()
            if not changes["quiz_title"]:
                raise ValueError("Quiz title is required.")
        if "initiates_on" in data:
            changes["initiates_on"] = parse_datetime(data["initiates_on"])
        if "ends_on" in data:
            changes["ends_on"] = parse_datetime(data["ends_on"])
        if "time_limit_minutes" in data:
            changes["time_limit_minutes"] = _parse_time_limit(data["time_limit_minutes"])

        if changes.get("ends_on", quiz.ends_on) <= changes.get("initiates_on", quiz.initiates_on):
            raise ValueError("End time must be after start time.")

        for field_name, value in changes.items():
            setattr(quiz, field_name, value)
        _commit()
        return quiz

    @staticmethod
    def mark_stopped(quiz_id, user_id, now) -> Quiz:
        quiz = QuizCatalog.get_owned_quiz(quiz_id, user_id)
        if quiz.is_active:
            quiz.is_active = False
            quiz.stopped_at = now
            _commit()
            logger.info("Quiz %s force-stopped by user %s", quiz_id, user_id)
        return quiz

    @staticmethod
    def delete_quiz(quiz_id, user_id) -> None:
        quiz = QuizCatalog.get_owned_quiz(quiz_id, user_id)
        if QuizAttempt.query.filter_by(quiz_id=quiz.id).count():
            raise QuizHasAttempts()
        db.session.delete(quiz)
        _commit()
        logger.info("Quiz %s deleted by user %s", quiz_id, user_id)


def _parse_time_limit(value) -> int:
    try:
        minutes = parse_option(value)
    except ValueError:
        raise ValueError("Time limit must be a whole number of minutes.")
    if minutes <= 0:
        raise ValueError("Time limit must be greater than zero.")
    return minutes


def _commit(instance=None) -> None:
    try:
        if instance is not None:
            db.session.add(instance)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Quiz catalog write failed")
        raise StoreUnavailable()
