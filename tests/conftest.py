import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest


PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app import create_app
from classes.clock import FrozenClock
from classes.quiz_catalog import QuizCatalog
from models import db
from models.users import User


T0 = datetime(2026, 1, 5, 9, 0, 0)


def iso(value):
    return value.isoformat() + "Z"


def quiz_payload(opens_at=T0, closes_at=T0 + timedelta(minutes=60), minutes=20, questions=None):
    if questions is None:
        questions = [
            {"question_title": "2 + 2?", "option1": "3", "option2": "4", "option3": "5", "option4": "6", "answer": 2},
            {"question_title": "Capital of France?", "option1": "Paris", "option2": "Rome", "option3": "Oslo", "option4": "Bern", "answer": 1},
        ]
    return {
        "quiz_title": "Warm-up",
        "initiates_on": iso(opens_at),
        "ends_on": iso(closes_at),
        "time_limit_minutes": minutes,
        "questions": questions,
    }


@pytest.fixture
def clock():
    return FrozenClock(T0)


@pytest.fixture
def app(clock):
    app = create_app("testing", clock=clock)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


def make_user(username):
    user = User(username=username, email=f"{username}@example.com", full_name=username.title())
    user.set_password("secret-pass")
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def creator(app):
    return make_user("creator")


@pytest.fixture
def participant(app):
    return make_user("participant")


@pytest.fixture
def make_quiz(creator):
    def _make_quiz(**kwargs):
        quiz = QuizCatalog.create_quiz(creator.id, quiz_payload(**kwargs))
        return quiz
    return _make_quiz


def login(app, username):
    client = app.test_client()
    response = client.post(
        "/api/v1/auth/login/",
        json={"username_or_email": username, "password": "secret-pass"},
    )
    assert response.status_code == 200
    return client


@pytest.fixture
def creator_client(app, creator):
    return login(app, creator.username)


@pytest.fixture
def participant_client(app, participant):
    return login(app, participant.username)
