import enum

from models import db


class AttemptState(str, enum.Enum):
    NOT_STARTED = "not_started"
    ACTIVE = "active"
    ENDED = "ended"
    SUBMITTED = "submitted"


class QuizAttempt(db.Model):
    __tablename__ = "quiz_attempts"
    __table_args__ = (
        db.UniqueConstraint("quiz_id", "user_id", name="uq_quiz_attempts_quiz_user"),
    )

    id = db.Column(db.Integer, primary_key=True)
    quiz_id = db.Column(db.Integer, db.ForeignKey("quizzes.id"), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    started_at = db.Column(db.DateTime, nullable=False)
    deadline = db.Column(db.DateTime, nullable=False)
    state = db.Column(db.String(20), nullable=False, default=AttemptState.ACTIVE.value)
    score = db.Column(db.Float, nullable=True)
    submitted_at = db.Column(db.DateTime, nullable=True)
    ended_reason = db.Column(db.String(32), nullable=True)
    submit_reason = db.Column(db.String(32), nullable=True)
    # bumped by every guarded write; see classes/attempt_store.py
    version = db.Column(db.Integer, nullable=False, default=0)

    quiz = db.relationship("Quiz", backref=db.backref("attempts", lazy=True))
    user = db.relationship("User", backref=db.backref("quiz_attempts", lazy=True))
    answers = db.relationship("QuizAttemptAnswer", back_populates="attempt", lazy=True)

    @property
    def lifecycle_state(self):
        return AttemptState(self.state)

    def answer_map(self):
        return {answer.question_id: answer.selected_option for answer in self.answers}
