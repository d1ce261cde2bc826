from models import db
from utils.helpers import isoformat


class Quiz(db.Model):
    __tablename__ = "quizzes"

    id = db.Column(db.Integer, primary_key=True)
    quiz_title = db.Column(db.String(255), nullable=False)
    initiates_on = db.Column(db.DateTime, nullable=False)
    ends_on = db.Column(db.DateTime, nullable=False)
    time_limit_minutes = db.Column(db.Integer, nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    stopped_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=db.func.now(), nullable=False)

    creator_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    creator = db.relationship("User", back_populates="quizzes")

    questions = db.relationship(
        "QuizQuestion",
        back_populates="quiz",
        order_by="QuizQuestion.position",
        cascade="all, delete-orphan",
    )

    @property
    def total_questions(self):
        return len(self.questions)

    def __repr__(self):
        return f"<Quiz {self.quiz_title}>"

    def to_dict(self, include_answers=False):
        return {
            "quiz_id": self.id,
            "quiz_title": self.quiz_title,
            "initiates_on": isoformat(self.initiates_on),
            "ends_on": isoformat(self.ends_on),
            "time_limit_minutes": self.time_limit_minutes,
            "is_active": self.is_active,
            "stopped_at": isoformat(self.stopped_at),
            "creator_id": self.creator_id,
            "total_questions": self.total_questions,
            "questions": [q.to_dict(include_answer=include_answers) for q in self.questions],
        }
