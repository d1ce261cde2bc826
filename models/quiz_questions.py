from models import db


class QuizQuestion(db.Model):
    __tablename__ = "quiz_questions"

    id = db.Column(db.Integer, primary_key=True)
    quiz_id = db.Column(db.Integer, db.ForeignKey("quizzes.id"), nullable=False)
    position = db.Column(db.Integer, nullable=False, default=0)
    question_title = db.Column(db.Text, nullable=False)
    option1 = db.Column(db.String(255), nullable=False)
    option2 = db.Column(db.String(255), nullable=False)
    option3 = db.Column(db.String(255), nullable=False)
    option4 = db.Column(db.String(255), nullable=False)
    answer = db.Column(db.Integer, nullable=False)  # correct option, 1-4
    weight = db.Column(db.Float, nullable=False, default=1.0)

    quiz = db.relationship("Quiz", back_populates="questions")

    @property
    def options(self):
        return [self.option1, self.option2, self.option3, self.option4]

    def to_dict(self, include_answer=False):
        data = {
            "question_id": self.id,
            "question_title": self.question_title,
            "option1": self.option1,
            "option2": self.option2,
            "option3": self.option3,
            "option4": self.option4,
            "weight": self.weight,
        }
        if include_answer:
            data["answer"] = self.answer
        return data
