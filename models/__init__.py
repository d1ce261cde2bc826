from flask_sqlalchemy import SQLAlchemy

# Initialize SQLAlchemy
db = SQLAlchemy()

# Import models
from models.users import User

from models.quizzes import Quiz
from models.quiz_questions import QuizQuestion
from models.quiz_attempts import QuizAttempt, AttemptState
from models.quiz_attempts_answers import QuizAttemptAnswer
