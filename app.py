import os
from dotenv import load_dotenv
load_dotenv()
from flask import Flask, jsonify
from flask_cors import CORS
from flask_migrate import Migrate
from config import config_dict, ProdConfig
from models import db
from classes.clock import SystemClock, install_clock
from classes.errors import QuizSessionError
from routes.authentication import auth_bp
from routes.quizzes import quiz_bp
from routes.attempts import attempt_bp
from utils.logging_config import configure_logging

migrate = Migrate()


def create_app(config_name=None, clock=None):
    app = Flask(__name__)

    env = (config_name or os.environ.get("FLASK_ENV", "production")).lower()
    app.config.from_object(config_dict.get(env, ProdConfig))

    logger = configure_logging(app.config["LOG_LEVEL"])
    logger.info("Environment: %s", env)

    CORS(app, resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"]}}, supports_credentials=True)

    db.init_app(app)
    migrate.init_app(app, db)
    install_clock(app, clock or SystemClock())

    @app.route('/')
    def home():
        return "Welcome to the Timed Quiz API!"

    @app.errorhandler(QuizSessionError)
    def handle_quiz_session_error(error):
        return jsonify(error.to_dict()), error.status_code

    app.register_blueprint(auth_bp, url_prefix='/api/v1/auth')
    app.register_blueprint(quiz_bp, url_prefix='/api/v1/quiz')
    app.register_blueprint(attempt_bp, url_prefix='/api/v1/quiz')

    return app


if __name__ == '__main__':
    app = create_app()
    app.run(debug=app.config['DEBUG'])
