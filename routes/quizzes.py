from flask import Blueprint, jsonify, request

from classes.attempt_results import attempted_quizzes, resolve_attempt_result
from classes.attempt_session import AttemptSession
from classes.attempt_store import AttemptStore
from classes.quiz_catalog import QuizCatalog
from utils.utils import login_required, current_user_id

# Quiz catalog blueprint: authoring side and results
quiz_bp = Blueprint("quiz", __name__)


#CREATE a New Quiz
# --------------------------------------------------------------------------------
@quiz_bp.route("/create/", methods=["POST"])
@login_required
def create_quiz():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Request body must be a JSON object"}), 400

    try:
        quiz = QuizCatalog.create_quiz(current_user_id(), data)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({"message": "Quiz created successfully", "quiz": quiz.to_dict(include_answers=True)}), 201


#Fetch quizzes created by the current user
# --------------------------------------------------------------------------------
@quiz_bp.route("/create/", methods=["GET"])
@login_required
def my_quizzes():
    quizzes = []
    for quiz in QuizCatalog.list_created(current_user_id()):
        data = quiz.to_dict(include_answers=True)
        data["attempt_count"] = AttemptStore.count_for_quiz(quiz.id)
        quizzes.append(data)
    return jsonify(quizzes), 200


#Quiz info for the instructions page
# --------------------------------------------------------------------------------
@quiz_bp.route("/<int:quiz_id>/info/", methods=["GET"])
@login_required
def quiz_info(quiz_id):
    return jsonify(AttemptSession().info(quiz_id, current_user_id())), 200


# EDIT a Quiz (title, window, time limit)
# --------------------------------------------------------------------------------
@quiz_bp.route("/<int:quiz_id>/", methods=["PATCH"])
@login_required
def edit_quiz(quiz_id):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Request body must be a JSON object"}), 400

    try:
        quiz = QuizCatalog.update_quiz(quiz_id, current_user_id(), data)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({"message": "Quiz updated successfully", "quiz": quiz.to_dict(include_answers=True)}), 200


# STOP a Quiz for everyone
# --------------------------------------------------------------------------------
@quiz_bp.route("/<int:quiz_id>/stop/", methods=["POST"])
@login_required
def stop_quiz(quiz_id):
    ended = AttemptSession().force_stop(quiz_id, current_user_id())
    return jsonify({"message": "Quiz stopped", "ended_attempts": ended}), 200


# DELETE a Quiz
# --------------------------------------------------------------------------------
@quiz_bp.route("/delete/<int:quiz_id>/", methods=["DELETE"])
@login_required
def delete_quiz(quiz_id):
    QuizCatalog.delete_quiz(quiz_id, current_user_id())
    return jsonify({"message": "Quiz deleted successfully"}), 200


#Responses: every attempt for the creator, your own attempt otherwise
# --------------------------------------------------------------------------------
@quiz_bp.route("/quizzes/<int:quiz_id>/responses/", methods=["GET"])
@login_required
def quiz_responses(quiz_id):
    result = resolve_attempt_result(quiz_id, current_user_id())
    return jsonify(result.to_dict()), 200


#Quizzes the current user has submitted
# --------------------------------------------------------------------------------
@quiz_bp.route("/quizzes/attempted/", methods=["GET"])
@login_required
def my_attempted_quizzes():
    return jsonify(attempted_quizzes(current_user_id())), 200
