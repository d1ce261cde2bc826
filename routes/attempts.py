from flask import Blueprint, jsonify, request, current_app

from classes.attempt_session import AttemptSession, REASON_MANUAL
from utils.helpers import parse_option
from utils.utils import login_required, current_user_id

# Attempt session blueprint: begin, save, status, submit
attempt_bp = Blueprint("attempt", __name__)


#Begin or resume an attempt
@attempt_bp.route("/attempt/<int:quiz_id>/", methods=["GET"])
@login_required
def begin_attempt(quiz_id):
    view = AttemptSession().begin(quiz_id, current_user_id())
    return jsonify(view.to_dict()), 200


#Save a single answer
@attempt_bp.route("/attempt/<int:quiz_id>/save/", methods=["PATCH"])
@login_required
def save_answer(quiz_id):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Request body must be a JSON object"}), 400

    try:
        question_id = parse_option(data.get("question_id"))
        selected_option = parse_option(data.get("selected_option"))
    except ValueError:
        return jsonify({"error": "question_id and selected_option must be integers"}), 400

    view = AttemptSession().record_answer(quiz_id, current_user_id(), question_id, selected_option)
    return jsonify(view.to_dict()), 200


#Status check, polled by the attempt page
@attempt_bp.route("/attempt/<int:quiz_id>/status/", methods=["GET"])
@login_required
def attempt_status(quiz_id):
    view = AttemptSession().poll(quiz_id, current_user_id())
    return jsonify(view.to_dict()), 200


#Submit and lock the attempt
@attempt_bp.route("/attempt/<int:quiz_id>/submit/", methods=["POST"])
@login_required
def submit_attempt(quiz_id):
    # answers are never taken from the body; the saved ones are scored
    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        return jsonify({"error": "Request body must be a JSON object"}), 400
    reason = data.get("reason", REASON_MANUAL)

    try:
        view = AttemptSession().finalize(quiz_id, current_user_id(), reason)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    current_app.logger.debug("Submit (%s) for quiz %s handled", reason, quiz_id)
    return jsonify(view.to_dict()), 200
