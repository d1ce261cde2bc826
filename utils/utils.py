from functools import wraps
from flask import request, jsonify, g
from utils.tokens import decode_jwt


def login_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = request.cookies.get("access_token")
        if not token:
            return jsonify({"error": "Unauthorized"}), 401

        decoded = decode_jwt(token)
        if not decoded or "user_id" not in decoded:
            return jsonify({"error": "Invalid token"}), 401

        g.user = decoded
        return f(*args, **kwargs)

    return decorated_function


def current_user_id():
    return g.user.get("user_id")
