from flask import Blueprint, request, jsonify, make_response, current_app
from models.users import User
from models import db
from utils.tokens import get_jwt_token, decode_jwt

auth_bp = Blueprint('auth_bp', __name__)


def _set_token_cookie(response, token, max_age):
    response.set_cookie(
        "access_token", token,
        httponly=True,
        secure=current_app.config["SESSION_COOKIE_SECURE"],
        samesite=current_app.config["SESSION_COOKIE_SAMESITE"],
        path="/",
        max_age=max_age
    )


# Login
@auth_bp.route('/login/', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    username = data.get("username_or_email")
    password = data.get("password")

    if not username or not password:
        return jsonify({"error": "Username and password are required"}), 400

    user = User.query.filter(
        (User.username == username) | (User.email == username)
    ).first()

    if not user or not user.check_password(password):
        return jsonify({"error": "Invalid credentials"}), 401

    token = get_jwt_token({
        "user_id": user.id,
        "username": user.username,
        "full_name": user.full_name,
    })

    response = make_response(jsonify({
        "message": "Login successful",
        "user": user.to_dict()
    }))
    _set_token_cookie(response, token, int(current_app.config["JWT_EXPIRATION"].total_seconds()))
    current_app.logger.info("User %s logged in", user.id)

    return response

# Logout
@auth_bp.route('/logout/', methods=['POST'])
def logout():
    response = make_response(jsonify({"message": "Logout successful"}))
    _set_token_cookie(response, "", 0)
    return response

# Register
@auth_bp.route('/register/', methods=['POST'])
def register():
    data = request.get_json(silent=True) or {}

    username = data.get('username')
    email = data.get('email')
    password = data.get('password')
    full_name = data.get('full_name')

    if not username or not email or not password or not full_name:
        return jsonify({"error": "All fields are required"}), 400

    existing_user = User.query.filter(
        (User.username == username) | (User.email == email)
    ).first()

    if existing_user:
        return jsonify({"error": "User already exists"}), 409

    new_user = User(
        username=username,
        email=email,
        full_name=full_name
    )
    new_user.set_password(password)

    db.session.add(new_user)
    db.session.commit()

    return jsonify({"message": "User registered successfully!", "user": new_user.to_dict()}), 201

# Auth Check
@auth_bp.route('/check-auth/', methods=['GET'])
def check_auth():
    token = request.cookies.get("access_token")

    if not token:
        return jsonify({"error": "Not authenticated"}), 401

    decoded_token = decode_jwt(token)
    if not decoded_token:
        return jsonify({"error": "Invalid or expired token"}), 401

    return jsonify({
        "message": "Authenticated",
        "user": {
            "id": decoded_token.get("user_id"),
            "username": decoded_token.get("username"),
            "full_name": decoded_token.get("full_name")
        }
    }), 200
