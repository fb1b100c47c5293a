from flask import Blueprint, request, jsonify
from casehub.middleware.auth import requires_auth, AuthService
from casehub.exceptions import ValidationError

auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    email = data.get('email')
    password = data.get('password')

    if not all([email, password]):
        raise ValidationError("Missing required fields", "MISSING_REQUIRED_FIELDS")

    user = AuthService.authenticate_user(email, password)
    token = AuthService.create_access_token(user)

    return jsonify({
        'message': 'Login successful',
        'token': token
    }), 200


@auth_bp.route('/me', methods=['GET'])
@requires_auth
def get_current_user():
    user = request.auth_context.user
    return jsonify({
        'id': user.id,
        'email': user.email,
        'organisations': [{
            'id': m.organisation.id,
            'name': m.organisation.name,
            'role': m.role
        } for m in sorted(user.memberships, key=lambda m: m.organisation.name)]
    }), 200
