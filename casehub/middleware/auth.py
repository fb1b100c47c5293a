from dataclasses import dataclass
from functools import wraps
import logging

from flask import request, current_app
from casehub.exceptions import AuthenticationError, AuthorizationError

import jwt

from datetime import datetime, timedelta, timezone
from casehub.db import db
from casehub.db.models import User
from casehub.services.authorization import AuthorizationPolicy, MembershipPolicy

logger = logging.getLogger(__name__)

JWT_ALGORITHM = 'HS256'


@dataclass
class AuthContext:
    """Request-scoped caller identity, passed explicitly to every service call"""
    user: User
    policy: AuthorizationPolicy

    @property
    def email(self) -> str:
        return self.user.email


class AuthService:
    @staticmethod
    def verify_password(user: User, password: str) -> bool:
        return user.check_password(password)

    @staticmethod
    def authenticate_user(email: str, password: str) -> User:
        user = User.query.filter_by(email=email).first()
        if not user or not AuthService.verify_password(user, password):
            logger.warning("Failed login for %s", email)
            raise AuthenticationError("Invalid email or password", "INVALID_CREDENTIALS")
        return user

    @staticmethod
    def create_access_token(user: User) -> str:
        expires = timedelta(hours=current_app.config['JWT_EXPIRES_HOURS'])
        payload = {
            'user_id': user.id,
            'email': user.email,
            'exp': datetime.now(timezone.utc) + expires
        }
        return jwt.encode(payload, current_app.config['JWT_SECRET_KEY'], algorithm=JWT_ALGORITHM)

    @staticmethod
    def verify_token(token: str) -> dict:
        try:
            payload = jwt.decode(token, current_app.config['JWT_SECRET_KEY'], algorithms=[JWT_ALGORITHM])
            return payload
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token has expired", "TOKEN_EXPIRED")
        except jwt.InvalidTokenError:
            raise AuthenticationError("Invalid token", "INVALID_TOKEN")

    @staticmethod
    def build_context(payload: dict) -> AuthContext:
        user = db.session.get(User, payload.get('user_id'))
        if not user:
            raise AuthenticationError("User no longer exists", "USER_NOT_FOUND")
        policy = MembershipPolicy(current_app.config['ADMIN_ORGANISATION'])
        return AuthContext(user=user, policy=policy)


def requires_auth(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        token = None
        auth_header = request.headers.get('Authorization')

        if auth_header:
            try:
                token = auth_header.split(" ")[1]  # Bearer <token>
            except IndexError:
                raise AuthenticationError("Invalid token format", "INVALID_TOKEN_FORMAT")

        if not token:
            raise AuthenticationError("Token is missing", "TOKEN_MISSING")

        payload = AuthService.verify_token(token)
        request.auth_context = AuthService.build_context(payload)

        return f(*args, **kwargs)

    return decorated


# decorator utils for routes.

def requires_permission(permission: str):
    """
    Only let the request through when the caller holds `permission`
    inside the administration organisation.
    """
    def decorator(f):
        @wraps(f)
        def decorated(*args, **kwargs):
            context = getattr(request, 'auth_context', None)
            if context is None: # this is only used after the requires_auth decorator.
                raise AuthenticationError("Authentication required", "AUTH_REQUIRED")

            if not context.policy.has_admin_permission(context.user, permission):
                logger.warning("%s denied %s on %s", context.email, permission, request.path)
                raise AuthorizationError(
                    f"Access denied. Required permission: {permission}",
                    "INSUFFICIENT_PERMISSION"
                )

            return f(*args, **kwargs)
        return decorated
    return decorator
