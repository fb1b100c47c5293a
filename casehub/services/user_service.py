from datetime import datetime, timezone
import logging

from casehub.db.models import User, Membership, Organisation
from casehub.exceptions import ValidationError, ConflictError
from casehub.db import db, transaction
from casehub.services.authorization import ROLE_PERMISSIONS
from casehub.utils.validators import validate_email, validate_password

logger = logging.getLogger(__name__)


class UserService:
    @staticmethod
    def create_user(email: str, password: str, organisation: Organisation, role: str) -> User:
        """
        Create a new user with the given email and password, member of
        `organisation` with `role`.
        Validates email uniqueness and the role name.
        """

        # validate email and password
        if not validate_email(email):
            raise ValidationError("Invalid email", "INVALID_EMAIL")
        if not validate_password(password):
            raise ValidationError("Invalid password. Must be at least 8 characters long.", "INVALID_PASSWORD")
        if role not in ROLE_PERMISSIONS:
            raise ValidationError(f"Unknown role: {role}", "INVALID_ROLE")

        with transaction():
            if User.query.filter_by(email=email).first():
                raise ConflictError("User with this email already exists", "USER_EXISTS")

            user = User(
                email=email,
                created_at=datetime.now(timezone.utc),
                updated_at=datetime.now(timezone.utc)
            )
            user.set_password(password)
            db.session.add(user)
            db.session.add(Membership(user=user, organisation=organisation, role=role))

        logger.info("Created user %s in %s as %s", email, organisation.name, role)
        return user

    @staticmethod
    def add_membership(user: User, organisation: Organisation, role: str) -> Membership:
        """Add `user` to `organisation`, or change their role there"""
        if role not in ROLE_PERMISSIONS:
            raise ValidationError(f"Unknown role: {role}", "INVALID_ROLE")

        with transaction():
            membership = Membership.query.filter_by(
                user_id=user.id,
                organisation_id=organisation.id
            ).first()
            if membership:
                membership.role = role
            else:
                membership = Membership(user=user, organisation=organisation, role=role)
                db.session.add(membership)

        logger.info("Set %s as %s in %s", user.email, role, organisation.name)
        return membership

