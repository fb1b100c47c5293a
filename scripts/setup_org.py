#!/usr/bin/env python3
import sys
import os
import logging
from datetime import datetime, timezone
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from casehub.app import create_app
from casehub.db import db, transaction
from casehub.db.models import Organisation, User
from casehub.exceptions import ServiceException
from casehub.services.authorization import Role
from casehub.services.user_service import UserService

logger = logging.getLogger('setup_org')


def setup_org(name: str, email: str, password: str, role: str = Role.ADMIN):
    """
    Create an organisation (unless it exists) and make `email` a member of it.
    A new user is created with `password`; an existing user keeps theirs and
    only gains the membership, or has their role there changed.
    With the default arguments this bootstraps the first platform administrator.
    """
    org = Organisation.query.filter_by(name=name).first()
    if not org:
        with transaction():
            org = Organisation(
                name=name,
                description='',
                created_by='setup',
                created_at=datetime.now(timezone.utc),
                updated_at=datetime.now(timezone.utc)
            )
            db.session.add(org)
        logger.info("Created organisation %s", name)

    user = User.query.filter_by(email=email).first()
    if user:
        UserService.add_membership(user, org, role)
    else:
        user = UserService.create_user(email, password, org, role)

    print(f"""
Organisation membership set up successfully!
Organisation: {org.name} (ID: {org.id})
User: {user.email} (ID: {user.id}, role: {role})
    """)
    return org, user


def main():
    if len(sys.argv) not in (4, 5):
        print("Usage: python setup_org.py <org_name> <email> <password> [role]")
        sys.exit(1)

    org_name = sys.argv[1]
    email = sys.argv[2]
    password = sys.argv[3]
    role = sys.argv[4] if len(sys.argv) == 5 else Role.ADMIN

    app = create_app()
    with app.app_context():
        try:
            setup_org(org_name, email, password, role)
        except ServiceException as e:
            print(f"Error: {e}")
            sys.exit(1)


if __name__ == '__main__':
    main()
