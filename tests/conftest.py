import pytest

from casehub.app import create_app
from casehub.db import db
from casehub.db.models import Organisation
from casehub.middleware.auth import AuthService, AuthContext
from casehub.services.authorization import MembershipPolicy
from casehub.services.user_service import UserService


@pytest.fixture
def app(tmp_path):
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'test.sqlite'}",
        'JWT_SECRET_KEY': 'test-secret-key-long-enough-for-hs256-signing',
        'ADMIN_ORGANISATION': 'admin',
    })
    yield app
    with app.app_context():
        db.session.remove()
        db.engine.dispose()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def app_ctx(app):
    with app.app_context():
        yield


def get_or_create_org(name: str) -> Organisation:
    org = Organisation.query.filter_by(name=name).first()
    if not org:
        org = Organisation(name=name, description=f'{name} description')
        db.session.add(org)
        db.session.commit()
    return org


def make_user(email: str, org_name: str, role: str):
    org = get_or_create_org(org_name)
    return UserService.create_user(email, 'password123', org, role)


def make_context(user) -> AuthContext:
    return AuthContext(user=user, policy=MembershipPolicy('admin'))


@pytest.fixture
def make_orgs(app):
    """Create organisations directly in the database, returns their ids"""
    def _make(*names):
        with app.app_context():
            return [get_or_create_org(name).id for name in names]
    return _make


@pytest.fixture
def make_headers(app):
    """Create a member of `org_name` with `role` and return auth headers for them"""
    def _make(email, org_name, role):
        with app.app_context():
            user = make_user(email, org_name, role)
            token = AuthService.create_access_token(user)
        return {'Authorization': f'Bearer {token}'}
    return _make


@pytest.fixture
def admin_headers(make_headers):
    return make_headers('admin@test.com', 'admin', 'admin')


@pytest.fixture
def analyst_headers(make_headers):
    return make_headers('analyst@acme.com', 'acme', 'analyst')
