import logging
from contextlib import contextmanager

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

logger = logging.getLogger(__name__)


def init_db(app):
    """Initialize the database with the app"""
    app.config.setdefault('SQLALCHEMY_DATABASE_URI', 'sqlite:///db.sqlite')
    app.config.setdefault('SQLALCHEMY_TRACK_MODIFICATIONS', False)
    db.init_app(app)

    from casehub.db.models import Organisation, User, Membership  # noqa: F401
    from casehub.services.org_service import OrgService

    # Create tables if they don't exist
    with app.app_context():
        db.create_all()
        OrgService.ensure_administration(app.config['ADMIN_ORGANISATION'])


@contextmanager
def transaction():
    """
    Run a block as one unit of work on the current session.
    Commits when the block finishes, rolls back and re-raises on any error.
    """
    try:
        yield db.session
        db.session.commit()
    except Exception:
        logger.debug("Rolling back transaction", exc_info=True)
        db.session.rollback()
        raise
